"""FastAPI dependency injection — DB sessions, settings, catalog and caller identity.

Each request that touches the database gets a fresh ``AsyncSession`` via
``get_db()``.  The session is committed on success and rolled back on error,
matching the repository convention of ``flush()`` but never ``commit()``.
"""

from typing import AsyncGenerator

import jwt
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from mkulima_db.engine import session_scope
from mkulima_db.models.enums import UserRole
from mkulima_db.repository import QuestionRepository
from mkulima_survey.catalog import QuestionCatalog

from mkulima_server.config import ServerSettings
from mkulima_server.security import decode_access_token

# auto_error=False so a missing header maps to 401 (HTTPBearer's default is 403)
_bearer = HTTPBearer(auto_error=False)
_questions = QuestionRepository()


# ------------------------------------------------------------------
# Database session — transaction boundary lives here
# ------------------------------------------------------------------

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async DB session; commit on success, rollback on error."""
    async with session_scope() as session:
        yield session


# ------------------------------------------------------------------
# Settings & catalog
# ------------------------------------------------------------------

def get_settings(request: Request) -> ServerSettings:
    """Return the settings stashed on ``app.state`` by the factory."""
    return request.app.state.settings


async def get_catalog(db: AsyncSession = Depends(get_db)) -> QuestionCatalog:
    """Build the current catalog from the ``questions`` table."""
    rows = await _questions.list_all(db)
    return QuestionCatalog.from_records(row.to_record() for row in rows)


# ------------------------------------------------------------------
# Caller identity — bearer token
# ------------------------------------------------------------------

class CurrentUser(BaseModel):
    """Identity decoded from a valid bearer token."""
    id: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    settings: ServerSettings = Depends(get_settings),
) -> CurrentUser:
    """Decode the ``Authorization: Bearer`` token.

    Returns 401 if the header is missing or the token is invalid/expired.
    """
    if credentials is None:
        raise HTTPException(status_code=401, detail="No token")
    try:
        payload = decode_access_token(credentials.credentials, settings.jwt_secret)
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Invalid token")
    return CurrentUser(id=str(payload["sub"]), role=str(payload.get("role", UserRole.USER.value)))


async def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """Allow only admin accounts; 403 for everyone else."""
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Access denied. Admin only.")
    return user
