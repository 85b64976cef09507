"""Account endpoints — register and log in, both returning a bearer token."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from mkulima_db.models.enums import UserRole
from mkulima_db.models.user import User
from mkulima_db.repository import UserRepository

from mkulima_server.config import ServerSettings
from mkulima_server.dependencies import get_db, get_settings
from mkulima_server.security import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

_repo = UserRepository()


# ------------------------------------------------------------------
# Request / response models
# ------------------------------------------------------------------

class RegisterRequest(BaseModel):
    """Body for POST /auth/register."""
    email: str
    password: str
    name: str | None = None


class LoginRequest(BaseModel):
    """Body for POST /auth/login."""
    email: str
    password: str


class UserOut(BaseModel):
    id: str
    email: str
    name: str
    role: str


class TokenResponse(BaseModel):
    token: str
    user: UserOut


def _token_response(user: User, settings: ServerSettings) -> TokenResponse:
    role = str(getattr(user.role, "value", user.role))
    token = create_access_token(
        str(user.id), role, settings.jwt_secret, expires_days=settings.jwt_expires_days,
    )
    return TokenResponse(
        token=token,
        user=UserOut(
            id=str(user.id),
            email=user.email,
            # Display name falls back to the mailbox part of the address
            name=user.name or user.email.split("@")[0],
            role=role,
        ),
    )


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.post("/register")
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db),
    settings: ServerSettings = Depends(get_settings),
) -> TokenResponse:
    """Create an account with the configured default role.

    Returns 409 if the email is already registered.
    """
    if not body.email.strip() or not body.password:
        raise HTTPException(status_code=400, detail="Email and password are required")
    user = await _repo.create(
        db,
        email=body.email.strip(),
        password_hash=hash_password(body.password),
        name=body.name,
        role=UserRole(settings.register_default_role),
    )
    logger.info("Registered user %s with role %s", user.id, user.role)
    return _token_response(user, settings)


@router.post("/login")
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
    settings: ServerSettings = Depends(get_settings),
) -> TokenResponse:
    """Verify credentials and issue a token.  400 on bad credentials."""
    user = await _repo.get_by_email(db, body.email.strip())
    if user is None or not verify_password(body.password, user.password_hash):
        raise HTTPException(status_code=400, detail="Invalid credentials")
    return _token_response(user, settings)
