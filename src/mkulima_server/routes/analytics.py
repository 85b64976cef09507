"""Analytics endpoint — dashboard aggregates over all submissions (admin only).

Every breakdown is a list of ``{"value", "count"}`` entries, most frequent
first.  Farmer, expert and admin breakdowns only count submissions of that
user type; ``adviceSources`` counts each selected source separately.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from mkulima_db.repository import SubmissionRepository

from mkulima_server.dependencies import CurrentUser, get_db, require_admin

router = APIRouter(tags=["analytics"])

_repo = SubmissionRepository()


@router.get("/analytics")
async def get_analytics(
    db: AsyncSession = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> dict:
    """Return the total and every grouped breakdown."""
    return await _repo.analytics(db)
