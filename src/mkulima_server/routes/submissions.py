"""Submission endpoints.

``POST /submissions`` is public (respondents store their assembled
record); listing, reading, editing and deleting are admin-only.
"""

import logging
import math
import uuid
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from mkulima_db.models.submission import Submission
from mkulima_db.repository import SubmissionRepository
from mkulima_survey.models.submission import SubmissionRecord

from mkulima_server.config import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from mkulima_server.dependencies import CurrentUser, get_db, require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/submissions", tags=["submissions"])

_repo = SubmissionRepository()


async def load_submission(db: AsyncSession, submission_id: str) -> Submission:
    """Fetch a submission by id; malformed ids count as not found.

    Raises:
        ValueError: ("not found") when the row does not exist.
    """
    try:
        pk = uuid.UUID(submission_id)
    except ValueError:
        raise ValueError(f"Submission not found: {submission_id}") from None
    submission = await _repo.get_by_id(db, pk)
    if submission is None:
        raise ValueError(f"Submission not found: {submission_id}")
    return submission


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.post("", status_code=201)
async def create_submission(
    body: SubmissionRecord,
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Store an assembled record with a fresh ``submittedAt``.

    Returns 400 unless both ``profile`` and ``problems`` are present.
    """
    if not body.profile or not body.problems:
        raise HTTPException(status_code=400, detail="Profile and problems are required")
    stored = await _repo.create(db, body.to_document())
    logger.info("Stored submission %s", stored.id)
    return {"msg": "Submission saved successfully", "id": str(stored.id)}


def clamp_paging(page: int, limit: int) -> tuple[int, int]:
    """Out-of-range paging falls back instead of failing the request.

    A page below 1 becomes 1, a non-positive limit becomes the default and
    any limit above the cap is cut to the cap.
    """
    if limit < 1:
        limit = DEFAULT_PAGE_LIMIT
    return max(page, 1), min(limit, MAX_PAGE_LIMIT)


@router.get("")
async def list_submissions(
    page: int = Query(1),
    limit: int = Query(DEFAULT_PAGE_LIMIT),
    sort: str = Query("-submittedAt"),
    user_type: str | None = Query(None, alias="userType"),
    county: str | None = Query(None),
    search: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> dict:
    """Paginated, filterable, sortable submission list (newest first by default).

    ``search`` matches case-insensitively against county, crop-loss
    frequency and expert topics.
    """
    page, limit = clamp_paging(page, limit)
    rows, total = await _repo.list_submissions(
        db,
        limit=limit,
        offset=(page - 1) * limit,
        sort=sort,
        user_type=user_type,
        county=county,
        search=search,
    )
    pages = math.ceil(total / limit)
    return {
        "submissions": [row.to_document() for row in rows],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": pages,
            "hasNext": page < pages,
            "hasPrev": page > 1,
        },
    }


@router.get("/{submission_id}")
async def get_submission(
    submission_id: str,
    db: AsyncSession = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> dict:
    """Single submission.  404 when absent."""
    submission = await load_submission(db, submission_id)
    return submission.to_document()


@router.put("/{submission_id}")
async def update_submission(
    submission_id: str,
    body: dict[str, Any],
    db: AsyncSession = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> dict:
    """Merge field-level changes into the named groups.  404 when absent."""
    submission = await load_submission(db, submission_id)
    updated = await _repo.update(db, submission, body)
    return {"msg": "Submission updated", "submission": updated.to_document()}


@router.delete("/{submission_id}")
async def delete_submission(
    submission_id: str,
    db: AsyncSession = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> dict:
    """Permanently delete a submission.  404 when absent."""
    submission = await load_submission(db, submission_id)
    await _repo.delete(db, submission)
    logger.info("Deleted submission %s", submission_id)
    return {"msg": "Submission deleted successfully"}
