"""Question catalog endpoints.

``GET /questions`` is public and optionally pre-filtered by user type.
Create / update / delete are admin-only; every write is validated against
the whole catalog (unique labels, known user types) before it is stored.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from mkulima_db.repository import QuestionRepository
from mkulima_survey.catalog import QuestionCatalog, field_name_for
from mkulima_survey.models.question import build_question, with_question_type

from mkulima_server.dependencies import CurrentUser, get_catalog, get_db, require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/questions", tags=["questions"])

_repo = QuestionRepository()

_REQUIRED_FIELDS = ("section", "question_type", "label")


def _validated(catalog: QuestionCatalog, record: dict[str, Any], *, replacing: str | None = None) -> dict[str, Any]:
    """Parse ``record`` and check it against the rest of the catalog.

    Returns the normalised record (rule in string form).

    Raises:
        ValueError: on an invalid question or a broken catalog invariant.
    """
    question = build_question(record)
    others = [q for q in catalog if q.qid != replacing]
    QuestionCatalog([*others, question])
    return question.model_dump()


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.get("")
async def list_questions(
    user_type: str | None = Query(None, alias="userType"),
    catalog: QuestionCatalog = Depends(get_catalog),
) -> list[dict]:
    """Return the catalog in display order.

    With ``userType``, profile and problems questions are always returned
    and other questions only when their rule matches that user type.
    """
    return [q.model_dump() for q in catalog.for_user_type(user_type)]


@router.post("", status_code=201)
async def create_question(
    body: dict[str, Any],
    db: AsyncSession = Depends(get_db),
    catalog: QuestionCatalog = Depends(get_catalog),
    _admin: CurrentUser = Depends(require_admin),
) -> dict:
    """Append a question to the catalog.

    ``qid`` is derived from section and label when omitted.  Returns 400
    when section, question_type (or its older name ``type``) or label is
    missing, 409 on a duplicate qid.
    """
    record = with_question_type(body)
    missing = [f for f in _REQUIRED_FIELDS if not record.get(f)]
    if missing:
        raise HTTPException(
            status_code=400,
            detail=f"Missing required fields: {', '.join(missing)}",
        )
    record.setdefault("qid", f"{record['section']}_{field_name_for(record['label'])}")
    if record["qid"] in catalog:
        raise ValueError(f"Question '{record['qid']}' already exists")
    stored = await _repo.create(db, _validated(catalog, record))
    logger.info("Created question %s in section %s", stored.qid, stored.section)
    return stored.to_record()


@router.put("/{qid}")
async def update_question(
    qid: str,
    body: dict[str, Any],
    db: AsyncSession = Depends(get_db),
    catalog: QuestionCatalog = Depends(get_catalog),
    _admin: CurrentUser = Depends(require_admin),
) -> dict:
    """Overwrite fields of an existing question.  404 when absent."""
    row = await _repo.get(db, qid)
    if row is None:
        raise ValueError(f"Question not found: {qid}")
    record = {**row.to_record(), **with_question_type(body), "qid": qid}
    updated = await _repo.update(db, row, _validated(catalog, record, replacing=qid))
    return updated.to_record()


@router.delete("/{qid}")
async def delete_question(
    qid: str,
    db: AsyncSession = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> dict:
    """Remove a question.  404 when absent."""
    row = await _repo.get(db, qid)
    if row is None:
        raise ValueError(f"Question not found: {qid}")
    await _repo.delete(db, row)
    return {"msg": "Question deleted successfully"}
