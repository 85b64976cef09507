"""Respondent workflow endpoints.

``GET /survey/sections`` exposes the section sequencer so thin clients
can draw their stepper; ``POST /survey/submit`` takes a flat answer map,
runs full validation and assembly server-side and stores the record.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from mkulima_db.repository import SubmissionRepository
from mkulima_survey.answers import AnswerStore
from mkulima_survey.assembler import assemble
from mkulima_survey.catalog import QuestionCatalog
from mkulima_survey.constants import SECTION_TITLES
from mkulima_survey.sequencer import compute_sections

from mkulima_server.dependencies import get_catalog, get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/survey", tags=["survey"])

_repo = SubmissionRepository()


# ------------------------------------------------------------------
# Request models
# ------------------------------------------------------------------

class SubmitAnswersRequest(BaseModel):
    """Body for POST /survey/submit: answers keyed by qid or label."""
    answers: dict[str, Any]


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.get("/sections")
def list_sections(user_type: str | None = Query(None, alias="userType")) -> dict:
    """Ordered sections for a declared user type (base two when unset)."""
    sections = compute_sections(user_type)
    return {
        "sections": sections,
        "titles": [SECTION_TITLES.get(s, s.title()) for s in sections],
    }


@router.post("/submit", status_code=201)
async def submit_answers(
    body: SubmitAnswersRequest,
    db: AsyncSession = Depends(get_db),
    catalog: QuestionCatalog = Depends(get_catalog),
) -> dict:
    """Assemble and store a submission from raw answers.

    Returns 422 with the offending ``section`` when a visible required
    question is unanswered.  Unknown answer keys are ignored.
    """
    answers = AnswerStore(catalog, body.answers)
    discriminator = catalog.discriminator
    user_type = answers.get_answer(discriminator.qid) if discriminator is not None else None
    record = assemble(catalog, compute_sections(user_type), answers)
    stored = await _repo.create(db, record.to_document())
    logger.info("Stored submission %s (userType=%s)", stored.id, user_type)
    return {
        "msg": "Submission saved successfully",
        "id": str(stored.id),
        "submission": stored.to_document(),
    }
