"""Printable exports — blank questionnaire (public) and single submission (admin)."""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from mkulima_survey.catalog import QuestionCatalog
from mkulima_survey.export import ExportManager
from mkulima_survey.models.submission import StoredSubmission
from mkulima_survey.sequencer import compute_sections

from mkulima_server.dependencies import CurrentUser, get_catalog, get_db, require_admin
from mkulima_server.routes.submissions import load_submission

router = APIRouter(prefix="/export", tags=["export"])

_exports = ExportManager()

MARKDOWN = "text/markdown; charset=utf-8"


@router.get("/questionnaire", response_class=PlainTextResponse)
async def export_questionnaire(
    user_type: str | None = Query(None, alias="userType"),
    catalog: QuestionCatalog = Depends(get_catalog),
) -> PlainTextResponse:
    """Blank questionnaire as Markdown.

    With ``userType`` only that respondent's sections are included;
    without it every section in the catalog is.
    """
    sections = compute_sections(user_type) if user_type else catalog.sections
    body = _exports.render_questionnaire(catalog, sections)
    return PlainTextResponse(body, media_type=MARKDOWN)


@router.get("/submissions/{submission_id}", response_class=PlainTextResponse)
async def export_submission(
    submission_id: str,
    db: AsyncSession = Depends(get_db),
    catalog: QuestionCatalog = Depends(get_catalog),
    _admin: CurrentUser = Depends(require_admin),
) -> PlainTextResponse:
    """One stored submission as a question/answer Markdown table."""
    submission = await load_submission(db, submission_id)
    record = StoredSubmission.model_validate(submission.to_document())
    body = _exports.render_submission(catalog, record)
    return PlainTextResponse(body, media_type=MARKDOWN)
