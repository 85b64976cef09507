"""Exception → HTTP response mapping for the whole app.

Routes stay on the happy path and let three kinds of error escape:

  - ``SurveyError`` from the SDK (missing answers, incomplete submission)
    becomes 422 with the structured detail a form needs to re-render.
  - ``ValueError`` from repositories and catalog validation becomes 409,
    404 or 400 depending on its message.
  - ``KeyError`` from catalog lookups becomes 404.

Raw messages are logged but never echoed to the client, except for the
survey detail (labels and section names) the respondent already sees.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from mkulima_survey.errors import (
    IncompleteSubmission,
    MissingRequired,
    PersistenceFailure,
    SurveyError,
    UnreachableCatalog,
)

logger = logging.getLogger(__name__)

# First matching phrase (case-insensitive) decides the status
_STATUS_BY_PHRASE: list[tuple[str, int]] = [
    ("already exists", 409),
    ("not found", 404),
]

_PUBLIC_DETAIL: dict[int, str] = {
    400: "Invalid request",
    404: "Resource not found",
    409: "Resource already exists",
}


def status_for(message: str) -> int:
    """HTTP status for a ``ValueError`` message (400 when no phrase matches)."""
    lowered = message.lower()
    for phrase, status in _STATUS_BY_PHRASE:
        if phrase in lowered:
            return status
    return 400


async def survey_error_handler(request: Request, exc: SurveyError) -> JSONResponse:
    if isinstance(exc, IncompleteSubmission):
        logger.warning("Incomplete submission at %s: %s", request.url.path, exc)
        content = {
            "detail": "Complete all required fields",
            "section": exc.section,
            "missing": exc.missing,
        }
        return JSONResponse(status_code=422, content=content)
    if isinstance(exc, MissingRequired):
        logger.warning("Missing answers at %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=422,
            content={"detail": "Required fields missing", "errors": exc.errors},
        )
    if isinstance(exc, (UnreachableCatalog, PersistenceFailure)):
        logger.error("Upstream failure at %s: %s", request.url.path, exc)
        return JSONResponse(status_code=503, content={"detail": "Service unavailable"})
    logger.warning("Survey error at %s: %s", request.url.path, exc)
    return JSONResponse(status_code=422, content={"detail": "Invalid survey state"})


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    """409 for duplicates, 404 for missing rows, 400 for everything else.

    Pydantic ``ValidationError`` is a ``ValueError`` too, so a malformed
    question payload lands here as 400.
    """
    status = status_for(str(exc))
    logger.warning("ValueError [%d] at %s: %s", status, request.url.path, exc)
    return JSONResponse(status_code=status, content={"detail": _PUBLIC_DETAIL[status]})


async def key_error_handler(request: Request, exc: KeyError) -> JSONResponse:
    logger.warning("Unknown key at %s: %s", request.url.path, exc)
    return JSONResponse(status_code=404, content={"detail": _PUBLIC_DETAIL[404]})


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort: log the traceback, return an opaque 500."""
    logger.exception("Unhandled exception at %s", request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def install_error_handlers(app: FastAPI) -> None:
    """Register every handler above; Starlette picks the closest class in the MRO."""
    app.add_exception_handler(SurveyError, survey_error_handler)
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(KeyError, key_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)
