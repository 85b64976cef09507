"""Route registration — API routers under ``/api/v1``, health at the root."""

from fastapi import FastAPI

from mkulima_server.routes.analytics import router as analytics_router
from mkulima_server.routes.auth import router as auth_router
from mkulima_server.routes.export import router as export_router
from mkulima_server.routes.health import router as health_router
from mkulima_server.routes.questions import router as questions_router
from mkulima_server.routes.submissions import router as submissions_router
from mkulima_server.routes.survey import router as survey_router

API_PREFIX = "/api/v1"


def register_routes(app: FastAPI) -> None:
    """Include all sub-routers; only the health probe sits outside the API prefix."""
    app.include_router(health_router)
    app.include_router(auth_router, prefix=API_PREFIX)
    app.include_router(questions_router, prefix=API_PREFIX)
    app.include_router(survey_router, prefix=API_PREFIX)
    app.include_router(submissions_router, prefix=API_PREFIX)
    app.include_router(analytics_router, prefix=API_PREFIX)
    app.include_router(export_router, prefix=API_PREFIX)
