"""SurveyClient — async HTTP boundary between a respondent and the server.

Two one-shot calls per respondent session:

  - :meth:`fetch_catalog` once at session start (``UnreachableCatalog`` on failure)
  - :meth:`submit` once at the terminal transition (``PersistenceFailure`` on failure)

:meth:`submit_session` wires the second call to a :class:`SurveySession`,
so a failed write returns the session to its last step with every answer
intact.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from mkulima_survey.catalog import QuestionCatalog
from mkulima_survey.errors import PersistenceFailure, UnreachableCatalog
from mkulima_survey.models.submission import SubmissionRecord
from mkulima_survey.session import SurveySession

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"
DEFAULT_TIMEOUT = 10.0


class SurveyClient:
    """Thin wrapper over ``httpx.AsyncClient`` for the survey endpoints.

    Args:
        base_url: server root, e.g. ``http://localhost:8080``
        token: optional bearer token for authenticated calls
        transport: optional httpx transport (used by tests)
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/") + API_PREFIX,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "SurveyClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    async def fetch_catalog(self, user_type: str | None = None) -> QuestionCatalog:
        """Fetch the ordered question list, optionally pre-filtered by user type.

        Raises:
            UnreachableCatalog: on transport errors, non-2xx responses or an
                undecodable payload.
        """
        params = {"userType": user_type} if user_type else None
        try:
            resp = await self._http.get("/questions", params=params)
            resp.raise_for_status()
            return QuestionCatalog.from_records(resp.json())
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Catalog fetch failed: %s", exc)
            raise UnreachableCatalog(f"Failed to load questions: {exc}") from exc

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def submit(self, record: SubmissionRecord) -> str:
        """Persist an assembled record and return its identifier.

        Raises:
            PersistenceFailure: on transport errors or non-2xx responses.
        """
        try:
            resp = await self._http.post("/submissions", json=record.to_document())
            resp.raise_for_status()
            body: dict[str, Any] = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Submission failed: %s", exc)
            raise PersistenceFailure(f"Submission failed: {exc}") from exc
        return str(body.get("id"))

    async def submit_session(self, session: SurveySession) -> str:
        """Persist the record a session assembled on its final ``next()``.

        On failure the session is returned to its last step with answers
        preserved and the ``PersistenceFailure`` is re-raised.
        """
        if session.record is None:
            raise ValueError("Session has no assembled record to submit")
        try:
            submission_id = await self.submit(session.record)
        except PersistenceFailure:
            session.mark_failed()
            raise
        session.mark_submitted(submission_id)
        return submission_id

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    async def login(self, email: str, password: str) -> str:
        """Log in and attach the returned bearer token to later requests."""
        resp = await self._http.post("/auth/login", json={"email": email, "password": password})
        resp.raise_for_status()
        token = resp.json()["token"]
        self._http.headers["Authorization"] = f"Bearer {token}"
        return token
