"""SurveyClient tests — catalog fetch and submission against a mocked transport.

No server is started: every request is answered by an ``httpx.MockTransport``
handler, so the tests exercise URL building, error mapping and the session
hand-off only.
"""

import json

import httpx
import pytest

from conftest import FARMER_ANSWERS, MINI_RECORDS
from mkulima_survey.client import SurveyClient
from mkulima_survey.errors import PersistenceFailure, UnreachableCatalog
from mkulima_survey.models.submission import SubmissionRecord
from mkulima_survey.session import SessionStatus, SurveySession

BASE_URL = "http://survey.test"


def _client(handler, **kwargs):
    return SurveyClient(BASE_URL, transport=httpx.MockTransport(handler), **kwargs)


def _ready_session(catalog):
    """Session that has assembled its record and waits for the write."""
    session = SurveySession(catalog)
    for qid, value in FARMER_ANSWERS.items():
        session.set_answer(qid, value)
    while session.status == SessionStatus.IN_PROGRESS:
        session.next()
    return session


# =====================================================================
# fetch_catalog
# =====================================================================


class TestFetchCatalog:

    @pytest.mark.asyncio
    async def test_ok(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=MINI_RECORDS)

        async with _client(handler) as client:
            catalog = await client.fetch_catalog()

        assert len(catalog) == 3
        assert seen[0].url.path == "/api/v1/questions"
        assert "userType" not in seen[0].url.params

    @pytest.mark.asyncio
    async def test_user_type_param(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=MINI_RECORDS)

        async with _client(handler) as client:
            await client.fetch_catalog("Farmer")

        assert seen[0].url.params["userType"] == "Farmer"

    @pytest.mark.asyncio
    async def test_server_error(self):
        async with _client(lambda request: httpx.Response(500)) as client:
            with pytest.raises(UnreachableCatalog):
                await client.fetch_catalog()

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as client:
            with pytest.raises(UnreachableCatalog, match="Failed to load questions"):
                await client.fetch_catalog()

    @pytest.mark.asyncio
    async def test_malformed_payload(self):
        bad = [{"qid": "x", "section": "profile", "question_type": "teleport", "label": "X"}]
        async with _client(lambda request: httpx.Response(200, json=bad)) as client:
            with pytest.raises(UnreachableCatalog):
                await client.fetch_catalog()


# =====================================================================
# submit
# =====================================================================


class TestSubmit:

    @pytest.mark.asyncio
    async def test_ok(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(201, json={"msg": "Submission saved successfully", "id": "42"})

        record = SubmissionRecord(profile={"county": "Nairobi", "userType": "Farmer"})
        async with _client(handler) as client:
            assert await client.submit(record) == "42"

        assert seen[0].method == "POST"
        assert seen[0].url.path == "/api/v1/submissions"
        assert json.loads(seen[0].content) == {"profile": {"county": "Nairobi", "userType": "Farmer"}}

    @pytest.mark.asyncio
    async def test_server_error(self):
        record = SubmissionRecord(profile={"county": "Nairobi"})
        async with _client(lambda request: httpx.Response(500)) as client:
            with pytest.raises(PersistenceFailure):
                await client.submit(record)

    @pytest.mark.asyncio
    async def test_session_success(self, catalog):
        session = _ready_session(catalog)
        handler = lambda request: httpx.Response(201, json={"id": "abc"})  # noqa: E731
        async with _client(handler) as client:
            assert await client.submit_session(session) == "abc"
        assert session.status == SessionStatus.SUBMITTED
        assert session.submission_id == "abc"

    @pytest.mark.asyncio
    async def test_session_failure_keeps_answers(self, catalog):
        session = _ready_session(catalog)
        async with _client(lambda request: httpx.Response(503)) as client:
            with pytest.raises(PersistenceFailure):
                await client.submit_session(session)
        assert session.status == SessionStatus.IN_PROGRESS
        assert session.step == len(session.sections)
        assert session.answers.to_dict() == FARMER_ANSWERS

    @pytest.mark.asyncio
    async def test_session_without_record(self, catalog):
        async with _client(lambda request: httpx.Response(201, json={"id": "x"})) as client:
            with pytest.raises(ValueError):
                await client.submit_session(SurveySession(catalog))


# =====================================================================
# Auth
# =====================================================================


class TestAuth:

    @pytest.mark.asyncio
    async def test_token_header(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=[])

        async with _client(handler, token="t0k") as client:
            await client.fetch_catalog()
        assert seen[0].headers["Authorization"] == "Bearer t0k"

    @pytest.mark.asyncio
    async def test_login_sets_header(self):
        seen = []

        def handler(request):
            seen.append(request)
            if request.url.path.endswith("/auth/login"):
                return httpx.Response(200, json={"token": "jwt-1", "user": {}})
            return httpx.Response(200, json=[])

        async with _client(handler) as client:
            assert await client.login("a@b.co", "pw") == "jwt-1"
            await client.fetch_catalog()

        assert json.loads(seen[0].content) == {"email": "a@b.co", "password": "pw"}
        assert seen[1].headers["Authorization"] == "Bearer jwt-1"
