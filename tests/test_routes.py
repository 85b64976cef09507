"""REST API tests — every router driven through FastAPI's TestClient.

No database is needed: ``get_db`` yields an ``AsyncMock`` session,
``get_catalog`` returns the shipped YAML catalog, and each route module's
repository is swapped for an in-memory fake holding transient ORM objects.
The lifespan (seeding) is never entered because the client is not used as
a context manager.
"""

import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

import mkulima_server.routes.analytics as analytics_routes
import mkulima_server.routes.auth as auth_routes
import mkulima_server.routes.health as health_routes
import mkulima_server.routes.questions as questions_routes
import mkulima_server.routes.submissions as submissions_routes
import mkulima_server.routes.survey as survey_routes
from conftest import FARMER_ANSWERS
from mkulima_db.models.enums import UserRole
from mkulima_db.models.question import QuestionRow
from mkulima_db.models.submission import GROUP_COLUMNS, Submission
from mkulima_db.models.user import User
from mkulima_db.repository import QuestionRepository, SubmissionRepository, _question_values
from mkulima_server.app import create_app
from mkulima_server.config import ServerSettings
from mkulima_server.dependencies import get_catalog, get_db
from mkulima_server.errors import status_for
from mkulima_server.security import create_access_token

SECRET = "test-secret"
NOW = datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc)


# =====================================================================
# In-memory repositories
# =====================================================================


class FakeSubmissionRepository(SubmissionRepository):
    """Dict-backed submissions; ``update`` is inherited (flush is a no-op)."""

    def __init__(self):
        self.rows: dict[uuid.UUID, Submission] = {}
        self.list_calls: list[dict] = []

    async def create(self, db, document):
        values = {
            attr: document[group]
            for group, attr in GROUP_COLUMNS.items()
            if document.get(group) is not None
        }
        row = Submission(id=uuid.uuid4(), submitted_at=NOW, **values)
        self.rows[row.id] = row
        return row

    async def get_by_id(self, db, submission_id):
        return self.rows.get(submission_id)

    async def list_submissions(self, db, **kwargs):
        self.list_calls.append(kwargs)
        rows = list(self.rows.values())
        if kwargs.get("user_type"):
            rows = [r for r in rows if r.profile.get("userType") == kwargs["user_type"]]
        offset, limit = kwargs["offset"], kwargs["limit"]
        return rows[offset:offset + limit], len(rows)

    async def delete(self, db, submission):
        del self.rows[submission.id]

    async def analytics(self, db):
        return {
            "total": len(self.rows),
            "userTypes": [{"value": "Farmer", "count": len(self.rows)}],
        }


class FakeQuestionRepository(QuestionRepository):
    """Dict-backed questions; ``update`` is inherited."""

    def __init__(self):
        self.rows: dict[str, QuestionRow] = {}

    async def get(self, db, qid):
        return self.rows.get(qid)

    async def create(self, db, record):
        if record["qid"] in self.rows:
            raise ValueError(f"Question '{record['qid']}' already exists")
        row = QuestionRow(qid=record["qid"], position=len(self.rows) + 1, **_question_values(record))
        self.rows[row.qid] = row
        return row

    async def delete(self, db, row):
        del self.rows[row.qid]


class FakeUserRepository:

    def __init__(self):
        self.users: list[User] = []

    async def get_by_email(self, db, email):
        for user in self.users:
            if user.email.lower() == email.lower():
                return user
        return None

    async def create(self, db, *, email, password_hash, name=None, role=UserRole.USER):
        if await self.get_by_email(db, email) is not None:
            raise ValueError(f"User '{email}' already exists")
        user = User(id=uuid.uuid4(), email=email, password_hash=password_hash, name=name, role=role)
        self.users.append(user)
        return user


# =====================================================================
# Fixtures
# =====================================================================


async def _fake_db():
    yield AsyncMock()


@pytest.fixture
def submissions():
    return FakeSubmissionRepository()


@pytest.fixture
def questions():
    return FakeQuestionRepository()


@pytest.fixture
def users():
    return FakeUserRepository()


@pytest.fixture
def client(monkeypatch, catalog, submissions, questions, users):
    app = create_app(ServerSettings(jwt_secret=SECRET, seed_catalog=False))
    app.dependency_overrides[get_db] = _fake_db
    app.dependency_overrides[get_catalog] = lambda: catalog
    monkeypatch.setattr(submissions_routes, "_repo", submissions)
    monkeypatch.setattr(survey_routes, "_repo", submissions)
    monkeypatch.setattr(analytics_routes, "_repo", submissions)
    monkeypatch.setattr(questions_routes, "_repo", questions)
    monkeypatch.setattr(auth_routes, "_repo", users)
    return TestClient(app)


def _auth(role):
    token = create_access_token(f"{role}-1", role, SECRET)
    return {"Authorization": f"Bearer {token}"}


ADMIN = _auth("admin")
USER = _auth("user")

FARMER_DOCUMENT = {
    "profile": {"county": "Nairobi", "userType": "Farmer", "age": "25-34"},
    "problems": {"cropLossFrequency": "Most seasons"},
    "farmerFeatures": {"expertTopics": ["Pest control"]},
}


# =====================================================================
# Questions
# =====================================================================


class TestListQuestions:

    def test_full_catalog(self, client):
        resp = client.get("/api/v1/questions")
        assert resp.status_code == 200
        body = resp.json()
        assert len(body) == 20
        assert body[0]["label"] == "County *"

    def test_rule_serialised_as_string(self, client):
        body = client.get("/api/v1/questions").json()
        farmer = [q for q in body if q["section"] == "farmer"]
        assert farmer[0]["conditional"] == "profile.userType:Farmer"
        assert body[0]["conditional"] is None

    @pytest.mark.parametrize(
        "user_type, expected",
        [("Farmer", 15), ("Agricultural Expert", 12), ("Administrator", 11)],
    )
    def test_filtered_by_user_type(self, client, user_type, expected):
        body = client.get("/api/v1/questions", params={"userType": user_type}).json()
        assert len(body) == expected


class TestWriteQuestions:

    NEW_QUESTION = {
        "section": "farmer",
        "question_type": "radio",
        "label": "Would you sell produce online?",
        "options": ["Yes", "No"],
        "conditional": "profile.userType:Farmer",
    }

    def test_requires_admin(self, client):
        assert client.post("/api/v1/questions", json=self.NEW_QUESTION).status_code == 401
        assert client.post("/api/v1/questions", json=self.NEW_QUESTION, headers=USER).status_code == 403

    def test_missing_fields(self, client):
        resp = client.post("/api/v1/questions", json={"section": "farmer"}, headers=ADMIN)
        assert resp.status_code == 400
        assert "label" in resp.json()["detail"]

    def test_create_derives_qid(self, client, questions):
        resp = client.post("/api/v1/questions", json=self.NEW_QUESTION, headers=ADMIN)
        assert resp.status_code == 201
        body = resp.json()
        assert body["qid"] == "farmer_would_you_sell_produce_online_"
        assert body["conditional"] == "profile.userType:Farmer"
        assert "farmer_would_you_sell_produce_online_" in questions.rows

    def test_create_accepts_type_field(self, client, questions):
        legacy = {k: v for k, v in self.NEW_QUESTION.items() if k != "question_type"}
        resp = client.post("/api/v1/questions", json={**legacy, "type": "radio"}, headers=ADMIN)
        assert resp.status_code == 201
        assert resp.json()["question_type"] == "radio"
        assert "farmer_would_you_sell_produce_online_" in questions.rows

    def test_missing_type_reported(self, client):
        legacy = {k: v for k, v in self.NEW_QUESTION.items() if k != "question_type"}
        resp = client.post("/api/v1/questions", json=legacy, headers=ADMIN)
        assert resp.status_code == 400
        assert "question_type" in resp.json()["detail"]

    def test_duplicate_qid_conflict(self, client):
        resp = client.post(
            "/api/v1/questions", json={**self.NEW_QUESTION, "qid": "profile_county"}, headers=ADMIN,
        )
        assert resp.status_code == 409

    def test_duplicate_label_rejected(self, client):
        resp = client.post(
            "/api/v1/questions", json={**self.NEW_QUESTION, "label": "County *"}, headers=ADMIN,
        )
        assert resp.status_code == 400

    def test_unknown_user_type_rejected(self, client):
        resp = client.post(
            "/api/v1/questions",
            json={**self.NEW_QUESTION, "conditional": "profile.userType:Trader"},
            headers=ADMIN,
        )
        assert resp.status_code == 400

    def test_choice_without_options_rejected(self, client):
        resp = client.post(
            "/api/v1/questions", json={**self.NEW_QUESTION, "options": []}, headers=ADMIN,
        )
        assert resp.status_code == 400

    def test_update_unknown(self, client):
        resp = client.put("/api/v1/questions/nope", json={"label": "X"}, headers=ADMIN)
        assert resp.status_code == 404

    def test_update_existing(self, client, questions):
        client.post("/api/v1/questions", json=self.NEW_QUESTION, headers=ADMIN)
        resp = client.put(
            "/api/v1/questions/farmer_would_you_sell_produce_online_",
            json={"options": ["Yes", "No", "Maybe"]},
            headers=ADMIN,
        )
        assert resp.status_code == 200
        assert resp.json()["options"] == ["Yes", "No", "Maybe"]
        assert resp.json()["label"] == "Would you sell produce online?"

    def test_delete(self, client, questions):
        client.post("/api/v1/questions", json=self.NEW_QUESTION, headers=ADMIN)
        resp = client.delete("/api/v1/questions/farmer_would_you_sell_produce_online_", headers=ADMIN)
        assert resp.status_code == 200
        assert resp.json() == {"msg": "Question deleted successfully"}
        assert questions.rows == {}

    def test_delete_unknown(self, client):
        assert client.delete("/api/v1/questions/nope", headers=ADMIN).status_code == 404


# =====================================================================
# Respondent workflow
# =====================================================================


class TestSurvey:

    def test_sections(self, client):
        body = client.get("/api/v1/survey/sections", params={"userType": "Farmer"}).json()
        assert body["sections"] == ["profile", "problems", "farmer"]
        assert body["titles"][-1] == "Farmer Features"

    def test_sections_without_user_type(self, client):
        body = client.get("/api/v1/survey/sections").json()
        assert body["sections"] == ["profile", "problems"]

    def test_submit_incomplete(self, client, submissions):
        answers = {k: v for k, v in FARMER_ANSWERS.items() if k != "profile_age"}
        resp = client.post("/api/v1/survey/submit", json={"answers": answers})
        assert resp.status_code == 422
        body = resp.json()
        assert body["section"] == "profile"
        assert body["missing"] == ["Age *"]
        assert submissions.rows == {}

    def test_submit(self, client, submissions):
        answers = {**FARMER_ANSWERS, "farmer_ai_assistant_usefulness": 4}
        resp = client.post("/api/v1/survey/submit", json={"answers": answers})
        assert resp.status_code == 201
        body = resp.json()
        assert body["msg"] == "Submission saved successfully"
        assert body["submission"]["profile"]["userType"] == "Farmer"
        assert body["submission"]["farmerFeatures"] == {"aiAssistantUsefulness": 4}
        assert len(submissions.rows) == 1

    def test_submit_accepts_labels(self, client):
        answers = {**FARMER_ANSWERS}
        answers["County *"] = answers.pop("profile_county")
        resp = client.post("/api/v1/survey/submit", json={"answers": answers})
        assert resp.status_code == 201
        assert resp.json()["submission"]["profile"]["county"] == "Nairobi"


# =====================================================================
# Submissions
# =====================================================================


class TestCreateSubmission:

    def test_requires_profile_and_problems(self, client):
        resp = client.post("/api/v1/submissions", json={"profile": {"county": "Nairobi"}})
        assert resp.status_code == 400

    def test_public_create(self, client, submissions):
        resp = client.post("/api/v1/submissions", json=FARMER_DOCUMENT)
        assert resp.status_code == 201
        body = resp.json()
        assert body["msg"] == "Submission saved successfully"
        stored = submissions.rows[uuid.UUID(body["id"])]
        assert stored.farmer_features == {"expertTopics": ["Pest control"]}
        assert stored.expert_features is None


class TestListSubmissions:

    def _seed(self, client, n):
        for _ in range(n):
            client.post("/api/v1/submissions", json=FARMER_DOCUMENT)

    def test_no_token(self, client):
        resp = client.get("/api/v1/submissions")
        assert resp.status_code == 401
        assert resp.json()["detail"] == "No token"

    def test_invalid_token(self, client):
        resp = client.get("/api/v1/submissions", headers={"Authorization": "Bearer junk"})
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Invalid token"

    def test_non_admin(self, client):
        resp = client.get("/api/v1/submissions", headers=USER)
        assert resp.status_code == 403
        assert resp.json()["detail"] == "Access denied. Admin only."

    def test_pagination(self, client):
        self._seed(client, 12)
        resp = client.get("/api/v1/submissions", params={"page": 2, "limit": 5}, headers=ADMIN)
        assert resp.status_code == 200
        body = resp.json()
        assert len(body["submissions"]) == 5
        assert body["pagination"] == {
            "page": 2,
            "limit": 5,
            "total": 12,
            "pages": 3,
            "hasNext": True,
            "hasPrev": True,
        }

    def test_defaults(self, client, submissions):
        body = client.get("/api/v1/submissions", headers=ADMIN).json()
        assert body["pagination"]["limit"] == 10
        assert body["pagination"]["pages"] == 0
        assert body["pagination"]["hasNext"] is False
        assert submissions.list_calls[0]["sort"] == "-submittedAt"
        assert submissions.list_calls[0]["offset"] == 0

    def test_filters_forwarded(self, client, submissions):
        client.get(
            "/api/v1/submissions",
            params={"userType": "Farmer", "county": "Meru", "search": "pest"},
            headers=ADMIN,
        )
        call = submissions.list_calls[0]
        assert call["user_type"] == "Farmer"
        assert call["county"] == "Meru"
        assert call["search"] == "pest"

    def test_limit_capped(self, client, submissions):
        resp = client.get("/api/v1/submissions", params={"limit": 500}, headers=ADMIN)
        assert resp.status_code == 200
        assert resp.json()["pagination"]["limit"] == 100
        assert submissions.list_calls[0]["limit"] == 100

    def test_bad_page_and_limit_fall_back(self, client, submissions):
        resp = client.get("/api/v1/submissions", params={"page": 0, "limit": 0}, headers=ADMIN)
        assert resp.status_code == 200
        pagination = resp.json()["pagination"]
        assert pagination["page"] == 1
        assert pagination["limit"] == 10
        assert submissions.list_calls[0]["offset"] == 0


class TestSingleSubmission:

    def _create(self, client):
        return client.post("/api/v1/submissions", json=FARMER_DOCUMENT).json()["id"]

    def test_get(self, client):
        sid = self._create(client)
        resp = client.get(f"/api/v1/submissions/{sid}", headers=ADMIN)
        assert resp.status_code == 200
        assert resp.json()["id"] == sid
        assert resp.json()["submittedAt"] == NOW.isoformat()

    def test_malformed_id(self, client):
        assert client.get("/api/v1/submissions/not-a-uuid", headers=ADMIN).status_code == 404

    def test_unknown_id(self, client):
        assert client.get(f"/api/v1/submissions/{uuid.uuid4()}", headers=ADMIN).status_code == 404

    def test_update_merges_fields(self, client):
        sid = self._create(client)
        resp = client.put(
            f"/api/v1/submissions/{sid}",
            json={"profile": {"county": "Meru"}},
            headers=ADMIN,
        )
        assert resp.status_code == 200
        profile = resp.json()["submission"]["profile"]
        assert profile["county"] == "Meru"
        assert profile["userType"] == "Farmer"

    def test_delete(self, client):
        sid = self._create(client)
        resp = client.delete(f"/api/v1/submissions/{sid}", headers=ADMIN)
        assert resp.json() == {"msg": "Submission deleted successfully"}
        assert client.get(f"/api/v1/submissions/{sid}", headers=ADMIN).status_code == 404


# =====================================================================
# Analytics & export
# =====================================================================


class TestAnalytics:

    def test_admin_only(self, client):
        assert client.get("/api/v1/analytics", headers=USER).status_code == 403

    def test_report(self, client):
        client.post("/api/v1/submissions", json=FARMER_DOCUMENT)
        body = client.get("/api/v1/analytics", headers=ADMIN).json()
        assert body["total"] == 1
        assert body["userTypes"] == [{"value": "Farmer", "count": 1}]


class TestExport:

    def test_questionnaire(self, client):
        resp = client.get("/api/v1/export/questionnaire", params={"userType": "Farmer"})
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/markdown")
        assert "## Farmer Features" in resp.text
        assert "## Admin Features" not in resp.text

    def test_questionnaire_all_sections(self, client):
        text = client.get("/api/v1/export/questionnaire").text
        assert "## Expert Features" in text
        assert "## Admin Features" in text

    def test_submission(self, client):
        sid = client.post("/api/v1/submissions", json=FARMER_DOCUMENT).json()["id"]
        resp = client.get(f"/api/v1/export/submissions/{sid}", headers=ADMIN)
        assert resp.status_code == 200
        assert "| County * | Nairobi |" in resp.text
        assert "Submitted: 2026-03-01 09:30 UTC" in resp.text
        assert f"Submission: {sid}" in resp.text

    def test_submission_admin_only(self, client):
        sid = client.post("/api/v1/submissions", json=FARMER_DOCUMENT).json()["id"]
        assert client.get(f"/api/v1/export/submissions/{sid}").status_code == 401


# =====================================================================
# Auth
# =====================================================================


class TestAuth:

    def test_register(self, client, users):
        resp = client.post(
            "/api/v1/auth/register", json={"email": "wanjiru@example.com", "password": "pw"},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["token"]
        assert body["user"]["role"] == "user"
        assert body["user"]["name"] == "wanjiru"
        assert users.users[0].password_hash != "pw"

    def test_register_blank(self, client):
        resp = client.post("/api/v1/auth/register", json={"email": " ", "password": "pw"})
        assert resp.status_code == 400

    def test_register_duplicate(self, client):
        payload = {"email": "a@example.com", "password": "pw"}
        client.post("/api/v1/auth/register", json=payload)
        resp = client.post("/api/v1/auth/register", json={**payload, "email": "A@example.com"})
        assert resp.status_code == 409

    def test_login(self, client):
        client.post(
            "/api/v1/auth/register",
            json={"email": "a@example.com", "password": "pw", "name": "Achieng"},
        )
        resp = client.post("/api/v1/auth/login", json={"email": "a@example.com", "password": "pw"})
        assert resp.status_code == 200
        assert resp.json()["user"]["name"] == "Achieng"

    def test_login_bad_password(self, client):
        client.post("/api/v1/auth/register", json={"email": "a@example.com", "password": "pw"})
        resp = client.post("/api/v1/auth/login", json={"email": "a@example.com", "password": "x"})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Invalid credentials"

    def test_registered_token_is_not_admin(self, client):
        token = client.post(
            "/api/v1/auth/register", json={"email": "a@example.com", "password": "pw"},
        ).json()["token"]
        resp = client.get("/api/v1/submissions", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 403


# =====================================================================
# Health & error mapping
# =====================================================================


class TestHealth:

    def test_database_down(self, client, monkeypatch):
        def unreachable():
            raise OSError("connection refused")

        monkeypatch.setattr(health_routes, "get_engine", unreachable)
        resp = client.get("/health")
        assert resp.status_code == 503
        assert resp.json()["status"] == "error"


class TestStatusFor:

    @pytest.mark.parametrize(
        "message, expected",
        [
            ("Question 'x' already exists", 409),
            ("Submission not found: 123", 404),
            ("User 'A@B.co' Already Exists", 409),
            ("Duplicate label 'County *' in catalog", 400),
        ],
    )
    def test_phrases(self, message, expected):
        assert status_for(message) == expected
