"""Async repositories for questions, submissions and users.

All public methods accept an ``AsyncSession`` so the caller controls
transaction boundaries.  Repositories ``flush()`` to populate defaults but
never ``commit()``; the request-scoped session in the server commits.

The repositories deliberately avoid survey logic (visibility, required
checks, assembly) — that belongs in the SDK layer.
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from mkulima_db.models.enums import UserRole
from mkulima_db.models.question import QuestionRow
from mkulima_db.models.submission import GROUP_COLUMNS, Submission
from mkulima_db.models.user import User

# Question fields callers may write; anything else in a payload is ignored
_QUESTION_FIELDS = (
    "section",
    "question_type",
    "label",
    "options",
    "required",
    "conditional",
    "min_value",
    "max_value",
)

# Sort keys accepted by list_submissions (prefix "-" for descending)
_SORT_COLUMNS = {
    "submittedAt": Submission.submitted_at,
    "county": Submission.profile["county"].astext,
    "userType": Submission.profile["userType"].astext,
}

# (analytics key, group attr, field, user type filter)
_GROUPED_COUNTS: list[tuple[str, str, str, str | None]] = [
    ("userTypes", "profile", "userType", None),
    ("counties", "profile", "county", None),
    ("ages", "profile", "age", None),
    ("cropLossFreq", "problems", "cropLossFrequency", None),
    ("lostMoney", "problems", "lostMoney", None),
    ("farmerAI", "farmer_features", "aiAssistantUsefulness", "Farmer"),
    ("payMpesa", "farmer_features", "payForExpertChat", "Farmer"),
    ("cropGuides", "farmer_features", "useCropGuides", "Farmer"),
    ("joinForum", "farmer_features", "joinForum", "Farmer"),
    ("expertPaid", "expert_features", "offerPaidConsultations", "Agricultural Expert"),
    ("consultationFormat", "expert_features", "preferredFormat", "Agricultural Expert"),
    ("weeklyFarmers", "expert_features", "weeklyConsultationCapacity", "Agricultural Expert"),
    ("adminDashboard", "admin_features", "useDashboard", "Administrator"),
    ("switchReasons", "admin_features", "switchReasons", "Administrator"),
]


def _question_values(record: dict[str, Any]) -> dict[str, Any]:
    values = {k: record[k] for k in _QUESTION_FIELDS if k in record}
    if "options" in values and values["options"] is None:
        values["options"] = []
    return values


class QuestionRepository:
    """Async read/write operations on the ``questions`` table."""

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def list_all(self, db: AsyncSession) -> list[QuestionRow]:
        """All questions in display order."""
        stmt = select(QuestionRow).order_by(QuestionRow.position, QuestionRow.qid)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def get(self, db: AsyncSession, qid: str) -> QuestionRow | None:
        return await db.get(QuestionRow, qid)

    async def count(self, db: AsyncSession) -> int:
        result = await db.execute(select(func.count()).select_from(QuestionRow))
        return int(result.scalar_one())

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    async def create(self, db: AsyncSession, record: dict[str, Any]) -> QuestionRow:
        """Insert a question at the end of the catalog.

        Raises:
            ValueError: if the qid is already taken.
        """
        qid = record["qid"]
        if await self.get(db, qid) is not None:
            raise ValueError(f"Question '{qid}' already exists")
        result = await db.execute(select(func.max(QuestionRow.position)))
        last = result.scalar_one_or_none()
        row = QuestionRow(
            qid=qid,
            position=record.get("position", (last or 0) + 1),
            **_question_values(record),
        )
        db.add(row)
        await db.flush()
        return row

    async def update(self, db: AsyncSession, row: QuestionRow, changes: dict[str, Any]) -> QuestionRow:
        """Overwrite the given fields of an existing question."""
        for key, value in _question_values(changes).items():
            setattr(row, key, value)
        if "position" in changes:
            row.position = changes["position"]
        row.updated_at = datetime.now(timezone.utc)
        await db.flush()
        return row

    async def delete(self, db: AsyncSession, row: QuestionRow) -> None:
        await db.delete(row)
        await db.flush()

    async def replace_all(self, db: AsyncSession, records: list[dict[str, Any]]) -> int:
        """Replace the whole catalog, keeping the given order as ``position``."""
        await db.execute(delete(QuestionRow))
        for position, record in enumerate(records, 1):
            db.add(QuestionRow(qid=record["qid"], position=position, **_question_values(record)))
        await db.flush()
        return len(records)


class SubmissionRepository:
    """Async read/write operations on the ``submissions`` table."""

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create(self, db: AsyncSession, document: dict[str, Any]) -> Submission:
        """Insert a submission from its wire form (camelCase groups).

        ``submittedAt`` in the document is ignored; the row is always
        stamped with the current time.
        """
        values = {
            attr: document[group]
            for group, attr in GROUP_COLUMNS.items()
            if document.get(group) is not None
        }
        submission = Submission(submitted_at=datetime.now(timezone.utc), **values)
        db.add(submission)
        await db.flush()
        return submission

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get_by_id(self, db: AsyncSession, submission_id: uuid.UUID) -> Submission | None:
        return await db.get(Submission, submission_id)

    async def list_submissions(
        self,
        db: AsyncSession,
        *,
        limit: int = 10,
        offset: int = 0,
        sort: str = "-submittedAt",
        user_type: str | None = None,
        county: str | None = None,
        search: str | None = None,
    ) -> tuple[list[Submission], int]:
        """Filtered, sorted page of submissions plus the total match count.

        Raises:
            ValueError: if ``sort`` names an unsupported field.
        """
        descending = sort.startswith("-")
        column = _SORT_COLUMNS.get(sort.lstrip("-"))
        if column is None:
            raise ValueError(
                f"Unsupported sort field '{sort}'; expected one of {sorted(_SORT_COLUMNS)}"
            )

        conditions = []
        if user_type:
            conditions.append(Submission.profile["userType"].astext == user_type)
        if county:
            conditions.append(Submission.profile["county"].astext == county)
        if search:
            conditions.append(
                or_(
                    Submission.profile["county"].astext.icontains(search, autoescape=True),
                    Submission.problems["cropLossFrequency"].astext.icontains(search, autoescape=True),
                    Submission.farmer_features["expertTopics"].astext.icontains(search, autoescape=True),
                )
            )

        count_stmt = select(func.count()).select_from(Submission).where(*conditions)
        total = int((await db.execute(count_stmt)).scalar_one())

        stmt = (
            select(Submission)
            .where(*conditions)
            .order_by(column.desc() if descending else column.asc(), Submission.id)
            .limit(limit)
            .offset(offset)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all()), total

    # ------------------------------------------------------------------
    # Update / delete
    # ------------------------------------------------------------------

    async def update(
        self, db: AsyncSession, submission: Submission, changes: dict[str, Any]
    ) -> Submission:
        """Merge field-level changes into each named group.

        ``{"profile": {"county": "Meru"}}`` updates one field and keeps the
        rest of the profile.  Unknown top-level keys are ignored.
        """
        for group, attr in GROUP_COLUMNS.items():
            fields = changes.get(group)
            if not isinstance(fields, dict):
                continue
            # Fresh dict so SQLAlchemy detects the mutation
            setattr(submission, attr, {**(getattr(submission, attr) or {}), **fields})
        await db.flush()
        return submission

    async def delete(self, db: AsyncSession, submission: Submission) -> None:
        await db.delete(submission)
        await db.flush()

    # ------------------------------------------------------------------
    # Analytics
    # ------------------------------------------------------------------

    async def count(self, db: AsyncSession) -> int:
        result = await db.execute(select(func.count()).select_from(Submission))
        return int(result.scalar_one())

    async def count_by(
        self,
        db: AsyncSession,
        group: str,
        field: str,
        *,
        user_type: str | None = None,
    ) -> list[dict[str, Any]]:
        """Group-by counts over one JSONB field, most frequent first.

        Rows without the field are counted under ``value: None``.
        """
        value = getattr(Submission, group)[field]
        stmt = select(value.label("value"), func.count().label("count")).group_by(value)
        if user_type is not None:
            stmt = stmt.where(Submission.profile["userType"].astext == user_type)
        stmt = stmt.order_by(func.count().desc())
        result = await db.execute(stmt)
        return [{"value": row.value, "count": row.count} for row in result]

    async def count_unwound(
        self, db: AsyncSession, group: str, field: str
    ) -> list[dict[str, Any]]:
        """Counts over the elements of a JSONB array field (one per element)."""
        column = getattr(Submission, group)[field]
        elements = (
            select(func.jsonb_array_elements_text(column).label("value"))
            .where(func.jsonb_typeof(column) == "array")
            .subquery()
        )
        stmt = (
            select(elements.c.value, func.count().label("count"))
            .group_by(elements.c.value)
            .order_by(func.count().desc())
        )
        result = await db.execute(stmt)
        return [{"value": row.value, "count": row.count} for row in result]

    async def analytics(self, db: AsyncSession) -> dict[str, Any]:
        """Dashboard aggregates: total plus every grouped breakdown."""
        report: dict[str, Any] = {"total": await self.count(db)}
        for key, group, field, user_type in _GROUPED_COUNTS:
            report[key] = await self.count_by(db, group, field, user_type=user_type)
        report["adviceSources"] = await self.count_unwound(db, "problems", "adviceSources")
        return report


class UserRepository:
    """Async read/write operations on the ``users`` table."""

    async def get_by_id(self, db: AsyncSession, user_id: uuid.UUID) -> User | None:
        return await db.get(User, user_id)

    async def get_by_email(self, db: AsyncSession, email: str) -> User | None:
        stmt = select(User).where(func.lower(User.email) == email.lower())
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def create(
        self,
        db: AsyncSession,
        *,
        email: str,
        password_hash: str,
        name: str | None = None,
        role: UserRole = UserRole.USER,
    ) -> User:
        """Insert a user.

        Raises:
            ValueError: if the email is already registered.
        """
        if await self.get_by_email(db, email) is not None:
            raise ValueError(f"User '{email}' already exists")
        user = User(email=email, password_hash=password_hash, name=name, role=role)
        db.add(user)
        await db.flush()
        return user
