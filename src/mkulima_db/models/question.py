"""QuestionRow ORM model — one row per catalog question.

Rows are returned ordered by ``position`` so the stored catalog keeps the
display order of the YAML seed file.  The ``conditional`` rule is stored in
its string form (``"profile.userType:Farmer"``) and parsed by the SDK.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Boolean, Index, Integer, SmallInteger, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column

from mkulima_db.models.base import Base


class QuestionRow(Base):
    """Stored question definition."""

    __tablename__ = "questions"

    # --- Identity ---
    qid: Mapped[str] = mapped_column(Text, primary_key=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # --- Definition ---
    section: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    question_type: Mapped[str] = mapped_column(String(20), nullable=False)
    label: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    options: Mapped[list] = mapped_column(
        JSONB,
        nullable=False,
        server_default=text("'[]'::jsonb"),
    )
    required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    conditional: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Scale bounds; null for non-scale questions
    min_value: Mapped[int | None] = mapped_column(SmallInteger, nullable=True)
    max_value: Mapped[int | None] = mapped_column(SmallInteger, nullable=True)

    # --- Timestamps ---
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("ix_questions_position", "position"),
    )

    def to_record(self) -> dict[str, Any]:
        """Raw dict accepted by ``QuestionCatalog.from_records``."""
        record: dict[str, Any] = {
            "qid": self.qid,
            "section": self.section,
            "question_type": self.question_type,
            "label": self.label,
            "options": list(self.options or []),
            "required": self.required,
            "conditional": self.conditional,
        }
        if self.min_value is not None:
            record["min_value"] = self.min_value
        if self.max_value is not None:
            record["max_value"] = self.max_value
        return record

    def __repr__(self) -> str:
        return f"<QuestionRow(qid={self.qid!r}, section={self.section!r}, pos={self.position})>"
