"""Submission ORM model — one row per completed survey.

Each answer group is its own JSONB column so analytics can group on a
single field (``profile->>'county'``) without unpacking the whole record.
Role-specific groups are null when the respondent never reached them.
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Index, text
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column

from mkulima_db.models.base import Base

# Wire/group name → ORM attribute
GROUP_COLUMNS: dict[str, str] = {
    "profile": "profile",
    "problems": "problems",
    "farmerFeatures": "farmer_features",
    "expertFeatures": "expert_features",
    "adminFeatures": "admin_features",
}


class Submission(Base):
    """Stored submission record."""

    __tablename__ = "submissions"

    # --- Primary key ---
    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # --- Answer groups ---
    profile: Mapped[dict] = mapped_column(
        JSONB,
        nullable=False,
        server_default=text("'{}'::jsonb"),
    )
    problems: Mapped[dict] = mapped_column(
        JSONB,
        nullable=False,
        server_default=text("'{}'::jsonb"),
    )
    farmer_features: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    expert_features: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    admin_features: Mapped[dict | None] = mapped_column(JSONB, nullable=True)

    # --- Timestamps ---
    submitted_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )

    __table_args__ = (
        # Expression indexes for the admin list filters
        Index("ix_submissions_user_type", text("(profile->>'userType')")),
        Index("ix_submissions_county", text("(profile->>'county')")),
        Index("ix_submissions_profile_gin", "profile", postgresql_using="gin"),
    )

    def to_document(self) -> dict[str, Any]:
        """Wire form: camelCase groups, null groups dropped, string id."""
        doc: dict[str, Any] = {"id": str(self.id)}
        for group, attr in GROUP_COLUMNS.items():
            value = getattr(self, attr)
            if value is not None:
                doc[group] = value
        doc["submittedAt"] = self.submitted_at.isoformat() if self.submitted_at else None
        return doc

    def __repr__(self) -> str:
        county = (self.profile or {}).get("county")
        return f"<Submission(id={self.id!s}, county={county!r}, at={self.submitted_at})>"
