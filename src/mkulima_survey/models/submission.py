"""Submission record — the persisted shape of one completed survey.

Answers are grouped by section into ``profile``, ``problems``,
``farmerFeatures``, ``expertFeatures`` and ``adminFeatures``; each group maps
a normalised field name (not the raw label) to the answer value.  Groups
left empty after pruning are omitted (``None``).

Python attributes are snake_case; the wire/storage names are the camelCase
aliases, so callers should dump with ``by_alias=True, exclude_none=True``.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

# Group value: field name → str | list[str] | number
Group = dict[str, Any]


class SubmissionRecord(BaseModel):
    """Nested record produced by the assembler and stored as-is."""

    model_config = ConfigDict(populate_by_name=True)

    profile: Optional[Group] = None
    problems: Optional[Group] = None
    farmer_features: Optional[Group] = Field(None, alias="farmerFeatures")
    expert_features: Optional[Group] = Field(None, alias="expertFeatures")
    admin_features: Optional[Group] = Field(None, alias="adminFeatures")
    submitted_at: Optional[datetime] = Field(None, alias="submittedAt")

    def groups(self) -> dict[str, Group]:
        """Non-empty groups keyed by their wire name."""
        dumped = self.model_dump(by_alias=True, exclude_none=True)
        dumped.pop("submittedAt", None)
        return dumped

    def to_document(self) -> dict[str, Any]:
        """Wire/storage form: aliases, ``None`` groups dropped."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class StoredSubmission(SubmissionRecord):
    """A submission as read back from storage, with its identifier."""

    id: str
