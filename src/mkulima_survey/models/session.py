"""Session and step models — the contract between the survey session and callers.

These models describe what a :class:`~mkulima_survey.session.SurveySession`
exposes at each point of the flow.  They are intentionally decoupled from
the ORM models in ``mkulima_db`` so that clients never see database internals.

Step types:
  - QuestionsStep: the visible questions of the current section
  - SubmissionStep: the final step validated and the record was assembled

``SessionState`` is the JSON-serialisable snapshot used to resume a session
after a reload.
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel

from .question import Question
from .submission import SubmissionRecord


class QuestionsStep(BaseModel):
    """Present the visible questions of section ``section`` (step ``step`` of ``total``)."""

    type: Literal["questions"] = "questions"
    step: int
    total: int
    section: str
    section_title: str
    questions: list[Question]
    errors: dict[str, str] = {}


class SubmissionStep(BaseModel):
    """The survey is complete and ``record`` is ready for persistence."""

    type: Literal["submission"] = "submission"
    record: SubmissionRecord
    submission_id: Optional[str] = None


# Callers can match on step.type to dispatch rendering logic.
StepResult = QuestionsStep | SubmissionStep


class SessionState(BaseModel):
    """Resumable snapshot of a respondent session (answers keyed by qid)."""

    step: int = 1
    answers: dict[str, Any] = {}
