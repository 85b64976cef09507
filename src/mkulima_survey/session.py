"""SurveySession — explicit state for one respondent walking the survey.

All session state (answers, active sections, current step, submission
status) lives on this one object; UI or CLI event handlers call its
methods instead of sharing ambient variables.

State machine::

    Step(1) --next(valid)--> Step(2) ... --next(valid)--> Step(N)
    Step(N) --next(valid)--> SUBMITTING   (record assembled, awaiting write)
    SUBMITTING --mark_submitted--> SUBMITTED
    SUBMITTING --mark_failed-----> Step(N) (answers kept for a retry)
    Step(n) --prev--> Step(n-1)           (n > 1, never validated)
    Step(n) --jump(t)--> Step(t)          (t <= n only)

Sections are recomputed whenever the discriminator (user type) answer
changes.  Answers left behind in a dropped section stay in the store but
are excluded from assembly.
"""

from __future__ import annotations

import enum
import logging
from typing import Any

from mkulima_survey.answers import AnswerStore, toggle
from mkulima_survey.assembler import SubmissionAssembler
from mkulima_survey.catalog import QuestionCatalog
from mkulima_survey.constants import SECTION_TITLES
from mkulima_survey.errors import IncompleteSubmission, MissingRequired
from mkulima_survey.evaluator import RuleEvaluator
from mkulima_survey.models.question import Question
from mkulima_survey.models.session import QuestionsStep, SessionState, StepResult, SubmissionStep
from mkulima_survey.models.submission import SubmissionRecord
from mkulima_survey.sequencer import compute_sections
from mkulima_survey.validator import validate_step

logger = logging.getLogger(__name__)


class SessionStatus(str, enum.Enum):
    """Lifecycle states for a respondent session.

    Transitions:
        in_progress -> submitting  (last step validated, record assembled)
        submitting -> submitted    (persistence succeeded)
        submitting -> in_progress  (persistence failed, retry allowed)
    """

    IN_PROGRESS = "in_progress"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"


class SurveySession:
    """Drives one respondent through the catalog.

    Args:
        catalog: the loaded question catalog
        state: optional snapshot to resume from (see :meth:`to_state`)
    """

    def __init__(self, catalog: QuestionCatalog, state: SessionState | None = None) -> None:
        self._catalog = catalog
        self._evaluator = RuleEvaluator()
        self._assembler = SubmissionAssembler(self._evaluator)
        self.answers = AnswerStore(catalog)
        self.status = SessionStatus.IN_PROGRESS
        self.step = 1
        self.errors: dict[str, str] = {}
        self.record: SubmissionRecord | None = None
        self.submission_id: str | None = None
        self.sections: list[str] = compute_sections(None)

        if state is not None:
            self.answers.update(state.answers)
            self._refresh_sections()
            self.step = min(max(state.step, 1), len(self.sections))

    # ==================================================================
    # Read-only views
    # ==================================================================

    @property
    def catalog(self) -> QuestionCatalog:
        return self._catalog

    @property
    def user_type(self) -> Any:
        """Current discriminator answer (None when unanswered)."""
        question = self._catalog.discriminator
        if question is None:
            return None
        return self.answers.get_answer(question.qid)

    @property
    def current_section(self) -> str:
        return self.sections[self.step - 1]

    @property
    def is_last_step(self) -> bool:
        return self.step == len(self.sections)

    def current_questions(self) -> list[Question]:
        """Visible questions of the current section."""
        context = self.answers.context()
        return self._evaluator.filter_visible(
            self._catalog.in_section(self.current_section), context,
        )

    def current_step(self) -> StepResult:
        """The step to render: questions, or the assembled submission."""
        if self.status != SessionStatus.IN_PROGRESS and self.record is not None:
            return SubmissionStep(record=self.record, submission_id=self.submission_id)
        return QuestionsStep(
            step=self.step,
            total=len(self.sections),
            section=self.current_section,
            section_title=SECTION_TITLES.get(self.current_section, self.current_section.title()),
            questions=self.current_questions(),
            errors=dict(self.errors),
        )

    # ==================================================================
    # Answers
    # ==================================================================

    def set_answer(self, key: str, value: Any) -> None:
        """Store an answer and clear its inline error.

        Re-sequences the survey when the discriminator answer changes.
        """
        self._require_editable()
        self.answers.set_answer(key, value)
        self.errors.pop(self._catalog.get(key).label, None)
        self._refresh_sections()

    def toggle_option(self, key: str, option: str) -> list[str]:
        """Checkbox toggle for ``key``; returns the new selection."""
        new_value = toggle(self.answers.get_answer(key), option)
        self.set_answer(key, new_value)
        return new_value

    def reset(self) -> None:
        """Discard all answers and return to Step(1)."""
        self.answers.clear()
        self.errors = {}
        self.record = None
        self.submission_id = None
        self.status = SessionStatus.IN_PROGRESS
        self.step = 1
        self.sections = compute_sections(None)

    # ==================================================================
    # Navigation
    # ==================================================================

    def validate(self) -> dict[str, str]:
        """Validate the current step and remember the errors for display."""
        self.errors = validate_step(self.current_questions(), self.answers)
        return dict(self.errors)

    def next(self) -> StepResult:
        """Advance one step, or assemble the record on the last step.

        Raises:
            MissingRequired: the current step has unanswered required questions.
            IncompleteSubmission: a required question elsewhere is unanswered;
                the session has already moved to that question's section.
        """
        self._require_editable()
        errors = self.validate()
        if errors:
            raise MissingRequired(errors)

        if not self.is_last_step:
            self.step += 1
            return self.current_step()

        try:
            record = self._assembler.assemble(self._catalog, self.sections, self.answers)
        except IncompleteSubmission as exc:
            if exc.section in self.sections:
                self.step = self.sections.index(exc.section) + 1
                self.validate()
            raise
        self.record = record
        self.status = SessionStatus.SUBMITTING
        logger.info("Survey assembled with groups: %s", ", ".join(record.groups()))
        return self.current_step()

    def prev(self) -> StepResult:
        """Go back one step.  Never validated; a no-op on Step(1)."""
        self._require_editable()
        if self.step > 1:
            self.step -= 1
        self.errors = {}
        return self.current_step()

    def jump(self, target: int) -> StepResult:
        """Jump to an earlier (or the current) step.

        Raises:
            ValueError: if ``target`` is ahead of the current step or below 1.
        """
        self._require_editable()
        if target < 1 or target > self.step:
            raise ValueError(
                f"Cannot jump to step {target}: allowed range is 1-{self.step}"
            )
        self.step = target
        self.errors = {}
        return self.current_step()

    # ==================================================================
    # Submission outcome
    # ==================================================================

    def mark_submitted(self, submission_id: str | None = None) -> None:
        """Persistence succeeded: enter the terminal state."""
        if self.status != SessionStatus.SUBMITTING:
            raise ValueError(f"Cannot mark submitted: session status is '{self.status.value}'")
        self.submission_id = submission_id
        self.status = SessionStatus.SUBMITTED

    def mark_failed(self) -> None:
        """Persistence failed: return to the last step with answers intact."""
        if self.status != SessionStatus.SUBMITTING:
            raise ValueError(f"Cannot mark failed: session status is '{self.status.value}'")
        self.record = None
        self.status = SessionStatus.IN_PROGRESS

    # ==================================================================
    # Snapshot
    # ==================================================================

    def to_state(self) -> SessionState:
        return SessionState(step=self.step, answers=self.answers.to_dict())

    @classmethod
    def from_state(cls, catalog: QuestionCatalog, state: SessionState) -> "SurveySession":
        return cls(catalog, state=state)

    # ==================================================================
    # Internal
    # ==================================================================

    def _refresh_sections(self) -> None:
        sections = compute_sections(self.user_type)
        if sections != self.sections:
            logger.debug("Sections changed: %s -> %s", self.sections, sections)
            self.sections = sections
            self.step = min(self.step, len(sections))

    def _require_editable(self) -> None:
        if self.status != SessionStatus.IN_PROGRESS:
            raise ValueError(
                f"Session is '{self.status.value}': answers and navigation are locked"
            )
