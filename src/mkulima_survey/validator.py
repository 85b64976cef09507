"""Step validation — required-field checks that gate forward navigation."""

from collections.abc import Iterable, Mapping
from typing import Any

from mkulima_survey.constants import REQUIRED_ERROR


def is_empty(value: Any) -> bool:
    """True for unanswered values: absent (None), empty string, empty list."""
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (list, tuple, set)):
        return len(value) == 0
    return False


def answer_for(question, answers: Mapping[str, Any]) -> Any:
    """Fetch a question's answer, keyed by qid or (legacy) by label."""
    if question.qid in answers:
        return answers[question.qid]
    return answers.get(question.label)


def validate_step(questions: Iterable, answers: Mapping[str, Any]) -> dict[str, str]:
    """Check the visible questions of one step.

    Returns a map of question label → ``"Required"`` for every required
    question left empty.  An empty map means the step may be left forwards.
    """
    errors: dict[str, str] = {}
    for q in questions:
        if q.required and is_empty(answer_for(q, answers)):
            errors[q.label] = REQUIRED_ERROR
    return errors
