"""Public model re-exports for mkulima_survey.

Consumers should import from ``mkulima_survey.models`` rather than
reaching into sub-modules directly.
"""

# --- Rules ---
from mkulima_survey.models.rule import (
    ALWAYS_VISIBLE,
    AlwaysVisible,
    EqualsRule,
    VisibilityRule,
    format_rule,
    parse_rule,
)

# --- Questions ---
from mkulima_survey.models.question import (
    BaseQuestion,
    CheckboxQuestion,
    ChoiceQuestion,
    Question,
    ScaleQuestion,
    TextQuestion,
    build_question,
    question_mapper,
    with_question_type,
)

# --- Submission ---
from mkulima_survey.models.submission import (
    StoredSubmission,
    SubmissionRecord,
)

# --- Session / step ---
from mkulima_survey.models.session import (
    QuestionsStep,
    SessionState,
    StepResult,
    SubmissionStep,
)

__all__ = [
    # Rules
    "ALWAYS_VISIBLE",
    "AlwaysVisible",
    "EqualsRule",
    "VisibilityRule",
    "format_rule",
    "parse_rule",
    # Questions
    "BaseQuestion",
    "CheckboxQuestion",
    "ChoiceQuestion",
    "Question",
    "ScaleQuestion",
    "TextQuestion",
    "build_question",
    "question_mapper",
    "with_question_type",
    # Submission
    "StoredSubmission",
    "SubmissionRecord",
    # Session
    "QuestionsStep",
    "SessionState",
    "StepResult",
    "SubmissionStep",
]
