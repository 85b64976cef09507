"""mkulima_survey — Conditional multi-step survey SDK for Mkulima Hub.

Public API:
    SurveySession       — explicit per-respondent state machine (steps, answers, submit)
    QuestionCatalog     — loads the question catalog with lookup helpers
    AnswerStore         — qid-keyed answers with checkbox toggle semantics
    RuleEvaluator       — decides whether a conditional question is visible
    SubmissionAssembler — full validation + grouping into a SubmissionRecord
    SurveyClient        — async HTTP client for catalog fetch and submission
    ExportManager       — Jinja2 renderer for printable questionnaires/results

Functional helpers:
    compute_sections    — ordered section list for a declared user type
    validate_step       — required-field check for one step
    assemble            — functional form of SubmissionAssembler.assemble

Step models:
    StepResult          — union type returned by session navigation
    QuestionsStep       — step: present the visible questions of a section
    SubmissionStep      — step: survey complete, record ready to persist
    SessionState        — resumable snapshot of a session
"""

from mkulima_survey.answers import AnswerStore
from mkulima_survey.assembler import SubmissionAssembler, assemble
from mkulima_survey.catalog import QuestionCatalog
from mkulima_survey.client import SurveyClient
from mkulima_survey.errors import (
    IncompleteSubmission,
    MissingRequired,
    PersistenceFailure,
    SurveyError,
    UnreachableCatalog,
)
from mkulima_survey.evaluator import RuleEvaluator
from mkulima_survey.export import ExportManager
from mkulima_survey.models.session import (
    QuestionsStep,
    SessionState,
    StepResult,
    SubmissionStep,
)
from mkulima_survey.models.submission import SubmissionRecord
from mkulima_survey.sequencer import compute_sections
from mkulima_survey.session import SessionStatus, SurveySession
from mkulima_survey.validator import validate_step

__all__ = [
    # Session & catalog
    "SurveySession",
    "SessionStatus",
    "QuestionCatalog",
    "AnswerStore",
    "RuleEvaluator",
    "SubmissionAssembler",
    "SurveyClient",
    "ExportManager",
    # Functional helpers
    "assemble",
    "compute_sections",
    "validate_step",
    # Step models
    "QuestionsStep",
    "SessionState",
    "StepResult",
    "SubmissionStep",
    "SubmissionRecord",
    # Errors
    "SurveyError",
    "MissingRequired",
    "IncompleteSubmission",
    "UnreachableCatalog",
    "PersistenceFailure",
]
