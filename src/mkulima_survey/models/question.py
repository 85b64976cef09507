"""Question type models for the survey catalog.

Each question type maps to a specific input widget and answer shape:

  - dropdown / radio: pick one option, answer is a string
  - checkbox: pick any options, answer is a list of strings
  - scale: numeric rating between ``min_value`` and ``max_value``
  - text / textarea: free text, answer is a string

The discriminated ``Question`` union uses ``question_type`` as its discriminator.
The ``question_mapper`` dict maps type strings to their Pydantic classes.

Every question carries a ``conditional`` visibility rule.  It is accepted in
its stored string form (``"profile.userType:Farmer"``) and parsed once into
a :mod:`~mkulima_survey.models.rule` variant; serialisation writes the
string form back.
"""

from __future__ import annotations

from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_serializer, field_validator, model_validator

from .rule import ALWAYS_VISIBLE, AlwaysVisible, EqualsRule, VisibilityRule, format_rule, parse_rule


# --- Base question type ---

class BaseQuestion(BaseModel):
    """Fields shared by all question types."""

    qid: str
    section: str
    label: str
    options: List[str] = []
    required: bool = False
    conditional: VisibilityRule = ALWAYS_VISIBLE

    @field_validator("conditional", mode="before")
    @classmethod
    def _parse_conditional(cls, value: Any) -> Any:
        # Stored/wire form is a plain string; parsed dicts and models pass through
        if value is None or isinstance(value, str):
            return parse_rule(value)
        return value

    @field_serializer("conditional")
    def _dump_conditional(self, rule: AlwaysVisible | EqualsRule) -> Optional[str]:
        return format_rule(rule)

    @property
    def is_conditional(self) -> bool:
        """True when visibility depends on an earlier answer."""
        return isinstance(self.conditional, EqualsRule)


# --- Choice-based types ---

class ChoiceQuestion(BaseQuestion):
    """Pick exactly one option (select box or radio group)."""

    question_type: Literal["dropdown", "radio"] = "dropdown"

    @model_validator(mode="after")
    def _chk(self):
        if not self.options:
            raise ValueError(f"{self.question_type} question {self.qid!r} needs options")
        return self


class CheckboxQuestion(BaseQuestion):
    """Pick any number of options; the answer is an ordered list."""

    question_type: Literal["checkbox"] = "checkbox"

    @model_validator(mode="after")
    def _chk(self):
        if not self.options:
            raise ValueError(f"checkbox question {self.qid!r} needs options")
        return self


# --- Numeric ---

class ScaleQuestion(BaseQuestion):
    """Numeric rating, 1–5 unless the catalog says otherwise."""

    question_type: Literal["scale"] = "scale"
    min_value: int = 1
    max_value: int = 5

    @model_validator(mode="after")
    def _chk(self):
        if self.min_value >= self.max_value:
            raise ValueError("min_value must be < max_value")
        return self


# --- Free text ---

class TextQuestion(BaseQuestion):
    """Single-line or multi-line free text."""

    question_type: Literal["text", "textarea"] = "text"


# --- Discriminated union of all question types ---

Question = Annotated[
    Union[ChoiceQuestion, CheckboxQuestion, ScaleQuestion, TextQuestion],
    Field(discriminator="question_type"),
]

# Maps question_type string → Pydantic class for dynamic deserialization.
question_mapper = {
    "dropdown": ChoiceQuestion,
    "radio": ChoiceQuestion,
    "checkbox": CheckboxQuestion,
    "scale": ScaleQuestion,
    "text": TextQuestion,
    "textarea": TextQuestion,
}


def with_question_type(raw: dict) -> dict:
    """Copy of *raw* with a plain ``type`` key moved to ``question_type``.

    Records written by older clients name the widget ``type``; when both
    keys are present ``question_type`` wins.
    """
    record = dict(raw)
    legacy = record.pop("type", None)
    if not record.get("question_type") and legacy:
        record["question_type"] = legacy
    return record


def build_question(raw: dict) -> Question:
    """Instantiate the right Question class for a raw dict.

    The type is read from ``question_type``, or from ``type`` when that is
    absent.

    Raises:
        ValueError: if the type is missing or unknown.
    """
    record = with_question_type(raw)
    qtype = record.get("question_type")
    cls = question_mapper.get(qtype)
    if cls is None:
        raise ValueError(f"Unknown question_type {qtype!r} for question {record.get('qid')!r}")
    return cls(**record)
