"""Visibility rule models for conditional questions.

A question's ``conditional`` field is stored (in YAML, the database and on
the wire) as a plain string ``"<dotted.path>:<expected>"``.  It is parsed
once at load time into one of two variants:

  - AlwaysVisible: no rule set, the question is always shown
  - EqualsRule: shown only when the value at ``path`` stringifies to ``expected``

The discriminated ``VisibilityRule`` union uses ``kind`` as its discriminator
so Pydantic can validate already-parsed dicts directly into the right type.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class AlwaysVisible(BaseModel):
    """No rule: the question is shown whenever its section is active."""

    kind: Literal["always"] = "always"

    def __str__(self) -> str:
        return ""


class EqualsRule(BaseModel):
    """Shown when the answer found at ``path`` equals ``expected`` (as a string)."""

    kind: Literal["equals"] = "equals"
    path: str
    expected: str

    @property
    def segments(self) -> list[str]:
        """Dotted path split into its lookup segments."""
        return self.path.split(".")

    def __str__(self) -> str:
        return f"{self.path}:{self.expected}"


VisibilityRule = Annotated[Union[AlwaysVisible, EqualsRule], Field(discriminator="kind")]

ALWAYS_VISIBLE = AlwaysVisible()


def parse_rule(raw: str | None) -> AlwaysVisible | EqualsRule:
    """Parse the stored ``"path:expected"`` form into a rule variant.

    Splits on the first ``:`` only, so expected values may contain colons.
    ``None`` and blank strings mean "always visible".

    Raises:
        ValueError: if a non-blank rule has no ``:`` or an empty path.
    """
    if raw is None or not raw.strip():
        return ALWAYS_VISIBLE
    path, sep, expected = raw.partition(":")
    if not sep or not path.strip():
        raise ValueError(f"Invalid conditional rule {raw!r}: expected 'path:value'")
    return EqualsRule(path=path.strip(), expected=expected)


def format_rule(rule: AlwaysVisible | EqualsRule) -> str | None:
    """Inverse of :func:`parse_rule` — ``None`` for AlwaysVisible."""
    if isinstance(rule, EqualsRule):
        return str(rule)
    return None
