"""RuleEvaluator — decides whether a conditional question is currently visible.

Rules come pre-parsed from the catalog (see :mod:`mkulima_survey.models.rule`):

  - **AlwaysVisible**: visible regardless of answers
  - **EqualsRule**: resolve ``path`` against the respondent context and
    compare the resolved value's string form to ``expected``

The context is any nested mapping.  For respondents it is built by
:meth:`AnswerStore.context`; the server-side pre-filter uses
``{"profile": {"userType": <query>}}``.

A path that does not resolve makes the question invisible.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from mkulima_survey.models.rule import AlwaysVisible, EqualsRule

logger = logging.getLogger(__name__)

# Sentinel for "path did not resolve" (distinct from an explicit None answer)
_MISSING = object()


def stringify(value: Any) -> str:
    """String form used for rule comparison.

    Booleans render lower-case, integral floats drop the fraction and
    lists are comma-joined so that ``4.0`` matches ``"4"`` and
    ``["a", "b"]`` matches ``"a,b"``.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ",".join(stringify(v) for v in value)
    if value is None:
        return "null"
    return str(value)


def resolve_path(path: str, context: Mapping[str, Any]) -> Any:
    """Look up ``path`` in ``context``; returns ``_MISSING`` when unresolved.

    The full path is tried as a literal key first (labels and qids may
    contain dots), then walked segment by segment through nested mappings.
    """
    if path in context:
        return context[path]
    node: Any = context
    for segment in path.split("."):
        if not isinstance(node, Mapping) or segment not in node:
            return _MISSING
        node = node[segment]
    return node


class RuleEvaluator:
    """Evaluates visibility rules against a respondent context."""

    def is_visible(
        self,
        rule: AlwaysVisible | EqualsRule | None,
        context: Mapping[str, Any],
    ) -> bool:
        """Return True when a question with ``rule`` should be shown.

        Args:
            rule: the question's parsed rule; ``None`` means always visible
            context: nested mapping of the respondent's answers so far

        Returns:
            True for AlwaysVisible, otherwise whether the resolved value's
            string form equals ``rule.expected`` exactly.
        """
        if rule is None or isinstance(rule, AlwaysVisible):
            return True
        if isinstance(rule, EqualsRule):
            value = resolve_path(rule.path, context)
            if value is _MISSING:
                return False
            return stringify(value) == rule.expected

        logger.warning("is_visible() called with unknown rule type: %s", type(rule))
        return False

    def filter_visible(self, questions, context: Mapping[str, Any]) -> list:
        """Keep the questions whose own rule passes against ``context``."""
        return [q for q in questions if self.is_visible(q.conditional, context)]


# Module-level convenience so callers can use the functional form.
_default = RuleEvaluator()


def is_visible(rule: AlwaysVisible | EqualsRule | None, context: Mapping[str, Any]) -> bool:
    """Functional form of :meth:`RuleEvaluator.is_visible`."""
    return _default.is_visible(rule, context)
