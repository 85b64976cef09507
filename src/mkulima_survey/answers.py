"""AnswerStore — in-memory answers for one respondent session.

Answers are stored by stable ``qid``.  Callers may address a question by
its qid or by its label; labels are resolved through the catalog, so a
wording edit never orphans an answer already held by qid.

No validation happens at write time; required checks run at navigation
time (see :mod:`mkulima_survey.validator`).
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from typing import Any

from mkulima_survey.catalog import QuestionCatalog, field_name_for

logger = logging.getLogger(__name__)


def toggle(current: Any, option: str) -> list[str]:
    """Checkbox toggle: drop ``option`` if selected, else append it.

    Insertion order of the remaining selections is preserved.
    """
    selected = list(current) if isinstance(current, (list, tuple)) else []
    if option in selected:
        return [v for v in selected if v != option]
    return [*selected, option]


class AnswerStore(Mapping[str, Any]):
    """qid-keyed answer mapping bound to a catalog.

    Behaves as a read-only ``Mapping`` (qid → value) for the validator and
    assembler; mutate through :meth:`set_answer` / :meth:`toggle_option`.
    """

    def __init__(self, catalog: QuestionCatalog, answers: Mapping[str, Any] | None = None) -> None:
        self._catalog = catalog
        self._answers: dict[str, Any] = {}
        if answers:
            self.update(answers)

    # --- Mapping protocol ---

    def __getitem__(self, qid: str) -> Any:
        return self._answers[qid]

    def __iter__(self) -> Iterator[str]:
        return iter(self._answers)

    def __len__(self) -> int:
        return len(self._answers)

    # --- Writes ---

    def set_answer(self, key: str, value: Any) -> None:
        """Overwrite the answer for the question addressed by qid or label.

        Raises:
            KeyError: if ``key`` names no question in the catalog.
        """
        self._answers[self._catalog.resolve_key(key)] = value

    def get_answer(self, key: str, default: Any = None) -> Any:
        """Current answer for a qid or label (``default`` when unanswered)."""
        try:
            qid = self._catalog.resolve_key(key)
        except KeyError:
            return default
        return self._answers.get(qid, default)

    def toggle_option(self, key: str, option: str) -> list[str]:
        """Toggle one checkbox option and store the resulting list."""
        new_value = toggle(self.get_answer(key), option)
        self.set_answer(key, new_value)
        return new_value

    def update(self, answers: Mapping[str, Any]) -> None:
        """Bulk ``set_answer``; keys naming no question are skipped with a warning."""
        for key, value in answers.items():
            if key not in self._catalog:
                logger.warning("Ignoring answer for unknown question %r", key)
                continue
            self.set_answer(key, value)

    def clear(self) -> None:
        self._answers.clear()

    # --- Views ---

    def by_label(self) -> dict[str, Any]:
        """Label-keyed copy, in catalog order."""
        return {q.label: self._answers[q.qid] for q in self._catalog if q.qid in self._answers}

    def to_dict(self) -> dict[str, Any]:
        """qid-keyed copy (the resumable form)."""
        return dict(self._answers)

    def context(self) -> dict[str, Any]:
        """Evaluation context for visibility rules.

        Holds every answer under its qid and its label, plus one nested
        group per section keyed by normalised field name, so a rule path
        like ``profile.userType`` resolves to the user-type answer.
        """
        return build_context(self._catalog, self._answers)


def build_context(catalog: QuestionCatalog, answers: Mapping[str, Any]) -> dict[str, Any]:
    """Build a rule-evaluation context from qid- or label-keyed answers."""
    context: dict[str, Any] = {}
    sections: dict[str, dict[str, Any]] = {}
    for q in catalog:
        if q.qid in answers:
            value = answers[q.qid]
        elif q.label in answers:
            value = answers[q.label]
        else:
            continue
        context[q.qid] = value
        context[q.label] = value
        sections.setdefault(q.section, {})[field_name_for(q.label)] = value
    # Section groups win over a label that happens to equal a section name
    context.update(sections)
    return context
