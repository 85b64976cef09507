"""SubmissionAssembler — turns flat answers into a nested submission record.

Two passes over the catalog, both restricted to the active sections:

  1. **Full validation**: every required question that is visible (its own
     rule re-evaluated against the current answers) must be answered.  The
     first gap raises :class:`IncompleteSubmission` naming its section.
  2. **Build**: every answered question is placed under its normalised
     field name in the group for its section; empty groups are dropped and
     the record is stamped with the submission time.

The assembler never writes anywhere; persistence belongs to the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any

from mkulima_survey.answers import build_context
from mkulima_survey.catalog import QuestionCatalog, field_name_for
from mkulima_survey.constants import SECTION_GROUPS
from mkulima_survey.errors import IncompleteSubmission
from mkulima_survey.evaluator import RuleEvaluator
from mkulima_survey.models.submission import SubmissionRecord
from mkulima_survey.validator import answer_for, is_empty

logger = logging.getLogger(__name__)


class SubmissionAssembler:
    """Validates and assembles submission records."""

    def __init__(self, evaluator: RuleEvaluator | None = None) -> None:
        self._evaluator = evaluator or RuleEvaluator()

    def find_missing(
        self,
        catalog: QuestionCatalog,
        sections: Iterable[str],
        answers: Mapping[str, Any],
    ) -> list:
        """Required, visible, unanswered questions across all active sections.

        Returned in catalog order, so ``[0]`` is the first gap.
        """
        context = build_context(catalog, answers)
        missing = []
        for q in catalog.in_sections(sections):
            if not q.required:
                continue
            if not self._evaluator.is_visible(q.conditional, context):
                continue
            if is_empty(answer_for(q, answers)):
                missing.append(q)
        return missing

    def assemble(
        self,
        catalog: QuestionCatalog,
        sections: Iterable[str],
        answers: Mapping[str, Any],
        *,
        now: datetime | None = None,
    ) -> SubmissionRecord:
        """Validate, then build the grouped record.

        Args:
            catalog: the question catalog
            sections: the active section sequence
            answers: answers keyed by qid (or label)
            now: submission timestamp; defaults to the current UTC time

        Raises:
            IncompleteSubmission: if any visible required question is empty.
        """
        sections = list(sections)
        missing = self.find_missing(catalog, sections, answers)
        if missing:
            raise IncompleteSubmission(missing[0].section, [q.label for q in missing])

        groups: dict[str, dict[str, Any]] = {}
        for q in catalog.in_sections(sections):
            value = answer_for(q, answers)
            if is_empty(value):
                continue
            group = SECTION_GROUPS.get(q.section)
            if group is None:
                logger.warning("Section %r has no submission group, skipping %s", q.section, q.qid)
                continue
            groups.setdefault(group, {})[field_name_for(q.label)] = _copy(value)

        return SubmissionRecord(
            **{name: fields for name, fields in groups.items() if fields},
            submittedAt=now or datetime.now(timezone.utc),
        )


def _copy(value: Any) -> Any:
    # Detach list answers so later toggles don't mutate an assembled record
    return list(value) if isinstance(value, (list, tuple)) else value


_default = SubmissionAssembler()


def assemble(
    catalog: QuestionCatalog,
    sections: Iterable[str],
    answers: Mapping[str, Any],
    *,
    now: datetime | None = None,
) -> SubmissionRecord:
    """Functional form of :meth:`SubmissionAssembler.assemble`."""
    return _default.assemble(catalog, sections, answers, now=now)
