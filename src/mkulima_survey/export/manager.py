"""ExportManager — Jinja2-based printable renderings of the survey.

Loads templates from the ``template/`` directory and renders:

  - the blank questionnaire for a section sequence (for paper collection)
  - a completed submission, question by question, for the respondent's records
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

import jinja2

from mkulima_survey.catalog import QuestionCatalog, field_name_for
from mkulima_survey.constants import SECTION_GROUPS, SECTION_TITLES
from mkulima_survey.models.submission import StoredSubmission, SubmissionRecord


def _format_answer(value) -> str:
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return str(value)


class ExportManager:
    """Renders questionnaires and submissions to Markdown.

    Args:
        template_dir: optional override for the template directory.
            Defaults to ``template/`` sibling of this module.
    """

    def __init__(self, template_dir: Path | None = None) -> None:
        if template_dir is None:
            template_dir = Path(__file__).parent / "template"
        self._env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(template_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self._env.filters["answer"] = _format_answer

    def render_questionnaire(
        self,
        catalog: QuestionCatalog,
        sections: Iterable[str],
        *,
        title: str = "Mkulima Hub Survey",
    ) -> str:
        """Blank questionnaire listing every question of ``sections``."""
        blocks = [
            {
                "title": SECTION_TITLES.get(section, section.title()),
                "questions": catalog.in_section(section),
            }
            for section in sections
        ]
        template = self._env.get_template("questionnaire.md.jinja2")
        return template.render(title=title, sections=blocks)

    def render_submission(
        self,
        catalog: QuestionCatalog,
        record: SubmissionRecord,
        *,
        title: str = "Mkulima Hub Survey Results",
    ) -> str:
        """Completed survey as question/answer rows grouped by section.

        A :class:`StoredSubmission` also prints its identifier.
        """
        groups = record.groups()
        blocks = []
        for section, group in SECTION_GROUPS.items():
            fields = groups.get(group)
            if not fields:
                continue
            rows = [
                {"question": q.label, "answer": fields[field_name_for(q.label)]}
                for q in catalog.in_section(section)
                if field_name_for(q.label) in fields
            ]
            blocks.append({"title": SECTION_TITLES.get(section, section.title()), "rows": rows})
        template = self._env.get_template("submission.md.jinja2")
        submission_id = record.id if isinstance(record, StoredSubmission) else None
        return template.render(
            title=title,
            sections=blocks,
            submission_id=submission_id,
            submitted_at=record.submitted_at,
        )
