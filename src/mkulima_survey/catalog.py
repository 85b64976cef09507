"""QuestionCatalog — the ordered set of survey questions.

This is the single source of truth for question definitions at runtime.
It is loaded once (from the YAML seed file or from stored records) and
provides lookup by qid, label and section.

Usage::

    catalog = QuestionCatalog.from_yaml()        # defaults to catalog/questions.yaml
    q = catalog.get("profile_county")
    farmer_qs = catalog.in_section("farmer")
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path
from typing import Any, Optional

import yaml

from mkulima_survey.constants import DISCRIMINATOR_FIELD, LABEL_FIELDS, USER_TYPE_PATH, USER_TYPE_SECTIONS
from mkulima_survey.evaluator import RuleEvaluator
from mkulima_survey.models.question import Question, build_question

logger = logging.getLogger(__name__)

# Sections shown to everyone; the server-side pre-filter never hides them.
_OPEN_SECTIONS = {"profile", "problems"}

# Every character outside [a-z0-9_] becomes its own "_"; stored keys depend on it
_SLUG_RE = re.compile(r"[^a-z0-9_]")


# ---------------------------------------------------------------------------
# Utility helpers
# ---------------------------------------------------------------------------

def find_repo_root(start: Optional[Path] = None) -> Path:
    """Walk upwards from *start* to find the repo root (dir with pyproject.toml or .git).

    Falls back to cwd if no marker is found.
    """
    p = (start or Path(__file__).resolve()).parent
    for parent in [p, *p.parents]:
        if (parent / "pyproject.toml").exists() or (parent / ".git").exists():
            return parent
    return Path.cwd()


def load_yaml(path: Path | str) -> Any:
    """Load a single YAML file and return the parsed contents."""
    if isinstance(path, str):
        path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing YAML file: {path}")
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def default_catalog_path() -> Path:
    return find_repo_root() / "catalog" / "questions.yaml"


def field_name_for(label: str) -> str:
    """Normalised submission field name for a question label.

    Uses the fixed label table; unknown labels fall back to a lower-cased
    slug where each character outside ``[a-z0-9_]`` becomes ``_``.
    """
    mapped = LABEL_FIELDS.get(label)
    if mapped is not None:
        return mapped
    return _SLUG_RE.sub("_", label.lower())


# ---------------------------------------------------------------------------
# QuestionCatalog
# ---------------------------------------------------------------------------

class QuestionCatalog:
    """Ordered, label-unique collection of questions with typed lookup.

    Raises ``ValueError`` on construction if qids or labels repeat, or if a
    role-specific question is tied to an unknown user type.
    """

    def __init__(self, questions: Iterable[Question] = ()) -> None:
        self._questions: list[Question] = list(questions)
        self._by_qid: dict[str, Question] = {}
        self._by_label: dict[str, Question] = {}
        for q in self._questions:
            if q.qid in self._by_qid:
                raise ValueError(f"Duplicate qid {q.qid!r} in catalog")
            if q.label in self._by_label:
                raise ValueError(f"Duplicate label {q.label!r} in catalog")
            self._by_qid[q.qid] = q
            self._by_label[q.label] = q
            check_question(q)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]]) -> "QuestionCatalog":
        """Build a catalog from raw dicts (YAML entries, API payloads, DB rows)."""
        return cls(build_question(dict(raw)) for raw in records)

    @classmethod
    def from_yaml(cls, path: str | Path | None = None) -> "QuestionCatalog":
        """Parse the YAML catalog file (a list of question dicts).

        Raises ``FileNotFoundError`` if the file is missing.
        """
        path = Path(path) if path is not None else default_catalog_path()
        catalog = cls.from_records(load_yaml(path) or [])
        logger.info(
            "QuestionCatalog loaded from %s: %d questions in %d sections",
            path,
            len(catalog),
            len(catalog.sections),
        )
        return catalog

    def to_records(self) -> list[dict[str, Any]]:
        """Serialise back to the stored/wire form (rules as strings)."""
        return [q.model_dump() for q in self._questions]

    # ------------------------------------------------------------------
    # Lookup helpers
    # ------------------------------------------------------------------

    def __iter__(self) -> Iterator[Question]:
        return iter(self._questions)

    def __len__(self) -> int:
        return len(self._questions)

    def __contains__(self, key: object) -> bool:
        return key in self._by_qid or key in self._by_label

    @property
    def sections(self) -> list[str]:
        """Distinct sections in first-appearance order."""
        return list(dict.fromkeys(q.section for q in self._questions))

    def get(self, key: str) -> Question:
        """Look up a question by qid or label.

        Raises:
            KeyError: if neither a qid nor a label matches.
        """
        if key in self._by_qid:
            return self._by_qid[key]
        return self._by_label[key]

    def resolve_key(self, key: str) -> str:
        """Map a qid or label to the stable qid."""
        return self.get(key).qid

    def in_section(self, section: str) -> list[Question]:
        return [q for q in self._questions if q.section == section]

    def in_sections(self, sections: Iterable[str]) -> list[Question]:
        """Questions of any of ``sections``, in catalog order."""
        wanted = set(sections)
        return [q for q in self._questions if q.section in wanted]

    @property
    def discriminator(self) -> Question | None:
        """The user-type question, if the catalog has one."""
        for q in self._questions:
            if q.section == "profile" and field_name_for(q.label) == DISCRIMINATOR_FIELD:
                return q
        return None

    def for_user_type(self, user_type: str | None) -> list[Question]:
        """Server-side pre-filter by declared user type.

        Without a user type the full catalog is returned.  Otherwise profile
        and problems questions are always kept and every other question is
        kept only if its rule passes against ``{"profile": {"userType": ...}}``.
        """
        if not user_type:
            return list(self._questions)
        evaluator = RuleEvaluator()
        context = {"profile": {DISCRIMINATOR_FIELD: user_type}}
        return [
            q for q in self._questions
            if q.section in _OPEN_SECTIONS or evaluator.is_visible(q.conditional, context)
        ]


def check_question(q: Question) -> None:
    """Enforce the user-type rule invariant for a single question.

    Raises:
        ValueError: if a role-specific question references ``profile.userType``
            with an expected value that is not a recognised user type.
    """
    rule = q.conditional
    if (
        q.section not in _OPEN_SECTIONS
        and q.is_conditional
        and rule.path == USER_TYPE_PATH
        and rule.expected not in USER_TYPE_SECTIONS
    ):
        raise ValueError(
            f"Question {q.qid!r} expects unknown user type {rule.expected!r}; "
            f"expected one of {sorted(USER_TYPE_SECTIONS)}"
        )
