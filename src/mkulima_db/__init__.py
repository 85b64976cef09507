"""mkulima_db — PostgreSQL persistence layer for the Mkulima Hub survey.

This package provides the ORM models, async engine factory, and
repositories for questions, submissions and users.  It is designed to be
consumed by the FastAPI server and the ``mkulima-seed`` tool.
"""

from mkulima_db.config import DatabaseSettings, load_db_settings
from mkulima_db.engine import dispose_engine, get_engine, get_session_factory, session_scope
from mkulima_db.models.enums import UserRole
from mkulima_db.models.question import QuestionRow
from mkulima_db.models.submission import Submission
from mkulima_db.models.user import User
from mkulima_db.repository import QuestionRepository, SubmissionRepository, UserRepository

__all__ = [
    "QuestionRow",
    "Submission",
    "User",
    "UserRole",
    "DatabaseSettings",
    "load_db_settings",
    "dispose_engine",
    "get_engine",
    "get_session_factory",
    "session_scope",
    "QuestionRepository",
    "SubmissionRepository",
    "UserRepository",
]
