"""ORM models for mkulima_db."""

from mkulima_db.models.base import Base
from mkulima_db.models.enums import UserRole
from mkulima_db.models.question import QuestionRow
from mkulima_db.models.submission import Submission
from mkulima_db.models.user import User

__all__ = ["Base", "UserRole", "QuestionRow", "Submission", "User"]
