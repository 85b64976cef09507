"""Database-level enumerations."""

import enum


class UserRole(str, enum.Enum):
    """Account roles.

    ``admin`` may manage the question catalog and read submissions and
    analytics; ``user`` accounts can only log in.
    """

    USER = "user"
    ADMIN = "admin"
