"""Survey error kinds.

None of these is fatal: each is recoverable at the session level, either
by correcting input or by retrying the boundary call.
"""


class SurveyError(Exception):
    """Base class for all survey workflow errors."""


class MissingRequired(SurveyError):
    """Required questions on the current step have no valid answer.

    ``errors`` maps each offending question label to the error token.
    """

    def __init__(self, errors: dict[str, str]) -> None:
        self.errors = dict(errors)
        super().__init__(f"Missing required answers: {', '.join(self.errors)}")


class IncompleteSubmission(SurveyError):
    """Final assembly found required questions unanswered in an active section.

    ``section`` is the section of the first missing question so the caller
    can send the respondent back to it.
    """

    def __init__(self, section: str, missing: list[str]) -> None:
        self.section = section
        self.missing = list(missing)
        super().__init__(
            f"Complete all required fields: {len(self.missing)} missing, "
            f"first in section '{section}'"
        )


class UnreachableCatalog(SurveyError):
    """The question catalog could not be fetched."""


class PersistenceFailure(SurveyError):
    """The submission write failed; answers are still held by the session."""
