"""Section sequencing — which sections a respondent must traverse.

Every respondent walks ``profile`` then ``problems``.  Once the
discriminator (declared user type) is known, exactly one role-specific
section is appended.
"""

from typing import Any

from mkulima_survey.constants import BASE_SECTIONS, USER_TYPE_SECTIONS


def compute_sections(discriminator: Any = None) -> list[str]:
    """Return the ordered section list for a discriminator answer.

    ``"Farmer"`` → ``[profile, problems, farmer]``; unset or unrecognised
    values keep the base two sections.
    """
    sections = list(BASE_SECTIONS)
    extra = USER_TYPE_SECTIONS.get(discriminator) if isinstance(discriminator, str) else None
    if extra is not None:
        sections.append(extra)
    return sections
