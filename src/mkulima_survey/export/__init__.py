"""Printable exports.

Provides ``ExportManager``, a Jinja2-based renderer for blank
questionnaires and completed submissions.
"""

from mkulima_survey.export.manager import ExportManager

__all__ = ["ExportManager"]
