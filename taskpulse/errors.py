"""Error taxonomy for the upload and insight boundaries.

Field coercion has no error type: every interpreter in ``taskpulse.fields``
falls back to a default instead of raising.
"""


class TaskPulseError(Exception):
    """Base class for errors surfaced to the dashboard."""


class ParseError(TaskPulseError):
    """The uploaded file could not be decoded as tabular data."""


class GenerationError(TaskPulseError):
    """The text-generation collaborator failed (transport, quota, timeout)."""
