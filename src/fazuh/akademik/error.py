"""Custom exception hierarchy for the Akademik client.

Every error a command can surface to the user derives from `AkademikError`,
so the CLI can report them uniformly.
"""


class AkademikError(Exception):
    """Base error. `message` is the human-readable text shown to the user."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class InternalError(AkademikError):
    """Error caused by failure in app logic."""


class ConfigError(AkademikError):
    """Error caused by invalid user configuration."""


class ValidationError(AkademikError):
    """Client-side validation failed. The request was never sent."""


class FileConstraintError(ValidationError):
    """A selected file violates the size or type constraint."""


class BusyError(AkademikError):
    """Another submission is still in flight."""


class TransportError(AkademikError):
    """The backend could not be reached."""


class ApiError(AkademikError):
    """The backend answered with a non-2xx status."""

    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status


class SessionExpiredError(ApiError):
    """The backend rejected the token. Stored credentials have been cleared."""


class ExportError(AkademikError):
    """A report export step failed. The remaining steps were not attempted."""
