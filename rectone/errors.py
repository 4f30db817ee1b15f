"""Errors raised by the directory backends."""


class DirectoryError(Exception):
    """Base class for directory errors."""


class BackendUnavailable(DirectoryError):
    """The remote store could not be reached or rejected the request."""

    def __init__(self, operation: str, reason: str = ""):
        self.operation = operation
        self.reason = reason
        message = f"Remote backend unavailable during {operation}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class BackendTimeout(BackendUnavailable):
    """A remote call exceeded the configured timeout."""

    def __init__(self, operation: str, timeout: float):
        self.timeout = timeout
        super().__init__(operation, f"no response within {timeout:g}s")


class SubmissionRequiresBackend(DirectoryError):
    """Tool submission attempted while serving fallback data."""

    def __init__(self):
        super().__init__("Tool submission requires a database connection")


class InvalidFilter(DirectoryError):
    """Malformed filter input, raised only when strict filtering is enabled."""

    def __init__(self, field: str, value):
        self.field = field
        self.value = value
        super().__init__(f"Invalid filter value for {field}: {value!r}")
