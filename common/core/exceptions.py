from typing import Optional


class AppException(Exception):
    """Base application exception.

    ``message`` is returned to HTTP callers as ``error``; ``str(exc)`` adds the
    kind prefix and is returned as ``details``.
    """

    status_code: int = 500
    prefix: str = "Error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.prefix}: {self.message}"


class TaskNotFound(AppException):
    """Requested Task does not exist."""

    status_code = 404
    prefix = "Task not found"


class InvalidRequest(AppException):
    """Malformed invocation payload."""

    status_code = 400
    prefix = "Invalid request"


class ConfigError(AppException):
    """Invalid process configuration."""

    status_code = 500
    prefix = "Configuration error"


class SerializationError(AppException):
    """Payload could not be encoded as text."""

    status_code = 400
    prefix = "Serialization error"


class OrchestratorError(AppException):
    """The cluster API rejected an operation."""

    status_code = 500
    prefix = "Kubernetes error"

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status
