"""Error hierarchy for governance operations.

Every error raised by the engine derives from ``GovernanceError`` and carries
the HTTP status the segments answer with.
"""


class GovernanceError(Exception):
    """Base exception for all governance errors."""

    status_code = 400

    def __init__(self, message: str = "", **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        body = {"ok": False, "error": type(self).__name__, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(GovernanceError):
    """Raised when a required field is missing or malformed. Nothing is written."""

    status_code = 400


class PermissionDeniedError(GovernanceError):
    """Raised when the acting operator lacks the tier an operation requires."""

    status_code = 403


class NotFoundError(GovernanceError):
    """Raised when a flag, ban, request, withdrawal or account does not exist."""

    status_code = 404


class ConflictError(GovernanceError):
    """Raised when operating on a terminal record or losing a concurrent write."""

    status_code = 409


class TransactionError(GovernanceError):
    """Raised when the atomic commit fails. The operation was not applied."""

    status_code = 503
