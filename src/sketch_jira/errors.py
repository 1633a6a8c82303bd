"""
Error taxonomy shared by the pipeline, the JIRA client and the panel bridge.

Every error carries a short ``kind`` so the bridge can hand it to the UI
without the UI needing to know Python exception types.
"""

__all__ = [
    "AuthError",
    "Cancelled",
    "NetworkError",
    "NotFound",
    "ResolutionError",
    "ServerError",
    "SketchJiraError",
    "Unauthorized",
    "ValidationError",
    "error_for_kind",
]


class SketchJiraError(Exception):
    """Base class for all plugin errors."""

    kind = "error"

    def __init__(self, message: str, *, status: int | None = None):
        self.message = message
        self.status = status
        super().__init__(message)


class ResolutionError(SketchJiraError):
    """The host document or selection could not be resolved."""

    kind = "resolution"


class AuthError(SketchJiraError):
    """JIRA rejected the credentials or the caller lacks access."""

    kind = "unauthorized"


Unauthorized = AuthError


class NotFound(SketchJiraError):
    """Issue, attachment or filter does not exist."""

    kind = "not_found"


class NetworkError(SketchJiraError):
    """JIRA could not be reached: timeout, connection error, open circuit."""

    kind = "network"


class ServerError(SketchJiraError):
    """JIRA answered with an error the client cannot recover from."""

    kind = "server"

    def __init__(self, message: str, *, status: int | None = None, errors: list[str] | None = None):
        super().__init__(message, status=status)
        self.errors = errors or []


class Cancelled(SketchJiraError):
    """The operation was cancelled before completing."""

    kind = "cancelled"


class ValidationError(SketchJiraError):
    """Input rejected before any call is made."""

    kind = "validation"


_KINDS: dict[str, type[SketchJiraError]] = {
    cls.kind: cls
    for cls in (ResolutionError, AuthError, NotFound, NetworkError, ServerError, Cancelled, ValidationError)
}


def error_for_kind(kind: str, message: str) -> SketchJiraError:
    """Rebuild a typed error from a bridge error envelope."""
    error = _KINDS.get(kind, SketchJiraError)(message)
    error.kind = kind
    return error
