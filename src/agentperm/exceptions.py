"""Exception hierarchy for agentperm.

Every error raised by the package inherits from ``AgentPermError`` and
carries a stable ``code`` string. Each concrete error also subclasses the
builtin exception it refines, so callers can catch either.

All of these are programming errors raised at the point of misuse
(construction, combinator build, evaluation without a provider). A
permission set that is missing for a request is not an error, it is a deny.

Usage:
    from agentperm.exceptions import AgentPermError, DuplicateCodeError

    try:
        EDIT_POST = UserPermission("post.edit", False)
    except DuplicateCodeError as e:
        print(e.code, e.details["permission_code"])
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "AgentPermError",
    "MissingCodeError",
    "InvalidCodeError",
    "DuplicateCodeError",
    "InvalidVerifierError",
    "InvalidProviderError",
    "InvalidPermissionError",
    "ProviderNotImplementedError",
    "PermissionDeniedError",
    "get_grpc_status_code",
]


# ---- Exception Hierarchy ----------------------------------------------------


class AgentPermError(Exception):
    """Base exception for agentperm.

    Attributes:
        code: Stable error code string (e.g. "DUPLICATE_CODE").
        message: Human-readable error description.
        details: Additional context as keyword arguments.
    """

    code: str = "INTERNAL_ERROR"
    message: str = "An internal error occurred"

    def __init__(self, message: str | None = None, code: str | None = None, **kwargs: Any) -> None:
        self.message = message or self.message
        self.code = code or self.code
        self.details = kwargs
        super().__init__(self.message)


class MissingCodeError(AgentPermError, ValueError):
    """Permission constructed without a code."""

    code: str = "MISSING_CODE"
    message: str = "Missing permission code"


class InvalidCodeError(AgentPermError, ValueError):
    """Permission code is not a string or a non-negative integer."""

    code: str = "INVALID_CODE"
    message: str = "Invalid permission code"


class DuplicateCodeError(AgentPermError, ValueError):
    """Permission code already registered."""

    code: str = "DUPLICATE_CODE"
    message: str = "Duplicate permission code"


class InvalidVerifierError(AgentPermError, TypeError):
    """Custom verifier is not callable or does not match its declared kind."""

    code: str = "INVALID_VERIFIER"
    message: str = "Invalid permission verifier"


class InvalidProviderError(AgentPermError, TypeError):
    """Permission-set provider given to a permission type is not callable."""

    code: str = "INVALID_PROVIDER"
    message: str = "Invalid permission set provider"


class InvalidPermissionError(AgentPermError, TypeError):
    """A combinator received something that is not a checkable."""

    code: str = "INVALID_PERMISSION"
    message: str = "Invalid permission"


class ProviderNotImplementedError(AgentPermError, NotImplementedError):
    """Evaluation attempted on a permission type with no bound provider."""

    code: str = "PROVIDER_NOT_IMPLEMENTED"
    message: str = "Not implemented! Make sure the permission was created from a permission type with a provider."


class PermissionDeniedError(AgentPermError):
    """Raised by guards when a request context fails its permission test."""

    code: str = "PERMISSION_DENIED"
    message: str = "Forbidden"


# ---- gRPC mapping -----------------------------------------------------------


def get_grpc_status_code(error: AgentPermError) -> Any:
    """Map an AgentPermError to a gRPC status code.

    Import grpc locally to avoid a hard dependency for the core.
    """
    import grpc

    error_to_status = {
        "PERMISSION_DENIED": grpc.StatusCode.PERMISSION_DENIED,
        "PROVIDER_NOT_IMPLEMENTED": grpc.StatusCode.UNIMPLEMENTED,
        "INVALID_CODE": grpc.StatusCode.FAILED_PRECONDITION,
        "INVALID_PERMISSION": grpc.StatusCode.FAILED_PRECONDITION,
        "INVALID_VERIFIER": grpc.StatusCode.FAILED_PRECONDITION,
        "INVALID_PROVIDER": grpc.StatusCode.FAILED_PRECONDITION,
    }
    return error_to_status.get(error.code, grpc.StatusCode.INTERNAL)
