"""Tests for agentperm.exceptions module."""

from __future__ import annotations

import grpc
import pytest

from agentperm import (
    AgentPermError,
    DuplicateCodeError,
    InvalidCodeError,
    InvalidPermissionError,
    InvalidProviderError,
    InvalidVerifierError,
    MissingCodeError,
    PermissionDeniedError,
    ProviderNotImplementedError,
)
from agentperm.exceptions import get_grpc_status_code


class TestErrorHierarchy:
    """Codes and builtin bases of each error."""

    @pytest.mark.parametrize(
        "error_cls, code, builtin",
        [
            (MissingCodeError, "MISSING_CODE", ValueError),
            (InvalidCodeError, "INVALID_CODE", ValueError),
            (DuplicateCodeError, "DUPLICATE_CODE", ValueError),
            (InvalidVerifierError, "INVALID_VERIFIER", TypeError),
            (InvalidProviderError, "INVALID_PROVIDER", TypeError),
            (InvalidPermissionError, "INVALID_PERMISSION", TypeError),
            (ProviderNotImplementedError, "PROVIDER_NOT_IMPLEMENTED", NotImplementedError),
        ],
    )
    def test_code_and_builtin(self, error_cls, code, builtin) -> None:
        error = error_cls()
        assert error.code == code
        assert isinstance(error, AgentPermError)
        assert isinstance(error, builtin)

    def test_default_message(self) -> None:
        assert str(PermissionDeniedError()) == "Forbidden"
        assert "Not implemented!" in ProviderNotImplementedError().message

    def test_custom_message_and_details(self) -> None:
        error = DuplicateCodeError("Duplicate permission code: 'x'", permission_code="x")
        assert str(error) == "Duplicate permission code: 'x'"
        assert error.details == {"permission_code": "x"}

    def test_code_override(self) -> None:
        assert AgentPermError("boom", code="CUSTOM").code == "CUSTOM"


class TestGrpcStatusCode:
    """get_grpc_status_code() mapping."""

    @pytest.mark.parametrize(
        "error, status",
        [
            (PermissionDeniedError(), grpc.StatusCode.PERMISSION_DENIED),
            (ProviderNotImplementedError(), grpc.StatusCode.UNIMPLEMENTED),
            (InvalidPermissionError(), grpc.StatusCode.FAILED_PRECONDITION),
            (InvalidCodeError(), grpc.StatusCode.FAILED_PRECONDITION),
            (DuplicateCodeError(), grpc.StatusCode.INTERNAL),
            (AgentPermError(), grpc.StatusCode.INTERNAL),
        ],
    )
    def test_mapping(self, error, status) -> None:
        assert get_grpc_status_code(error) == status
