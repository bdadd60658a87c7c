"""gRPC server interceptor enforcing permission tests per RPC.

Provides:
- ``PermissionInterceptor`` - maps RPC names to checkables and denies calls
  whose ``grpc.HandlerCallDetails`` fail their test.
- ``_extract_rpc_name``, ``_should_skip`` - helper utilities.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Optional

import grpc

from ..combinators import Checkable, Test
from ..config import EnforcementMode, EvaluationMode
from ..utils import maybe_await
from .guard import permission_test

logger = logging.getLogger(__name__)

# Method prefixes that bypass permission checks
_SKIP_PREFIXES = (
    "grpc.health.v1",
    "grpc.reflection.v1",
)


def _extract_rpc_name(full_method: str) -> str:
    """Extract RPC name from fully-qualified method string.

    ``/posts.PostService/Edit`` → ``Edit``
    """
    return full_method.rsplit("/", 1)[-1] if "/" in full_method else full_method


def _should_skip(method: str) -> bool:
    """Check if this method should skip permission checks."""
    return any(prefix in method for prefix in _SKIP_PREFIXES)


class PermissionInterceptor(grpc.aio.ServerInterceptor):
    """gRPC server interceptor applying a permission test to each RPC.

    Each rule value is a checkable (a list is an ALL group; use
    ``any_of`` for alternatives). Tests receive the
    ``grpc.HandlerCallDetails`` as request context, so providers
    typically read ``invocation_metadata``.

    Unmapped RPCs are **denied** (fail-closed).

    Args:
        rules: Mapping of RPC name → checkable.
        service_name: Service name for log messages.
        enforcement: off / warn / enforce.
            Defaults to ``SECURITY_ENFORCEMENT`` env var (``enforce`` if unset).
        mode: Evaluation mode of the composite tests.

    Usage::

        interceptor = PermissionInterceptor(
            {"Read": READ_POST, "Edit": any_of(EDIT_POST, IS_ADMIN)},
            service_name="Posts",
        )
        server = grpc.aio.server(interceptors=[interceptor])
    """

    def __init__(
        self,
        rules: Mapping[str, Checkable],
        *,
        service_name: str = "Service",
        enforcement: Optional[EnforcementMode] = None,
        mode: EvaluationMode = EvaluationMode.SEQUENTIAL,
    ) -> None:
        self._tests: dict[str, Test] = {
            rpc_name: permission_test(rule, mode=mode) for rpc_name, rule in rules.items()
        }
        self._service_name = service_name
        self._mode = EnforcementMode(enforcement) if enforcement is not None else EnforcementMode.from_env()

        if self._mode != EnforcementMode.OFF:
            logger.info(
                "%s permission interceptor mode: %s",
                self._service_name,
                self._mode.value,
            )

    async def intercept_service(
        self,
        continuation: Any,
        handler_call_details: grpc.HandlerCallDetails,
    ) -> grpc.RpcMethodHandler:
        """Intercept incoming gRPC calls for permission checks."""
        method = handler_call_details.method or ""

        if self._mode == EnforcementMode.OFF or _should_skip(method):
            return await continuation(handler_call_details)

        rpc_name = _extract_rpc_name(method)
        test = self._tests.get(rpc_name)

        if test is None:
            deny_reason: Optional[str] = "RPC not mapped to permission"
        elif await maybe_await(test(handler_call_details)):
            deny_reason = None
        else:
            deny_reason = "permission test failed"

        if deny_reason is None:
            logger.debug("%s ALLOWED '%s'", self._service_name, rpc_name)
            return await continuation(handler_call_details)

        if self._mode == EnforcementMode.WARN:
            logger.warning(
                "%s WARN_DENIED '%s' - %s (would block in enforce mode)",
                self._service_name,
                rpc_name,
                deny_reason,
            )
            return await continuation(handler_call_details)

        logger.warning(
            "%s DENIED '%s' - %s",
            self._service_name,
            rpc_name,
            deny_reason,
        )

        deny_msg = f"{self._service_name}: {rpc_name} denied - {deny_reason}"

        async def _denied(request, context):
            await context.abort(grpc.StatusCode.PERMISSION_DENIED, deny_msg)

        return grpc.unary_unary_rpc_method_handler(_denied)


__all__ = [
    "PermissionInterceptor",
    "_extract_rpc_name",
    "_should_skip",
]
