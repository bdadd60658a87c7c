"""Guards that turn permission tests into allow/deny gates.

This package is the integration point services use for:
1. **Transport-neutral guards** (``PermissionGuard``, ``permission_test``)
2. **gRPC servicer decorators** (``require``)
3. **gRPC interceptors** (per-RPC permission enforcement)

Usage::

    from agentperm.security import PermissionInterceptor, require

    server = grpc.aio.server(interceptors=[
        PermissionInterceptor({"Read": READ_POST}, service_name="Posts"),
    ])

    # Or guard a single handler:
    @require(EDIT_POST, IS_ADMIN, context_builder=build_ctx)
    async def Edit(self, request, context):
        ...

Configuration (env vars)::

    SECURITY_ENFORCEMENT=enforce    # off | warn | enforce (default: enforce)
"""

from __future__ import annotations

from typing import Optional

from ..combinators import Checkable
from ..config import EnforcementMode, PermissionConfig
from .guard import (
    ContextBuilder,
    GuardResult,
    PermissionGuard,
    permission_test,
    require,
)
from .interceptors import (
    PermissionInterceptor,
    _extract_rpc_name,
    _should_skip,
)


def get_permission_interceptors(
    rules: dict[str, Checkable],
    config: Optional[PermissionConfig] = None,
) -> list[PermissionInterceptor]:
    """Get gRPC server interceptors configured from ``config``.

    Returns an empty list when enforcement is off.

    Usage::

        server = grpc.aio.server(
            interceptors=get_permission_interceptors(RPC_RULES, load_config_from_env()),
        )
    """
    cfg = config or PermissionConfig()
    if cfg.enforcement == EnforcementMode.OFF:
        return []
    return [
        PermissionInterceptor(
            rules,
            service_name=cfg.service_name or "Service",
            enforcement=cfg.enforcement,
            mode=cfg.evaluation_mode,
        )
    ]


__all__ = [
    # Guard
    "ContextBuilder",
    "GuardResult",
    "PermissionGuard",
    "permission_test",
    "require",
    # Interceptors
    "EnforcementMode",
    "PermissionInterceptor",
    "_extract_rpc_name",
    "_should_skip",
    "get_permission_interceptors",
]
