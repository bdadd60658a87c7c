"""Permission guards - allow/deny gates built from checkables.

Provides:
- ``permission_test`` - one checkable is required as is, several pass if any passes.
- ``GuardResult`` - result of a guard check (allowed/blocked).
- ``PermissionGuard`` - transport-neutral gate with ``check`` and ``enforce``.
- ``require`` - decorator guarding async gRPC servicer methods.
"""

from __future__ import annotations

import functools
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from ..combinators import Checkable, Test, any_of, has
from ..config import EvaluationMode
from ..exceptions import InvalidPermissionError, PermissionDeniedError, get_grpc_status_code
from ..utils import maybe_await

logger = logging.getLogger(__name__)

ContextBuilder = Callable[[Any, Any], Any]


def permission_test(*checkables: Checkable, mode: EvaluationMode = EvaluationMode.SEQUENTIAL) -> Test:
    """Build the test a guard applies.

    A single checkable is normalized with ``has``. Several are alternatives:
    the request passes if **any** of them passes. To require all of them,
    pass them as one list.

    Raises:
        InvalidPermissionError: Without checkables, or for a non-checkable.
    """
    if not checkables:
        raise InvalidPermissionError("Missing permissions")
    if len(checkables) > 1:
        return any_of(list(checkables), mode=mode)
    return has(checkables[0], mode=mode)


# ── Guard Result ─────────────────────────────────────────────────


@dataclass
class GuardResult:
    """Result from a guard check."""

    allowed: bool = True
    reason: str = ""
    processing_ms: float = 0.0

    @property
    def blocked(self) -> bool:
        return not self.allowed


# ── Permission Guard ─────────────────────────────────────────────


class PermissionGuard:
    """Gate that lets a request context through when its test passes.

    The request context is handed unchanged to permission-set providers and
    verifiers; its shape is up to the application.

    Usage::

        guard = PermissionGuard(EDIT_POST, IS_ADMIN, name="posts.edit")
        await guard.enforce(ctx)   # raises PermissionDeniedError on deny
    """

    def __init__(
        self,
        *checkables: Checkable,
        mode: EvaluationMode = EvaluationMode.SEQUENTIAL,
        name: Optional[str] = None,
    ) -> None:
        self._test = permission_test(*checkables, mode=mode)
        self.name = name or "guard"

    async def check(self, context: Any) -> GuardResult:
        start = time.monotonic()
        allowed = bool(await maybe_await(self._test(context)))
        result = GuardResult(
            allowed=allowed,
            reason="" if allowed else "Forbidden",
            processing_ms=(time.monotonic() - start) * 1000,
        )
        if allowed:
            logger.debug("%s ALLOWED (%.2fms)", self.name, result.processing_ms)
        else:
            logger.warning("%s DENIED (%.2fms)", self.name, result.processing_ms)
        return result

    async def enforce(self, context: Any) -> None:
        """Raise ``PermissionDeniedError`` unless *context* passes."""
        result = await self.check(context)
        if result.blocked:
            raise PermissionDeniedError(f"{self.name}: {result.reason}", guard=self.name)


def require(
    *checkables: Checkable,
    context_builder: Optional[ContextBuilder] = None,
    mode: EvaluationMode = EvaluationMode.SEQUENTIAL,
    name: Optional[str] = None,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorator guarding an async gRPC servicer method.

    Denied calls are aborted with ``PERMISSION_DENIED`` before the method
    runs. The checks receive ``context_builder(request, context)`` or, by
    default, the servicer context.

    Usage::

        class PostService(posts_pb2_grpc.PostServiceServicer):
            @require(EDIT_POST, IS_ADMIN, context_builder=build_ctx)
            async def Edit(self, request, context):
                ...
    """

    def decorator(method: Callable[..., Any]) -> Callable[..., Any]:
        guard = PermissionGuard(*checkables, mode=mode, name=name or method.__qualname__)

        @functools.wraps(method)
        async def wrapper(self, request, context):
            request_context = context_builder(request, context) if context_builder else context
            try:
                await guard.enforce(request_context)
            except PermissionDeniedError as e:
                await context.abort(get_grpc_status_code(e), f"[{e.code}] {e.message}")
                return  # abort() raises in grpc.aio; mocks return
            return await method(self, request, context)

        return wrapper

    return decorator


__all__ = [
    "ContextBuilder",
    "GuardResult",
    "PermissionGuard",
    "permission_test",
    "require",
]
