"""Permission entity and permission-type factory.

A ``Permission`` is a named capability: a unique code, a default policy and
an optional custom verifier. Whether a request context holds it is decided
against the permission set returned by the provider bound to the
permission's type::

    UserPermission = create(lambda ctx: ctx.user.permissions, name="user")

    READ_POST = UserPermission("post.read", True)
    EDIT_POST = UserPermission("post.edit", False, verifier=is_post_owner)

    await EDIT_POST.test(ctx)   # or EDIT_POST.test_sync(ctx)

Decision order:
1. No permission set for the context → deny.
2. ``True`` in the set grants, ``False`` denies (even when allowed by
   default), absent defers to ``allowed_by_default``. Any other value is
   malformed and denies.
3. A granted permission with a verifier takes the verifier's result. The
   verifier never runs for a denied permission.
"""

from __future__ import annotations

import asyncio
from collections.abc import Hashable, Mapping
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union

from .exceptions import (
    InvalidCodeError,
    InvalidProviderError,
    InvalidVerifierError,
    MissingCodeError,
    ProviderNotImplementedError,
)
from .logging import get_logger
from .registry import CodeRegistry, get_default_registry
from .utils import is_async_callable, maybe_await, run_sync

PermissionSet = Mapping[Hashable, bool]
Provider = Callable[[Any], Union[Optional[PermissionSet], Awaitable[Optional[PermissionSet]]]]

_MISSING = object()


class VerifierKind(str, Enum):
    """How a custom verifier delivers its result."""

    SYNC = "sync"  # verifier(context) -> bool
    ASYNC = "async"  # async verifier(context) -> bool
    CALLBACK = "callback"  # verifier(context, done) -> None; done(bool) later


def _validate_code(code: Any) -> None:
    if code is None or code == "":
        raise MissingCodeError()
    if isinstance(code, bool) or not isinstance(code, (str, int)):
        raise InvalidCodeError(
            f"Permission code must be a string or a non-negative integer, got {type(code).__name__}",
            permission_code=code,
        )
    if isinstance(code, int) and code < 0:
        raise InvalidCodeError(
            f"Permission code must not be negative: {code}",
            permission_code=code,
        )


def _select_verifier(
    verifier: Any,
    async_verifier: Any,
    callback_verifier: Any,
) -> tuple[Optional[VerifierKind], Optional[Callable[..., Any]]]:
    given = [
        (kind, func)
        for kind, func in (
            (VerifierKind.SYNC, verifier),
            (VerifierKind.ASYNC, async_verifier),
            (VerifierKind.CALLBACK, callback_verifier),
        )
        if func is not None
    ]
    if not given:
        return None, None
    if len(given) > 1:
        raise InvalidVerifierError("Only one of verifier, async_verifier or callback_verifier may be given")

    kind, func = given[0]
    if not callable(func):
        raise InvalidVerifierError("Invalid permission verifier: not callable")
    if kind is VerifierKind.SYNC and is_async_callable(func):
        raise InvalidVerifierError("Coroutine function given as verifier; pass it as async_verifier")
    if kind is VerifierKind.ASYNC and not is_async_callable(func):
        raise InvalidVerifierError("async_verifier must be a coroutine function")
    return kind, func


def _settle(future: asyncio.Future, result: Any) -> None:
    # Only the first delivery counts
    if not future.done():
        future.set_result(result)


async def _call_with_callback(func: Callable[..., Any], context: Any) -> Any:
    loop = asyncio.get_running_loop()
    future = loop.create_future()

    def done(result: Any = False) -> None:
        loop.call_soon_threadsafe(_settle, future, result)

    func(context, done)
    return await future


class Permission:
    """A named, checkable capability.

    Args:
        code: Unique code (``str`` or non-negative ``int``; ``0`` is valid).
        allowed_by_default: Policy when the permission set does not mention
            the code.
        verifier: ``(context) -> bool`` run after the permission is granted.
        async_verifier: Coroutine-function alternative to ``verifier``.
        callback_verifier: ``(context, done) -> None`` alternative; ``done``
            may be called later, from any thread.
        provider: ``(context) -> Mapping | None``. Usually bound through a
            permission type (see :func:`create`) rather than passed here.
        registry: Code registry (default: the process registry).

    Raises:
        MissingCodeError, InvalidCodeError, InvalidVerifierError,
        DuplicateCodeError
    """

    def __init__(
        self,
        code: Hashable,
        allowed_by_default: bool = False,
        verifier: Optional[Callable[[Any], Any]] = None,
        *,
        async_verifier: Optional[Callable[[Any], Awaitable[Any]]] = None,
        callback_verifier: Optional[Callable[[Any, Callable[[Any], None]], None]] = None,
        provider: Optional[Provider] = None,
        registry: Optional[CodeRegistry] = None,
        permission_type: Optional[PermissionType] = None,
    ) -> None:
        _validate_code(code)
        kind, func = _select_verifier(verifier, async_verifier, callback_verifier)

        self._registry = registry if registry is not None else get_default_registry()
        self._registry.register(code)

        self._code = code
        self._allowed_by_default = bool(allowed_by_default)
        self._verifier_kind = kind
        self._verifier = func
        self._provider = provider
        self._type = permission_type
        self._logger = get_logger(__name__, agent=permission_type.name if permission_type else None)

    @property
    def code(self) -> Hashable:
        return self._code

    @property
    def allowed_by_default(self) -> bool:
        return self._allowed_by_default

    @property
    def verifier(self) -> Optional[Callable[..., Any]]:
        return self._verifier

    @property
    def verifier_kind(self) -> Optional[VerifierKind]:
        return self._verifier_kind

    @property
    def is_async(self) -> bool:
        """Whether the verifier needs an event loop to complete."""
        return self._verifier_kind in (VerifierKind.ASYNC, VerifierKind.CALLBACK)

    @property
    def provider(self) -> Optional[Provider]:
        return self._provider

    @property
    def permission_type(self) -> Optional[PermissionType]:
        return self._type

    @property
    def registry(self) -> CodeRegistry:
        return self._registry

    def __repr__(self) -> str:
        kind = self._verifier_kind.value if self._verifier_kind else None
        return (
            f"{type(self).__name__}(code={self._code!r}, "
            f"allowed_by_default={self._allowed_by_default}, verifier={kind!r})"
        )

    @staticmethod
    def create(
        provider: Optional[Provider] = None,
        *,
        name: Optional[str] = None,
        registry: Optional[CodeRegistry] = None,
    ) -> PermissionType:
        """Alias of :func:`create`."""
        return PermissionType(provider, name=name, registry=registry)

    # ── Evaluation ───────────────────────────────────────────────

    def get_permissions(self, context: Any) -> Any:
        """Return the permission set for *context* (may be awaitable)."""
        if self._provider is None:
            raise ProviderNotImplementedError()
        return self._provider(context)

    def allows(self, permissions: Optional[PermissionSet]) -> bool:
        """Apply the explicit-or-default check to a permission set."""
        if permissions is None:
            self._log_decision(False, "no permission set")
            return False

        value = permissions.get(self._code, _MISSING)
        if value is _MISSING:
            self._log_decision(self._allowed_by_default, "default")
            return self._allowed_by_default
        if value is True or value is False:
            self._log_decision(value, "explicit")
            return value

        self._logger.warning(
            "Non-boolean value %r for permission %r in permission set; denying",
            value,
            self._code,
            extra={"permission_code": self._code, "decision": "deny"},
        )
        return False

    async def test(self, context: Any) -> bool:
        """Resolve whether *context* holds this permission."""
        permissions = await maybe_await(self.get_permissions(context))
        if not self.allows(permissions):
            return False
        if self._verifier is None:
            return True
        return self._verified(await self._verify(context))

    def test_sync(self, context: Any) -> bool:
        """Synchronous variant of :meth:`test`.

        Runs without an event loop when provider and verifier are
        synchronous.
        """
        permissions = run_sync(self.get_permissions(context))
        if not self.allows(permissions):
            return False
        if self._verifier is None:
            return True
        if self._verifier_kind is VerifierKind.SYNC:
            return self._verified(self._verifier(context))
        return self._verified(run_sync(self._verify(context)))

    async def _verify(self, context: Any) -> Any:
        if self._verifier_kind is VerifierKind.SYNC:
            return self._verifier(context)
        if self._verifier_kind is VerifierKind.ASYNC:
            return await self._verifier(context)
        return await _call_with_callback(self._verifier, context)

    def _verified(self, result: Any) -> bool:
        granted = bool(result)
        self._log_decision(granted, "verifier")
        return granted

    def _log_decision(self, granted: bool, source: str) -> None:
        self._logger.debug(
            "Permission %r %s (%s)",
            self._code,
            "granted" if granted else "denied",
            source,
            extra={"permission_code": self._code, "decision": "allow" if granted else "deny"},
        )


class PermissionType:
    """Factory for permissions that read their permission set from one agent.

    Calling the type creates a :class:`Permission` bound to the type's
    provider and registry::

        ClientPermission = create(lambda ctx: ctx.client.permissions, name="client")
        SYNC_DATA = ClientPermission("sync", True)

    ``isinstance(SYNC_DATA, ClientPermission)`` holds for permissions the
    type created.
    """

    def __init__(
        self,
        provider: Optional[Provider] = None,
        *,
        name: Optional[str] = None,
        registry: Optional[CodeRegistry] = None,
    ) -> None:
        if provider is not None and not callable(provider):
            raise InvalidProviderError(f"Permission set provider must be callable, got {type(provider).__name__}")
        self._provider = provider
        self._registry = registry
        self.name = name

    @property
    def provider(self) -> Optional[Provider]:
        return self._provider

    @property
    def registry(self) -> CodeRegistry:
        return self._registry if self._registry is not None else get_default_registry()

    def __call__(
        self,
        code: Hashable,
        allowed_by_default: bool = False,
        verifier: Optional[Callable[[Any], Any]] = None,
        *,
        async_verifier: Optional[Callable[[Any], Awaitable[Any]]] = None,
        callback_verifier: Optional[Callable[[Any, Callable[[Any], None]], None]] = None,
    ) -> Permission:
        return Permission(
            code,
            allowed_by_default,
            verifier,
            async_verifier=async_verifier,
            callback_verifier=callback_verifier,
            provider=self._provider,
            registry=self._registry,
            permission_type=self,
        )

    def __instancecheck__(self, instance: Any) -> bool:
        return isinstance(instance, Permission) and instance.permission_type is self

    def __repr__(self) -> str:
        return f"PermissionType(name={self.name!r})"


def create(
    provider: Optional[Provider] = None,
    *,
    name: Optional[str] = None,
    registry: Optional[CodeRegistry] = None,
) -> PermissionType:
    """Create a permission type whose permissions use *provider*.

    Args:
        provider: ``(context) -> Mapping[code, bool] | None`` returning the
            permission set of the agent this type reasons about. Without
            one, evaluating the type's permissions raises
            ``ProviderNotImplementedError``.
        name: Agent label used in log records.
        registry: Code registry shared by the type's permissions.
    """
    return PermissionType(provider, name=name, registry=registry)


__all__ = [
    "Permission",
    "PermissionSet",
    "PermissionType",
    "Provider",
    "VerifierKind",
    "create",
]
