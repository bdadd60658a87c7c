"""Combinators that build composite permission tests.

A *checkable* is one of:
- a test callable ``(context) -> bool`` or ``async (context) -> bool``
- a :class:`~agentperm.permission.Permission` (or any object with a
  callable ``.test``)
- a list or tuple of checkables, treated as an ALL group

Composite tests are coroutine functions ``async (context) -> bool``::

    can_edit = any_of([EDIT_POST, IS_AUTHOR], IS_ADMIN)   # (a AND b) OR c
    if await can_edit(ctx):
        ...

Children may be synchronous or asynchronous; composites await whatever
needs awaiting, so callers never need to know which child suspends.
"""

from __future__ import annotations

import asyncio
import logging
from functools import singledispatch
from typing import Any, Awaitable, Callable, Sequence, Union

from .config import EvaluationMode
from .exceptions import InvalidPermissionError
from .logging import safe_preview
from .permission import Permission, PermissionType
from .utils import maybe_await, run_sync

logger = logging.getLogger(__name__)

Test = Callable[[Any], Union[bool, Awaitable[bool]]]
Checkable = Union[Test, Permission, Sequence[Any]]

# Children still running after a concurrent composite has decided
_background: set[asyncio.Task] = set()


# ── Normalization ────────────────────────────────────────────────


@singledispatch
def _to_test(checkable: Any, mode: EvaluationMode) -> Test:
    if callable(checkable):
        return checkable
    test = getattr(checkable, "test", None)
    if callable(test):
        return test
    raise InvalidPermissionError(
        f"Invalid permission: {safe_preview(repr(checkable), limit=80)}",
        checkable_type=type(checkable).__name__,
    )


@_to_test.register(Permission)
def _(checkable: Permission, mode: EvaluationMode) -> Test:
    return checkable.test


@_to_test.register(list)
@_to_test.register(tuple)
def _(checkable: Sequence[Any], mode: EvaluationMode) -> Test:
    return all_of(list(checkable), mode=mode)


@_to_test.register(type)
def _(checkable: type, mode: EvaluationMode) -> Test:
    raise InvalidPermissionError(
        f"Invalid permission: {checkable.__name__} is a class; pass a permission instance",
        checkable_type="type",
    )


@_to_test.register(PermissionType)
def _(checkable: PermissionType, mode: EvaluationMode) -> Test:
    raise InvalidPermissionError(
        f"Invalid permission: {checkable!r} is a permission type; pass a permission created from it",
        checkable_type="PermissionType",
    )


def _checkable_list(checkables: tuple[Any, ...]) -> list[Any]:
    if len(checkables) == 1 and isinstance(checkables[0], (list, tuple)):
        return list(checkables[0])
    return list(checkables)


def has(*checkables: Checkable, mode: EvaluationMode = EvaluationMode.SEQUENTIAL) -> Test:
    """Normalize a checkable into a test callable.

    A callable is returned unchanged, a permission as its bound ``test``
    and a list as an :func:`all_of` group. Several arguments are combined
    with :func:`all_of`.

    Raises:
        InvalidPermissionError: For anything that is not a checkable, or
            when called without arguments.
    """
    if not checkables:
        raise InvalidPermissionError("Missing permissions")
    mode = EvaluationMode(mode)
    if len(checkables) > 1:
        return all_of(list(checkables), mode=mode)
    return _to_test(checkables[0], mode)


# ── Evaluation ───────────────────────────────────────────────────


async def _run(test: Test, context: Any) -> bool:
    return bool(await maybe_await(test(context)))


def _reap(task: asyncio.Task) -> None:
    _background.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.warning(
            "Permission test failed after its composite had decided: %s",
            exc,
            exc_info=exc,
        )


async def _race(tests: list[Test], context: Any, decisive: bool) -> bool:
    """Run *tests* concurrently, return *decisive* as soon as one yields it."""
    if not tests:
        return not decisive

    pending = {asyncio.ensure_future(_run(test, context)) for test in tests}
    try:
        while pending:
            done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
            errors = [task.exception() for task in done if task.exception() is not None]
            if any([task.result() is decisive for task in done if task.exception() is None]):
                for exc in errors:
                    logger.warning("Permission test failed alongside a decisive result: %s", exc, exc_info=exc)
                return decisive
            if errors:
                raise errors[0]
        return not decisive
    finally:
        # No cancellation: late children run to completion, their results are dropped
        for task in pending:
            _background.add(task)
            task.add_done_callback(_reap)


def all_of(*checkables: Checkable, mode: EvaluationMode = EvaluationMode.SEQUENTIAL) -> Callable[[Any], Awaitable[bool]]:
    """Build a test that passes iff every checkable passes.

    Args:
        *checkables: Checkables, or a single list of them.
        mode: ``sequential`` stops at the first failing child;
            ``concurrent`` starts all children and returns on the first
            failure.
    """
    mode = EvaluationMode(mode)
    tests = [_to_test(c, mode) for c in _checkable_list(checkables)]

    async def test_all(context: Any) -> bool:
        if mode is EvaluationMode.CONCURRENT:
            return await _race(tests, context, decisive=False)
        for test in tests:
            if not await _run(test, context):
                return False
        return True

    return test_all


def any_of(*checkables: Checkable, mode: EvaluationMode = EvaluationMode.SEQUENTIAL) -> Callable[[Any], Awaitable[bool]]:
    """Build a test that passes iff at least one checkable passes.

    Nested lists are ALL groups: ``any_of([a, b], c)`` is ``(a and b) or c``.
    """
    mode = EvaluationMode(mode)
    tests = [_to_test(c, mode) for c in _checkable_list(checkables)]

    async def test_any(context: Any) -> bool:
        if mode is EvaluationMode.CONCURRENT:
            return await _race(tests, context, decisive=True)
        for test in tests:
            if await _run(test, context):
                return True
        return False

    return test_any


async def evaluate(checkable: Checkable, context: Any) -> bool:
    """Evaluate any checkable against *context*."""
    return await _run(has(checkable), context)


def evaluate_sync(checkable: Checkable, context: Any) -> bool:
    """Evaluate any checkable against *context* from synchronous code."""
    if isinstance(checkable, Permission):
        return checkable.test_sync(context)
    return bool(run_sync(has(checkable)(context)))


__all__ = [
    "Checkable",
    "Test",
    "all_of",
    "any_of",
    "evaluate",
    "evaluate_sync",
    "has",
]
