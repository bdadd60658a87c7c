"""Registry of permission codes in use.

Codes must be unique among all permissions sharing a registry. Permissions
register into the process-default registry unless one is passed explicitly,
which lets independent catalogs (and tests) use isolated instances.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Hashable

from .exceptions import DuplicateCodeError

logger = logging.getLogger(__name__)


class CodeRegistry:
    """Append-only set of permission codes.

    A ``threading.Lock`` guards all mutation. ``reset()`` exists for test
    isolation and must not be called while serving requests.
    """

    def __init__(self) -> None:
        self._codes: dict[Hashable, None] = {}
        self._lock = threading.Lock()

    def register(self, code: Hashable) -> None:
        """Record *code* as used.

        Raises:
            DuplicateCodeError: If *code* is already registered.
        """
        with self._lock:
            if code in self._codes:
                raise DuplicateCodeError(
                    f"Duplicate permission code: {code!r}",
                    permission_code=code,
                )
            self._codes[code] = None
        logger.debug("Registered permission code %r", code)

    def is_used(self, code: Hashable) -> bool:
        return code in self._codes

    __contains__ = is_used

    def __len__(self) -> int:
        return len(self._codes)

    @property
    def codes(self) -> tuple[Hashable, ...]:
        """Registered codes in registration order."""
        with self._lock:
            return tuple(self._codes)

    def reset(self) -> None:
        """Forget every registered code (for testing)."""
        with self._lock:
            self._codes.clear()


# ── Process default ──────────────────────────────────────────────

_default_registry = CodeRegistry()


def get_default_registry() -> CodeRegistry:
    """Return the registry used when none is passed explicitly."""
    return _default_registry


def reset_registry() -> None:
    """Clear the default registry (for testing)."""
    _default_registry.reset()


__all__ = [
    "CodeRegistry",
    "get_default_registry",
    "reset_registry",
]
