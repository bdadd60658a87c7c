"""Shared fixtures for agentperm tests."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Optional

import pytest

from agentperm import create, reset_registry


@pytest.fixture(autouse=True)
def clean_registry():
    """Each test starts with no registered permission codes."""
    reset_registry()
    yield
    reset_registry()


def _make_request(permissions: Optional[dict[Any, Any]] = None, **attrs: Any) -> SimpleNamespace:
    return SimpleNamespace(user=SimpleNamespace(permissions=permissions, **attrs))


@pytest.fixture
def make_request():
    """Factory for request contexts whose user carries a permission set."""
    return _make_request


@pytest.fixture
def UserPermission():
    """Permission type reading the permission set from ``request.user``."""
    return create(lambda request: request.user.permissions, name="user")
