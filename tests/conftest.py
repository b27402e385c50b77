"""Shared pytest fixtures for opflow tests."""

from __future__ import annotations

from collections.abc import Generator
from unittest.mock import MagicMock

import pytest
from _support import Customer, InMemoryCustomerProxy

from opflow.services.telemetry import _current_span, disable_telemetry


@pytest.fixture
def doer() -> MagicMock:
    """Collaborator that records hook invocations via ``doer.log(name)``."""
    doer = MagicMock()
    doer.do_something.return_value = None
    return doer


@pytest.fixture
def customer_proxy() -> InMemoryCustomerProxy:
    return InMemoryCustomerProxy(Customer(id=1, name="Ada"), Customer(id=2, name="Grace"))


@pytest.fixture
def _reset_telemetry() -> Generator[None]:
    """Restore telemetry state after a test that enables it."""
    yield
    disable_telemetry()
    _current_span.set(None)
