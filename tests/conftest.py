"""Shared test fixtures for the Tokenomy SDK."""

import pytest

from helpers import FakeTransport, FixedClock
from tokenomy.api.client import Client
from tokenomy.config import Environment


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def env() -> Environment:
    """Environment with dummy credentials."""
    return Environment(
        address="https://api.example.test",
        token="test-token",  # type: ignore[arg-type]
        secret="test-secret",  # type: ignore[arg-type]
    )


@pytest.fixture
def public_env() -> Environment:
    """Environment without credentials (public API only)."""
    return Environment(
        address="https://api.example.test",
        token="",  # type: ignore[arg-type]
        secret="",  # type: ignore[arg-type]
    )


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def client(env: Environment, transport: FakeTransport, clock: FixedClock) -> Client:
    return Client(env, transport=transport, clock=clock)
