"""Pytest configuration and shared fixtures for Observer SDK tests."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from observer_sdk import ClientConfig, ObserverClient
from mocks import FakeTransport, ManualScheduler


@pytest.fixture
def transport() -> FakeTransport:
    """Transport that records every POST and succeeds by default."""
    return FakeTransport()


@pytest.fixture
def scheduler() -> ManualScheduler:
    """Scheduler driven explicitly by the test."""
    return ManualScheduler()


@pytest.fixture
def make_config() -> Callable[..., ClientConfig]:
    """Build a ClientConfig with test defaults, overridable per test."""

    def factory(**overrides) -> ClientConfig:
        values = {
            "base_url": "https://observer.test/",
            "api_key": "test_key",
            "app_name": "test-app",
        }
        values.update(overrides)
        return ClientConfig(**values)

    return factory


@pytest.fixture
def make_client(
    make_config, transport: FakeTransport, scheduler: ManualScheduler
) -> Callable[..., ObserverClient]:
    """Build an ObserverClient wired to the fake transport and scheduler."""

    def factory(**overrides) -> ObserverClient:
        return ObserverClient(make_config(**overrides), transport=transport, scheduler=scheduler)

    return factory
