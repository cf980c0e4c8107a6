"""Shared pytest fixtures for director_client tests."""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from director_client import ClientConfig, DirectorClient

from tests.fixtures.mock_service import BASE, MockDirectorService, create_mock_service


@dataclass
class FakeClock:
    """Deterministic stand-in for time.monotonic/time.sleep."""

    now: float = 0.0
    sleeps: list[float] = field(default_factory=list)

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def make_config():
    """Factory fixture for ClientConfig pointed at the mock service."""
    def _factory(**kwargs) -> ClientConfig:
        defaults = dict(
            endpoint=BASE,
            scope="user",
            auth_method=None,
            task_poll_interval=0.01,
            task_timeout=5.0,
            task_poll_retries=2,
            retry_max_attempts=2,
            retry_backoff_factor=0.0,
        )
        defaults.update(kwargs)
        return ClientConfig(**defaults)
    return _factory


@pytest.fixture
def mock_service() -> MockDirectorService:
    return create_mock_service()


@pytest.fixture
def patched(mock_service):
    """Route every httpx.Client through the mock service for the test."""
    with mock_service.patch_httpx():
        yield mock_service


@pytest.fixture
def user_client(make_config, patched) -> DirectorClient:
    return DirectorClient(config=make_config())


@pytest.fixture
def admin_client(make_config, patched) -> DirectorClient:
    return DirectorClient(config=make_config(scope="admin"))


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()
