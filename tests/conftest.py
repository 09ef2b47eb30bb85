"""Root pytest configuration for all tests."""

from __future__ import annotations

import pytest

from repograph.config import reset_config
from repograph.protocols import ViewServices
from repograph.view.core import ViewCore
from tests.utils import FakeHost, FakeSurface, FakeWatcherFactory, create_services

pytest_plugins = ("pytest_asyncio",)


@pytest.fixture(scope="session")
def anyio_backend():
    """Set anyio backend to asyncio."""
    return "asyncio"


@pytest.fixture(autouse=True)
def _fresh_config():
    """Keep the cached global config from leaking between tests."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def services() -> ViewServices:
    return create_services()


@pytest.fixture
def surface() -> FakeSurface:
    return FakeSurface()


@pytest.fixture
def host(surface: FakeSurface) -> FakeHost:
    return FakeHost(surface)


@pytest.fixture
def watchers() -> FakeWatcherFactory:
    return FakeWatcherFactory()


@pytest.fixture
def core(host: FakeHost, services: ViewServices, watchers: FakeWatcherFactory) -> ViewCore:
    """An initialized, visible core."""
    view = ViewCore(host, services, watcher_factory=watchers)
    view.initialize()
    return view
