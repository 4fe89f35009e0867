"""Shared fixtures for perch tests."""

import logging
from collections.abc import AsyncIterator, Iterator
from datetime import UTC, datetime

import pytest

from perch.app import App, create_app
from perch.config import PerchConfig
from perch.store.backends.memory import MemoryBackend
from perch.store.codec import TableSchema
from perch.store.sessions import SessionStore
from perch.testing import FakeClock, TestClient

PASSWORD = "pingpong"


@pytest.fixture(autouse=True)
def _restore_perch_logger() -> Iterator[None]:
    """Undo ``configure_logging`` so caplog keeps seeing perch records."""
    logger = logging.getLogger("perch")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 10, 20, 12, 0, tzinfo=UTC))


@pytest.fixture
def schema() -> TableSchema:
    return TableSchema("sessions")


@pytest.fixture
def backend(schema: TableSchema, clock: FakeClock) -> MemoryBackend:
    return MemoryBackend(schema, clock=clock)


@pytest.fixture
def store(backend: MemoryBackend, clock: FakeClock) -> SessionStore:
    return SessionStore(backend, clock=clock)


@pytest.fixture
def config() -> PerchConfig:
    return PerchConfig(
        table_name="sessions",
        backend="memory",
        passwords=frozenset({PASSWORD, "moultipass"}),
    )


@pytest.fixture
def app(config: PerchConfig, schema: TableSchema) -> App:
    return create_app(config, backend=MemoryBackend(schema))


@pytest.fixture
async def client(app: App) -> AsyncIterator[TestClient]:
    async with TestClient(app) as test_client:
        yield test_client
