"""Integration test fixtures using Docker.

Provides a containerized PostgreSQL for realistic testing of the
repository and the cached service on top of it.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator, Iterator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from tests.integration.docker_utils import PostgresService, get_docker_client, run_postgres


def pytest_collection_modifyitems(items):
    """Mark everything under this directory as an integration test."""
    for item in items:
        if "integration" in item.nodeid:
            item.add_marker(pytest.mark.integration)


@pytest.fixture(scope="session")
def docker_client():
    """Create a Docker client or skip if Docker is unavailable."""
    try:
        client = get_docker_client()
        client.ping()
    except Exception as exc:
        pytest.skip(f"Docker not available: {exc}")
    yield client
    client.close()


@pytest.fixture(scope="session")
def postgres(docker_client) -> Iterator[PostgresService]:
    """Start PostgreSQL for the test session."""
    with run_postgres(docker_client) as service:
        yield service


@pytest_asyncio.fixture
async def db_engine(postgres: PostgresService) -> AsyncIterator[AsyncEngine]:
    """Engine with a fresh quotes table for each test."""
    from magistr.persistence.tables import Base

    engine = create_async_engine(postgres.url, pool_size=5, max_overflow=0)
    await _wait_for_engine(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


async def _wait_for_engine(engine: AsyncEngine, timeout: float = 30.0) -> None:
    """Wait for the database to accept connections."""
    deadline = time.monotonic() + timeout
    while True:
        try:
            async with engine.connect():
                return
        except Exception:
            if time.monotonic() >= deadline:
                raise
            await asyncio.sleep(0.5)
