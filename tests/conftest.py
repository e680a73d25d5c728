"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import os
from unittest.mock import AsyncMock, MagicMock

# ---------------------------------------------------------------------------
# Ensure a valid JWT_SECRET is always set for test runs.
# This must happen before any import of mannxp.api.deps which validates
# the secret at module-load time.
# ---------------------------------------------------------------------------
_TEST_JWT_SECRET = "test-secret-for-pytest-only-" + "x" * 40  # > 32 chars
os.environ.setdefault("JWT_SECRET", _TEST_JWT_SECRET)

import pytest  # noqa: E402
from sqlalchemy import Engine, create_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from mannxp.database.engine import create_local_engine  # noqa: E402
from mannxp.database.models import Base  # noqa: E402
from mannxp.engine.bus import ChangeBus  # noqa: E402
from mannxp.services.ledgers import DatabaseLedger, LedgerError, LocalLedger  # noqa: E402
from mannxp.services.local_store import LocalKeyValueStore, SocialRankCache  # noqa: E402
from mannxp.services.progression_service import ProgressionStore  # noqa: E402


@pytest.fixture
def db_engine() -> Engine:
    """In-memory SQLite engine with the backend tables.

    Uses StaticPool so all threads share the same in-memory database
    (required by ``asyncio.to_thread`` used in ``run_db``).
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def local_engine() -> Engine:
    """In-memory SQLite engine for the local key/value store."""
    engine = create_local_engine("sqlite://")
    yield engine
    engine.dispose()


@pytest.fixture
def kv_store(local_engine) -> LocalKeyValueStore:
    return LocalKeyValueStore(local_engine)


@pytest.fixture
def ranks(kv_store) -> SocialRankCache:
    return SocialRankCache(kv_store)


@pytest.fixture
def bus() -> ChangeBus:
    """A private bus so tests never leak subscribers into each other."""
    return ChangeBus()


@pytest.fixture
def events(bus) -> list:
    """Every event published on ``bus`` during the test."""
    received: list = []
    unsubscribe = bus.subscribe(received.append)
    yield received
    unsubscribe()


# ---------------------------------------------------------------------------
# Ledgers and the store adapter
# ---------------------------------------------------------------------------
@pytest.fixture
def remote_ledger(db_engine):
    """Stands in for the remote endpoint: the same table the API serves."""
    return DatabaseLedger(db_engine)


@pytest.fixture
def local_ledger(kv_store):
    return LocalLedger(kv_store)


@pytest.fixture
def failing_remote():
    """A remote ledger whose every call fails like an unreachable backend."""
    remote = MagicMock()
    remote.name = "remote"
    remote.read_total = AsyncMock(side_effect=LedgerError("connection refused"))
    remote.add_total = AsyncMock(side_effect=LedgerError("connection refused"))
    return remote


@pytest.fixture
def store(remote_ledger, local_ledger, bus):
    return ProgressionStore(remote_ledger, local_ledger, bus)


@pytest.fixture
def offline_store(failing_remote, local_ledger, bus):
    return ProgressionStore(failing_remote, local_ledger, bus)
