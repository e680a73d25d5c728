"""
mannxp.services.ledgers — Where XP Totals Live
===============================================

Three interchangeable implementations of the :class:`Ledger` protocol:

- :class:`RpcLedger`      — the authoritative remote computation endpoint,
                            reached over HTTP (``get_progression`` /
                            ``add_xp`` RPCs).
- :class:`LocalLedger`    — the client-side fallback in the local key/value
                            store.  Read-modify-write is serialized per key.
- :class:`DatabaseLedger` — the server side of the RPCs, backed by the
                            ``user_progression`` table.

Ledgers raise :class:`LedgerError` on any transport, HTTP or payload
problem; choosing what to do about it is the store adapter's job.  The
ledgers are never reconciled with each other.
"""

from __future__ import annotations

import json
import logging
import math
from threading import Lock
from typing import Protocol

import httpx
from sqlalchemy import Engine, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from mannxp.constants import RPC_ADD_XP, RPC_GET_PROGRESSION, STORAGE_KEY_PREFIX
from mannxp.database.engine import get_session, run_db
from mannxp.database.models import UserProgression
from mannxp.engine.level_curve import clamp_xp
from mannxp.services.local_store import LocalKeyValueStore

logger = logging.getLogger(__name__)


class LedgerError(Exception):
    """A ledger could not produce a trustworthy answer."""


class Ledger(Protocol):
    name: str

    async def read_total(self, user_id: str) -> int: ...

    async def add_total(self, user_id: str, amount: int) -> int | None: ...


# ---------------------------------------------------------------------------
# Remote RPC
# ---------------------------------------------------------------------------
class RpcLedger:
    """Client for the backend's progression RPCs.

    The ``httpx.AsyncClient`` carries the base URL and auth headers; see
    :func:`mannxp.services.bootstrap.build_rpc_client`.
    """

    name = "remote"

    def __init__(self, client: httpx.AsyncClient, rpc_path: str = "/api/rpc") -> None:
        self._client = client
        self._rpc_path = rpc_path.rstrip("/")

    async def _call(self, rpc: str, payload: dict):
        try:
            resp = await self._client.post(f"{self._rpc_path}/{rpc}", json=payload)
            resp.raise_for_status()
            return resp.json() if resp.content else None
        except (httpx.HTTPError, ValueError) as exc:
            raise LedgerError(f"RPC {rpc} failed: {exc}") from exc

    async def read_total(self, user_id: str) -> int:
        data = await self._call(RPC_GET_PROGRESSION, {"user_id_in": user_id})
        if not isinstance(data, list):
            raise LedgerError(f"Malformed {RPC_GET_PROGRESSION} payload: {data!r}")
        if not data or not isinstance(data[0], dict) or data[0].get("total_xp") is None:
            return 0
        return _parse_total(data[0]["total_xp"])

    async def add_total(self, user_id: str, amount: int) -> int | None:
        data = await self._call(
            RPC_ADD_XP, {"user_id_in": user_id, "amount_in": amount}
        )
        if isinstance(data, int) and not isinstance(data, bool) and data >= 0:
            return data
        return None


def _parse_total(value) -> int:
    if isinstance(value, bool):
        raise LedgerError(f"Malformed total_xp: {value!r}")
    if isinstance(value, int):
        total = value
    else:
        try:
            as_float = float(value)
        except (TypeError, ValueError) as exc:
            raise LedgerError(f"Malformed total_xp: {value!r}") from exc
        if not math.isfinite(as_float):
            raise LedgerError(f"Malformed total_xp: {value!r}")
        total = math.floor(as_float)
    if total < 0:
        raise LedgerError(f"Negative total_xp: {value!r}")
    return total


# ---------------------------------------------------------------------------
# Local fallback
# ---------------------------------------------------------------------------
class LocalLedger:
    """XP totals in the local key/value store, one JSON record per user.

    Corrupt or foreign-shaped records read as 0.  Each key has its own
    lock so concurrent adds for one user cannot lose updates.
    """

    name = "local"

    def __init__(
        self, store: LocalKeyValueStore, prefix: str = STORAGE_KEY_PREFIX
    ) -> None:
        self._store = store
        self._prefix = prefix
        self._locks: dict[str, Lock] = {}
        self._locks_guard = Lock()

    def key_for(self, user_id: str) -> str:
        return f"{self._prefix}{user_id}"

    def _lock_for(self, key: str) -> Lock:
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = Lock()
            return lock

    def _read(self, key: str) -> int:
        raw = self._store.get_item(key)
        if not raw:
            return 0
        try:
            parsed = json.loads(raw)
        except ValueError:
            logger.debug("Corrupt local progression record %s: %r", key, raw)
            return 0
        if not isinstance(parsed, dict):
            return 0
        return clamp_xp(parsed.get("xp"))

    def read_total_sync(self, user_id: str) -> int:
        try:
            return self._read(self.key_for(user_id))
        except SQLAlchemyError as exc:
            raise LedgerError(f"Local store read failed: {exc}") from exc

    def add_total_sync(self, user_id: str, amount: int) -> int:
        key = self.key_for(user_id)
        try:
            with self._lock_for(key):
                total = max(0, self._read(key) + amount)
                self._store.set_item(key, json.dumps({"xp": total, "source": self.name}))
        except SQLAlchemyError as exc:
            raise LedgerError(f"Local store write failed: {exc}") from exc
        return total

    async def read_total(self, user_id: str) -> int:
        return await run_db(self.read_total_sync, user_id)

    async def add_total(self, user_id: str, amount: int) -> int:
        return await run_db(self.add_total_sync, user_id, amount)


# ---------------------------------------------------------------------------
# Server-side database
# ---------------------------------------------------------------------------
def _read_total_db(engine: Engine, user_id: str) -> int:
    with Session(engine) as session:
        row = session.get(UserProgression, user_id)
        return row.total_xp if row is not None else 0


def _add_total_db(engine: Engine, user_id: str, amount: int) -> int:
    with get_session(engine) as session:
        row = session.get(UserProgression, user_id)
        if row is None:
            try:
                with session.begin_nested():   # SAVEPOINT
                    row = UserProgression(user_id=user_id, total_xp=amount)
                    session.add(row)
                    session.flush()
                return row.total_xp
            except IntegrityError:
                # Another writer created the row first.
                row = session.get(UserProgression, user_id)

        # Increment in SQL so concurrent writers cannot lose updates.
        row.total_xp = UserProgression.total_xp + amount
        session.flush()
        session.refresh(row)
        return row.total_xp


def _leaderboard_db(engine: Engine, limit: int) -> list[tuple[str, int]]:
    with Session(engine) as session:
        rows = session.execute(
            select(UserProgression.user_id, UserProgression.total_xp)
            .order_by(UserProgression.total_xp.desc(), UserProgression.user_id)
            .limit(limit)
        ).all()
        return [(row.user_id, row.total_xp) for row in rows]


class DatabaseLedger:
    """The authoritative ``user_progression`` table."""

    name = "database"

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    async def read_total(self, user_id: str) -> int:
        try:
            return await run_db(_read_total_db, self._engine, user_id)
        except SQLAlchemyError as exc:
            raise LedgerError(f"Database read failed: {exc}") from exc

    async def add_total(self, user_id: str, amount: int) -> int:
        try:
            return await run_db(_add_total_db, self._engine, user_id, amount)
        except SQLAlchemyError as exc:
            raise LedgerError(f"Database write failed: {exc}") from exc

    async def leaderboard(self, limit: int) -> list[tuple[str, int]]:
        """Top totals, highest first."""
        try:
            return await run_db(_leaderboard_db, self._engine, limit)
        except SQLAlchemyError as exc:
            raise LedgerError(f"Leaderboard query failed: {exc}") from exc
