"""
mannxp.services.local_store — Local Persistent Key/Value Store
===============================================================

The client-side cache that survives restarts: plain string keys mapped to
string values in a local SQLite database.  Two consumers:

- :class:`~mannxp.services.ledgers.LocalLedger` keeps the fallback XP total
  under ``"<storage prefix><user_id>"`` as JSON ``{"xp": n}``.
- :class:`SocialRankCache` reads a user's social rank level from
  ``"<rank prefix><user_id>"``.

All methods are synchronous; async callers go through ``run_db``.
"""

from __future__ import annotations

import logging
import re

from sqlalchemy import Engine
from sqlalchemy.orm import Session

from mannxp.constants import MAX_SOCIAL_RANK, SOCIAL_RANK_KEY_PREFIX
from mannxp.database.models import LocalEntry

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


class LocalKeyValueStore:
    """``get_item`` / ``set_item`` over the ``local_store`` table."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def get_item(self, key: str) -> str | None:
        with Session(self._engine) as session:
            entry = session.get(LocalEntry, key)
            return entry.value if entry is not None else None

    def set_item(self, key: str, value: str) -> None:
        with Session(self._engine) as session:
            entry = session.get(LocalEntry, key)
            if entry is None:
                session.add(LocalEntry(key=key, value=value))
            else:
                entry.value = value
            session.commit()


class SocialRankCache:
    """Reads the locally cached social rank level (0–100, default 0).

    Rank storage itself is owned elsewhere; this class only reads it, plus
    :meth:`set_rank` for seeding and admin tooling.
    """

    def __init__(
        self, store: LocalKeyValueStore, prefix: str = SOCIAL_RANK_KEY_PREFIX
    ) -> None:
        self._store = store
        self._prefix = prefix

    def _key(self, user_id: str) -> str:
        return f"{self._prefix}{user_id}"

    def get_rank(self, user_id: str | None) -> int:
        if not user_id:
            return 0
        raw = self._store.get_item(self._key(user_id))
        if raw is None:
            return 0
        # Leading integer only: "10.0" reads as 10, "12abc" as 12.
        match = _LEADING_INT.match(raw)
        if match is None:
            logger.debug("Ignoring non-numeric social rank for %s: %r", user_id, raw)
            return 0
        level = int(match.group(1))
        if level < 0:
            return 0
        return min(level, MAX_SOCIAL_RANK)

    def set_rank(self, user_id: str, level: int) -> None:
        self._store.set_item(self._key(user_id), str(int(level)))
