"""
mannxp.services.progression_service — Remote-First Progression Store
=====================================================================

The single entry point for reading and writing a user's XP total.

Strategy, decided afresh on every call (no sticky "degraded mode")::

    try remote ledger  ──error──▶  local ledger

Guarantees:

- ``get`` always returns a best-effort state for a real user id.
- ``add`` writes at most once per call and publishes ``xp_updated`` on the
  change bus before returning.
- ``set`` only ever moves XP forward.
- Nothing here raises for remote failures, corrupt local data or bad
  amounts.  A missing user id yields ``None``.

The remote and local totals are independent; a total earned while offline
is not merged back into the remote one.
"""

from __future__ import annotations

import logging
import math

from mannxp.engine.bus import ChangeBus, get_default_bus
from mannxp.engine.level_curve import ProgressionState, progression_state
from mannxp.services.ledgers import Ledger

logger = logging.getLogger(__name__)


def clamp_amount(amount: object) -> int:
    """Non-negative integer delta; NaN, infinities and junk become 0."""
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        return 0
    if isinstance(amount, float) and not math.isfinite(amount):
        return 0
    return max(0, math.floor(amount))


def forward_delta(current: int, target: object) -> int:
    """Delta that moves *current* up to *target*; never negative."""
    return max(0, clamp_amount(target) - current)


class ProgressionStore:
    """Reads and writes XP totals through a remote ledger with local fallback."""

    def __init__(
        self,
        remote: Ledger,
        local: Ledger,
        bus: ChangeBus | None = None,
    ) -> None:
        self.remote = remote
        self.local = local
        self.bus = bus if bus is not None else get_default_bus()

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    async def _read_total(self, user_id: str) -> int:
        try:
            return await self.remote.read_total(user_id)
        except Exception as exc:
            logger.warning(
                "Remote read failed for %s, using local store: %s", user_id, exc
            )
        try:
            return await self.local.read_total(user_id)
        except Exception:
            logger.exception("Local read failed for %s; reporting 0 XP", user_id)
            return 0

    async def get(self, user_id: str | None) -> ProgressionState | None:
        """Current progression for *user_id* (0 XP if it has no record)."""
        if not user_id:
            return None
        return progression_state(await self._read_total(user_id))

    # -------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------
    async def add(self, user_id: str | None, amount: object) -> ProgressionState | None:
        """Add *amount* XP and return the new state.

        A delta that clamps to 0 is a no-op: nothing is written and no
        event is published.
        """
        if not user_id:
            return None
        delta = clamp_amount(amount)
        if delta <= 0:
            return await self.get(user_id)

        try:
            total = await self.remote.add_total(user_id, delta)
        except Exception as exc:
            logger.warning(
                "Remote add of %d XP failed for %s, using local store: %s",
                delta, user_id, exc,
            )
            try:
                total = await self.local.add_total(user_id, delta)
            except Exception:
                logger.exception("Local add of %d XP failed for %s", delta, user_id)
                return None

        self.bus.publish(user_id, delta)
        logger.debug("Added %d XP for %s (total=%s)", delta, user_id, total)

        if total is None:
            return await self.get(user_id)
        return progression_state(total)

    async def set(self, user_id: str | None, amount: object) -> ProgressionState | None:
        """Raise the total to *amount*.  Lower targets leave XP untouched."""
        if not user_id:
            return None
        current = await self.get(user_id)
        return await self.add(user_id, forward_delta(current.xp, amount))
