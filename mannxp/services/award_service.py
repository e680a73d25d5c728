"""
mannxp.services.award_service — XP for Economic Actions
========================================================

Called by transfer, marketplace and gift flows.  ``preview`` and
``award_for_action`` run the exact same arithmetic
(:func:`mannxp.engine.award.compute_award`), so the estimate a caller
shows before committing an action is what the action awards.

Failures never escape: if the store cannot apply the award the caller
gets ``None`` ("unavailable") and carries on.
"""

from __future__ import annotations

import logging

from mannxp.database.engine import run_db
from mannxp.engine.award import compute_award
from mannxp.engine.events import XpAction
from mannxp.engine.level_curve import ProgressionState
from mannxp.services.local_store import SocialRankCache
from mannxp.services.progression_service import ProgressionStore

logger = logging.getLogger(__name__)


class AwardService:
    """Computes and applies action-based XP awards."""

    def __init__(self, store: ProgressionStore, ranks: SocialRankCache) -> None:
        self.store = store
        self.ranks = ranks

    def _rank_for(self, user_id: str) -> int:
        try:
            return self.ranks.get_rank(user_id)
        except Exception:
            logger.exception("Social rank lookup failed for %s; using rank 0", user_id)
            return 0

    def preview(
        self, user_id: str | None, action: XpAction | str, amount: object
    ) -> int:
        """XP the action would award right now, without applying it."""
        if not user_id:
            return 0
        return compute_award(action, amount, self._rank_for(user_id))

    async def award_for_action(
        self, user_id: str | None, action: XpAction | str, amount: object
    ) -> ProgressionState | None:
        """Award XP for *action* and return the updated progression."""
        if not user_id:
            return None
        rank = await run_db(self._rank_for, user_id)
        xp = compute_award(action, amount, rank)
        try:
            state = await self.store.add(user_id, xp)
        except Exception:
            logger.exception(
                "Progression store unavailable; %d XP for %s (%s) not applied",
                xp, user_id, XpAction.coerce(action),
            )
            return None
        if state is not None:
            logger.info(
                "Awarded %d XP to %s for %s", xp, user_id, XpAction.coerce(action)
            )
        return state
