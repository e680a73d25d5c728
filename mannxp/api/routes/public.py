"""
mannxp.api.routes.public — Read-only public endpoints
======================================================
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import PlainTextResponse

from mannxp.api.deps import get_ledger
from mannxp.constants import DEFAULT_LEADERBOARD_LIMIT, MAX_LEADERBOARD_LIMIT
from mannxp.engine.level_curve import ProgressionState, progression_state
from mannxp.services.formatting import format_progression
from mannxp.services.ledgers import DatabaseLedger, LedgerError

logger = logging.getLogger(__name__)
router = APIRouter(tags=["public"])


async def _state_for(ledger: DatabaseLedger, user_id: str) -> ProgressionState:
    try:
        return progression_state(await ledger.read_total(user_id))
    except LedgerError as exc:
        logger.error("Progression read failed for %s: %s", user_id, exc)
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, "Progression unavailable")


# ---------------------------------------------------------------------------
# GET /progression/{user_id}
# ---------------------------------------------------------------------------
@router.get("/progression/{user_id}")
async def get_progression(user_id: str, ledger: DatabaseLedger = Depends(get_ledger)):
    state = await _state_for(ledger, user_id)
    return {"user_id": user_id, **state.to_dict()}


@router.get("/progression/{user_id}/summary", response_class=PlainTextResponse)
async def get_progression_summary(
    user_id: str, ledger: DatabaseLedger = Depends(get_ledger)
):
    return format_progression(await _state_for(ledger, user_id))


# ---------------------------------------------------------------------------
# GET /leaderboard
# ---------------------------------------------------------------------------
@router.get("/leaderboard")
async def get_leaderboard(
    limit: int = Query(DEFAULT_LEADERBOARD_LIMIT, ge=1, le=MAX_LEADERBOARD_LIMIT),
    ledger: DatabaseLedger = Depends(get_ledger),
):
    """Highest XP totals with their derived levels."""
    try:
        rows = await ledger.leaderboard(limit)
    except LedgerError as exc:
        logger.error("Leaderboard failed: %s", exc)
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, "Leaderboard unavailable")

    entries = []
    for rank, (user_id, total) in enumerate(rows, start=1):
        state = progression_state(total)
        entries.append({
            "rank": rank,
            "user_id": user_id,
            "xp": state.xp,
            "level": state.level,
        })
    return entries
