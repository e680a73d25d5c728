"""
mannxp.api.routes.admin — Admin XP endpoints (JWT‑protected)
=============================================================

Manual XP grants for support and moderation.  There is no way to lower a
total: ``/set`` only raises it.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from mannxp.api.deps import get_bus, get_current_admin, get_ledger
from mannxp.engine.bus import ChangeBus
from mannxp.engine.level_curve import progression_state
from mannxp.services.formatting import format_level_line
from mannxp.services.ledgers import DatabaseLedger, LedgerError
from mannxp.services.progression_service import clamp_amount, forward_delta

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin", tags=["admin"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class XpAmount(BaseModel):
    amount: int


async def _apply(
    ledger: DatabaseLedger, bus: ChangeBus, user_id: str, delta: int
) -> dict:
    try:
        if delta > 0:
            total = await ledger.add_total(user_id, delta)
        else:
            total = await ledger.read_total(user_id)
    except LedgerError as exc:
        logger.error("Admin XP change failed for %s: %s", user_id, exc)
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, "Progression unavailable")

    if delta > 0:
        bus.publish(user_id, delta)
    state = progression_state(total)
    return {
        "user_id": user_id,
        "added": delta,
        **state.to_dict(),
        "message": f"Added {delta} XP. {format_level_line(state)}.",
    }


# ---------------------------------------------------------------------------
# POST /admin/xp/{user_id}
# ---------------------------------------------------------------------------
@router.post("/xp/{user_id}")
async def add_xp(
    user_id: str,
    body: XpAmount,
    admin: dict = Depends(get_current_admin),
    ledger: DatabaseLedger = Depends(get_ledger),
    bus: ChangeBus = Depends(get_bus),
):
    delta = clamp_amount(body.amount)
    logger.info("Admin %s adding %d XP to %s", admin.get("sub"), delta, user_id)
    return await _apply(ledger, bus, user_id, delta)


# ---------------------------------------------------------------------------
# POST /admin/xp/{user_id}/set
# ---------------------------------------------------------------------------
@router.post("/xp/{user_id}/set")
async def set_xp(
    user_id: str,
    body: XpAmount,
    admin: dict = Depends(get_current_admin),
    ledger: DatabaseLedger = Depends(get_ledger),
    bus: ChangeBus = Depends(get_bus),
):
    try:
        current = await ledger.read_total(user_id)
    except LedgerError as exc:
        logger.error("Admin XP read failed for %s: %s", user_id, exc)
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, "Progression unavailable")

    delta = forward_delta(current, body.amount)
    logger.info(
        "Admin %s setting %s XP to %d (delta %d)",
        admin.get("sub"), user_id, body.amount, delta,
    )
    return await _apply(ledger, bus, user_id, delta)
