"""
mannxp.api.routes.rpc — Progression RPC endpoints
==================================================

The remote computation endpoint consumed by
:class:`mannxp.services.ledgers.RpcLedger`:

- ``POST /rpc/get_progression``  ``{"user_id_in"}``            → ``[{"total_xp": n}]``
- ``POST /rpc/add_xp``           ``{"user_id_in", "amount_in"}`` → new total

Callers may only add XP to their own record unless the token is an admin.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from mannxp.api.deps import get_bus, get_current_user, get_ledger
from mannxp.constants import RPC_ADD_XP, RPC_GET_PROGRESSION
from mannxp.engine.bus import ChangeBus
from mannxp.services.ledgers import DatabaseLedger, LedgerError

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/rpc", tags=["rpc"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class GetProgressionIn(BaseModel):
    user_id_in: str = Field(min_length=1, max_length=64)


class AddXpIn(BaseModel):
    user_id_in: str = Field(min_length=1, max_length=64)
    amount_in: int = Field(ge=0)


# ---------------------------------------------------------------------------
# POST /rpc/get_progression
# ---------------------------------------------------------------------------
@router.post(f"/{RPC_GET_PROGRESSION}")
async def rpc_get_progression(
    body: GetProgressionIn,
    _user: dict = Depends(get_current_user),
    ledger: DatabaseLedger = Depends(get_ledger),
):
    try:
        total = await ledger.read_total(body.user_id_in)
    except LedgerError as exc:
        logger.error("get_progression failed for %s: %s", body.user_id_in, exc)
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, "Progression unavailable")
    return [{"user_id": body.user_id_in, "total_xp": total}]


# ---------------------------------------------------------------------------
# POST /rpc/add_xp
# ---------------------------------------------------------------------------
@router.post(f"/{RPC_ADD_XP}")
async def rpc_add_xp(
    body: AddXpIn,
    user: dict = Depends(get_current_user),
    ledger: DatabaseLedger = Depends(get_ledger),
    bus: ChangeBus = Depends(get_bus),
):
    if str(user["sub"]) != body.user_id_in and not user.get("is_admin"):
        raise HTTPException(status.HTTP_403_FORBIDDEN, "Cannot award XP to another user")

    try:
        if body.amount_in == 0:
            return await ledger.read_total(body.user_id_in)
        total = await ledger.add_total(body.user_id_in, body.amount_in)
    except LedgerError as exc:
        logger.error("add_xp failed for %s: %s", body.user_id_in, exc)
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, "Progression unavailable")

    bus.publish(body.user_id_in, body.amount_in)
    return total
