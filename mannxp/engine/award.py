"""
mannxp.engine.award — XP Award Arithmetic
==========================================

Pure calculation, no I/O.  Used identically by the preview and the apply
path of :mod:`mannxp.services.award_service`, so an estimate shown before
an action always equals what the action actually awards.

Pipeline::

    (action, amount) → base XP → × social multiplier → floor, min 1
"""

from __future__ import annotations

import math

from mannxp.constants import MAX_SOCIAL_RANK
from mannxp.engine.events import XpAction

__all__ = [
    "MAX_BASE_XP",
    "MIN_BASE_XP",
    "base_xp_for_action",
    "compute_award",
    "final_xp",
    "social_multiplier",
]

# Bounds for amount-scaled actions
MIN_BASE_XP = 10
MAX_BASE_XP = 2000

LINEAR_RATE = 0.5
LOG_WEIGHT = 20

FIXED_BASE_XP: dict[XpAction, int] = {
    XpAction.GIFT_RECEIVED: 5,
    XpAction.OTHER: 3,
}

# 5% per social rank level, capped at 2x
RANK_STEP = 0.05
MAX_MULTIPLIER = 2.0


def _safe_amount(amount: object) -> float:
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        return 0.0
    if not math.isfinite(amount):
        return 0.0
    return max(0.0, float(amount))


def base_xp_for_action(action: XpAction | str, amount: object) -> int:
    """Base XP for *action* before the social multiplier.

    Transfers and purchases scale with the amount: a linear half-rate
    component plus a ``log10`` kicker, bounded to ``[10, 2000]``.
    """
    action = XpAction.coerce(action)
    if action in (XpAction.TRANSFER, XpAction.MARKETPLACE_PURCHASE):
        safe = _safe_amount(amount)
        scaled = safe * LINEAR_RATE + math.log10(safe + 1) * LOG_WEIGHT
        return max(MIN_BASE_XP, min(MAX_BASE_XP, math.floor(scaled)))
    return FIXED_BASE_XP.get(action, FIXED_BASE_XP[XpAction.OTHER])


def social_multiplier(rank_level: int) -> float:
    """Multiplier in ``[1.0, 2.0]`` for a social rank level."""
    rank = max(0, min(int(rank_level), MAX_SOCIAL_RANK))
    return max(1.0, min(1 + rank * RANK_STEP, MAX_MULTIPLIER))


def final_xp(base: int, multiplier: float) -> int:
    """Apply the multiplier; every qualifying action earns at least 1 XP."""
    return max(1, math.floor(base * multiplier))


def compute_award(action: XpAction | str, amount: object, rank_level: int = 0) -> int:
    """Full award for one action by a user at *rank_level*."""
    return final_xp(base_xp_for_action(action, amount), social_multiplier(rank_level))
