"""
mannxp.engine.level_curve — XP → Level Math
============================================

THE single canonical implementation of the level curve.  Pure functions,
no I/O.  Every display, API route and service derives level and
within-level progress from here.

Curve::

    xp_needed(level) = floor(250 * level ** 1.5)

    level 1 → 250, level 2 → 707, level 3 → 1299, ...

``level_from_xp`` walks the curve from level 1, subtracting each level's
requirement until the remainder no longer covers the next one.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

logger = logging.getLogger(__name__)

__all__ = [
    "BASE_PER_LEVEL",
    "LEVEL_CAP",
    "LevelProgress",
    "ProgressionState",
    "clamp_xp",
    "cumulative_xp",
    "level_from_xp",
    "progression_state",
    "xp_needed",
]

BASE_PER_LEVEL = 250
LEVEL_EXPONENT = 1.5

# Iteration stops here even for corrupted, absurdly large totals.
LEVEL_CAP = 999


@dataclass(frozen=True, slots=True)
class LevelProgress:
    """Position of an XP total on the curve."""

    level: int
    current_level_xp: int
    next_level_threshold: int


@dataclass(frozen=True, slots=True)
class ProgressionState:
    """Everything a display needs to render a progress bar."""

    xp: int
    level: int
    current_level_xp: int
    next_level_xp: int
    xp_to_next_level: int

    def to_dict(self) -> dict[str, int]:
        return {
            "xp": self.xp,
            "level": self.level,
            "current_level_xp": self.current_level_xp,
            "next_level_xp": self.next_level_xp,
            "xp_to_next_level": self.xp_to_next_level,
        }


def clamp_xp(value: object) -> int:
    """Coerce *value* to a non-negative integer XP total.

    Negative, NaN, infinite and non-numeric values become 0; fractional
    values are floored.  Never raises.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if isinstance(value, float):
        if not math.isfinite(value):
            return 0
        value = math.floor(value)
    return max(0, int(value))


def xp_needed(level: int) -> int:
    """XP required to advance from the start of *level* to the next one."""
    if level <= 0:
        return 0
    return math.floor(BASE_PER_LEVEL * math.pow(level, LEVEL_EXPONENT))


def cumulative_xp(level: int) -> int:
    """Total XP required to reach the start of *level* (level 1 → 0)."""
    return sum(xp_needed(lvl) for lvl in range(1, level))


def level_from_xp(xp: object) -> LevelProgress:
    """Map a total XP value onto ``(level, current_level_xp, threshold)``."""
    remaining = clamp_xp(xp)
    level = 1
    while True:
        need = xp_needed(level)
        if remaining < need:
            return LevelProgress(level, remaining, need)
        remaining -= need
        level += 1
        if level > LEVEL_CAP:
            logger.warning(
                "XP total %s exceeds the level cap; clamping to level %d",
                xp, LEVEL_CAP,
            )
            return LevelProgress(LEVEL_CAP, 0, xp_needed(LEVEL_CAP))


def progression_state(xp: object) -> ProgressionState:
    """Build the full derived :class:`ProgressionState` for a total."""
    total = clamp_xp(xp)
    progress = level_from_xp(total)
    return ProgressionState(
        xp=total,
        level=progress.level,
        current_level_xp=progress.current_level_xp,
        next_level_xp=progress.next_level_threshold,
        xp_to_next_level=max(
            0, progress.next_level_threshold - progress.current_level_xp
        ),
    )
