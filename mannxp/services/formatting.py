"""
mannxp.services.formatting — Plain-Text Progression Summary
============================================================

Used by the API's ``/summary`` route and by shell-style front ends.
"""

from __future__ import annotations

from mannxp.engine.level_curve import ProgressionState


def format_progression(state: ProgressionState) -> str:
    """Four-line summary: level, XP within level, total, remaining."""
    return (
        f"Level {state.level}\n"
        f"XP: {state.current_level_xp}/{state.next_level_xp} (Total: {state.xp})\n"
        f"To next: {state.xp_to_next_level}"
    )


def format_level_line(state: ProgressionState) -> str:
    """One-line form, e.g. ``Level 3 (161/1299 XP)``."""
    return f"Level {state.level} ({state.current_level_xp}/{state.next_level_xp} XP)"
