"""
mannxp.constants — Shared Constants
====================================

Storage key prefixes and event names shared by the store adapter, the
award service and the API.  Import from here instead of duplicating
string literals.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Local key/value namespaces
# ---------------------------------------------------------------------------
STORAGE_KEY_PREFIX = "mannru_progression_"
SOCIAL_RANK_KEY_PREFIX = "social_rank_level_"

# Social rank is read as an integer in [0, MAX_SOCIAL_RANK]
MAX_SOCIAL_RANK = 100

# ---------------------------------------------------------------------------
# Change notification
# ---------------------------------------------------------------------------
XP_UPDATED_EVENT = "xp_updated"

# ---------------------------------------------------------------------------
# Remote RPC names (Supabase-style ``/rpc/<name>`` endpoints)
# ---------------------------------------------------------------------------
RPC_GET_PROGRESSION = "get_progression"
RPC_ADD_XP = "add_xp"

DEFAULT_LEADERBOARD_LIMIT = 10
MAX_LEADERBOARD_LIMIT = 100
