"""
MannXP — Experience-Point Progression for the MannRu Banking Simulation
========================================================================
Turns economic activity (transfers, marketplace purchases, gifts) into
experience points, maps accumulated XP onto a level curve, and keeps the
total in an authoritative backend with a local fallback so displays always
have a best-effort number to show.

Package layout::

    mannxp/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Storage prefixes, event name
    ├── database/
    │   ├── engine.py      # SQLAlchemy engines + async helper
    │   └── models.py      # user_progression + local key/value tables
    ├── engine/
    │   ├── level_curve.py # XP → level math
    │   ├── award.py       # Per-action XP arithmetic + social multiplier
    │   ├── events.py      # XpAction + XpUpdated
    │   └── bus.py         # In-process change-notification bus
    ├── services/
    │   ├── local_store.py        # Local key/value store + social rank cache
    │   ├── ledgers.py            # Remote RPC, local and database ledgers
    │   ├── progression_service.py  # Remote-first store with local fallback
    │   ├── award_service.py      # Preview / award XP for actions
    │   ├── watcher.py            # Display-side observer, level-up detection
    │   ├── formatting.py         # Text summary
    │   └── bootstrap.py          # Wiring from config
    └── api/
        ├── main.py        # FastAPI app (the remote computation endpoint)
        ├── deps.py        # Engine / JWT dependencies
        └── routes/        # RPC, public and admin endpoints
"""

__version__ = "0.1.0"
