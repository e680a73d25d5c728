"""
mannxp.config — YAML Configuration Loader
==========================================

Reads ``config.yaml`` for **infrastructure-only** settings: where the
remote computation endpoint lives, where the local fallback store is kept,
and the key prefixes used inside it.  Secrets (``BACKEND_API_KEY``,
``DATABASE_URL``, ``JWT_SECRET``) come from the environment / ``.env``.

The level curve and award arithmetic are fixed in code and are not
configurable.

Usage::

    from mannxp.config import load_config

    cfg = load_config()          # reads ./config.yaml by default
    print(cfg.backend_url)       # "https://bank.example.com"
    print(cfg.local_store_url)   # "sqlite:///mannxp_local.db"
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

from mannxp.constants import SOCIAL_RANK_KEY_PREFIX, STORAGE_KEY_PREFIX


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class MannXPConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Remote computation endpoint
    backend_url: str
    rpc_path: str = "/api/rpc"
    request_timeout: float = 10.0

    # Local fallback store
    local_store_url: str = "sqlite:///mannxp_local.db"
    storage_key_prefix: str = STORAGE_KEY_PREFIX
    social_rank_key_prefix: str = SOCIAL_RANK_KEY_PREFIX

    # Backend API
    api_port: int = 8000


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> MannXPConfig:
    """Read *path* and return a :class:`MannXPConfig` instance.

    Parameters
    ----------
    path:
        Filesystem path to the YAML configuration file.
        Defaults to ``config.yaml`` in the current working directory.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    defaults = MannXPConfig(backend_url="")
    return MannXPConfig(
        backend_url=str(raw["backend_url"]).rstrip("/"),
        rpc_path="/" + str(raw.get("rpc_path", defaults.rpc_path)).strip("/"),
        request_timeout=float(raw.get("request_timeout", defaults.request_timeout)),
        local_store_url=str(raw.get("local_store_url", defaults.local_store_url)),
        storage_key_prefix=str(
            raw.get("storage_key_prefix", defaults.storage_key_prefix)
        ),
        social_rank_key_prefix=str(
            raw.get("social_rank_key_prefix", defaults.social_rank_key_prefix)
        ),
        api_port=int(raw.get("api_port", defaults.api_port)),
    )
