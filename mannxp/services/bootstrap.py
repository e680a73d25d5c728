"""
mannxp.services.bootstrap — Client-Side Wiring
===============================================

Builds the store adapter and award service from a :class:`MannXPConfig`:

1. HTTP client for the remote RPCs (``BACKEND_API_KEY`` + user token).
2. Local SQLite engine for the fallback key/value store.
3. Ledgers → ProgressionStore → AwardService.

Usage::

    cfg = load_config()
    services = build_services(cfg, access_token=session_jwt)
    await services.awards.award_for_action(user_id, "marketplace-purchase", 999)
    ...
    await services.aclose()
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

import httpx
from dotenv import load_dotenv
from sqlalchemy import Engine

from mannxp.config import MannXPConfig
from mannxp.database.engine import create_local_engine
from mannxp.engine.bus import ChangeBus
from mannxp.services.award_service import AwardService
from mannxp.services.ledgers import LocalLedger, RpcLedger
from mannxp.services.local_store import LocalKeyValueStore, SocialRankCache
from mannxp.services.progression_service import ProgressionStore

logger = logging.getLogger(__name__)


@dataclass
class ProgressionServices:
    """Everything a front end needs, plus the resources to release."""

    store: ProgressionStore
    awards: AwardService
    ranks: SocialRankCache
    client: httpx.AsyncClient
    local_engine: Engine

    async def aclose(self) -> None:
        await self.client.aclose()
        self.local_engine.dispose()


def build_rpc_client(
    cfg: MannXPConfig,
    *,
    api_key: str | None = None,
    access_token: str | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """HTTP client pointed at ``cfg.backend_url`` with auth headers set."""
    load_dotenv()
    key = api_key if api_key is not None else os.getenv("BACKEND_API_KEY", "")
    headers: dict[str, str] = {}
    if key:
        headers["apikey"] = key
    bearer = access_token or key
    if bearer:
        headers["Authorization"] = f"Bearer {bearer}"
    return httpx.AsyncClient(
        base_url=cfg.backend_url,
        headers=headers,
        timeout=cfg.request_timeout,
        transport=transport,
    )


def build_services(
    cfg: MannXPConfig,
    *,
    access_token: str | None = None,
    bus: ChangeBus | None = None,
    client: httpx.AsyncClient | None = None,
) -> ProgressionServices:
    """Wire the remote-first store and the award service."""
    if client is None:
        client = build_rpc_client(cfg, access_token=access_token)
    local_engine = create_local_engine(cfg.local_store_url)
    kv = LocalKeyValueStore(local_engine)

    store = ProgressionStore(
        remote=RpcLedger(client, cfg.rpc_path),
        local=LocalLedger(kv, cfg.storage_key_prefix),
        bus=bus,
    )
    ranks = SocialRankCache(kv, cfg.social_rank_key_prefix)
    logger.info(
        "Progression services ready (backend=%s, local=%s)",
        cfg.backend_url, cfg.local_store_url,
    )
    return ProgressionServices(
        store=store,
        awards=AwardService(store, ranks),
        ranks=ranks,
        client=client,
        local_engine=local_engine,
    )
