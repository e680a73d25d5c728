"""
tests/test_bootstrap.py — Client Wiring Tests
==============================================
"""

from __future__ import annotations

import asyncio

import httpx

from mannxp.config import MannXPConfig
from mannxp.engine.events import XpAction
from mannxp.engine.level_curve import progression_state
from mannxp.services.bootstrap import build_rpc_client, build_services
from mannxp.services.formatting import format_level_line, format_progression


def run_async(coro):
    """Run an async coroutine in a new event loop."""
    return asyncio.run(coro)


CFG = MannXPConfig(backend_url="http://backend.test", local_store_url="sqlite://")


class TestBuildRpcClient:
    def test_headers(self):
        client = build_rpc_client(CFG, api_key="anon", access_token="user-jwt")
        assert client.headers["apikey"] == "anon"
        assert client.headers["Authorization"] == "Bearer user-jwt"
        assert client.base_url.host == "backend.test"

    def test_api_key_used_as_bearer_without_session(self):
        client = build_rpc_client(CFG, api_key="anon")
        assert client.headers["Authorization"] == "Bearer anon"

    def test_no_credentials(self, monkeypatch):
        monkeypatch.delenv("BACKEND_API_KEY", raising=False)
        client = build_rpc_client(CFG, api_key="")
        assert "Authorization" not in client.headers


class TestBuildServices:
    def test_offline_backend_falls_back_to_local(self, bus):
        def handler(request):
            raise httpx.ConnectError("backend down", request=request)

        client = httpx.AsyncClient(
            base_url=CFG.backend_url, transport=httpx.MockTransport(handler)
        )
        services = build_services(CFG, client=client, bus=bus)
        services.ranks.set_rank("u1", 10)

        async def scenario():
            preview = services.awards.preview("u1", XpAction.TRANSFER, 999)
            state = await services.awards.award_for_action("u1", XpAction.TRANSFER, 999)
            again = await services.store.get("u1")
            await services.aclose()
            return preview, state, again

        preview, state, again = run_async(scenario())

        assert preview == 838
        assert state.xp == 838
        assert again.xp == 838


class TestFormatting:
    def test_format_progression(self):
        assert format_progression(progression_state(559)) == (
            "Level 2\nXP: 309/707 (Total: 559)\nTo next: 398"
        )

    def test_format_level_line(self):
        assert format_level_line(progression_state(1118)) == "Level 3 (161/1299 XP)"
