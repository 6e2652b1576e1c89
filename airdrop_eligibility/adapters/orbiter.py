"""
Bridge adapter for Orbiter Finance transfer history.
"""

from __future__ import annotations

from typing import Any

from airdrop_eligibility.adapters.base import BridgeAdapter
from airdrop_eligibility.adapters.http import HttpJsonClient
from airdrop_eligibility.adapters.schemas import BridgeTransferRecord
from airdrop_eligibility.analysis_engine.models import Identity

HISTORY_LIMIT = 1000

# Orbiter internal chain ids for networks it names rather than numbers
ORBITER_CHAIN_IDS: dict[str, int] = {
    "ethereum": 1,
    "arbitrum": 42161,
    "optimism": 10,
    "polygon": 137,
    "bsc": 56,
    "avalanche": 43114,
    "fantom": 250,
    "metis": 1088,
    "boba": 288,
    "zksync": 324,
    "loopring": 1101,
    "immutablex": 1002,
    "dydx": 1003,
    "zkspace": 1004,
}


def _chain_id(value: Any) -> Any:
    if isinstance(value, str) and not value.strip().isdigit():
        return ORBITER_CHAIN_IDS.get(value.strip().lower(), value)
    return value


class OrbiterAdapter(BridgeAdapter):
    source = "orbiter"
    record_model = BridgeTransferRecord

    def __init__(self, client: HttpJsonClient) -> None:
        self._client = client

    async def _fetch_payload(self, identity: Identity) -> Any:
        if not identity.is_address:
            return []
        body = await self._client.get_json(
            "/bridge/history",
            params={"address": identity.value, "limit": HISTORY_LIMIT, "offset": 0},
        )
        items = body.get("data") if isinstance(body, dict) else body
        if not isinstance(items, list):
            return items
        return [
            {**item, "fromChain": _chain_id(item.get("fromChain")), "toChain": _chain_id(item.get("toChain"))}
            if isinstance(item, dict)
            else item
            for item in items
        ]

    async def aclose(self) -> None:
        await self._client.aclose()
