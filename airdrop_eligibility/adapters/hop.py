"""
Bridge adapter for Hop Protocol: transfers from the Hop explorer API, liquidity
positions from an optional configured endpoint.
"""

from __future__ import annotations

from typing import Any

from airdrop_eligibility.adapters.base import BridgeAdapter
from airdrop_eligibility.adapters.http import HttpJsonClient
from airdrop_eligibility.adapters.schemas import BridgeTransferRecord
from airdrop_eligibility.analysis_engine.models import Identity

TRANSFERS_PER_PAGE = 100


def _transfer_status(item: dict[str, Any]) -> str:
    if item.get("status"):
        return str(item["status"])
    if "bonded" in item:
        return "completed" if item.get("bonded") else "pending"
    return ""


class HopAdapter(BridgeAdapter):
    source = "hop"
    record_model = BridgeTransferRecord

    def __init__(
        self,
        client: HttpJsonClient,
        *,
        lp_client: HttpJsonClient | None = None,
        lp_path_template: str = "",
    ) -> None:
        """
        Args:
            client: Client for the explorer API (transfer history).
            lp_client: Client for the liquidity-position endpoint; None disables positions.
            lp_path_template: Path on lp_client, formatted with {address}.
        """
        self._client = client
        self._lp_client = lp_client
        self._lp_path_template = lp_path_template

    async def _fetch_payload(self, identity: Identity) -> Any:
        if not identity.is_address:
            return []
        body = await self._client.get_json(
            "/transfers", params={"account": identity.value, "perPage": TRANSFERS_PER_PAGE}
        )
        items = body.get("data") if isinstance(body, dict) else body
        if not isinstance(items, list):
            return items
        return [
            {**item, "status": _transfer_status(item)} if isinstance(item, dict) else item
            for item in items
        ]

    async def _fetch_positions_payload(self, identity: Identity) -> Any:
        if self._lp_client is None or not identity.is_address:
            return []
        body = await self._lp_client.get_json(
            self._lp_path_template.format(address=identity.value)
        )
        return body.get("positions") if isinstance(body, dict) else body

    async def aclose(self) -> None:
        await self._client.aclose()
        if self._lp_client is not None:
            await self._lp_client.aclose()
