"""
Chain indexer adapter (Basescan-compatible account/txlist API).
"""

from __future__ import annotations

from typing import Any

from airdrop_eligibility.adapters.base import SourceAdapter
from airdrop_eligibility.adapters.http import HttpJsonClient
from airdrop_eligibility.adapters.schemas import ChainTransaction
from airdrop_eligibility.analysis_engine.models import Identity
from airdrop_eligibility.core.exceptions import AdapterError

TXLIST_PAGE_SIZE = 1000
NO_TRANSACTIONS_MESSAGE = "no transactions found"


class BasescanAdapter(SourceAdapter):
    """Normal transactions for an address, newest first, up to one page."""

    source = "onchain"
    record_model = ChainTransaction

    def __init__(self, client: HttpJsonClient, api_key: str = "") -> None:
        self._client = client
        self._api_key = api_key

    async def _fetch_payload(self, identity: Identity) -> Any:
        if not identity.is_address:
            return []
        params = {
            "module": "account",
            "action": "txlist",
            "address": identity.value,
            "startblock": 0,
            "endblock": 99999999,
            "page": 1,
            "offset": TXLIST_PAGE_SIZE,
            "sort": "desc",
        }
        if self._api_key:
            params["apikey"] = self._api_key
        body = await self._client.get_json("", params=params)
        if not isinstance(body, dict):
            return body
        result = body.get("result")
        if str(body.get("status")) == "1":
            return result
        message = str(body.get("message") or "").strip().lower()
        if message.startswith(NO_TRANSACTIONS_MESSAGE) or result == []:
            return []
        raise AdapterError(
            f"chain indexer error: {result or message}",
            source=self.source,
            code="UPSTREAM_ERROR",
            retryable="rate limit" in str(result).lower(),
        )

    async def aclose(self) -> None:
        await self._client.aclose()
