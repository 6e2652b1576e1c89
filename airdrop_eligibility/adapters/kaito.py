"""
Content-reputation adapter (Kaito yaps API). Handles only; addresses have no profile.
"""

from __future__ import annotations

from typing import Any

from airdrop_eligibility.adapters.base import SourceAdapter
from airdrop_eligibility.adapters.http import HttpJsonClient
from airdrop_eligibility.adapters.schemas import ReputationProfileRecord
from airdrop_eligibility.analysis_engine.models import Identity


class KaitoAdapter(SourceAdapter):
    source = "kaito"
    record_model = ReputationProfileRecord

    def __init__(self, client: HttpJsonClient) -> None:
        self._client = client

    async def _fetch_payload(self, identity: Identity) -> Any:
        if identity.is_address:
            return []
        body = await self._client.get_json("/yaps", params={"username": identity.value})
        # A profile exists only when both user_id and username come back
        if isinstance(body, dict) and body.get("user_id") and body.get("username"):
            return [body]
        return []

    async def aclose(self) -> None:
        await self._client.aclose()
