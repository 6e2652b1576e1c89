"""
Social-graph adapter (Neynar Farcaster API v2).

Looks up the user by verified address or by username, then attaches the most
recent casts so the engine receives one self-contained profile record.
"""

from __future__ import annotations

from typing import Any

from airdrop_eligibility.adapters.base import SourceAdapter
from airdrop_eligibility.adapters.http import HttpJsonClient
from airdrop_eligibility.adapters.schemas import SocialProfileRecord
from airdrop_eligibility.analysis_engine.models import Identity
from airdrop_eligibility.core.exceptions import AdapterError

CAST_FETCH_LIMIT = 100


class NeynarAdapter(SourceAdapter):
    source = "farcaster"
    record_model = SocialProfileRecord

    def __init__(self, client: HttpJsonClient, *, cast_limit: int = CAST_FETCH_LIMIT) -> None:
        self._client = client
        self._cast_limit = cast_limit

    async def _lookup_user(self, identity: Identity) -> dict[str, Any] | None:
        if identity.is_address:
            body = await self._client.get_json(
                "/user/bulk-by-address", params={"addresses": identity.value}
            )
            users = body.get(identity.value) if isinstance(body, dict) else None
            return users[0] if isinstance(users, list) and users else None
        try:
            body = await self._client.get_json(
                "/user/by_username", params={"username": identity.value}
            )
        except AdapterError as e:
            if e.code == "HTTP_404":
                return None
            raise
        user = body.get("user") if isinstance(body, dict) else None
        return user if isinstance(user, dict) else None

    async def _fetch_casts(self, fid: Any) -> list[Any]:
        body = await self._client.get_json(
            "/feed/user/casts", params={"fid": fid, "limit": self._cast_limit}
        )
        casts = body.get("casts") if isinstance(body, dict) else None
        return casts if isinstance(casts, list) else []

    async def _fetch_payload(self, identity: Identity) -> Any:
        user = await self._lookup_user(identity)
        if user is None:
            return []
        casts = await self._fetch_casts(user.get("fid")) if user.get("fid") is not None else []
        return [{**user, "casts": casts}]

    async def aclose(self) -> None:
        await self._client.aclose()
