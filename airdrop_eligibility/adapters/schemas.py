"""
Pydantic record schemas for source adapter payloads.

Upstream JSON is loosely typed: numbers arrive as strings, fields go missing,
nested shapes differ between API versions. Every adapter validates its payload
into these models so engines only ever see typed records. Defaulting rules:

- missing / null / "" -> the field default (e.g. chain id -> 1, token -> "ETH")
- numeric strings -> numbers
- unix seconds, unix milliseconds and ISO strings -> timezone-aware datetimes
- unknown bridge transfer status -> "completed"
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)

BASE_CHAIN_ID = 8453
ETHEREUM_CHAIN_ID = 1
DEFAULT_TOKEN = "ETH"
BRIDGE_STATUSES = ("pending", "completed", "failed")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_aware(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class RecordModel(BaseModel):
    """Base for all adapter records: ignore unknown keys, default missing/empty values."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    @field_validator("*", mode="before")
    @classmethod
    def _empty_to_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            field = cls.model_fields.get(info.field_name or "")
            if field is not None and not field.is_required():
                return field.get_default(call_default_factory=True)
        return value


class ChainTransaction(RecordModel):
    """One transaction from the chain indexer (Basescan txlist shape)."""

    hash: str
    from_address: str = Field(default="", validation_alias=AliasChoices("from_address", "from"))
    to_address: str = Field(default="", validation_alias=AliasChoices("to_address", "to"))
    value: int = 0
    """Wei."""
    input: str = "0x"
    timestamp: Optional[datetime] = Field(
        default=None, validation_alias=AliasChoices("timestamp", "timeStamp")
    )
    chain_id: int = Field(default=BASE_CHAIN_ID, validation_alias=AliasChoices("chain_id", "chainId"))
    is_error: bool = Field(default=False, validation_alias=AliasChoices("is_error", "isError"))

    @field_validator("to_address", "from_address")
    @classmethod
    def _lower_address(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("timestamp")
    @classmethod
    def _aware_timestamp(cls, v: datetime | None) -> datetime | None:
        return _as_aware(v)

    @property
    def is_contract_call(self) -> bool:
        return bool(self.to_address) and self.input not in ("", "0x")


class CastRecord(RecordModel):
    """One social-graph post (Neynar cast shape, reactions flattened)."""

    hash: str
    timestamp: Optional[datetime] = None
    likes: int = 0
    recasts: int = 0
    replies: int = 0
    parent_url: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _flatten_reactions(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        out = dict(data)
        reactions = out.get("reactions")
        if isinstance(reactions, dict):
            out.setdefault("likes", reactions.get("likes_count"))
            out.setdefault("recasts", reactions.get("recasts_count"))
        replies = out.get("replies")
        if isinstance(replies, dict):
            out["replies"] = replies.get("count")
        return out

    @field_validator("timestamp")
    @classmethod
    def _aware_timestamp(cls, v: datetime | None) -> datetime | None:
        return _as_aware(v)

    @property
    def engagement(self) -> int:
        return self.likes + self.recasts + self.replies


class SocialProfileRecord(RecordModel):
    """Social-graph user profile with its recent casts attached."""

    fid: int
    username: str
    follower_count: int = 0
    following_count: int = 0
    cast_count: int = 0
    power_badge: bool = False
    verified_addresses: list[str] = Field(
        default_factory=list, validation_alias=AliasChoices("verified_addresses", "verifications")
    )
    verified_accounts: list[str] = Field(default_factory=list)
    """Linked external accounts by platform name (e.g. "x")."""
    neynar_score: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("neynar_score", "score")
    )
    active_status: str = "inactive"
    registered_at: Optional[datetime] = Field(
        default=None,
        validation_alias=AliasChoices("registered_at", "object_timestamp", "timestamp"),
    )
    casts: list[CastRecord] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _lift_nested(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        out = dict(data)
        experimental = out.get("experimental")
        if out.get("score") is None and isinstance(experimental, dict):
            out["neynar_score"] = experimental.get("neynar_user_score")
        accounts = out.get("verified_accounts")
        if isinstance(accounts, list):
            out["verified_accounts"] = [
                a.get("platform", "") if isinstance(a, dict) else a for a in accounts
            ]
        return out

    @field_validator("verified_addresses")
    @classmethod
    def _lower_addresses(cls, v: list[str]) -> list[str]:
        return [a.strip().lower() for a in v if isinstance(a, str) and a.strip()]

    @field_validator("verified_accounts")
    @classmethod
    def _drop_blank_accounts(cls, v: list[str]) -> list[str]:
        return [a for a in v if isinstance(a, str) and a.strip()]

    @field_validator("neynar_score")
    @classmethod
    def _clamp_score(cls, v: float | None) -> float | None:
        return None if v is None else max(0.0, min(1.0, v))

    @field_validator("registered_at")
    @classmethod
    def _aware_registered(cls, v: datetime | None) -> datetime | None:
        return _as_aware(v)

    @property
    def is_active(self) -> bool:
        return self.active_status.strip().lower() == "active"


class ReputationProfileRecord(RecordModel):
    """Content-reputation profile (Kaito yaps shape)."""

    user_id: str
    username: str
    yaps_all: float = 0.0
    yaps_l7d: float = 0.0
    yaps_l30d: float = 0.0
    alignment_score: float = 0.0
    leaderboard_rank: Optional[int] = None
    is_verified: bool = False

    @field_validator("user_id", mode="before")
    @classmethod
    def _id_to_str(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v


class BridgeTransferRecord(RecordModel):
    """One cross-chain transfer. Missing ids become tx_<index>; missing timestamps become now."""

    id: str = Field(default="", validation_alias=AliasChoices("id", "hash", "transferId"))
    from_chain: int = Field(
        default=ETHEREUM_CHAIN_ID,
        validation_alias=AliasChoices("from_chain", "fromChain", "sourceChainId"),
    )
    to_chain: int = Field(
        default=ETHEREUM_CHAIN_ID,
        validation_alias=AliasChoices("to_chain", "toChain", "destinationChainId"),
    )
    from_token: str = Field(
        default=DEFAULT_TOKEN, validation_alias=AliasChoices("from_token", "fromToken", "token")
    )
    to_token: str = Field(
        default=DEFAULT_TOKEN, validation_alias=AliasChoices("to_token", "toToken", "token")
    )
    amount_usd: float = Field(
        default=0.0, validation_alias=AliasChoices("amount_usd", "amountUsd", "amountUSD", "amount")
    )
    timestamp: datetime = Field(default_factory=_utc_now)
    status: Literal["pending", "completed", "failed"] = "completed"
    fee: float = 0.0

    @model_validator(mode="before")
    @classmethod
    def _default_id(cls, data: Any, info: ValidationInfo) -> Any:
        if isinstance(data, dict) and not any(data.get(k) for k in ("id", "hash", "transferId")):
            index = (info.context or {}).get("index", 0)
            data = {**data, "id": f"tx_{index}"}
        return data

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, v: Any) -> str:
        text = str(v or "").strip().lower()
        return text if text in BRIDGE_STATUSES else "completed"

    @field_validator("from_token", "to_token")
    @classmethod
    def _upper_token(cls, v: str) -> str:
        return v.strip().upper() or DEFAULT_TOKEN

    @field_validator("amount_usd", "fee")
    @classmethod
    def _non_negative(cls, v: float) -> float:
        return max(0.0, v)

    @field_validator("timestamp")
    @classmethod
    def _aware_timestamp(cls, v: datetime) -> datetime:
        return _as_aware(v) or _utc_now()


class LiquidityPositionRecord(RecordModel):
    """One liquidity-provision position on a bridge protocol."""

    pool: str = ""
    chain_id: int = Field(default=ETHEREUM_CHAIN_ID, validation_alias=AliasChoices("chain_id", "chainId"))
    token: str = DEFAULT_TOKEN
    liquidity_usd: float = Field(
        default=0.0, validation_alias=AliasChoices("liquidity_usd", "liquidityUsd", "liquidity")
    )
    opened_at: datetime = Field(
        default_factory=_utc_now, validation_alias=AliasChoices("opened_at", "openedAt", "timestamp")
    )
    closed_at: Optional[datetime] = Field(
        default=None, validation_alias=AliasChoices("closed_at", "closedAt")
    )

    @field_validator("liquidity_usd")
    @classmethod
    def _non_negative(cls, v: float) -> float:
        return max(0.0, v)

    @field_validator("opened_at", "closed_at")
    @classmethod
    def _aware(cls, v: datetime | None) -> datetime | None:
        return _as_aware(v)

    @property
    def is_active(self) -> bool:
        return self.closed_at is None

    def duration_days(self, now: datetime) -> float:
        end = self.closed_at or now
        return max(0.0, (end - self.opened_at).total_seconds() / 86400.0)
