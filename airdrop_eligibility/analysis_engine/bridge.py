"""
Shared bridge-engine machinery: transfer and liquidity metrics plus the bonus multiplier.

A bridge engine scores transfer activity and liquidity provision with step
factors into a base score, then multiplies it by a bonus >= 1.0 compounded from
three tables (average position duration, total position size, number of active
positions). The product is clamped to 100 after multiplying.
"""

from __future__ import annotations

import asyncio
import statistics
from abc import abstractmethod
from collections import Counter, defaultdict
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Callable

from airdrop_eligibility.adapters.base import BridgeAdapter
from airdrop_eligibility.adapters.schemas import BridgeTransferRecord, LiquidityPositionRecord
from airdrop_eligibility.analysis_engine.cache import ResultCache
from airdrop_eligibility.analysis_engine.engine import ScoringEngine, utc_now
from airdrop_eligibility.analysis_engine.factors import (
    clamp_score,
    safe_ratio,
    step_value,
)
from airdrop_eligibility.analysis_engine.models import (
    EligibilityFactor,
    Identity,
    SourceResult,
)

RECENT_WINDOW_DAYS = 30
DORMANT_AFTER_DAYS = 90
FAILED_SHARE_RISK = 0.25
REGULAR_USER_TX_PER_MONTH = 1.0
REGULAR_USER_VOLUME = 5000.0
TOP_ROUTES = 5

PROTOCOL_TIER_NONE = "none"


@dataclass(frozen=True)
class BridgeActivity:
    """Records for one bridge analysis: transfer history and liquidity positions."""

    transfers: tuple[BridgeTransferRecord, ...]
    positions: tuple[LiquidityPositionRecord, ...] = ()


@dataclass(frozen=True)
class BonusTables:
    """Descending (threshold, multiplier) steps; each table contributes at most one step."""

    duration_days: tuple[tuple[float, float], ...]
    size_usd: tuple[tuple[float, float], ...]
    positions: tuple[tuple[float, float], ...]

    def __post_init__(self) -> None:
        for steps in (self.duration_days, self.size_usd, self.positions):
            if any(m < 1.0 for _, m in steps):
                raise ValueError("bonus multipliers must be >= 1.0")

    def multiplier(self, avg_duration_days: float, total_liquidity: float, active_positions: int) -> float:
        """Compounded bonus; exactly 1.0 when no threshold is met."""
        return (
            step_value(avg_duration_days, self.duration_days, 1.0)
            * step_value(total_liquidity, self.size_usd, 1.0)
            * step_value(active_positions, self.positions, 1.0)
        )


def volume_consistency(amounts: list[float]) -> float:
    """1 - CV/2 clamped to [0, 1]; 0 for fewer than two transfers or zero mean."""
    if len(amounts) < 2:
        return 0.0
    mean = statistics.fmean(amounts)
    if mean <= 0:
        return 0.0
    cv = statistics.pstdev(amounts) / mean
    return max(0.0, min(1.0, 1 - cv / 2))


def transfer_metrics(transfers: list[BridgeTransferRecord], now: datetime) -> dict[str, Any]:
    settled = [t for t in transfers if t.status != "failed"]
    chains = {t.from_chain for t in settled} | {t.to_chain for t in settled}
    tokens = {t.from_token for t in settled} | {t.to_token for t in settled}
    stamps = sorted(t.timestamp for t in settled)
    days_since_first = (now - stamps[0]).total_seconds() / 86400.0 if stamps else 0.0
    days_since_last = (now - stamps[-1]).total_seconds() / 86400.0 if stamps else None
    volume = sum(t.amount_usd for t in settled)
    tx_per_month = safe_ratio(len(settled), max(days_since_first / 30.0, 1.0))
    return {
        "total_volume": volume,
        "transaction_count": len(settled),
        "failed_transfer_count": len(transfers) - len(settled),
        "unique_chains": len(chains),
        "unique_tokens": len(tokens),
        "average_transfer": safe_ratio(volume, len(settled)),
        "total_fees": sum(t.fee for t in settled),
        "days_since_first": round(days_since_first, 2),
        "days_since_last": None if days_since_last is None else round(days_since_last, 2),
        "tx_per_month": round(tx_per_month, 4),
        "volume_consistency": round(volume_consistency([t.amount_usd for t in settled]), 4),
        "is_regular_user": tx_per_month >= REGULAR_USER_TX_PER_MONTH and volume >= REGULAR_USER_VOLUME,
        "recent_activity": days_since_last is not None and days_since_last <= RECENT_WINDOW_DAYS,
    }


def liquidity_metrics(positions: list[LiquidityPositionRecord], now: datetime) -> dict[str, Any]:
    durations = [p.duration_days(now) for p in positions]
    return {
        "position_count": len(positions),
        "active_positions": sum(1 for p in positions if p.is_active),
        "total_liquidity": sum(p.liquidity_usd for p in positions),
        "avg_lp_duration_days": round(safe_ratio(sum(durations), len(durations)), 2),
    }


def activity_patterns(transfers: list[BridgeTransferRecord]) -> dict[str, Any]:
    """Route, chain, token and monthly breakdowns of settled transfers."""
    settled = [t for t in transfers if t.status != "failed"]
    routes: dict[str, dict[str, float]] = defaultdict(lambda: {"count": 0, "volume": 0.0})
    monthly: dict[str, dict[str, float]] = defaultdict(lambda: {"count": 0, "volume": 0.0})
    chains: Counter[int] = Counter()
    tokens: Counter[str] = Counter()
    for t in settled:
        route = routes[f"{t.from_chain}->{t.to_chain}"]
        route["count"] += 1
        route["volume"] += t.amount_usd
        month = monthly[t.timestamp.strftime("%Y-%m")]
        month["count"] += 1
        month["volume"] += t.amount_usd
        chains[t.from_chain] += 1
        chains[t.to_chain] += 1
        tokens[t.from_token] += 1
    top_routes = sorted(routes.items(), key=lambda kv: (-kv[1]["count"], -kv[1]["volume"], kv[0]))
    return {
        "top_routes": [
            {"route": name, "count": int(r["count"]), "volume": r["volume"]}
            for name, r in top_routes[:TOP_ROUTES]
        ],
        "route_count": len(routes),
        "chain_distribution": {str(k): v for k, v in sorted(chains.items())},
        "token_distribution": dict(sorted(tokens.items())),
        "monthly_activity": {k: dict(v) for k, v in sorted(monthly.items())},
    }


def common_bridge_risks(metrics: dict[str, Any], details: dict[str, Any], protocol: str) -> list[str]:
    risks: list[str] = []
    idle = metrics["days_since_last"]
    if idle is not None and idle > DORMANT_AFTER_DAYS:
        risks.append(f"No {protocol} activity in the last {DORMANT_AFTER_DAYS} days")
    attempted = metrics["transaction_count"] + metrics["failed_transfer_count"]
    if safe_ratio(metrics["failed_transfer_count"], attempted) > FAILED_SHARE_RISK:
        risks.append("High share of failed bridge transfers")
    if metrics["transaction_count"] >= 5 and details.get("route_count") == 1:
        risks.append("All transfers use a single route - may look like automated farming")
    return risks


class BridgeEngine(ScoringEngine):
    """
    Base for bridge protocol engines.

    Subclasses provide factor tables, bonus tables, the protocol tier rule and
    the percentile blend.
    """

    requires_address = True
    bonus_tables: BonusTables

    def __init__(
        self,
        adapter: BridgeAdapter,
        cache: ResultCache | None = None,
        *,
        timeout_sec: float = 30.0,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        super().__init__(adapter, cache, timeout_sec=timeout_sec, clock=clock)
        self._bridge_adapter = adapter

    async def fetch(self, identity: Identity) -> BridgeActivity:
        tasks = (
            asyncio.ensure_future(self._bridge_adapter.fetch_records(identity)),
            asyncio.ensure_future(self._bridge_adapter.fetch_positions(identity)),
        )
        try:
            transfers, positions = await asyncio.gather(*tasks)
        finally:
            # a failed sibling must not leave the other request running
            for task in tasks:
                if not task.done():
                    task.cancel()
        return BridgeActivity(transfers=tuple(transfers), positions=tuple(positions))

    def derive(self, raw: BridgeActivity, now: datetime) -> tuple[dict[str, Any], dict[str, Any]]:
        transfers = list(raw.transfers)
        positions = list(raw.positions)
        metrics = transfer_metrics(transfers, now)
        metrics.update(liquidity_metrics(positions, now))
        metrics["bonus_multiplier"] = self.bonus_multiplier(metrics)
        return metrics, activity_patterns(transfers)

    def has_profile(self, raw: BridgeActivity, metrics: dict[str, Any]) -> bool:
        return bool(raw.transfers) or bool(raw.positions)

    def bonus_multiplier(self, metrics: dict[str, Any]) -> float:
        """Compounded liquidity bonus; 1.0 without positions."""
        if metrics["position_count"] == 0:
            return 1.0
        return round(
            self.bonus_tables.multiplier(
                metrics["avg_lp_duration_days"],
                metrics["total_liquidity"],
                metrics["active_positions"],
            ),
            6,
        )

    def combine(self, factors: list[EligibilityFactor], metrics: dict[str, Any]) -> int:
        base = sum(f.weighted_score for f in factors)
        # clamp after the multiplier
        return clamp_score(base * metrics["bonus_multiplier"])

    def build_result(self, raw: Any) -> SourceResult:
        result = super().build_result(raw)
        if not result.has_profile:
            return result
        base = sum(f.weighted_score for f in result.factors)
        metrics = {**result.metrics, "base_score": clamp_score(base)}
        details = {
            **result.details,
            "protocol_tier": self.protocol_tier(result.score, metrics),
            "percentile_rank": self.percentile_rank(result.score),
        }
        return replace(result, metrics=metrics, details=details)

    @abstractmethod
    def protocol_tier(self, score: int, metrics: dict[str, Any]) -> str:
        """Protocol-specific tier name for a final score."""

    @abstractmethod
    def percentile_rank(self, score: int) -> int:
        """Estimated percentile among protocol users for a final score."""
