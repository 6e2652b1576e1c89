"""
Orbiter Finance engine: cross-rollup bridge transfers.

Weighted toward volume (40), monthly frequency (25), chain and token diversity
(20) and recency (15). Orbiter exposes no liquidity positions for ordinary
users, so the bonus multiplier is usually 1.0; maker positions, when an
adapter supplies them, earn a smaller bonus than on Hop.
"""

from __future__ import annotations

from typing import Any

from airdrop_eligibility.analysis_engine.bridge import (
    PROTOCOL_TIER_NONE,
    BonusTables,
    BridgeEngine,
    common_bridge_risks,
)
from airdrop_eligibility.analysis_engine.factors import (
    ANY_POSITIVE,
    EXCELLENT,
    FAIR,
    GOOD,
    POOR,
    round_half_up,
    table,
)
from airdrop_eligibility.analysis_engine.models import EligibilityFactor, SourceType

FACTOR_VOLUME = "volume"
FACTOR_FREQUENCY = "frequency"
FACTOR_CHAIN_DIVERSITY = "chain_diversity"
FACTOR_TOKEN_DIVERSITY = "token_diversity"
FACTOR_RECENCY = "recency"

VOLUME_TABLE = table(
    FACTOR_VOLUME, 40,
    (100_000, 40, EXCELLENT),
    (50_000, 32, GOOD),
    (10_000, 24, FAIR),
    (1_000, 16, POOR),
    (ANY_POSITIVE, 8, POOR),
)
# Transfers per month since the first transfer (minimum one month)
FREQUENCY_TABLE = table(
    FACTOR_FREQUENCY, 25,
    (5, 25, EXCELLENT),
    (3, 19, GOOD),
    (1, 13, FAIR),
    (ANY_POSITIVE, 6, POOR),
)
CHAIN_DIVERSITY_TABLE = table(
    FACTOR_CHAIN_DIVERSITY, 12,
    (8, 12, EXCELLENT),
    (6, 9, GOOD),
    (4, 6, FAIR),
    (2, 3, POOR),
)
TOKEN_DIVERSITY_TABLE = table(
    FACTOR_TOKEN_DIVERSITY, 8,
    (5, 8, EXCELLENT),
    (3, 5, GOOD),
    (2, 3, FAIR),
)
# Days since the last transfer; lower is better
RECENCY_TABLE = table(
    FACTOR_RECENCY, 15,
    (30, 15, EXCELLENT),
    (60, 10, GOOD),
    (90, 5, FAIR),
    lower_is_better=True,
)

ORBITER_BONUS_TABLES = BonusTables(
    duration_days=((180, 1.3), (90, 1.2), (30, 1.1), (7, 1.05)),
    size_usd=((250_000, 1.3), (50_000, 1.2), (10_000, 1.1), (1_000, 1.05)),
    positions=((5, 1.2), (4, 1.15), (3, 1.1), (2, 1.05)),
)

# (name, min volume, min transfers, min chains); all three must be met
PROTOCOL_TIER_THRESHOLDS: tuple[tuple[str, float, int, int], ...] = (
    ("platinum", 100_000, 100, 8),
    ("gold", 50_000, 50, 6),
    ("silver", 10_000, 20, 4),
    ("bronze", 1_000, 5, 2),
)
PREMIUM_MIN_CHAINS = 4


class OrbiterEngine(BridgeEngine):
    source = SourceType.ORBITER
    bonus_tables = ORBITER_BONUS_TABLES
    positive_message = "Excellent Orbiter Finance activity! Keep bridging across networks"
    default_recommendations = (
        "Bridge assets with Orbiter Finance to start building eligibility",
        "Use Orbiter across multiple networks",
        "Bridge regularly to build a consistent history",
    )
    default_risk_factors = ("No Orbiter Finance activity detected",)

    def score_factors(
        self, metrics: dict[str, Any], details: dict[str, Any]
    ) -> list[EligibilityFactor]:
        return [
            VOLUME_TABLE.evaluate(metrics["total_volume"]),
            FREQUENCY_TABLE.evaluate(metrics["tx_per_month"]),
            CHAIN_DIVERSITY_TABLE.evaluate(metrics["unique_chains"]),
            TOKEN_DIVERSITY_TABLE.evaluate(metrics["unique_tokens"]),
            RECENCY_TABLE.evaluate(metrics["days_since_last"]),
        ]

    def premium_gate(self, factors: list[EligibilityFactor], metrics: dict[str, Any]) -> bool:
        return metrics["unique_chains"] >= PREMIUM_MIN_CHAINS

    def protocol_tier(self, score: int, metrics: dict[str, Any]) -> str:
        for name, volume, count, chains in PROTOCOL_TIER_THRESHOLDS:
            if (
                metrics["total_volume"] >= volume
                and metrics["transaction_count"] >= count
                and metrics["unique_chains"] >= chains
            ):
                return name
        return PROTOCOL_TIER_NONE

    def percentile_rank(self, score: int) -> int:
        return min(100, round_half_up(score * 0.85 + 15))

    def recommend(self, factors: list[EligibilityFactor], metrics: dict[str, Any]) -> list[str]:
        recs: list[str] = []
        if metrics["total_volume"] < 1_000:
            recs.append("Increase bridge volume through Orbiter Finance")
        if metrics["tx_per_month"] < 1:
            recs.append("Bridge with Orbiter at least once a month")
        if metrics["unique_chains"] < 4:
            recs.append("Bridge across more networks - Orbiter rewards multi-chain usage")
        if metrics["unique_tokens"] < 2:
            recs.append("Bridge more than one token type")
        if not metrics["recent_activity"]:
            recs.append("Recent Orbiter activity is missing - bridge again to stay snapshot-eligible")
        if metrics["transaction_count"] >= 2 and metrics["volume_consistency"] < 0.3:
            recs.append("Keep transfer sizes consistent - erratic amounts can look like farming")
        return recs

    def assess_risks(self, metrics: dict[str, Any], details: dict[str, Any]) -> list[str]:
        return common_bridge_risks(metrics, details, "Orbiter Finance")
