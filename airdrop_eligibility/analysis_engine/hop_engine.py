"""
Hop Protocol engine: bridge transfers plus AMM liquidity provision.

Liquidity counts heavily here: LP volume and duration are base factors and
the bonus multiplier (up to x2.0 for duration, x1.5 for size, x1.5 for
position count) rewards long-held, large, diversified positions.
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
    EXCELLENT,
    FAIR,
    GOOD,
    POOR,
    round_half_up,
    table,
)
from airdrop_eligibility.analysis_engine.models import EligibilityFactor, SourceType

FACTOR_BRIDGE_VOLUME = "bridge_volume"
FACTOR_BRIDGE_FREQUENCY = "bridge_frequency"
FACTOR_LP_VOLUME = "lp_volume"
FACTOR_LP_DURATION = "lp_duration"
FACTOR_DIVERSITY = "diversity"

BRIDGE_VOLUME_TABLE = table(
    FACTOR_BRIDGE_VOLUME, 30,
    (500_000, 30, EXCELLENT),
    (100_000, 25, GOOD),
    (25_000, 20, FAIR),
    (5_000, 15, POOR),
)
BRIDGE_FREQUENCY_TABLE = table(
    FACTOR_BRIDGE_FREQUENCY, 20,
    (500, 20, EXCELLENT),
    (150, 15, GOOD),
    (50, 10, FAIR),
    (10, 5, POOR),
)
LP_VOLUME_TABLE = table(
    FACTOR_LP_VOLUME, 25,
    (250_000, 25, EXCELLENT),
    (50_000, 20, GOOD),
    (10_000, 15, FAIR),
    (1_000, 10, POOR),
)
LP_DURATION_TABLE = table(
    FACTOR_LP_DURATION, 15,
    (180, 15, EXCELLENT),
    (90, 11, GOOD),
    (30, 8, FAIR),
    (7, 4, POOR),
)
# Distinct chains + distinct tokens
DIVERSITY_TABLE = table(
    FACTOR_DIVERSITY, 10,
    (10, 10, EXCELLENT),
    (7, 7, GOOD),
    (4, 4, FAIR),
    (2, 2, POOR),
)

HOP_BONUS_TABLES = BonusTables(
    duration_days=((180, 2.0), (90, 1.5), (30, 1.25), (7, 1.1)),
    size_usd=((250_000, 1.5), (50_000, 1.3), (10_000, 1.15), (1_000, 1.05)),
    positions=((5, 1.5), (4, 1.35), (3, 1.2), (2, 1.1)),
)

# Combined-score bands for the Hop protocol tier
PROTOCOL_TIER_BANDS: tuple[tuple[int, str], ...] = (
    (95, "platinum"),
    (80, "gold"),
    (60, "silver"),
    (40, "bronze"),
)


class HopEngine(BridgeEngine):
    source = SourceType.HOP
    bonus_tables = HOP_BONUS_TABLES
    positive_message = "Strong Hop Protocol profile! Maintain your bridging and liquidity activity"
    default_recommendations = (
        "Bridge assets between networks with Hop Protocol",
        "Provide liquidity to Hop AMM pools",
        "Use multiple chains and tokens to build bridge diversity",
    )
    default_risk_factors = ("No Hop Protocol activity detected",)

    def score_factors(
        self, metrics: dict[str, Any], details: dict[str, Any]
    ) -> list[EligibilityFactor]:
        return [
            BRIDGE_VOLUME_TABLE.evaluate(metrics["total_volume"]),
            BRIDGE_FREQUENCY_TABLE.evaluate(metrics["transaction_count"]),
            LP_VOLUME_TABLE.evaluate(metrics["total_liquidity"]),
            LP_DURATION_TABLE.evaluate(
                metrics["avg_lp_duration_days"] if metrics["position_count"] else None
            ),
            DIVERSITY_TABLE.evaluate(metrics["unique_chains"] + metrics["unique_tokens"]),
        ]

    def premium_gate(self, factors: list[EligibilityFactor], metrics: dict[str, Any]) -> bool:
        return metrics["active_positions"] > 0

    def protocol_tier(self, score: int, metrics: dict[str, Any]) -> str:
        for minimum, name in PROTOCOL_TIER_BANDS:
            if score >= minimum:
                return name
        return PROTOCOL_TIER_NONE

    def percentile_rank(self, score: int) -> int:
        return min(100, round_half_up(score * 0.9 + 10))

    def recommend(self, factors: list[EligibilityFactor], metrics: dict[str, Any]) -> list[str]:
        recs: list[str] = []
        if metrics["total_volume"] < 5_000:
            recs.append("Increase bridge volume on Hop - larger cumulative transfers rank higher in distributions")
        if metrics["transaction_count"] < 10:
            recs.append("Bridge more frequently - regular transfers signal genuine protocol usage")
        if metrics["active_positions"] == 0:
            recs.append("Provide liquidity to a Hop AMM pool to earn liquidity-provider eligibility")
        elif metrics["avg_lp_duration_days"] < 30:
            recs.append("Keep liquidity positions open longer - duration multiplies your score")
        if metrics["unique_chains"] + metrics["unique_tokens"] < 4:
            recs.append("Use more chains and tokens when bridging through Hop")
        if not metrics["recent_activity"]:
            recs.append("Bridge again soon - recent activity is weighted in snapshots")
        return recs

    def assess_risks(self, metrics: dict[str, Any], details: dict[str, Any]) -> list[str]:
        risks = common_bridge_risks(metrics, details, "Hop Protocol")
        if metrics["position_count"] > 0 and metrics["active_positions"] == 0:
            risks.append("All liquidity positions closed - LP snapshots usually require open positions")
        return risks
