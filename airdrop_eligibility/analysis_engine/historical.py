"""
Historical benchmark comparator.

Scores aggregate bridge metrics against static snapshots of past airdrop
criteria (Arbitrum, Optimism, Polygon, estimated Hop) and derives an overall
percentile from four step-banded dimensions. Pure: no I/O, no hidden state;
the same AggregateMetrics always produce the same result.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from airdrop_eligibility.analysis_engine.factors import round_half_up, safe_ratio, step_value

METRIC_VOLUME = "total_bridge_volume"
METRIC_TRANSACTIONS = "total_bridge_transactions"
METRIC_LP_VOLUME = "total_lp_volume"
METRIC_CHAINS = "unique_chains"

# Overall percentile blend; weights sum to 1.0
OVERALL_WEIGHTS: dict[str, float] = {
    "bridge_activity": 0.35,
    "cross_chain_diversity": 0.25,
    "volume_ranking": 0.25,
    "lp_activity": 0.15,
}

VOLUME_PERCENTILE_BANDS = ((16_000, 90), (8_000, 75), (3_000, 50), (1_500, 25))
FREQUENCY_PERCENTILE_BANDS = ((16, 90), (8, 75), (5, 50), (2.5, 25))
LP_PERCENTILE_BANDS = ((45_000, 95), (30_000, 85), (15_000, 70), (7_500, 50), (1_500, 25))
CHAIN_PERCENTILE_BANDS = ((6, 95), (5, 85), (4, 70), (3, 55), (2, 35), (1, 15))
VOLUME_RANKING_BANDS = (
    (100_000, 95),
    (50_000, 85),
    (25_000, 70),
    (10_000, 55),
    (5_000, 40),
    (1_000, 25),
)
# Anything above zero that misses every band
NONZERO_FLOOR_PERCENTILE = 10

AVERAGE_USER_VOLUME = 15_000
AVERAGE_USER_TRANSACTIONS = 12
AVERAGE_USER_CHAINS = 3
DAYS_PER_IMPROVEMENT_POINT = 1.5


@dataclass(frozen=True)
class AggregateMetrics:
    """Cross-bridge totals the comparator works from."""

    total_bridge_volume: float = 0.0
    total_bridge_transactions: int = 0
    total_lp_volume: float = 0.0
    avg_lp_duration_days: float = 0.0
    unique_chains: int = 0
    unique_tokens: int = 0

    def value(self, metric: str) -> float:
        return float(getattr(self, metric))

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_bridge_volume": self.total_bridge_volume,
            "total_bridge_transactions": self.total_bridge_transactions,
            "total_lp_volume": self.total_lp_volume,
            "avg_lp_duration_days": self.avg_lp_duration_days,
            "unique_chains": self.unique_chains,
            "unique_tokens": self.unique_tokens,
        }


@dataclass(frozen=True)
class Criterion:
    """
    One scored criterion of a past airdrop: min / median / top-decile thresholds
    and the points each band awards.
    """

    metric: str
    minimum: float
    median: float
    top10: float
    points: tuple[float, float, float]
    """Points for (top10, median, minimum)."""
    missing_message: str
    strength_messages: tuple[str, str] | None = None
    """Strength labels for (top10, median); None when the event did not report strengths."""

    def score(self, value: float) -> tuple[float, int | None]:
        """(points, band index 0=top10 1=median 2=min) or (0, None) below minimum."""
        for index, threshold in enumerate((self.top10, self.median, self.minimum)):
            if value >= threshold:
                return self.points[index], index
        return 0.0, None


@dataclass(frozen=True)
class HistoricalBenchmark:
    """Static snapshot of one past reward event's criteria."""

    key: str
    name: str
    date: str
    weight: float
    criteria: tuple[Criterion, ...]
    min_score_for_eligibility: float
    max_achievable_points: float


@dataclass
class BenchmarkScore:
    benchmark: str
    name: str
    user_score: int
    required_score: float
    eligible: bool
    percentile_rank: int
    eligibility_likelihood: int
    missing_criteria: list[str] = field(default_factory=list)
    strength_areas: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "benchmark": self.benchmark,
            "name": self.name,
            "user_score": self.user_score,
            "required_score": self.required_score,
            "eligible": self.eligible,
            "percentile_rank": self.percentile_rank,
            "eligibility_likelihood": self.eligibility_likelihood,
            "missing_criteria": list(self.missing_criteria),
            "strength_areas": list(self.strength_areas),
        }


@dataclass
class HistoricalComparisonResult:
    benchmarks: dict[str, BenchmarkScore]
    overall_percentile: dict[str, int]
    comparative_analysis: dict[str, Any]
    benchmark_insights: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {
            "benchmarks": {k: v.to_dict() for k, v in self.benchmarks.items()},
            "overall_percentile": dict(self.overall_percentile),
            "comparative_analysis": self.comparative_analysis,
            "benchmark_insights": self.benchmark_insights,
        }


def _volume_criterion(minimum: float, median: float, top10: float, weight: float) -> Criterion:
    return Criterion(
        metric=METRIC_VOLUME,
        minimum=minimum,
        median=median,
        top10=top10,
        points=(weight * 10, weight * 6, weight * 3),
        missing_message="Insufficient bridge volume",
    )


def _count_criterion(minimum: float, median: float, top10: float) -> Criterion:
    return Criterion(
        metric=METRIC_TRANSACTIONS,
        minimum=minimum,
        median=median,
        top10=top10,
        points=(4, 2, 1),
        missing_message="Insufficient transaction count",
    )


HISTORICAL_BENCHMARKS: tuple[HistoricalBenchmark, ...] = (
    HistoricalBenchmark(
        key="arbitrum",
        name="Arbitrum (ARB)",
        date="2023-03-23",
        weight=0.4,
        criteria=(
            _volume_criterion(1_000, 5_000, 50_000, 0.4),
            _count_criterion(5, 15, 100),
            Criterion(METRIC_CHAINS, 2, 3, 5, (3, 2, 1), "Use more chains"),
        ),
        min_score_for_eligibility=3,
        max_achievable_points=15,
    ),
    HistoricalBenchmark(
        key="optimism",
        name="Optimism (OP)",
        date="2022-05-31",
        weight=0.35,
        criteria=(
            _volume_criterion(500, 2_500, 25_000, 0.35),
            _count_criterion(3, 10, 50),
        ),
        min_score_for_eligibility=1,
        max_achievable_points=20,
    ),
    HistoricalBenchmark(
        key="polygon",
        name="Polygon (MATIC)",
        date="2021-06-01",
        weight=0.3,
        criteria=(_volume_criterion(100, 1_000, 10_000, 0.3),),
        min_score_for_eligibility=1,
        max_achievable_points=4,
    ),
    HistoricalBenchmark(
        key="hop",
        name="Hop Protocol (HOP) - Estimated",
        date="2024-Q2-Estimated",
        weight=0.25,
        criteria=(
            Criterion(
                METRIC_VOLUME, 2_500, 10_000, 100_000, (8, 5, 2),
                "Increase bridge volume",
                ("High bridge volume", "Good bridge volume"),
            ),
            Criterion(
                METRIC_LP_VOLUME, 5_000, 25_000, 250_000, (8, 5, 2),
                "Start LP activity",
                ("Strong LP participation", "Good LP participation"),
            ),
        ),
        min_score_for_eligibility=5,
        max_achievable_points=20,
    ),
)


def score_benchmark(benchmark: HistoricalBenchmark, metrics: AggregateMetrics) -> BenchmarkScore:
    """Sum criterion points; eligible when the unrounded total reaches the required score."""
    total = 0.0
    missing: list[str] = []
    strengths: list[str] = []
    for criterion in benchmark.criteria:
        points, band = criterion.score(metrics.value(criterion.metric))
        total += points
        if band is None:
            missing.append(criterion.missing_message)
        elif criterion.strength_messages is not None and band < 2:
            strengths.append(criterion.strength_messages[band])
    required = benchmark.min_score_for_eligibility
    return BenchmarkScore(
        benchmark=benchmark.key,
        name=benchmark.name,
        user_score=round_half_up(total),
        required_score=required,
        eligible=total >= required,
        percentile_rank=min(100, round_half_up(safe_ratio(total, benchmark.max_achievable_points) * 100)),
        eligibility_likelihood=min(100, round_half_up(safe_ratio(total, required) * 100)),
        missing_criteria=missing,
        strength_areas=strengths,
    )


def _banded(value: float, bands: tuple[tuple[float, int], ...]) -> int:
    if value <= 0:
        return 0
    return int(step_value(value, bands, NONZERO_FLOOR_PERCENTILE))


def overall_percentile(metrics: AggregateMetrics) -> dict[str, int]:
    """Four dimension percentiles and their weighted blend (combined)."""
    volume = _banded(metrics.total_bridge_volume, VOLUME_PERCENTILE_BANDS)
    frequency = _banded(metrics.total_bridge_transactions, FREQUENCY_PERCENTILE_BANDS)
    chains = metrics.unique_chains
    dims = {
        "bridge_activity": round_half_up((volume + frequency) / 2),
        "lp_activity": _banded(metrics.total_lp_volume, LP_PERCENTILE_BANDS),
        "cross_chain_diversity": int(step_value(chains, CHAIN_PERCENTILE_BANDS, 0)),
        "volume_ranking": _banded(metrics.total_bridge_volume, VOLUME_RANKING_BANDS),
    }
    dims["combined"] = round_half_up(sum(dims[name] * w for name, w in OVERALL_WEIGHTS.items()))
    return dims


def comparative_analysis(metrics: AggregateMetrics, overall: dict[str, int]) -> dict[str, Any]:
    def multiple(value: float, average: float) -> float:
        return round_half_up(safe_ratio(value, average) * 10) / 10

    return {
        "vs_average_user": {
            "volume_multiplier": multiple(metrics.total_bridge_volume, AVERAGE_USER_VOLUME),
            "frequency_multiplier": multiple(metrics.total_bridge_transactions, AVERAGE_USER_TRANSACTIONS),
            "diversity_multiplier": multiple(metrics.unique_chains, AVERAGE_USER_CHAINS),
        },
        "vs_eligible_users": {
            "volume_percentile": overall["volume_ranking"],
            "frequency_percentile": overall["bridge_activity"],
            "diversity_percentile": overall["cross_chain_diversity"],
        },
    }


def benchmark_insights(overall: dict[str, int]) -> dict[str, Any]:
    named = [
        ("Bridge Activity", overall["bridge_activity"]),
        ("LP Activity", overall["lp_activity"]),
        ("Cross-chain Diversity", overall["cross_chain_diversity"]),
        ("Volume Ranking", overall["volume_ranking"]),
    ]
    ranked = sorted(named, key=lambda item: item[1], reverse=True)
    potential = max(0, 100 - overall["combined"])
    return {
        "strongest_metrics": [name for name, _ in ranked[:2]],
        "weakest_metrics": [name for name, _ in ranked[-2:]],
        "improvement_potential": potential,
        "time_to_improve_days": round_half_up(potential * DAYS_PER_IMPROVEMENT_POINT),
    }


def compare(
    metrics: AggregateMetrics,
    benchmarks: tuple[HistoricalBenchmark, ...] = HISTORICAL_BENCHMARKS,
) -> HistoricalComparisonResult:
    """Compare aggregate metrics against every historical benchmark."""
    overall = overall_percentile(metrics)
    return HistoricalComparisonResult(
        benchmarks={b.key: score_benchmark(b, metrics) for b in benchmarks},
        overall_percentile=overall,
        comparative_analysis=comparative_analysis(metrics, overall),
        benchmark_insights=benchmark_insights(overall),
    )
