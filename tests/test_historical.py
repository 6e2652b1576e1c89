"""
Tests for the historical benchmark comparator.
"""

from __future__ import annotations

import pytest

from airdrop_eligibility.analysis_engine.historical import (
    HISTORICAL_BENCHMARKS,
    OVERALL_WEIGHTS,
    AggregateMetrics,
    compare,
    overall_percentile,
    score_benchmark,
)

BENCHMARKS = {b.key: b for b in HISTORICAL_BENCHMARKS}
MID_USER = AggregateMetrics(total_bridge_volume=6_000, total_bridge_transactions=12, unique_chains=3)


def test_benchmark_catalogue():
    """Four past reward events are benchmarked."""
    assert list(BENCHMARKS) == ["arbitrum", "optimism", "polygon", "hop"]
    assert OVERALL_WEIGHTS and sum(OVERALL_WEIGHTS.values()) == pytest.approx(1.0)


def test_no_activity_scores_zero_everywhere():
    """Zero metrics score zero on every benchmark."""
    result = compare(AggregateMetrics())
    for score in result.benchmarks.values():
        assert score.user_score == 0
        assert not score.eligible
        assert score.eligibility_likelihood == 0
        assert score.missing_criteria
    assert result.benchmarks["arbitrum"].missing_criteria == [
        "Insufficient bridge volume",
        "Insufficient transaction count",
        "Use more chains",
    ]
    assert set(result.overall_percentile.values()) == {0}
    assert result.benchmark_insights["improvement_potential"] == 100
    assert result.benchmark_insights["time_to_improve_days"] == 150


def test_arbitrum_mid_user():
    """A mid-size user against the Arbitrum criteria."""
    score = score_benchmark(BENCHMARKS["arbitrum"], MID_USER)
    assert score.user_score == 5
    assert score.eligible
    assert score.percentile_rank == 36
    assert score.eligibility_likelihood == 100
    assert score.missing_criteria == []


def test_polygon_mid_user():
    """A mid-size user against the Polygon criteria."""
    score = score_benchmark(BENCHMARKS["polygon"], MID_USER)
    assert score.user_score == 2
    assert score.eligible
    assert score.percentile_rank == 45


def test_hop_estimate_requires_lp_activity():
    """Without LP volume the Hop estimate is not eligible."""
    score = score_benchmark(BENCHMARKS["hop"], MID_USER)
    assert score.user_score == 2
    assert not score.eligible
    assert score.eligibility_likelihood == 40
    assert score.missing_criteria == ["Start LP activity"]
    assert score.strength_areas == []


def test_hop_estimate_strength_areas():
    """Hop strengths list the criteria that were met."""
    metrics = AggregateMetrics(total_bridge_volume=150_000, total_lp_volume=300_000)
    score = score_benchmark(BENCHMARKS["hop"], metrics)
    assert score.user_score == 16
    assert score.eligible
    assert score.strength_areas == ["High bridge volume", "Strong LP participation"]


def test_overall_percentile_mid_user():
    """The four dimension percentiles blend into one combined value."""
    overall = overall_percentile(MID_USER)
    assert overall == {
        "bridge_activity": 63,
        "lp_activity": 0,
        "cross_chain_diversity": 55,
        "volume_ranking": 40,
        "combined": 46,
    }


def test_small_nonzero_values_get_floor_percentile():
    """Any activity earns at least the floor percentile."""
    overall = overall_percentile(AggregateMetrics(total_bridge_volume=500))
    assert overall["volume_ranking"] == 10
    assert overall["bridge_activity"] == 5


def test_comparative_analysis_and_insights():
    """Gap analysis and insights derive from the same metrics."""
    result = compare(MID_USER)
    vs_avg = result.comparative_analysis["vs_average_user"]
    assert vs_avg == {"volume_multiplier": 0.4, "frequency_multiplier": 1.0, "diversity_multiplier": 1.0}
    assert result.comparative_analysis["vs_eligible_users"]["volume_percentile"] == 40
    insights = result.benchmark_insights
    assert insights["strongest_metrics"] == ["Bridge Activity", "Cross-chain Diversity"]
    assert insights["weakest_metrics"] == ["Volume Ranking", "LP Activity"]
    assert insights["improvement_potential"] == 54
    assert insights["time_to_improve_days"] == 81


def test_compare_is_deterministic():
    """Comparing the same metrics twice gives equal results."""
    assert compare(MID_USER).to_dict() == compare(MID_USER).to_dict()


def test_to_dict_shape():
    """to_dict exposes the four result sections by name."""
    d = compare(MID_USER).to_dict()
    assert set(d) == {"benchmarks", "overall_percentile", "comparative_analysis", "benchmark_insights"}
    assert d["benchmarks"]["optimism"]["name"] == "Optimism (OP)"
