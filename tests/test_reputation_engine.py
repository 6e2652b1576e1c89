"""
Tests for the content-reputation engine (yap score, weekly activity, alignment, rank).
"""

from __future__ import annotations

import asyncio

from airdrop_eligibility.analysis_engine.identity import classify_identity
from airdrop_eligibility.analysis_engine.models import Tier
from airdrop_eligibility.analysis_engine.reputation import (
    ReputationEngine,
    community_standing,
    estimate_reach,
    influence_score,
)
from fakes import ADDRESS, HANDLE, fixed_clock, reputation_adapter

TOP_YAPPER = {
    "user_id": 42,
    "username": HANDLE,
    "yaps_all": "600",
    "yaps_l7d": 25,
    "yaps_l30d": 90,
    "alignment_score": 85,
    "leaderboard_rank": 5,
    "is_verified": True,
}


def _analyze(payload, identity=HANDLE):
    adapter = reputation_adapter(payload)
    engine = ReputationEngine(adapter, clock=fixed_clock)
    return asyncio.run(engine.analyze(classify_identity(identity))), adapter


def test_raw_total_above_100_is_clamped():
    """A raw total of 110 is clamped to 100."""
    result, _ = _analyze([TOP_YAPPER])
    assert sum(f.score for f in result.factors) == 110
    assert result.score == 100
    assert result.tier is Tier.PREMIUM
    assert result.recommendations == ("Excellent Kaito engagement! Keep up the great work!",)
    assert result.details["user_id"] == "42"


def test_unverified_top_profile_is_not_premium():
    """Without verification a top score stays in the high tier."""
    result, _ = _analyze([{**TOP_YAPPER, "is_verified": False}])
    assert result.score == 100
    assert result.tier is Tier.HIGH
    assert "Unverified Kaito account" in result.risk_factors


def test_mid_profile_scores_and_recommends():
    """A mid profile scores each factor and gets targeted recommendations."""
    result, _ = _analyze([
        {"user_id": "7", "username": HANDLE, "yaps_all": 120, "yaps_l7d": 6, "alignment_score": 0}
    ])
    assert result.factor("presence").score == 15
    assert result.factor("yap_score").score == 20
    assert result.factor("weekly_yaps").score == 10
    assert result.factor("alignment").score == 0
    assert result.factor("leaderboard_rank").score == 0
    assert result.factor("verified").score == 0
    assert result.score == 45
    assert result.tier is Tier.MEDIUM
    assert "Improve content alignment by focusing on quality crypto discussions" in result.recommendations
    assert "Aim for higher leaderboard ranking through consistent engagement" in result.recommendations
    assert len(result.recommendations) <= 6


def test_small_positive_yaps_earn_minimum_band():
    """Any positive yap score earns the lowest band."""
    result, _ = _analyze([{"user_id": "7", "username": HANDLE, "yaps_all": 0.5}])
    assert result.factor("yap_score").score == 5
    assert result.factor("weekly_yaps").score == 0
    assert "No recent Kaito activity - yap snapshots favour consistent contributors" in result.risk_factors


def test_address_short_circuits_without_adapter_call():
    """Addresses are not looked up on Kaito."""
    result, adapter = _analyze([TOP_YAPPER], identity=ADDRESS)
    assert adapter.calls == 0
    assert not result.has_profile
    assert result.score == 0
    assert len(result.recommendations) == 4


def test_missing_profile_returns_defaults():
    """An empty reply is the no-profile default, not a failure."""
    result, adapter = _analyze([])
    assert adapter.calls == 1
    assert not result.has_profile
    assert result.succeeded
    assert result.risk_factors == ("No Kaito presence detected",)


# --- influence, reach and community standing ---


def test_influence_metrics_for_top_profile():
    """Yap 600, alignment 85 and rank 5 blend to 81 influence and an influencer standing."""
    result, _ = _analyze([TOP_YAPPER])
    assert result.metrics["influence_score"] == 81
    assert result.metrics["estimated_reach"] == 12000
    assert result.details["community_standing"] == "influencer"


def test_influence_metrics_for_unranked_profile():
    """Without a rank or alignment only the yap and engagement shares count."""
    result, _ = _analyze([{"user_id": "7", "username": HANDLE, "yaps_all": 120}])
    assert result.metrics["influence_score"] == 23
    assert result.metrics["estimated_reach"] == 2400
    assert result.details["community_standing"] == "lurker"


def test_influence_score_is_capped_at_100():
    """A saturated profile never exceeds 100 influence."""
    assert influence_score(1000, 100, 1) == 100
    assert influence_score(5000, 100, 1) == 100
    assert influence_score(0, 0, None) == 0


def test_rank_share_ignored_for_zero_or_deep_ranks():
    """Rank 0 and ranks past 1000 add nothing to influence."""
    base = influence_score(100, 40, None)
    assert influence_score(100, 40, 0) == base
    assert influence_score(100, 40, 1500) == base
    assert influence_score(100, 40, 500) == base + 5


def test_estimate_reach_engagement_boost():
    """Reach is ten per yap scaled by 1 + engagement rate / 10, rate capped at 10."""
    assert estimate_reach(0) == 0
    assert estimate_reach(50) == 750
    assert estimate_reach(300) == 6000


def test_community_standing_boundaries():
    """Standing bands start at 80, 60 and 30; anything lower is a lurker."""
    assert community_standing(100) == "influencer"
    assert community_standing(80) == "influencer"
    assert community_standing(79) == "active"
    assert community_standing(60) == "active"
    assert community_standing(59) == "casual"
    assert community_standing(30) == "casual"
    assert community_standing(29) == "lurker"
    assert community_standing(0) == "lurker"
