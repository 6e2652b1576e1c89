"""
Tests for the social-graph engine: account age, engagement, social signals,
verification and activity factors, plus the premium verification gate.
"""

from __future__ import annotations

import asyncio

from airdrop_eligibility.adapters.schemas import CastRecord
from airdrop_eligibility.analysis_engine.identity import classify_identity
from airdrop_eligibility.analysis_engine.models import FactorStatus, Tier
from airdrop_eligibility.analysis_engine.social_graph import (
    SocialGraphEngine,
    activity_level,
    casting_streak,
    quality_tier,
    verification_level,
)
from fakes import ADDRESS, HANDLE, NOW, cast, fixed_clock, profile, social_adapter

VERIFIED = "0xABCDEF0123456789ABCDEF0123456789ABCDEF01"


def _analyze(payload, identity=HANDLE):
    adapter = social_adapter(payload)
    engine = SocialGraphEngine(adapter, clock=fixed_clock)
    return asyncio.run(engine.analyze(classify_identity(identity)))


def _engaged_casts(n, channels):
    return [
        cast(i, days_ago=0.5 + i % 20, likes=8, recasts=2, replies=1, channel=f"https://warpcast.com/~/channel/c{i % channels}")
        for i in range(n)
    ]


def test_established_profile_without_badge_is_high_not_premium():
    """400 posts, 40 recent across 4 channels, verified address, Neynar score 0.85."""
    result = _analyze([
        profile(casts=_engaged_casts(40, 4), cast_count=400, score=0.85, verifications=[VERIFIED])
    ])
    signals = result.factor("social_signals")
    assert signals.score == 30
    assert signals.status is FactorStatus.EXCELLENT
    assert result.factor("account_age").score == 20
    assert result.factor("engagement").score == 20
    assert result.factor("verification").score == 12
    assert result.factor("activity").score == 15
    assert result.score == 97
    assert result.tier is Tier.HIGH


def test_power_badge_with_verified_address_unlocks_premium():
    """Power badge plus a verified address reaches premium."""
    result = _analyze([
        profile(
            casts=_engaged_casts(40, 4), cast_count=400, score=0.85, verifications=[VERIFIED], power_badge=True
        )
    ])
    assert result.factor("verification").status is FactorStatus.EXCELLENT
    assert result.score == 100
    assert result.tier is Tier.PREMIUM


def test_high_score_without_verification_is_not_premium():
    """A high score without verification stays in the high tier."""
    result = _analyze([profile(casts=_engaged_casts(20, 2), cast_count=400, score=0.85)])
    assert result.factor("verification").score == 0
    assert result.factor("activity").score == 12
    assert result.score == 82
    assert result.tier is Tier.HIGH
    assert "Unverified account - verification typically required for airdrop eligibility" in result.risk_factors


def test_quality_tier_fallback_without_neynar_score():
    """Without a Neynar score social signals use the quality tier."""
    result = _analyze([
        profile(casts=_engaged_casts(5, 1), power_badge=True, verifications=[VERIFIED])
    ])
    signals = result.factor("social_signals")
    assert result.metrics["neynar_score"] is None
    assert result.details["quality_tier"] == "high"
    assert signals.score == 20
    assert signals.status is FactorStatus.GOOD


def test_profile_without_casts_has_zero_engagement():
    """A profile without casts has zero engagement."""
    result = _analyze([profile(casts=[], cast_count=0, followers=5)])
    assert result.has_profile
    assert result.metrics["engagement_per_post"] == 0
    assert result.factor("engagement").score == 0
    assert result.score == 20
    assert result.tier is Tier.MINIMAL
    assert len(result.recommendations) == 5
    assert (
        "Increase engagement by creating quality content that generates likes, recasts, and replies"
        in result.recommendations
    )
    assert "No recent activity - inactive accounts often excluded from airdrops" in result.risk_factors
    assert "Minimal content creation - low participation may reduce airdrop allocation" in result.risk_factors


def test_resolved_address_is_first_verification_lowercased():
    """The first verified address becomes the lowercased resolved address."""
    result = _analyze([profile(verifications=[VERIFIED, ADDRESS])])
    assert result.details["resolved_address"] == VERIFIED.lower()
    assert result.metrics["verified_address_count"] == 2


def test_no_profile_returns_defaults():
    """No profile gives the default result."""
    result = _analyze([])
    assert not result.has_profile
    assert result.score == 0
    assert result.tier is Tier.MINIMAL
    assert result.recommendations[0] == "Create a Farcaster profile to start building airdrop eligibility"
    assert len(result.recommendations) == 5


def test_inactive_status_is_a_risk():
    """An inactive status is flagged."""
    result = _analyze([profile(casts=_engaged_casts(3, 1), active=False)])
    assert "Inactive Farcaster profile" in result.risk_factors


def test_nested_neynar_shapes_are_flattened():
    """Reactions and reply counts nested the way the API returns them."""
    result = _analyze([profile(casts=[cast(1, likes=4, recasts=3, replies=2)], score=0.5)])
    assert result.metrics["top_cast_engagement"] == 9
    assert result.metrics["neynar_score"] == 0.5


# --- Helpers ---


def test_verification_level():
    """Verification level from badge, address and linked accounts."""
    assert verification_level(True, True, 0) == 3
    assert verification_level(True, False, 0) == 2
    assert verification_level(False, True, 0) == 2
    assert verification_level(False, False, 1) == 1
    assert verification_level(False, False, 0) == 0


def test_activity_level():
    """Activity level from recent casts and channels."""
    assert activity_level(30, 3) == 4
    assert activity_level(30, 2) == 3
    assert activity_level(15, 1) == 2
    assert activity_level(1, 0) == 1
    assert activity_level(0, 5) == 0


def test_quality_tier():
    """Quality tier from score, badge and verification."""
    assert quality_tier(0.9, True, 1, 400, 10) == "premium"
    assert quality_tier(0.9, False, 1, 400, 10) == "high"
    assert quality_tier(None, False, 1, 100, 1) == "standard"
    assert quality_tier(None, False, 0, 40, 1) == "low"
    assert quality_tier(None, False, 0, 10, 0) == "unverified"


def test_casting_streak_counts_consecutive_days():
    """The casting streak counts consecutive days with casts."""
    casts = [
        CastRecord.model_validate(cast(i, days_ago=d))
        for i, d in enumerate((0, 1, 2, 4))
    ]
    assert casting_streak(casts, NOW) == 3
    assert casting_streak([], NOW) == 0
