"""
Reputation engine: Kaito yap score, weekly activity, alignment and leaderboard rank.

Handles only. An address cannot be looked up, so it short-circuits to the
no-profile default without touching the adapter.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from airdrop_eligibility.adapters.schemas import ReputationProfileRecord
from airdrop_eligibility.analysis_engine.engine import ScoringEngine
from airdrop_eligibility.analysis_engine.factors import (
    ANY_POSITIVE,
    EXCELLENT,
    FAIR,
    GOOD,
    POOR,
    round_half_up,
    status_of,
    table,
)
from airdrop_eligibility.analysis_engine.models import EligibilityFactor, Identity, SourceType

FACTOR_PRESENCE = "presence"
FACTOR_YAP_SCORE = "yap_score"
FACTOR_WEEKLY_YAPS = "weekly_yaps"
FACTOR_ALIGNMENT = "alignment"
FACTOR_LEADERBOARD = "leaderboard_rank"
FACTOR_VERIFIED = "verified"

PRESENCE_POINTS = 15
VERIFIED_POINTS = 10

YAP_SCORE_TABLE = table(
    FACTOR_YAP_SCORE, 30,
    (500, 30, EXCELLENT),
    (200, 25, EXCELLENT),
    (100, 20, GOOD),
    (50, 15, GOOD),
    (10, 10, FAIR),
    (ANY_POSITIVE, 5, POOR),
)
WEEKLY_YAPS_TABLE = table(
    FACTOR_WEEKLY_YAPS, 20,
    (20, 20, EXCELLENT),
    (10, 15, GOOD),
    (5, 10, FAIR),
    (ANY_POSITIVE, 5, POOR),
)
ALIGNMENT_TABLE = table(
    FACTOR_ALIGNMENT, 15,
    (80, 15, EXCELLENT),
    (60, 10, GOOD),
    (40, 5, FAIR),
)
# Lower rank is better
LEADERBOARD_TABLE = table(
    FACTOR_LEADERBOARD, 20,
    (10, 20, EXCELLENT),
    (50, 15, GOOD),
    (100, 10, FAIR),
    (500, 5, POOR),
    lower_is_better=True,
)
PRESENCE_TABLE = table(FACTOR_PRESENCE, PRESENCE_POINTS, (1, PRESENCE_POINTS, EXCELLENT))
VERIFIED_TABLE = table(FACTOR_VERIFIED, VERIFIED_POINTS, (1, VERIFIED_POINTS, EXCELLENT))

# Influence blend: yap score, engagement, alignment, leaderboard rank
INFLUENCE_YAP_WEIGHT = 0.4
INFLUENCE_ENGAGEMENT_WEIGHT = 0.3
INFLUENCE_ALIGNMENT_WEIGHT = 0.2
INFLUENCE_RANK_WEIGHT = 0.1
INFLUENCE_YAP_SCALE = 1000
INFLUENCE_RANK_SCALE = 1000

STANDING_LURKER = "lurker"
STANDING_BANDS = (
    (80, "influencer"),
    (60, "active"),
    (30, "casual"),
)


def engagement_influence(yap_score: float, alignment_score: float) -> float:
    """Engagement-side influence on a 0..10 scale."""
    return min((yap_score + alignment_score) / 20, 10.0)


def influence_score(yap_score: float, alignment_score: float, leaderboard_rank: int | None) -> int:
    """Weighted 0..100 influence blend; an unranked (or rank 0) profile gets no rank share."""
    score = (yap_score / INFLUENCE_YAP_SCALE) * INFLUENCE_YAP_WEIGHT * 100
    score += engagement_influence(yap_score, alignment_score) * INFLUENCE_ENGAGEMENT_WEIGHT * 10
    score += (alignment_score / 100) * INFLUENCE_ALIGNMENT_WEIGHT * 100
    if leaderboard_rank:
        rank_share = max(0.0, (INFLUENCE_RANK_SCALE - leaderboard_rank) / INFLUENCE_RANK_SCALE)
        score += rank_share * INFLUENCE_RANK_WEIGHT * 100
    return min(round_half_up(score), 100)


def estimate_reach(yap_score: float) -> int:
    """Audience estimate: ten per yap, boosted by up to 2x with engagement rate."""
    engagement_rate = min(yap_score / 10, 10.0)
    return round_half_up(yap_score * 10 * (1 + engagement_rate / 10))


def community_standing(influence: int) -> str:
    for minimum, name in STANDING_BANDS:
        if influence >= minimum:
            return name
    return STANDING_LURKER


class ReputationEngine(ScoringEngine):
    source = SourceType.KAITO
    max_recommendations = 6
    positive_message = "Excellent Kaito engagement! Keep up the great work!"
    default_recommendations = (
        "Create a Kaito account and start yapping to increase eligibility",
        "Connect your Twitter account to Kaito for verification",
        "Engage with crypto content to build your Yap score",
        "Participate in Kaito community discussions",
    )
    default_risk_factors = ("No Kaito presence detected",)

    def applies_to(self, identity: Identity) -> bool:
        return identity.is_handle

    def derive(
        self, raw: list[ReputationProfileRecord], now: datetime
    ) -> tuple[dict[str, Any], dict[str, Any]]:
        if not raw:
            return {}, {}
        profile = raw[0]
        influence = influence_score(
            profile.yaps_all, profile.alignment_score, profile.leaderboard_rank
        )
        metrics: dict[str, Any] = {
            "yap_score": profile.yaps_all,
            "weekly_yaps": profile.yaps_l7d,
            "monthly_yaps": profile.yaps_l30d,
            "alignment_score": profile.alignment_score,
            "leaderboard_rank": profile.leaderboard_rank,
            "total_engagement": profile.yaps_all,
            "is_verified": profile.is_verified,
            "influence_score": influence,
            "estimated_reach": estimate_reach(profile.yaps_all),
        }
        details: dict[str, Any] = {
            "user_id": profile.user_id,
            "username": profile.username,
            "community_standing": community_standing(influence),
        }
        return metrics, details

    def has_profile(self, raw: Any, metrics: dict[str, Any]) -> bool:
        return bool(raw)

    def score_factors(
        self, metrics: dict[str, Any], details: dict[str, Any]
    ) -> list[EligibilityFactor]:
        return [
            PRESENCE_TABLE.evaluate(1),
            YAP_SCORE_TABLE.evaluate(metrics["yap_score"]),
            WEEKLY_YAPS_TABLE.evaluate(metrics["weekly_yaps"]),
            ALIGNMENT_TABLE.evaluate(metrics["alignment_score"]),
            LEADERBOARD_TABLE.evaluate(metrics["leaderboard_rank"]),
            VERIFIED_TABLE.evaluate(1 if metrics["is_verified"] else 0),
        ]

    def premium_gate(self, factors: list[EligibilityFactor], metrics: dict[str, Any]) -> bool:
        return status_of(factors, FACTOR_VERIFIED) is EXCELLENT

    def recommend(self, factors: list[EligibilityFactor], metrics: dict[str, Any]) -> list[str]:
        recs: list[str] = []
        if metrics["yap_score"] < 50:
            recs.append("Increase your Yap score by engaging more with crypto content")
        if metrics["weekly_yaps"] < 5:
            recs.append("Maintain consistent weekly activity on Kaito")
        if metrics["alignment_score"] < 60:
            recs.append("Improve content alignment by focusing on quality crypto discussions")
        if not metrics["is_verified"]:
            recs.append("Verify your account to increase credibility and eligibility")
        rank = metrics["leaderboard_rank"]
        if rank is None or rank > 100:
            recs.append("Aim for higher leaderboard ranking through consistent engagement")
        if metrics["total_engagement"] < 100:
            recs.append("Increase total engagement by interacting with other users")
        return recs

    def assess_risks(self, metrics: dict[str, Any], details: dict[str, Any]) -> list[str]:
        risks: list[str] = []
        if metrics["weekly_yaps"] <= 0 and metrics["monthly_yaps"] <= 0:
            risks.append("No recent Kaito activity - yap snapshots favour consistent contributors")
        if metrics["yap_score"] < 10:
            risks.append("Very low Yap score - content reach too small to register on leaderboards")
        if not metrics["is_verified"]:
            risks.append("Unverified Kaito account")
        return risks
