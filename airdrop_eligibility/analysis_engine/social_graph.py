"""
Social-graph engine: Farcaster profile and casting activity.

Factors: account age, engagement per recent cast, social signals (Neynar user
score, or the derived quality tier when no score is published), verification
and casting activity. Premium tier additionally requires verification excellent
(power badge plus a verified address).
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from airdrop_eligibility.adapters.schemas import CastRecord, SocialProfileRecord
from airdrop_eligibility.analysis_engine.engine import ScoringEngine
from airdrop_eligibility.analysis_engine.factors import (
    EXCELLENT,
    FAIR,
    GOOD,
    POOR,
    safe_ratio,
    status_of,
    table,
)
from airdrop_eligibility.analysis_engine.models import EligibilityFactor, SourceType

RECENT_WINDOW_DAYS = 30
MAX_STREAK_DAYS = 30

FACTOR_ACCOUNT_AGE = "account_age"
FACTOR_ENGAGEMENT = "engagement"
FACTOR_SOCIAL_SIGNALS = "social_signals"
FACTOR_VERIFICATION = "verification"
FACTOR_ACTIVITY = "activity"

QUALITY_PREMIUM = "premium"
QUALITY_HIGH = "high"
QUALITY_STANDARD = "standard"
QUALITY_LOW = "low"
QUALITY_UNVERIFIED = "unverified"

ACCOUNT_AGE_TABLE = table(
    FACTOR_ACCOUNT_AGE, 20,
    (365, 20, EXCELLENT),
    (180, 16, GOOD),
    (90, 12, FAIR),
    (30, 8, POOR),
)
# Average likes + recasts + replies per cast in the recent window
ENGAGEMENT_TABLE = table(
    FACTOR_ENGAGEMENT, 20,
    (10, 20, EXCELLENT),
    (5, 16, GOOD),
    (2, 12, FAIR),
    (1, 8, POOR),
)
NEYNAR_SCORE_TABLE = table(
    FACTOR_SOCIAL_SIGNALS, 30,
    (0.8, 30, EXCELLENT),
    (0.6, 24, GOOD),
    (0.4, 18, FAIR),
    (0.2, 12, POOR),
)
# Fallback when the profile carries no Neynar score
QUALITY_TIER_POINTS: dict[str, tuple[int, Any]] = {
    QUALITY_PREMIUM: (25, EXCELLENT),
    QUALITY_HIGH: (20, GOOD),
    QUALITY_STANDARD: (15, FAIR),
    QUALITY_LOW: (10, POOR),
}
# Level 3: power badge and verified address; 2: either; 1: linked external account
VERIFICATION_TABLE = table(
    FACTOR_VERIFICATION, 15,
    (3, 15, EXCELLENT),
    (2, 12, GOOD),
    (1, 8, FAIR),
)
# Level 4: >=30 recent casts in >=3 channels; 3: >=15 in >=2; 2: >=5; 1: >=1
ACTIVITY_TABLE = table(
    FACTOR_ACTIVITY, 15,
    (4, 15, EXCELLENT),
    (3, 12, GOOD),
    (2, 8, FAIR),
    (1, 4, POOR),
)


def verification_level(power_badge: bool, verified_address: bool, linked_accounts: int) -> int:
    if power_badge and verified_address:
        return 3
    if power_badge or verified_address:
        return 2
    if linked_accounts > 0:
        return 1
    return 0


def activity_level(recent_casts: int, channels: int) -> int:
    if recent_casts >= 30 and channels >= 3:
        return 4
    if recent_casts >= 15 and channels >= 2:
        return 3
    if recent_casts >= 5:
        return 2
    if recent_casts >= 1:
        return 1
    return 0


def quality_tier(
    score: float | None,
    power_badge: bool,
    verifications: int,
    account_age_days: int,
    recent_casts: int,
) -> str:
    """Coarse profile quality from Neynar score, badge, verifications and activity."""
    s = score or 0.0
    if s >= 0.8 and power_badge and verifications > 0:
        return QUALITY_PREMIUM
    if s >= 0.6 or (power_badge and verifications > 0):
        return QUALITY_HIGH
    if s >= 0.4 or (verifications > 0 and account_age_days >= 90 and recent_casts > 0):
        return QUALITY_STANDARD
    if account_age_days >= 30 and recent_casts > 0:
        return QUALITY_LOW
    return QUALITY_UNVERIFIED


def casting_streak(casts: list[CastRecord], now: datetime) -> int:
    """Consecutive days with at least one cast, counting back from today."""
    days = {c.timestamp.date() for c in casts if c.timestamp is not None}
    streak = 0
    today = now.date()
    for offset in range(MAX_STREAK_DAYS):
        if today - timedelta(days=offset) not in days:
            break
        streak += 1
    return streak


class SocialGraphEngine(ScoringEngine):
    source = SourceType.FARCASTER
    positive_message = "Excellent Farcaster profile! Continue your current engagement strategy"
    default_recommendations = (
        "Create a Farcaster profile to start building airdrop eligibility",
        "Connect your wallet address for verification",
        "Start casting regularly to build engagement",
        "Follow and interact with community channels",
        "Work towards earning a Power Badge through quality participation",
    )
    default_risk_factors = ("No Farcaster presence detected - missing potential airdrop opportunities",)

    def derive(
        self, raw: list[SocialProfileRecord], now: datetime
    ) -> tuple[dict[str, Any], dict[str, Any]]:
        if not raw:
            return {}, {}
        profile = raw[0]
        casts = profile.casts
        window_start = now - timedelta(days=RECENT_WINDOW_DAYS)
        recent = [c for c in casts if c.timestamp is not None and c.timestamp >= window_start]
        n_recent = len(recent)
        avg_likes = safe_ratio(sum(c.likes for c in recent), n_recent)
        avg_recasts = safe_ratio(sum(c.recasts for c in recent), n_recent)
        avg_replies = safe_ratio(sum(c.replies for c in recent), n_recent)
        channels = {c.parent_url for c in casts if c.parent_url}
        age_days = (now - profile.registered_at).days if profile.registered_at else 0
        cast_count = max(profile.cast_count, len(casts))
        verifications = len(profile.verified_addresses)
        avg_engagement_all = safe_ratio(sum(c.engagement for c in casts), len(casts))

        metrics: dict[str, Any] = {
            "account_age_days": max(0, age_days),
            "follower_count": profile.follower_count,
            "following_count": profile.following_count,
            "cast_count": cast_count,
            "recent_cast_count": n_recent,
            "avg_likes_per_cast": round(avg_likes, 4),
            "avg_recasts_per_cast": round(avg_recasts, 4),
            "avg_replies_per_cast": round(avg_replies, 4),
            "engagement_per_post": round(avg_likes + avg_recasts + avg_replies, 4),
            "engagement_rate": min(safe_ratio(cast_count, profile.follower_count) * 100, 100.0),
            "unique_channels": len(channels),
            "verified_address_count": verifications,
            "linked_account_count": len(profile.verified_accounts),
            "power_badge": profile.power_badge,
            "neynar_score": profile.neynar_score,
            "is_active": profile.is_active,
            "verification_level": verification_level(
                profile.power_badge, verifications > 0, len(profile.verified_accounts)
            ),
            "activity_level": activity_level(n_recent, len(channels)),
            "casting_streak_days": casting_streak(casts, now),
            "top_cast_engagement": max((c.engagement for c in casts), default=0),
            "cast_quality_score": min(avg_engagement_all * 10, 100.0),
        }
        details: dict[str, Any] = {
            "fid": profile.fid,
            "username": profile.username,
            "quality_tier": quality_tier(
                profile.neynar_score, profile.power_badge, verifications, age_days, n_recent
            ),
            "resolved_address": profile.verified_addresses[0] if profile.verified_addresses else None,
            "verified_addresses": list(profile.verified_addresses),
            "verified_accounts": list(profile.verified_accounts),
        }
        return metrics, details

    def has_profile(self, raw: Any, metrics: dict[str, Any]) -> bool:
        return bool(raw)

    def _social_signals(self, metrics: dict[str, Any], details: dict[str, Any]) -> EligibilityFactor:
        if metrics["neynar_score"] is not None:
            return NEYNAR_SCORE_TABLE.evaluate(metrics["neynar_score"])
        points, status = QUALITY_TIER_POINTS.get(details["quality_tier"], (0, POOR))
        return NEYNAR_SCORE_TABLE.factor(points, status)

    def score_factors(
        self, metrics: dict[str, Any], details: dict[str, Any]
    ) -> list[EligibilityFactor]:
        return [
            ACCOUNT_AGE_TABLE.evaluate(metrics["account_age_days"]),
            ENGAGEMENT_TABLE.evaluate(metrics["engagement_per_post"]),
            self._social_signals(metrics, details),
            VERIFICATION_TABLE.evaluate(metrics["verification_level"]),
            ACTIVITY_TABLE.evaluate(metrics["activity_level"]),
        ]

    def premium_gate(self, factors: list[EligibilityFactor], metrics: dict[str, Any]) -> bool:
        return status_of(factors, FACTOR_VERIFICATION) is EXCELLENT

    def recommend(self, factors: list[EligibilityFactor], metrics: dict[str, Any]) -> list[str]:
        recs: list[str] = []
        if status_of(factors, FACTOR_ACCOUNT_AGE) is POOR:
            recs.append(
                "Continue building account history - older accounts typically receive better airdrop allocations"
            )
        if status_of(factors, FACTOR_ENGAGEMENT) in (POOR, FAIR):
            recs.append(
                "Increase engagement by creating quality content that generates likes, recasts, and replies"
            )
        if not metrics["power_badge"]:
            recs.append("Work towards earning a Power Badge by maintaining consistent, quality engagement")
        if metrics["verified_address_count"] == 0:
            recs.append("Verify your Ethereum address on Farcaster to prove wallet ownership")
        if status_of(factors, FACTOR_ACTIVITY) in (POOR, FAIR):
            recs.append("Increase casting frequency and engage with multiple channels regularly")
        if metrics["unique_channels"] < 3:
            recs.append("Diversify your engagement across different Farcaster channels")
        if status_of(factors, FACTOR_SOCIAL_SIGNALS) is POOR:
            recs.append("Build your social network by following and engaging with other users")
        return recs

    def assess_risks(self, metrics: dict[str, Any], details: dict[str, Any]) -> list[str]:
        risks: list[str] = []
        if metrics["account_age_days"] < 30:
            risks.append("Very new account - may not qualify for retroactive airdrops")
        if metrics["recent_cast_count"] == 0:
            risks.append("No recent activity - inactive accounts often excluded from airdrops")
        if metrics["verified_address_count"] == 0 and not metrics["power_badge"]:
            risks.append("Unverified account - verification typically required for airdrop eligibility")
        if metrics["follower_count"] < 10:
            risks.append("Very low social engagement - may indicate bot or inactive account")
        if metrics["cast_count"] < 5:
            risks.append("Minimal content creation - low participation may reduce airdrop allocation")
        if not metrics["is_active"]:
            risks.append("Inactive Farcaster profile")
        return risks
