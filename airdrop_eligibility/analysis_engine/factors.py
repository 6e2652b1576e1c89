"""
Step-function scoring primitives shared by every engine.

A FactorTable is an explicit ordered list of (threshold, points, status) bands,
evaluated top down; the first band the value reaches wins, otherwise the factor
scores 0 / poor. "At least" tables use >=, "at most" tables (leaderboard rank,
days since last activity) use <=.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable

from airdrop_eligibility.analysis_engine.models import EligibilityFactor, FactorStatus, Tier

SCORE_MIN = 0
SCORE_MAX = 100

# Threshold for "any positive amount" bands on fractional metrics
ANY_POSITIVE = 1e-9

# Score bands for tiers; premium additionally requires the engine's gate
PREMIUM_MIN_SCORE = 80
TIER_BANDS: tuple[tuple[int, Tier], ...] = (
    (65, Tier.HIGH),
    (45, Tier.MEDIUM),
    (25, Tier.LOW),
)

EXCELLENT = FactorStatus.EXCELLENT
GOOD = FactorStatus.GOOD
FAIR = FactorStatus.FAIR
POOR = FactorStatus.POOR


@dataclass(frozen=True)
class FactorBand:
    threshold: float
    points: float
    status: FactorStatus


@dataclass(frozen=True)
class FactorTable:
    """Ordered threshold table for one eligibility factor."""

    name: str
    max_score: float
    bands: tuple[FactorBand, ...]
    lower_is_better: bool = False
    weight: float = 1.0

    def __post_init__(self) -> None:
        thresholds = [b.threshold for b in self.bands]
        expected = sorted(thresholds) if self.lower_is_better else sorted(thresholds, reverse=True)
        if thresholds != expected:
            raise ValueError(f"factor table {self.name!r}: bands out of order")
        if any(not (0 <= b.points <= self.max_score) for b in self.bands):
            raise ValueError(f"factor table {self.name!r}: band points outside 0..{self.max_score}")

    def _reaches(self, value: float, threshold: float) -> bool:
        return value <= threshold if self.lower_is_better else value >= threshold

    def evaluate(self, value: float | None) -> EligibilityFactor:
        """Score value against the table; None (not measured) scores 0 / poor."""
        if value is not None:
            for band in self.bands:
                if self._reaches(value, band.threshold):
                    return self.factor(band.points, band.status)
        return self.factor(0, POOR)

    def factor(self, points: float, status: FactorStatus) -> EligibilityFactor:
        return EligibilityFactor(
            name=self.name,
            score=points,
            max_score=self.max_score,
            status=status,
            weight=self.weight,
        )


def table(name: str, max_score: float, *bands: tuple[float, float, FactorStatus], lower_is_better: bool = False) -> FactorTable:
    """Build a FactorTable from (threshold, points, status) tuples."""
    return FactorTable(
        name=name,
        max_score=max_score,
        bands=tuple(FactorBand(t, p, s) for t, p, s in bands),
        lower_is_better=lower_is_better,
    )


def step_value(value: float, steps: Iterable[tuple[float, float]], default: float = 0.0) -> float:
    """First value whose threshold is reached in a descending (threshold, value) table."""
    for threshold, result in steps:
        if value >= threshold:
            return result
    return default


def round_half_up(value: float) -> int:
    """Round to nearest integer, halves away from zero for non-negative input."""
    return int(math.floor(value + 0.5))


def clamp_score(value: float) -> int:
    """Clamp to [0, 100] then round to the nearest integer."""
    return round_half_up(max(SCORE_MIN, min(SCORE_MAX, value)))


def safe_ratio(numerator: float, denominator: float) -> float:
    """numerator / denominator, 0.0 when the denominator is zero or negative."""
    if denominator <= 0:
        return 0.0
    return numerator / denominator


def classify_tier(score: int, premium_gate: bool) -> Tier:
    """
    Tier from score bands. Premium needs score >= 80 AND the engine's gate;
    a gated-out score falls through to the next band.
    """
    if score >= PREMIUM_MIN_SCORE and premium_gate:
        return Tier.PREMIUM
    for minimum, tier in TIER_BANDS:
        if score >= minimum:
            return tier
    return Tier.MINIMAL


def dedupe(items: Iterable[str], cap: int | None = None) -> list[str]:
    """Drop blanks and duplicates (first occurrence wins), keep order, truncate to cap."""
    seen: set[str] = set()
    out: list[str] = []
    for item in items:
        text = (item or "").strip()
        if not text or text in seen:
            continue
        seen.add(text)
        out.append(text)
        if cap is not None and len(out) >= cap:
            break
    return out


def status_of(factors: Iterable[EligibilityFactor], name: str) -> FactorStatus:
    for f in factors:
        if f.name == name:
            return f.status
    return POOR
