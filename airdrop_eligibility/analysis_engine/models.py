"""
Data model for eligibility analysis.

Identity, EligibilityFactor, SourceResult and CompositeResult. Results are
frozen once built: engines hand the same SourceResult to the cache and the
caller, so nothing may mutate it afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping


class SourceType(str, Enum):
    ONCHAIN = "onchain"
    FARCASTER = "farcaster"
    KAITO = "kaito"
    ORBITER = "orbiter"
    HOP = "hop"


class IdentityKind(str, Enum):
    ADDRESS = "address"
    HANDLE = "handle"


class FactorStatus(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class Tier(str, Enum):
    MINIMAL = "minimal"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    PREMIUM = "premium"


@dataclass(frozen=True)
class Identity:
    """A chain address or a platform handle under analysis."""

    raw: str
    """Input as received (after whitespace strip)."""
    kind: IdentityKind
    value: str
    """Normalized value: lowercase address, or handle without leading '@'."""

    @property
    def is_address(self) -> bool:
        return self.kind is IdentityKind.ADDRESS

    @property
    def is_handle(self) -> bool:
        return self.kind is IdentityKind.HANDLE

    @property
    def cache_key(self) -> str:
        return self.value.lower()

    def to_dict(self) -> dict[str, Any]:
        return {"raw": self.raw, "kind": self.kind.value, "value": self.value}


@dataclass(frozen=True)
class EligibilityFactor:
    """One dimension of a source's scoring rubric."""

    name: str
    score: float
    """Points awarded, 0 <= score <= max_score."""
    max_score: float
    status: FactorStatus
    weight: float = 1.0

    @property
    def weighted_score(self) -> float:
        return self.score * self.weight

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "score": self.score,
            "max_score": self.max_score,
            "status": self.status.value,
            "weight": self.weight,
        }


def _freeze(mapping: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class SourceResult:
    """
    Outcome of one per-source analysis.

    has_profile=False always means score=0 with non-empty default recommendations.
    failure_reason is set when the result is a default substituted for an
    adapter failure, timeout or malformed payload; such results count as a
    failed source in the composite.
    """

    source: SourceType
    has_profile: bool
    score: int
    tier: Tier
    factors: tuple[EligibilityFactor, ...] = ()
    recommendations: tuple[str, ...] = ()
    risk_factors: tuple[str, ...] = ()
    metrics: Mapping[str, Any] = field(default_factory=dict)
    """Numeric facts derived from the raw records (counts, volumes, durations)."""
    details: Mapping[str, Any] = field(default_factory=dict)
    """Non-numeric extras: resolved address, routes, distributions."""
    failure_reason: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "metrics", _freeze(self.metrics))
        object.__setattr__(self, "details", _freeze(self.details))
        object.__setattr__(self, "factors", tuple(self.factors))
        object.__setattr__(self, "recommendations", tuple(self.recommendations))
        object.__setattr__(self, "risk_factors", tuple(self.risk_factors))

    @property
    def succeeded(self) -> bool:
        return self.failure_reason is None

    def factor(self, name: str) -> EligibilityFactor | None:
        for f in self.factors:
            if f.name == name:
                return f
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source.value,
            "has_profile": self.has_profile,
            "score": self.score,
            "tier": self.tier.value,
            "factors": [f.to_dict() for f in self.factors],
            "recommendations": list(self.recommendations),
            "risk_factors": list(self.risk_factors),
            "metrics": dict(self.metrics),
            "details": dict(self.details),
            "failure_reason": self.failure_reason,
        }


@dataclass
class AnalysisMetadata:
    """Timing and provenance for one composite analysis."""

    duration_ms: int
    succeeded_sources: list[str]
    failed_sources: dict[str, str]
    """Source name -> failure reason."""
    skipped_sources: list[str] = field(default_factory=list)
    """Sources not applicable to the identity (e.g. chain analysis for a handle)."""
    deadline_exceeded: bool = False
    analyzed_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "duration_ms": self.duration_ms,
            "succeeded_sources": list(self.succeeded_sources),
            "failed_sources": dict(self.failed_sources),
            "skipped_sources": list(self.skipped_sources),
            "deadline_exceeded": self.deadline_exceeded,
            "analyzed_at": self.analyzed_at,
        }


@dataclass
class CompositeResult:
    """Terminal artifact of analyze_identity: per-source breakdown plus the blended score."""

    identity: Identity
    per_source_results: dict[str, SourceResult]
    overall_score: int
    recommendations: list[str]
    risk_factors: list[str]
    metadata: AnalysisMetadata
    resolved_address: str | None = None
    bridge_summary: dict[str, Any] | None = None
    historical: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "identity": self.identity.to_dict(),
            "resolved_address": self.resolved_address,
            "overall_score": self.overall_score,
            "per_source_results": {
                name: result.to_dict() for name, result in self.per_source_results.items()
            },
            "recommendations": list(self.recommendations),
            "risk_factors": list(self.risk_factors),
            "bridge_summary": self.bridge_summary,
            "historical": self.historical,
            "metadata": self.metadata.to_dict(),
        }
