"""
Per-source scoring engine base.

analyze(identity) runs the shared pipeline: cache lookup, applicability check,
bounded adapter fetch, metric derivation, factor scoring, clamp, tier,
recommendations, risk factors, cache write. Adapter failures, timeouts and
malformed payloads become a default result with failure_reason set; anything
else is a defect and propagates.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Callable, ClassVar

from airdrop_eligibility.adapters.base import SourceAdapter
from airdrop_eligibility.analysis_engine.cache import ResultCache
from airdrop_eligibility.analysis_engine.factors import clamp_score, classify_tier, dedupe
from airdrop_eligibility.analysis_engine.models import (
    EligibilityFactor,
    Identity,
    SourceResult,
    SourceType,
    Tier,
)
from airdrop_eligibility.core.exceptions import AdapterError
from airdrop_eligibility.eligibility_logging import get_logger

logger = get_logger(__name__)

DEFAULT_ENGINE_TIMEOUT_SEC = 15.0
DEFAULT_MAX_RECOMMENDATIONS = 5
DEFAULT_MAX_RISK_FACTORS = 6


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ScoringEngine(ABC):
    """
    Template for one source's scoring rubric.

    Subclasses define the source, the no-profile defaults and the rubric hooks
    (derive, score_factors, premium_gate, recommend, assess_risks).
    """

    source: ClassVar[SourceType]
    requires_address: ClassVar[bool] = False
    max_recommendations: ClassVar[int] = DEFAULT_MAX_RECOMMENDATIONS
    max_risk_factors: ClassVar[int] = DEFAULT_MAX_RISK_FACTORS
    positive_message: ClassVar[str] = ""
    default_recommendations: ClassVar[tuple[str, ...]] = ()
    default_risk_factors: ClassVar[tuple[str, ...]] = ()

    def __init__(
        self,
        adapter: SourceAdapter,
        cache: ResultCache | None = None,
        *,
        timeout_sec: float = DEFAULT_ENGINE_TIMEOUT_SEC,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Args:
            adapter: Source adapter supplying validated records.
            cache: Shared result cache; None disables caching.
            timeout_sec: Bound on the whole adapter fetch for one analysis.
            clock: Current UTC time; injectable for tests.
        """
        if timeout_sec <= 0:
            raise ValueError("timeout_sec must be positive")
        self._adapter = adapter
        self._cache = cache
        self._timeout_sec = timeout_sec
        self._clock = clock

    @property
    def name(self) -> str:
        return self.source.value

    def applies_to(self, identity: Identity) -> bool:
        return identity.is_address or not self.requires_address

    async def analyze(self, identity: Identity) -> SourceResult:
        """Score one identity for this source. Never raises for adapter-side failures."""
        key = identity.cache_key
        if self._cache is not None:
            cached = self._cache.get(self.name, key)
            if cached is not None:
                logger.debug("engine_cache_hit", source=self.name, identity=key)
                return cached

        if not self.applies_to(identity):
            logger.debug("engine_not_applicable", source=self.name, identity=key, kind=identity.kind.value)
            return self.default_result()

        try:
            raw = await asyncio.wait_for(self.fetch(identity), timeout=self._timeout_sec)
        except asyncio.TimeoutError:
            logger.warning(
                "engine_adapter_timeout", source=self.name, identity=key, timeout_sec=self._timeout_sec
            )
            return self.default_result(failure_reason=f"timeout after {self._timeout_sec:g}s")
        except AdapterError as e:
            logger.warning(
                "engine_adapter_failed",
                source=self.name,
                identity=key,
                code=e.code,
                retryable=e.retryable,
                error=e.message,
            )
            return self.default_result(failure_reason=f"{e.code}: {e.message}")

        result = self.build_result(raw)
        if self._cache is not None:
            self._cache.set(self.name, key, result)
        logger.info(
            "engine_scored",
            source=self.name,
            identity=key,
            has_profile=result.has_profile,
            score=result.score,
            tier=result.tier.value,
        )
        return result

    async def aclose(self) -> None:
        await self._adapter.aclose()

    async def fetch(self, identity: Identity) -> Any:
        """Adapter call(s) for one analysis; bridge engines also fetch positions."""
        return await self._adapter.fetch_records(identity)

    def build_result(self, raw: Any) -> SourceResult:
        """Pure scoring over already-fetched records."""
        now = self._clock()
        metrics, details = self.derive(raw, now)
        if not self.has_profile(raw, metrics):
            return self.default_result()
        factors = self.score_factors(metrics, details)
        score = self.combine(factors, metrics)
        tier = classify_tier(score, self.premium_gate(factors, metrics))
        recommendations = dedupe(self.recommend(factors, metrics), self.max_recommendations)
        if not recommendations and self.positive_message:
            recommendations = [self.positive_message]
        risks = dedupe(self.assess_risks(metrics, details), self.max_risk_factors)
        return SourceResult(
            source=self.source,
            has_profile=True,
            score=score,
            tier=tier,
            factors=tuple(factors),
            recommendations=tuple(recommendations),
            risk_factors=tuple(risks),
            metrics=metrics,
            details=details,
        )

    def default_result(self, failure_reason: str | None = None) -> SourceResult:
        """No-profile result: score 0, minimal tier, guidance to create a presence."""
        return SourceResult(
            source=self.source,
            has_profile=False,
            score=0,
            tier=Tier.MINIMAL,
            recommendations=self.default_recommendations,
            risk_factors=self.default_risk_factors,
            failure_reason=failure_reason,
        )

    def combine(self, factors: list[EligibilityFactor], metrics: dict[str, Any]) -> int:
        """Weighted factor sum clamped to [0, 100] and rounded."""
        return clamp_score(sum(f.weighted_score for f in factors))

    @abstractmethod
    def derive(self, raw: Any, now: datetime) -> tuple[dict[str, Any], dict[str, Any]]:
        """Return (numeric metrics, non-numeric details) derived from raw records."""

    @abstractmethod
    def has_profile(self, raw: Any, metrics: dict[str, Any]) -> bool:
        """False when the records show no presence at all on this source."""

    @abstractmethod
    def score_factors(
        self, metrics: dict[str, Any], details: dict[str, Any]
    ) -> list[EligibilityFactor]:
        ...

    @abstractmethod
    def premium_gate(self, factors: list[EligibilityFactor], metrics: dict[str, Any]) -> bool:
        """Extra condition (beyond score >= 80) for the premium tier."""

    @abstractmethod
    def recommend(self, factors: list[EligibilityFactor], metrics: dict[str, Any]) -> list[str]:
        ...

    @abstractmethod
    def assess_risks(self, metrics: dict[str, Any], details: dict[str, Any]) -> list[str]:
        ...
