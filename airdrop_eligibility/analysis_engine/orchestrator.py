"""
Analysis orchestrator: concurrent fan-out to every scoring engine, settle-all
fan-in, weighted blend and composite recommendations.

- Engines inapplicable to the identity (chain and bridges for a handle,
  reputation for an address) are skipped and excluded from the blend.
- Each engine runs in its own task wrapped to return a tagged outcome; one
  failure never cancels or blocks the others.
- The overall score is renormalized over the weights of sources that actually
  produced data.
- An overall deadline (or a caller-set cancel event) cancels whatever is
  still in flight and returns the partial result.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable

from airdrop_eligibility.analysis_engine.engine import ScoringEngine
from airdrop_eligibility.analysis_engine.factors import clamp_score, dedupe, round_half_up, safe_ratio
from airdrop_eligibility.analysis_engine.historical import AggregateMetrics, compare
from airdrop_eligibility.analysis_engine.identity import classify_identity
from airdrop_eligibility.analysis_engine.models import (
    AnalysisMetadata,
    CompositeResult,
    Identity,
    SourceResult,
    SourceType,
)
from airdrop_eligibility.eligibility_logging import bind_identity, get_logger

logger = get_logger(__name__)

DEFAULT_DEADLINE_SEC = 30.0
DEFAULT_WEIGHTS: dict[str, float] = {
    SourceType.ONCHAIN.value: 0.40,
    SourceType.FARCASTER.value: 0.30,
    SourceType.KAITO.value: 0.30,
}
MAX_RECOMMENDATIONS = 6
MAX_RISK_FACTORS = 8
RECOMMENDATIONS_PER_SOURCE = 2

SOCIAL_SOURCES = (SourceType.FARCASTER.value, SourceType.KAITO.value)
BRIDGE_SOURCES = (SourceType.ORBITER.value, SourceType.HOP.value)

CONNECT_WALLET_RECOMMENDATION = "Connect your wallet address to enable on-chain analysis"
CREATE_PROFILE_RECOMMENDATIONS: dict[str, str] = {
    SourceType.FARCASTER.value: "Create a Farcaster profile to increase social eligibility",
    SourceType.KAITO.value: "Join Kaito and start building your Yap score",
}
POSITIVE_RECOMMENDATION = "Excellent profile! Continue your current engagement strategy"
NO_PRESENCE_RISK = "No social platform presence detected"

# Combined bridge eligibility bands
BRIDGE_TIER_BANDS: tuple[tuple[int, str], ...] = (
    (90, "platinum"),
    (75, "gold"),
    (60, "silver"),
    (40, "bronze"),
)

REASON_DEADLINE = "deadline exceeded"
REASON_CANCELLED = "cancelled"


@dataclass(frozen=True)
class SourceOutcome:
    """Tagged result of one engine task: result on success, error text on failure."""

    source: str
    result: SourceResult | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.result is not None and self.result.succeeded


def blend_scores(results: dict[str, SourceResult], weights: dict[str, float]) -> int:
    """
    Weighted average over succeeded, weighted sources only.

    Failed and skipped sources add nothing to the numerator and their weight
    is left out of the denominator. 0 when no weighted source succeeded.
    """
    numerator = 0.0
    denominator = 0.0
    for name, result in results.items():
        weight = weights.get(name, 0.0)
        if weight <= 0 or not result.succeeded:
            continue
        numerator += weight * result.score
        denominator += weight
    if denominator <= 0:
        return 0
    return clamp_score(numerator / denominator)


def compose_recommendations(
    identity: Identity,
    results: dict[str, SourceResult],
    configured: Iterable[str],
) -> list[str]:
    configured = set(configured)
    recs: list[str] = []
    chain = results.get(SourceType.ONCHAIN.value)
    if SourceType.ONCHAIN.value in configured and identity.is_handle:
        recs.append(CONNECT_WALLET_RECOMMENDATION)
    elif chain is not None and chain.succeeded:
        recs.extend(chain.recommendations[:RECOMMENDATIONS_PER_SOURCE])
    for name in SOCIAL_SOURCES:
        if name not in configured:
            continue
        result = results.get(name)
        if result is not None and result.succeeded and result.has_profile:
            recs.extend(result.recommendations[:RECOMMENDATIONS_PER_SOURCE])
        else:
            recs.append(CREATE_PROFILE_RECOMMENDATIONS[name])
    for name in BRIDGE_SOURCES:
        result = results.get(name)
        if result is not None and result.succeeded:
            recs.extend(result.recommendations[:1])
    return dedupe(recs, MAX_RECOMMENDATIONS) or [POSITIVE_RECOMMENDATION]


def compose_risk_factors(results: dict[str, SourceResult]) -> list[str]:
    risks: list[str] = []
    social_present = False
    for name, result in results.items():
        if not result.succeeded:
            continue
        if name in SOCIAL_SOURCES:
            if not result.has_profile:
                continue
            social_present = True
        risks.extend(result.risk_factors)
    if not social_present:
        risks.insert(0, NO_PRESENCE_RISK)
    return dedupe(risks, MAX_RISK_FACTORS)


def bridge_tier(score: int) -> str:
    for minimum, name in BRIDGE_TIER_BANDS:
        if score >= minimum:
            return name
    return "none"


def aggregate_bridge_metrics(bridges: dict[str, SourceResult]) -> AggregateMetrics:
    """Sum volumes and transfer counts; LP totals summed; chain/token diversity as the max."""
    metrics = [r.metrics for r in bridges.values()]
    lp_durations = [m.get("avg_lp_duration_days", 0.0) for m in metrics if m.get("position_count")]
    return AggregateMetrics(
        total_bridge_volume=sum(m.get("total_volume", 0.0) for m in metrics),
        total_bridge_transactions=sum(m.get("transaction_count", 0) for m in metrics),
        total_lp_volume=sum(m.get("total_liquidity", 0.0) for m in metrics),
        avg_lp_duration_days=max(lp_durations, default=0.0),
        unique_chains=max((m.get("unique_chains", 0) for m in metrics), default=0),
        unique_tokens=max((m.get("unique_tokens", 0) for m in metrics), default=0),
    )


def summarize_bridges(results: dict[str, SourceResult]) -> tuple[dict[str, Any] | None, AggregateMetrics | None]:
    """Combined bridge eligibility across succeeded bridge sources; (None, None) if none succeeded."""
    bridges = {
        name: results[name]
        for name in BRIDGE_SOURCES
        if name in results and results[name].succeeded
    }
    if not bridges:
        return None, None
    combined = round_half_up(safe_ratio(sum(r.score for r in bridges.values()), len(bridges)))
    aggregate = aggregate_bridge_metrics(bridges)
    summary = {
        "sources": sorted(bridges),
        "combined_score": combined,
        "tier": bridge_tier(combined),
        "has_activity": any(r.has_profile for r in bridges.values()),
        "aggregate_metrics": aggregate.to_dict(),
    }
    return summary, aggregate


class AnalysisOrchestrator:
    """
    Runs every applicable engine for one identity and blends the results.

    Engines share one ResultCache (injected when the engines are built), so
    repeated analyses inside the TTL window do not refetch.
    """

    def __init__(
        self,
        engines: Iterable[ScoringEngine],
        *,
        weights: dict[str, float] | None = None,
        deadline_sec: float = DEFAULT_DEADLINE_SEC,
    ) -> None:
        self._engines: dict[str, ScoringEngine] = {}
        for engine in engines:
            if engine.name in self._engines:
                raise ValueError(f"duplicate engine for source {engine.name!r}")
            self._engines[engine.name] = engine
        if not self._engines:
            raise ValueError("at least one engine is required")
        self._weights = dict(DEFAULT_WEIGHTS if weights is None else weights)
        if any(w < 0 for w in self._weights.values()):
            raise ValueError("source weights must be non-negative")
        if deadline_sec <= 0:
            raise ValueError("deadline_sec must be positive")
        self._deadline_sec = deadline_sec

    @property
    def sources(self) -> list[str]:
        return list(self._engines)

    async def analyze_identity(
        self,
        identity: str | Identity,
        *,
        deadline_sec: float | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> CompositeResult:
        """
        Analyze one identity across all sources.

        Args:
            identity: Address or handle string, or an already classified Identity.
            deadline_sec: Overall bound; defaults to the orchestrator's deadline.
            cancel_event: When set, in-flight sources are cancelled and the
                partial result is returned.

        Raises:
            InvalidIdentityError: identity is neither an address nor a handle.
        """
        ident = identity if isinstance(identity, Identity) else classify_identity(identity)
        log = bind_identity(ident.cache_key)
        started = time.perf_counter()

        applicable = {n: e for n, e in self._engines.items() if e.applies_to(ident)}
        skipped = [n for n in self._engines if n not in applicable]
        log.info("orchestrator_started", sources=list(applicable), skipped=skipped)

        tasks = {
            name: asyncio.create_task(self._run_engine(engine, ident), name=f"analyze:{name}")
            for name, engine in applicable.items()
        }
        interrupted = await self._settle(
            list(tasks.values()), deadline_sec or self._deadline_sec, cancel_event
        )
        deadline_exceeded = interrupted == REASON_DEADLINE

        results: dict[str, SourceResult] = {}
        failed: dict[str, str] = {}
        for name, task in tasks.items():
            outcome = task.result() if task.done() and not task.cancelled() else None
            if outcome is None:
                reason = interrupted or REASON_CANCELLED
                results[name] = applicable[name].default_result(failure_reason=reason)
                failed[name] = reason
                log.warning("orchestrator_source_failed", source=name, reason=reason)
            elif outcome.succeeded:
                results[name] = outcome.result
            else:
                reason = outcome.error or "unknown error"
                results[name] = outcome.result or applicable[name].default_result(failure_reason=reason)
                failed[name] = reason
                log.warning("orchestrator_source_failed", source=name, reason=reason)

        succeeded = [name for name, r in results.items() if r.succeeded]
        overall = blend_scores(results, self._weights)
        bridge_summary, aggregate = summarize_bridges(results)
        historical = compare(aggregate).to_dict() if aggregate is not None else None

        resolved = ident.value if ident.is_address else None
        social = results.get(SourceType.FARCASTER.value)
        if resolved is None and social is not None and social.succeeded:
            resolved = social.details.get("resolved_address")

        duration_ms = int((time.perf_counter() - started) * 1000)
        composite = CompositeResult(
            identity=ident,
            per_source_results=results,
            overall_score=overall,
            recommendations=compose_recommendations(ident, results, self._engines),
            risk_factors=compose_risk_factors(results),
            metadata=AnalysisMetadata(
                duration_ms=duration_ms,
                succeeded_sources=succeeded,
                failed_sources=failed,
                skipped_sources=skipped,
                deadline_exceeded=deadline_exceeded,
                analyzed_at=datetime.now(timezone.utc).isoformat(),
            ),
            resolved_address=resolved,
            bridge_summary=bridge_summary,
            historical=historical,
        )
        log.info(
            "orchestrator_done",
            overall_score=overall,
            succeeded=succeeded,
            failed=sorted(failed),
            duration_ms=duration_ms,
            deadline_exceeded=deadline_exceeded,
        )
        return composite

    async def _run_engine(self, engine: ScoringEngine, identity: Identity) -> SourceOutcome:
        """Run one engine; convert any escaping exception into a failed outcome."""
        try:
            result = await engine.analyze(identity)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception("orchestrator_engine_error", source=engine.name, error=str(e))
            return SourceOutcome(source=engine.name, error=f"{type(e).__name__}: {e}")
        return SourceOutcome(source=engine.name, result=result, error=result.failure_reason)

    async def _settle(
        self,
        tasks: list[asyncio.Task[SourceOutcome]],
        deadline_sec: float,
        cancel_event: asyncio.Event | None,
    ) -> str | None:
        """
        Wait for all tasks, the deadline or the cancel event, whichever comes first.
        Cancels anything still pending. Returns the interruption reason, or None.
        """
        loop = asyncio.get_running_loop()
        end = loop.time() + deadline_sec
        pending: set[asyncio.Future[Any]] = set(tasks)
        stopper = asyncio.ensure_future(cancel_event.wait()) if cancel_event is not None else None
        interrupted: str | None = None
        try:
            while pending:
                remaining = end - loop.time()
                if remaining <= 0:
                    interrupted = REASON_DEADLINE
                    break
                waiting = pending | ({stopper} if stopper is not None else set())
                done, _ = await asyncio.wait(
                    waiting, timeout=remaining, return_when=asyncio.FIRST_COMPLETED
                )
                pending -= done
                if stopper is not None and stopper in done:
                    interrupted = REASON_CANCELLED
                    break
        finally:
            if stopper is not None and not stopper.done():
                stopper.cancel()
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
        if pending and interrupted:
            logger.warning("orchestrator_interrupted", reason=interrupted, pending=len(pending))
        return interrupted if pending else None

    async def aclose(self) -> None:
        """Close every engine's adapter."""
        for engine in self._engines.values():
            await engine.aclose()
