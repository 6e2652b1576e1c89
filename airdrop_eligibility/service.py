"""
Wiring: build HTTP adapters, the shared result cache, every scoring engine and
the orchestrator from Settings.

    orchestrator = build_orchestrator()
    result = await orchestrator.analyze_identity("0x...")

run_analysis() is the blocking convenience for scripts: one identity, one
event loop, adapters closed afterwards.
"""

from __future__ import annotations

import asyncio
from urllib.parse import urlsplit

from airdrop_eligibility.adapters.basescan import BasescanAdapter
from airdrop_eligibility.adapters.hop import HopAdapter
from airdrop_eligibility.adapters.http import HttpJsonClient
from airdrop_eligibility.adapters.kaito import KaitoAdapter
from airdrop_eligibility.adapters.neynar import NeynarAdapter
from airdrop_eligibility.adapters.orbiter import OrbiterAdapter
from airdrop_eligibility.analysis_engine.cache import ResultCache
from airdrop_eligibility.analysis_engine.chain_engine import ChainEngine
from airdrop_eligibility.analysis_engine.engine import ScoringEngine
from airdrop_eligibility.analysis_engine.hop_engine import HopEngine
from airdrop_eligibility.analysis_engine.models import CompositeResult, SourceType
from airdrop_eligibility.analysis_engine.orbiter_engine import OrbiterEngine
from airdrop_eligibility.analysis_engine.orchestrator import AnalysisOrchestrator
from airdrop_eligibility.analysis_engine.reputation import ReputationEngine
from airdrop_eligibility.analysis_engine.social_graph import SocialGraphEngine
from airdrop_eligibility.config import Settings, get_settings
from airdrop_eligibility.config.env import (
    get_api_url,
    get_basescan_api_key,
    get_hop_lp_positions_url,
    get_neynar_api_key,
)
from airdrop_eligibility.eligibility_logging import get_logger

logger = get_logger(__name__)


def _client(settings: Settings, source: SourceType, api: str, headers: dict[str, str] | None = None) -> HttpJsonClient:
    return HttpJsonClient(
        source.value,
        get_api_url(api),
        headers=headers,
        timeout_sec=settings.timeout_for(source.value),
        max_retries=settings.max_retries,
        retry_delay_sec=settings.retry_delay_sec,
    )


def build_engines(settings: Settings, cache: ResultCache) -> list[ScoringEngine]:
    """One engine per source, all sharing the given cache."""
    neynar_key = get_neynar_api_key()
    neynar_headers = {"x-api-key": neynar_key} if neynar_key else None

    lp_client = None
    lp_path = ""
    lp_url = get_hop_lp_positions_url()
    if lp_url:
        parts = urlsplit(lp_url)
        lp_client = HttpJsonClient(
            SourceType.HOP.value,
            f"{parts.scheme}://{parts.netloc}",
            timeout_sec=settings.timeout_for(SourceType.HOP.value),
            max_retries=settings.max_retries,
            retry_delay_sec=settings.retry_delay_sec,
        )
        lp_path = parts.path + (f"?{parts.query}" if parts.query else "")

    def timeout(source: SourceType) -> float:
        # engine bound covers every retry of the adapter call
        return settings.timeout_for(source.value) * settings.max_retries

    return [
        ChainEngine(
            BasescanAdapter(_client(settings, SourceType.ONCHAIN, "basescan"), get_basescan_api_key()),
            cache,
            timeout_sec=timeout(SourceType.ONCHAIN),
        ),
        SocialGraphEngine(
            NeynarAdapter(_client(settings, SourceType.FARCASTER, "neynar", neynar_headers)),
            cache,
            timeout_sec=timeout(SourceType.FARCASTER),
        ),
        ReputationEngine(
            KaitoAdapter(_client(settings, SourceType.KAITO, "kaito")),
            cache,
            timeout_sec=timeout(SourceType.KAITO),
        ),
        OrbiterEngine(
            OrbiterAdapter(_client(settings, SourceType.ORBITER, "orbiter")),
            cache,
            timeout_sec=timeout(SourceType.ORBITER),
        ),
        HopEngine(
            HopAdapter(
                _client(settings, SourceType.HOP, "hop"),
                lp_client=lp_client,
                lp_path_template=lp_path,
            ),
            cache,
            timeout_sec=timeout(SourceType.HOP),
        ),
    ]


def build_orchestrator(
    settings: Settings | None = None,
    cache: ResultCache | None = None,
) -> AnalysisOrchestrator:
    """Orchestrator over all five sources with a shared per-source TTL cache."""
    settings = settings or get_settings()
    if cache is None:
        cache = ResultCache(settings.cache_ttls)
    engines = build_engines(settings, cache)
    logger.info(
        "orchestrator_built",
        sources=[e.name for e in engines],
        weights=settings.source_weights,
        deadline_sec=settings.deadline_sec,
    )
    return AnalysisOrchestrator(
        engines, weights=settings.source_weights, deadline_sec=settings.deadline_sec
    )


def run_analysis(identity: str, settings: Settings | None = None) -> CompositeResult:
    """Blocking single-identity analysis; closes network clients before returning."""

    async def _run() -> CompositeResult:
        orchestrator = build_orchestrator(settings)
        try:
            return await orchestrator.analyze_identity(identity)
        finally:
            await orchestrator.aclose()

    return asyncio.run(_run())
