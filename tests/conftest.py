"""
Pytest fixtures for eligibility engine tests. Fake adapters live in fakes.py.
"""

from __future__ import annotations

import pytest

from airdrop_eligibility.analysis_engine.cache import ResultCache
from fakes import ManualClock


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    """Keep developer env (API keys, weights, URLs) out of config tests."""
    for name in (
        "SOURCE_WEIGHTS",
        "ANALYSIS_DEADLINE_SEC",
        "ADAPTER_MAX_RETRIES",
        "ADAPTER_RETRY_DELAY_SEC",
        "HOP_LP_POSITIONS_URL",
        "NEYNAR_API_KEY",
        "KAITO_API_URL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def manual_clock():
    return ManualClock()


@pytest.fixture
def cache(manual_clock):
    """Shared result cache on a hand-driven clock: 300s for social sources, 600s for bridges."""
    return ResultCache(
        {"onchain": 300, "farcaster": 300, "kaito": 300, "orbiter": 600, "hop": 600},
        clock=manual_clock,
    )
