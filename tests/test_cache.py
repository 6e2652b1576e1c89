"""
Tests for the per-source TTL result cache and engine caching behaviour.
"""

from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor

from airdrop_eligibility.analysis_engine.cache import ResultCache
from airdrop_eligibility.analysis_engine.chain_engine import ChainEngine
from airdrop_eligibility.analysis_engine.identity import classify_identity
from airdrop_eligibility.core.exceptions import AdapterError
from fakes import ADDRESS, ManualClock, chain_adapter, fixed_clock, tx


def test_get_missing_returns_none(cache):
    """An unknown key reads as absent."""
    assert cache.get("onchain", ADDRESS) is None
    assert len(cache) == 0


def test_fresh_entry_is_returned(cache, manual_clock):
    """An entry within its TTL is returned."""
    cache.set("onchain", ADDRESS, {"score": 10})
    manual_clock.advance(299)
    assert cache.get("onchain", ADDRESS) == {"score": 10}


def test_entry_at_exact_ttl_is_still_fresh(cache, manual_clock):
    """An entry exactly at its TTL is still fresh."""
    cache.set("onchain", ADDRESS, "payload")
    manual_clock.advance(300)
    assert cache.get("onchain", ADDRESS) == "payload"


def test_entry_past_ttl_reads_as_absent(cache, manual_clock):
    """An entry past its TTL reads as absent."""
    cache.set("onchain", ADDRESS, "payload")
    manual_clock.advance(300.5)
    assert cache.get("onchain", ADDRESS) is None


def test_ttl_is_per_source(cache, manual_clock):
    """Bridge history is cached longer than social data."""
    cache.set("farcaster", ADDRESS, "social")
    cache.set("hop", ADDRESS, "bridge")
    manual_clock.advance(450)
    assert cache.get("farcaster", ADDRESS) is None
    assert cache.get("hop", ADDRESS) == "bridge"
    assert cache.ttl_for("unknown") == 300


def test_keys_are_per_source_and_identity(cache):
    """Entries are keyed by source and identity together."""
    cache.set("onchain", ADDRESS, 1)
    cache.set("farcaster", ADDRESS, 2)
    cache.set("onchain", "alice", 3)
    assert cache.get("onchain", ADDRESS) == 1
    assert cache.get("farcaster", ADDRESS) == 2
    assert cache.get("onchain", "alice") == 3
    assert len(cache) == 3


def test_expired_entry_is_overwritten(cache, manual_clock):
    """A write after expiry replaces the stale entry."""
    cache.set("onchain", ADDRESS, "old")
    manual_clock.advance(400)
    cache.set("onchain", ADDRESS, "new")
    assert cache.get("onchain", ADDRESS) == "new"
    assert len(cache) == 1


def test_clear(cache):
    """clear() drops every entry."""
    cache.set("onchain", ADDRESS, 1)
    cache.clear()
    assert len(cache) == 0


def test_concurrent_writers_and_readers():
    """Parallel set/get from threads must not corrupt the map."""
    cache = ResultCache(default_ttl_sec=60)

    def work(i):
        cache.set("onchain", f"id{i % 50}", i)
        return cache.get("onchain", f"id{i % 50}")

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(work, range(400)))
    assert len(cache) == 50
    assert all(r is not None for r in results)


# --- Engine caching ---


def test_engine_hits_adapter_once_within_ttl():
    """Two analyses within the TTL fetch once; after expiry the adapter is called again."""
    clock = ManualClock()
    cache = ResultCache({"onchain": 300}, clock=clock)
    adapter = chain_adapter([tx(1)])
    engine = ChainEngine(adapter, cache, clock=fixed_clock)
    ident = classify_identity(ADDRESS)

    first = asyncio.run(engine.analyze(ident))
    clock.advance(120)
    second = asyncio.run(engine.analyze(ident))
    assert adapter.calls == 1
    assert second is first

    clock.advance(200)
    asyncio.run(engine.analyze(ident))
    assert adapter.calls == 2


def test_engine_does_not_cache_failures():
    """Failed results are never cached."""
    clock = ManualClock()
    cache = ResultCache(clock=clock)
    adapter = chain_adapter(error=AdapterError("boom", source="onchain", code="HTTP_503"))
    engine = ChainEngine(adapter, cache, clock=fixed_clock)
    ident = classify_identity(ADDRESS)

    asyncio.run(engine.analyze(ident))
    asyncio.run(engine.analyze(ident))
    assert adapter.calls == 2
    assert len(cache) == 0
