"""
Tests for adapter record schemas, payload validation, the retrying HTTP client
and the per-provider response shaping. HTTP is served by httpx.MockTransport.
"""

from __future__ import annotations

import asyncio

import httpx
import pytest

from airdrop_eligibility.adapters.base import parse_records
from airdrop_eligibility.adapters.basescan import BasescanAdapter
from airdrop_eligibility.adapters.hop import HopAdapter
from airdrop_eligibility.adapters.http import HttpJsonClient
from airdrop_eligibility.adapters.kaito import KaitoAdapter
from airdrop_eligibility.adapters.neynar import NeynarAdapter
from airdrop_eligibility.adapters.orbiter import OrbiterAdapter
from airdrop_eligibility.adapters.schemas import (
    BridgeTransferRecord,
    ChainTransaction,
    ReputationProfileRecord,
    SocialProfileRecord,
)
from airdrop_eligibility.analysis_engine.identity import classify_identity
from airdrop_eligibility.core.exceptions import (
    AdapterError,
    AdapterTimeoutError,
    MalformedRecordError,
)
from fakes import ADDRESS, HANDLE, cast, profile


def _client(handler, source="test", base_url="https://api.example.test/v1", **kwargs):
    kwargs.setdefault("retry_delay_sec", 0)
    return HttpJsonClient(source, base_url, transport=httpx.MockTransport(handler), **kwargs)


def _fetch(adapter, identity):
    async def run():
        try:
            return await adapter.fetch_records(identity)
        finally:
            await adapter.aclose()

    return asyncio.run(run())


# --- Schemas ---


def test_chain_transaction_coercion_and_defaults():
    """Numeric strings are coerced and missing fields take their defaults."""
    tx = ChainTransaction.model_validate(
        {"hash": "0x1", "to": "", "input": "", "value": "1000", "isError": "1", "timeStamp": "1717243200"}
    )
    assert tx.value == 1000
    assert tx.is_error
    assert tx.input == "0x"
    assert tx.to_address == ""
    assert tx.chain_id == 8453
    assert tx.timestamp.tzinfo is not None
    assert not tx.is_contract_call


def test_chain_transaction_contract_call():
    """A transaction with a target and call data counts as a contract call."""
    tx = ChainTransaction.model_validate({"hash": "0x1", "to": "0xABC", "input": "0xa9059cbb"})
    assert tx.to_address == "0xabc"
    assert tx.is_contract_call


def test_bridge_transfer_defaults():
    """Missing bridge transfer fields default to mainnet, ETH and a completed status."""
    record = BridgeTransferRecord.model_validate(
        {"amount": "250.5", "status": "weird", "token": "usdc", "fromChain": None}, context={"index": 3}
    )
    assert record.id == "tx_3"
    assert record.amount_usd == 250.5
    assert record.status == "completed"
    assert record.from_token == "USDC"
    assert record.to_token == "USDC"
    assert record.from_chain == 1
    assert record.to_chain == 1
    assert record.timestamp.tzinfo is not None


def test_bridge_transfer_clamps_negative_amount_and_keeps_failed_status():
    """Negative amounts become zero while a failed status is kept."""
    record = BridgeTransferRecord.model_validate({"id": "a", "amount_usd": -5, "status": "FAILED"})
    assert record.amount_usd == 0.0
    assert record.status == "failed"


def test_unix_seconds_and_milliseconds_agree():
    """Unix timestamps in seconds and milliseconds parse to the same instant."""
    seconds = BridgeTransferRecord.model_validate({"id": "a", "timestamp": 1717243200})
    millis = BridgeTransferRecord.model_validate({"id": "a", "timestamp": 1717243200000})
    assert seconds.timestamp == millis.timestamp


def test_social_profile_lifts_nested_fields():
    """Nested Neynar fields are lifted onto the profile and the score is capped at 1."""
    record = SocialProfileRecord.model_validate(
        profile(
            score=1.7,
            verifications=["0xABC"],
            verified_accounts=[{"platform": "x", "username": "alice"}],
            casts=[cast(1, likes=2, recasts=1, replies=3)],
        )
    )
    assert record.neynar_score == 1.0
    assert record.verified_addresses == ["0xabc"]
    assert record.verified_accounts == ["x"]
    assert record.casts[0].engagement == 6
    assert record.is_active


def test_reputation_profile_int_user_id():
    """An integer Kaito user id is stored as a string."""
    record = ReputationProfileRecord.model_validate({"user_id": 42, "username": HANDLE, "leaderboard_rank": ""})
    assert record.user_id == "42"
    assert record.leaderboard_rank is None
    assert record.yaps_all == 0.0


# --- parse_records ---


def test_parse_records_rejects_non_list():
    """A payload that is not a list is malformed."""
    with pytest.raises(MalformedRecordError) as exc_info:
        parse_records({"result": []}, ChainTransaction, source="onchain")
    assert exc_info.value.code == "MALFORMED_RECORD"
    assert exc_info.value.source == "onchain"


def test_parse_records_rejects_non_object_item():
    """A list item that is not an object is malformed."""
    with pytest.raises(MalformedRecordError) as exc_info:
        parse_records([{"hash": "0x1"}, "oops"], ChainTransaction, source="onchain")
    assert exc_info.value.context["index"] == 1


def test_parse_records_wraps_validation_error():
    """Schema validation errors surface as MalformedRecordError."""
    with pytest.raises(MalformedRecordError) as exc_info:
        parse_records([{"hash": "0x1"}, {"value": "not-a-number"}], ChainTransaction, source="onchain")
    assert exc_info.value.context["index"] == 1
    assert not exc_info.value.retryable


def test_parse_records_empty_list():
    """An empty list is a valid, empty result."""
    assert parse_records([], ChainTransaction, source="onchain") == []


# --- HttpJsonClient ---


def test_client_retries_server_errors_then_succeeds():
    """5xx responses are retried until a success arrives."""
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) < 3:
            return httpx.Response(503)
        return httpx.Response(200, json={"ok": True})

    client = _client(handler, max_retries=3)
    assert asyncio.run(client.get_json("/ping")) == {"ok": True}
    assert len(calls) == 3


def test_client_does_not_retry_client_errors():
    """A 404 fails fast with a non-retryable error."""
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(404)

    client = _client(handler, max_retries=3)
    with pytest.raises(AdapterError) as exc_info:
        asyncio.run(client.get_json("/missing"))
    assert exc_info.value.code == "HTTP_404"
    assert not exc_info.value.retryable
    assert len(calls) == 1


def test_client_gives_up_after_max_retries():
    """Repeated 429s stop after max_retries with a retryable error."""
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(429)

    client = _client(handler, max_retries=2)
    with pytest.raises(AdapterError) as exc_info:
        asyncio.run(client.get_json("/busy"))
    assert exc_info.value.code == "HTTP_429"
    assert exc_info.value.retryable
    assert len(calls) == 2


def test_client_zero_retries_still_makes_one_attempt():
    """max_retries below one is raised to a single attempt that reports its error."""
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(503)

    client = _client(handler, max_retries=0)
    with pytest.raises(AdapterError) as exc_info:
        asyncio.run(client.get_json("/busy"))
    assert exc_info.value.code == "HTTP_503"
    assert len(calls) == 1


def test_client_timeout_raises_adapter_timeout():
    """A read timeout on every attempt raises AdapterTimeoutError."""
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    client = _client(handler, max_retries=2, timeout_sec=5)
    with pytest.raises(AdapterTimeoutError) as exc_info:
        asyncio.run(client.get_json("/slow"))
    assert exc_info.value.code == "TIMEOUT"


def test_client_connection_error_is_network_error():
    """Connection failures map to NETWORK_ERROR."""
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    client = _client(handler, max_retries=1)
    with pytest.raises(AdapterError) as exc_info:
        asyncio.run(client.get_json("/down"))
    assert exc_info.value.code == "NETWORK_ERROR"


def test_client_non_json_body_is_malformed():
    """A 200 with a non-JSON body is malformed."""
    client = _client(lambda request: httpx.Response(200, text="<html>"))
    with pytest.raises(MalformedRecordError):
        asyncio.run(client.get_json("/html"))


def test_client_requires_base_url():
    """A blank base URL is rejected."""
    with pytest.raises(ValueError):
        HttpJsonClient("test", "  ")


# --- Providers ---


def test_basescan_returns_result_list():
    """Basescan txlist results are validated into chain transactions."""
    def handler(request):
        assert request.url.params["address"] == ADDRESS
        assert request.url.params["action"] == "txlist"
        return httpx.Response(200, json={"status": "1", "message": "OK", "result": [{"hash": "0x1"}]})

    adapter = BasescanAdapter(_client(handler, "onchain"), api_key="k")
    records = _fetch(adapter, classify_identity(ADDRESS))
    assert [r.hash for r in records] == ["0x1"]


def test_basescan_no_transactions_is_empty():
    """The "No transactions found" reply is an empty success."""
    handler = lambda request: httpx.Response(  # noqa: E731
        200, json={"status": "0", "message": "No transactions found", "result": []}
    )
    adapter = BasescanAdapter(_client(handler, "onchain"))
    assert _fetch(adapter, classify_identity(ADDRESS)) == []


def test_basescan_upstream_error_raises():
    """A Basescan NOTOK reply raises UPSTREAM_ERROR."""
    handler = lambda request: httpx.Response(  # noqa: E731
        200, json={"status": "0", "message": "NOTOK", "result": "Invalid API Key"}
    )
    adapter = BasescanAdapter(_client(handler, "onchain"))
    with pytest.raises(AdapterError) as exc_info:
        _fetch(adapter, classify_identity(ADDRESS))
    assert exc_info.value.code == "UPSTREAM_ERROR"


def test_neynar_unknown_username_is_empty():
    """A 404 for an unknown username means no profile."""
    def handler(request):
        assert request.url.path.endswith("/user/by_username")
        return httpx.Response(404, json={"message": "not found"})

    adapter = NeynarAdapter(_client(handler, "farcaster"))
    assert _fetch(adapter, classify_identity(HANDLE)) == []


def test_neynar_by_address_attaches_casts():
    """Address lookup uses the bulk endpoint and attaches the casts feed."""
    user = profile(casts=None)
    del user["casts"]

    def handler(request):
        if request.url.path.endswith("/user/bulk-by-address"):
            return httpx.Response(200, json={ADDRESS: [user]})
        if request.url.path.endswith("/feed/user/casts"):
            assert request.url.params["fid"] == "1234"
            return httpx.Response(200, json={"casts": [cast(1, likes=3)]})
        return httpx.Response(404)

    adapter = NeynarAdapter(_client(handler, "farcaster"))
    records = _fetch(adapter, classify_identity(ADDRESS))
    assert len(records) == 1
    assert records[0].fid == 1234
    assert records[0].casts[0].likes == 3


def test_kaito_requires_user_id_and_username():
    """A Kaito reply without user_id and username is no profile."""
    handler = lambda request: httpx.Response(200, json={"username": HANDLE})  # noqa: E731
    adapter = KaitoAdapter(_client(handler, "kaito"))
    assert _fetch(adapter, classify_identity(HANDLE)) == []


def test_kaito_profile():
    """A full Kaito reply becomes one reputation record."""
    handler = lambda request: httpx.Response(  # noqa: E731
        200, json={"user_id": "9", "username": HANDLE, "yaps_all": "12.5"}
    )
    adapter = KaitoAdapter(_client(handler, "kaito"))
    records = _fetch(adapter, classify_identity(HANDLE))
    assert records[0].yaps_all == 12.5


def test_orbiter_maps_chain_names():
    """Orbiter chain names are mapped to chain ids."""
    item = {"hash": "0x1", "fromChain": "arbitrum", "toChain": "zksync", "token": "usdc", "amount": "1500"}
    handler = lambda request: httpx.Response(200, json={"data": [item]})  # noqa: E731
    adapter = OrbiterAdapter(_client(handler, "orbiter"))
    records = _fetch(adapter, classify_identity(ADDRESS))
    assert records[0].from_chain == 42161
    assert records[0].to_chain == 324
    assert records[0].from_token == "USDC"
    assert records[0].amount_usd == 1500


def test_hop_bonded_flag_and_positions():
    """Hop bonded flags set the status and LP positions are fetched from the configured endpoint."""
    def handler(request):
        return httpx.Response(
            200, json={"data": [{"transferId": "a", "bonded": False}, {"transferId": "b", "bonded": True}]}
        )

    def lp_handler(request):
        assert ADDRESS in request.url.path
        return httpx.Response(200, json={"positions": [{"pool": "USDC", "liquidity_usd": 100}]})

    adapter = HopAdapter(
        _client(handler, "hop"),
        lp_client=_client(lp_handler, "hop", base_url="https://lp.example.test"),
        lp_path_template="/positions/{address}",
    )
    ident = classify_identity(ADDRESS)

    async def run():
        try:
            return await adapter.fetch_records(ident), await adapter.fetch_positions(ident)
        finally:
            await adapter.aclose()

    transfers, positions = asyncio.run(run())
    assert [t.status for t in transfers] == ["pending", "completed"]
    assert positions[0].liquidity_usd == 100
    assert positions[0].is_active


def test_hop_without_lp_endpoint_has_no_positions():
    """Without an LP endpoint Hop returns no positions."""
    adapter = HopAdapter(_client(lambda request: httpx.Response(200, json={"data": []}), "hop"))
    ident = classify_identity(ADDRESS)
    assert asyncio.run(adapter.fetch_positions(ident)) == []
