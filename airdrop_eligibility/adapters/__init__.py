"""
Source adapters: one per external data provider.

Each adapter fetches raw payloads for an identity and validates them into typed
records (see schemas). Failures surface as AdapterError; "no data" is an empty list.
"""

from airdrop_eligibility.adapters.base import BridgeAdapter, SourceAdapter, parse_records
from airdrop_eligibility.adapters.http import HttpJsonClient

__all__ = ["SourceAdapter", "BridgeAdapter", "parse_records", "HttpJsonClient"]
