"""
Configuration management for the eligibility engine.

Loads settings from environment variables and an optional .env file at the
project root. Exposes a single source of truth for timeouts, cache TTLs,
source weights and adapter endpoints.
"""

from airdrop_eligibility.config.settings import Settings, get_settings  # noqa: F401

__all__ = ["Settings", "get_settings"]
