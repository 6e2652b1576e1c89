"""
Environment variable loading for the eligibility engine.

- NEYNAR_API_KEY: social-graph API key (sent as the x-api-key header)
- BASESCAN_API_KEY: chain indexer API key
- KAITO_API_URL / ORBITER_API_URL / HOP_API_URL / BASESCAN_API_URL / NEYNAR_API_URL:
  base URL overrides
- HOP_LP_POSITIONS_URL: optional liquidity-position endpoint ({address} placeholder)
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# config is airdrop_eligibility/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_PACKAGE_DIR = _CONFIG_DIR.parent
_ROOT = _PACKAGE_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEFAULT_BASESCAN_API_URL = "https://api.basescan.org/api"
DEFAULT_NEYNAR_API_URL = "https://api.neynar.com/v2/farcaster"
DEFAULT_KAITO_API_URL = "https://api.kaito.ai/api/v1"
DEFAULT_ORBITER_API_URL = "https://api.orbiter.finance"
DEFAULT_HOP_API_URL = "https://explorer-api.hop.exchange/v1"


def load_eligibility_env() -> None:
    """Load .env from project root. Safe to call multiple times; never overrides real env."""
    load_dotenv(_ENV_PATH, override=False)


def get_env_str(name: str, default: str = "") -> str:
    load_eligibility_env()
    return (os.getenv(name) or default).strip()


def get_env_float(name: str, default: float) -> float:
    raw = get_env_str(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def get_env_int(name: str, default: int) -> int:
    raw = get_env_str(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def get_neynar_api_key() -> str:
    return get_env_str("NEYNAR_API_KEY")


def get_basescan_api_key() -> str:
    return get_env_str("BASESCAN_API_KEY")


def get_api_url(source: str) -> str:
    """
    Return base URL for an adapter: <SOURCE>_API_URL env override, else the public default.
    Trailing slash stripped.
    """
    defaults = {
        "basescan": DEFAULT_BASESCAN_API_URL,
        "neynar": DEFAULT_NEYNAR_API_URL,
        "kaito": DEFAULT_KAITO_API_URL,
        "orbiter": DEFAULT_ORBITER_API_URL,
        "hop": DEFAULT_HOP_API_URL,
    }
    key = source.strip().lower()
    if key not in defaults:
        raise ValueError(f"unknown adapter source: {source!r}")
    return get_env_str(f"{key.upper()}_API_URL", defaults[key]).rstrip("/")


def get_hop_lp_positions_url() -> str | None:
    """Liquidity-position endpoint template, or None when not configured."""
    return get_env_str("HOP_LP_POSITIONS_URL") or None
