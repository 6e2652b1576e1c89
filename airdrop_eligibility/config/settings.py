"""
Application settings.

Responsibilities:
- Read timeouts, retry policy, cache TTLs, the overall analysis deadline and
  per-source weights from the environment (see config.env).
- Validate and clamp values; provide defaults for everything.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from airdrop_eligibility.config.env import get_env_float, get_env_int, get_env_str

DEFAULT_DEADLINE_SEC = 30.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY_SEC = 1.0

# Per-source adapter timeouts (seconds)
DEFAULT_TIMEOUTS: dict[str, float] = {
    "onchain": 15.0,
    "farcaster": 15.0,
    "kaito": 10.0,
    "orbiter": 30.0,
    "hop": 45.0,
}

# Per-source cache TTLs (seconds): social data 5 min, bridge history longer
DEFAULT_CACHE_TTLS: dict[str, float] = {
    "onchain": 300.0,
    "farcaster": 300.0,
    "kaito": 300.0,
    "orbiter": 600.0,
    "hop": 600.0,
}

# Max contribution of each source to the composite score; unlisted sources are unweighted
DEFAULT_SOURCE_WEIGHTS: dict[str, float] = {
    "onchain": 0.40,
    "farcaster": 0.30,
    "kaito": 0.30,
}


def parse_weights(raw: str) -> dict[str, float]:
    """
    Parse "onchain=0.4,farcaster=0.3" into a dict. Malformed or negative entries are skipped.
    """
    weights: dict[str, float] = {}
    for part in raw.split(","):
        name, sep, value = part.partition("=")
        name = name.strip().lower()
        if not sep or not name:
            continue
        try:
            weight = float(value)
        except ValueError:
            continue
        if weight >= 0:
            weights[name] = weight
    return weights


@dataclass
class Settings:
    """Runtime settings for adapters, engines, cache and orchestrator."""

    deadline_sec: float = DEFAULT_DEADLINE_SEC
    """Overall analysis deadline; sources still running are cancelled and reported failed."""

    max_retries: int = DEFAULT_MAX_RETRIES
    """Attempts per adapter HTTP request (1 = no retry)."""

    retry_delay_sec: float = DEFAULT_RETRY_DELAY_SEC
    """Initial backoff delay; doubled after every failed attempt."""

    timeouts: dict[str, float] = field(default_factory=lambda: dict(DEFAULT_TIMEOUTS))
    cache_ttls: dict[str, float] = field(default_factory=lambda: dict(DEFAULT_CACHE_TTLS))
    source_weights: dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_SOURCE_WEIGHTS)
    )

    def __post_init__(self) -> None:
        self.deadline_sec = max(1.0, float(self.deadline_sec))
        self.max_retries = max(1, min(10, int(self.max_retries)))
        self.retry_delay_sec = max(0.0, float(self.retry_delay_sec))

    def timeout_for(self, source: str) -> float:
        return self.timeouts.get(source, DEFAULT_TIMEOUTS.get(source, 15.0))

    def ttl_for(self, source: str) -> float:
        return self.cache_ttls.get(source, DEFAULT_CACHE_TTLS.get(source, 300.0))


def get_settings() -> Settings:
    """
    Build Settings from the environment.

    Env: ANALYSIS_DEADLINE_SEC, ADAPTER_MAX_RETRIES, ADAPTER_RETRY_DELAY_SEC,
    <SOURCE>_TIMEOUT_SEC, <SOURCE>_CACHE_TTL_SEC, SOURCE_WEIGHTS.
    """
    timeouts = {
        source: get_env_float(f"{source.upper()}_TIMEOUT_SEC", default)
        for source, default in DEFAULT_TIMEOUTS.items()
    }
    ttls = {
        source: get_env_float(f"{source.upper()}_CACHE_TTL_SEC", default)
        for source, default in DEFAULT_CACHE_TTLS.items()
    }
    weights_raw = get_env_str("SOURCE_WEIGHTS")
    weights = parse_weights(weights_raw) if weights_raw else dict(DEFAULT_SOURCE_WEIGHTS)
    return Settings(
        deadline_sec=get_env_float("ANALYSIS_DEADLINE_SEC", DEFAULT_DEADLINE_SEC),
        max_retries=get_env_int("ADAPTER_MAX_RETRIES", DEFAULT_MAX_RETRIES),
        retry_delay_sec=get_env_float("ADAPTER_RETRY_DELAY_SEC", DEFAULT_RETRY_DELAY_SEC),
        timeouts=timeouts,
        cache_ttls=ttls,
        source_weights=weights or dict(DEFAULT_SOURCE_WEIGHTS),
    )
