"""
Structured logging for the eligibility engine.

Use get_logger(__name__) in every module; bind_identity() for per-request context.
"""

from airdrop_eligibility.eligibility_logging.logger import bind_identity, get_logger

__all__ = ["get_logger", "bind_identity"]
