"""
Test that eligibility_logging can be imported without circular import and logger works.
"""

from __future__ import annotations


def test_logging_import():
    """Import get_logger from eligibility_logging and use the logger."""
    from airdrop_eligibility.eligibility_logging import get_logger

    logger = get_logger("test")
    assert logger is not None
    assert hasattr(logger, "info")
    assert hasattr(logger, "debug")
    assert hasattr(logger, "warning")
    assert hasattr(logger, "error")
    # Smoke test: call info (should not raise)
    logger.info("test_message", key="value")


def test_bind_identity_logs_with_context():
    """bind_identity returns a logger usable with extra keyword context."""
    from airdrop_eligibility.eligibility_logging import bind_identity

    log = bind_identity("0x" + "a" * 40)
    log.info("test_bound_message", source="onchain", score=10)


def test_shorten_identity_processor():
    """Long addresses are shortened in log events."""
    from airdrop_eligibility.eligibility_logging.logger import _shorten_identity

    event = _shorten_identity(None, "info", {"identity": "0x" + "a" * 40})
    assert event["identity"] == "0xaaaaaaaa..."
    event = _shorten_identity(None, "info", {"identity": "alice"})
    assert event["identity"] == "alice"


def test_normalize_event_renames_event_key():
    """The event key is renamed to event_type."""
    from airdrop_eligibility.eligibility_logging.logger import _normalize_event

    event = _normalize_event(None, "info", {"event": "engine_scored"})
    assert event["event_type"] == "engine_scored"
    assert event["message"] == "engine_scored"
    assert "event" not in event
