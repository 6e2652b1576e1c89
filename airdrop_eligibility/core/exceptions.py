"""
Application-level exceptions.

- InvalidIdentityError: input is neither a chain address nor a platform handle.
- AdapterError: a source adapter could not produce records (network, auth, HTTP status).
- AdapterTimeoutError / MalformedRecordError: timeout and unparseable payload variants.

Engines convert AdapterError (and subclasses) into default results; only
InvalidIdentityError and programming errors reach the caller.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any


class EligibilityError(Exception):
    """Base class for all eligibility-engine errors."""


class InvalidIdentityError(EligibilityError, ValueError):
    """Identity string does not look like an address or a handle."""

    def __init__(self, raw: str, reason: str) -> None:
        super().__init__(f"invalid identity {raw!r}: {reason}")
        self.raw = raw
        self.reason = reason


class AdapterError(EligibilityError):
    """
    A source adapter failed to return records.

    Distinguishable from "no data": adapters return an empty list for identities
    without records and raise AdapterError only for real failures.
    """

    def __init__(
        self,
        message: str,
        *,
        source: str,
        code: str = "ADAPTER_ERROR",
        retryable: bool = False,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.source = source
        self.code = code
        self.retryable = retryable
        self.context = dict(context or {})
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "source": self.source,
            "retryable": self.retryable,
            "timestamp": self.timestamp.isoformat(),
            "context": dict(self.context),
        }


class AdapterTimeoutError(AdapterError):
    """Adapter call exceeded its configured timeout."""

    def __init__(self, source: str, timeout_sec: float) -> None:
        super().__init__(
            f"{source} did not respond within {timeout_sec:g}s",
            source=source,
            code="TIMEOUT",
            retryable=True,
            context={"timeout_sec": timeout_sec},
        )


class MalformedRecordError(AdapterError):
    """Adapter payload could not be coerced into the record schema."""

    def __init__(self, source: str, detail: str, *, index: int | None = None) -> None:
        context: dict[str, Any] = {"detail": detail}
        if index is not None:
            context["index"] = index
        super().__init__(
            f"{source} returned malformed data: {detail}",
            source=source,
            code="MALFORMED_RECORD",
            context=context,
        )
