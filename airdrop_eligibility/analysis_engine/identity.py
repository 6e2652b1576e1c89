"""
Identity classification: chain address vs platform handle.

Addresses are 0x-prefixed 40-hex strings; handles are platform usernames with
an optional leading '@'. Anything else is rejected.
"""

from __future__ import annotations

import re

from airdrop_eligibility.analysis_engine.models import Identity, IdentityKind
from airdrop_eligibility.core.exceptions import InvalidIdentityError

ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
HANDLE_RE = re.compile(r"^[A-Za-z0-9_.\-]{1,64}$")


def is_address(value: str) -> bool:
    return bool(ADDRESS_RE.match(value or ""))


def classify_identity(raw: str) -> Identity:
    """
    Classify and normalize an identity string.

    Raises:
        InvalidIdentityError: empty input, a malformed 0x address, or a handle
            with characters outside [A-Za-z0-9_.-].
    """
    text = (raw or "").strip()
    if not text:
        raise InvalidIdentityError(raw, "empty identity")
    if text[:2].lower() == "0x":
        if not ADDRESS_RE.match(text):
            raise InvalidIdentityError(raw, "address must be 0x followed by 40 hex characters")
        return Identity(raw=text, kind=IdentityKind.ADDRESS, value=text.lower())
    handle = text.lstrip("@")
    if not HANDLE_RE.match(handle):
        raise InvalidIdentityError(raw, "handle may contain letters, digits, '_', '.', '-'")
    return Identity(raw=text, kind=IdentityKind.HANDLE, value=handle)
