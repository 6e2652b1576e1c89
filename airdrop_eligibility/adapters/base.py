"""
Abstract source adapter contract.

fetch_records(identity) -> list of validated records, or raises AdapterError.
Validation into the adapter's pydantic record_model happens here, at the
boundary, so malformed upstream data is rejected before any engine sees it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, ClassVar

from pydantic import ValidationError

from airdrop_eligibility.adapters.schemas import LiquidityPositionRecord, RecordModel
from airdrop_eligibility.analysis_engine.models import Identity
from airdrop_eligibility.core.exceptions import MalformedRecordError


def _first_error(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    err = errors[0]
    loc = ".".join(str(p) for p in err.get("loc", ()))
    return f"{loc}: {err.get('msg', 'invalid value')}" if loc else str(err.get("msg"))


def parse_records(payload: Any, model: type[RecordModel], *, source: str) -> list[Any]:
    """
    Validate a list payload into records of the given model.

    Raises:
        MalformedRecordError: payload is not a list, an item is not an object,
            or an item fails schema validation.
    """
    if not isinstance(payload, list):
        raise MalformedRecordError(source, f"expected a list, got {type(payload).__name__}")
    records: list[Any] = []
    for index, item in enumerate(payload):
        if not isinstance(item, Mapping):
            raise MalformedRecordError(source, "record is not an object", index=index)
        try:
            records.append(model.model_validate(dict(item), context={"index": index}))
        except ValidationError as e:
            raise MalformedRecordError(source, _first_error(e), index=index) from e
    return records


class SourceAdapter(ABC):
    """
    One external data provider.

    Subclasses set source and record_model and implement _fetch_payload. They own
    authentication and retry policy; callers only see records or AdapterError.
    """

    source: ClassVar[str] = ""
    record_model: ClassVar[type[RecordModel]]

    async def fetch_records(self, identity: Identity) -> list[Any]:
        payload = await self._fetch_payload(identity)
        return parse_records(payload, self.record_model, source=self.source)

    @abstractmethod
    async def _fetch_payload(self, identity: Identity) -> Any:
        """Return the raw list payload for the identity (empty list when there is no data)."""

    async def aclose(self) -> None:
        """Release network resources. Default: nothing to release."""


class BridgeAdapter(SourceAdapter):
    """Bridge protocol adapter: transfer history plus liquidity positions."""

    position_model: ClassVar[type[RecordModel]] = LiquidityPositionRecord

    async def fetch_positions(self, identity: Identity) -> list[Any]:
        payload = await self._fetch_positions_payload(identity)
        return parse_records(payload, self.position_model, source=self.source)

    async def _fetch_positions_payload(self, identity: Identity) -> Any:
        """Raw liquidity positions; protocols without an LP endpoint return []."""
        return []
