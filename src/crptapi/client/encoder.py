# SPDX-License-Identifier: Apache-2.0
"""Serialization of documents and request envelopes."""

from __future__ import annotations

import dataclasses
import datetime as dt
import json
from decimal import Decimal
from typing import Any, Protocol, runtime_checkable
from uuid import UUID

from pydantic import BaseModel

from crptapi.errors import EncodingError


@runtime_checkable
class Encoder(Protocol):
    """Protocol for payload encoders."""

    def serialize(self, value: Any) -> bytes:
        """Serialize ``value`` to bytes.

        Raises:
            EncodingError: If the value cannot be serialized
        """
        ...


def _json_default(value: Any) -> Any:
    if isinstance(value, (dt.datetime, dt.date, dt.time)):
        return value.isoformat()
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class JsonEncoder:
    """Compact UTF-8 JSON encoder.

    Pydantic models are dumped by alias, dataclasses through
    :func:`dataclasses.asdict`; mappings, lists and scalars go straight to
    :func:`json.dumps`. ``bytes`` are treated as already encoded.
    """

    def __init__(self, *, by_alias: bool = True, exclude_none: bool = False) -> None:
        self.by_alias = by_alias
        self.exclude_none = exclude_none

    def serialize(self, value: Any) -> bytes:
        if isinstance(value, (bytes, bytearray)):
            return bytes(value)
        try:
            payload = self._to_jsonable(value)
            text = json.dumps(
                payload, ensure_ascii=False, separators=(",", ":"), default=_json_default
            )
        except (TypeError, ValueError) as e:
            raise EncodingError(f"Cannot serialize {type(value).__name__}: {e}") from e
        return text.encode("utf-8")

    def _to_jsonable(self, value: Any) -> Any:
        if isinstance(value, BaseModel):
            return value.model_dump(
                mode="json", by_alias=self.by_alias, exclude_none=self.exclude_none
            )
        if dataclasses.is_dataclass(value) and not isinstance(value, type):
            return dataclasses.asdict(value)
        return value


def get_default_encoder() -> Encoder:
    """Get default encoder implementation."""
    return JsonEncoder()


__all__ = ["Encoder", "JsonEncoder", "get_default_encoder"]
