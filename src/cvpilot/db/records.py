from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, TypeVar

from pydantic import ValidationError

from cvpilot.types import Record

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

RecordT = TypeVar("RecordT", bound=Record)


def encode_list(items: Sequence[Record]) -> dict[str, Any]:
    return {"version": SCHEMA_VERSION, "items": [item.to_json() for item in items]}


def encode_one(item: Record) -> dict[str, Any]:
    return {"version": SCHEMA_VERSION, "data": item.to_json()}


def decode_list(payload: Any, model: type[RecordT], *, key: str) -> list[RecordT]:
    """Decode a stored list, dropping items that fail validation.

    Accepts the versioned envelope as well as a bare JSON list.
    """
    raw_items = _unwrap(payload, "items", key=key)
    if raw_items is None:
        return []
    if not isinstance(raw_items, list):
        logger.error("Stored value for key=%s is not a list; ignoring", key)
        return []

    items: list[RecordT] = []
    for index, raw in enumerate(raw_items):
        try:
            items.append(model.model_validate(raw))
        except ValidationError as exc:
            logger.warning(
                "Dropping invalid %s at key=%s index=%s: %s",
                model.__name__,
                key,
                index,
                exc.error_count(),
            )
    return items


def decode_one(payload: Any, model: type[RecordT], *, key: str) -> RecordT | None:
    raw = _unwrap(payload, "data", key=key)
    if raw is None:
        return None
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        logger.error("Invalid %s at key=%s: %s", model.__name__, key, exc)
        return None


def _unwrap(payload: Any, field: str, *, key: str) -> Any | None:
    if payload is None:
        return None
    if isinstance(payload, dict) and "version" in payload and field in payload:
        version = payload.get("version")
        if not isinstance(version, int) or version > SCHEMA_VERSION:
            logger.error("Unsupported schema version=%r at key=%s; ignoring", version, key)
            return None
        return payload[field]
    # Pre-envelope data written as a bare list or object.
    return payload
