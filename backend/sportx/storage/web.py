from __future__ import annotations

import json
from typing import Any

from loguru import logger
from pydantic import ValidationError
from pydantic_core import to_jsonable_python

from .types import Schema, StorageAccessError, StorageArea, as_type_adapter


def serialize(value: Any) -> str:
    """Encode ``value`` as compact JSON; pydantic models are dumped in JSON mode."""

    return json.dumps(value, default=to_jsonable_python, separators=(",", ":"))


class WebStorage:
    """JSON adapter over a shared storage area.

    Reads are validated against a pydantic schema; every failure is logged and
    surfaces as ``None`` (reads) or a skipped write.
    """

    def __init__(self, area: StorageArea) -> None:
        self.area = area

    def get_item(self, key: str, schema: Schema | None = None) -> Any | None:
        log = logger.bind(topic="WebStorage", action="get_item")
        try:
            raw = self.area.get_item(key)
        except StorageAccessError as exc:
            log.error("Error getting item from the storage: {}", exc)
            return None

        if raw is None:
            return None

        try:
            if schema is None:
                return json.loads(raw)
            return as_type_adapter(schema).validate_json(raw)
        except (ValidationError, ValueError) as exc:
            log.error("Error parsing item {!r} from the storage: {}", key, exc)
            return None

    def set_item(self, key: str, value: Any) -> None:
        log = logger.bind(topic="WebStorage", action="set_item")
        log.debug("Setting key {!r} with value: {!r}", key, value)
        try:
            payload = serialize(value)
        except (TypeError, ValueError) as exc:
            log.error("Error serializing item {!r}: {}", key, exc)
            return
        try:
            self.area.set_item(key, payload)
        except StorageAccessError as exc:
            log.error("Error setting item in the storage: {}", exc)

    def remove_item(self, key: str) -> None:
        log = logger.bind(topic="WebStorage", action="remove_item")
        log.debug("Removing item with key {!r}", key)
        try:
            self.area.remove_item(key)
        except StorageAccessError as exc:
            log.error("Error removing item from the storage: {}", exc)

    def clear(self) -> None:
        log = logger.bind(topic="WebStorage", action="clear")
        log.debug("Clearing all items from storage.")
        try:
            self.area.clear()
        except StorageAccessError as exc:
            log.error("Error clearing the storage: {}", exc)
