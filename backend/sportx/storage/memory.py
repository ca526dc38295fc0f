from __future__ import annotations

import copy
from typing import Any

from loguru import logger
from pydantic import ValidationError

from .types import Schema, as_type_adapter


class MemoryStorage:
    """Volatile in-process storage keeping values as Python objects.

    Values are copied in and out, so callers never share state with the store.
    """

    def __init__(self) -> None:
        self._items: dict[str, Any] = {}

    def get_item(self, key: str, schema: Schema | None = None) -> Any | None:
        value = self._items.get(key)
        if value is None:
            return None
        if schema is None:
            return copy.deepcopy(value)
        try:
            return as_type_adapter(schema).validate_python(copy.deepcopy(value))
        except ValidationError as exc:
            logger.bind(topic="MemoryStorage", action="get_item").error(
                "Item {!r} failed validation: {}", key, exc
            )
            return None

    def set_item(self, key: str, value: Any) -> None:
        logger.bind(topic="MemoryStorage", action="set_item").debug(
            "Setting key {!r} with value: {!r}", key, value
        )
        self._items = {**self._items, key: copy.deepcopy(value)}

    def remove_item(self, key: str) -> None:
        log = logger.bind(topic="MemoryStorage", action="remove_item")
        if key not in self._items:
            log.error("Key {!r} does not exist in storage.", key)
            return
        log.debug("Removing item with key {!r}", key)
        self._items = {name: value for name, value in self._items.items() if name != key}

    def clear(self) -> None:
        logger.bind(topic="MemoryStorage", action="clear").debug(
            "Clearing all items from storage."
        )
        self._items = {}

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, key: object) -> bool:
        return key in self._items
