"""Storage contracts shared by the adapters and their consumers."""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Literal, Protocol

from pydantic import TypeAdapter

StorageName = Literal["localStorage", "sessionStorage", "memoryStorage"]
WebStorageName = Literal["localStorage", "sessionStorage"]

# Model class, type expression (``Betslip | None``) or ``TypeAdapter``.
Schema = Any


class UnknownStorageError(LookupError):
    """Raised when a storage backend name is not registered."""


class StorageAccessError(RuntimeError):
    """Raised by storage areas when the underlying backend cannot be used."""


class StorageAdapter(Protocol):
    """Key/value surface implemented by every storage backend."""

    def get_item(self, key: str, schema: Schema | None = None) -> Any | None:
        """Return the stored value, validated against ``schema``, or ``None``."""

    def set_item(self, key: str, value: Any) -> None:
        """Store ``value``; never raises."""

    def remove_item(self, key: str) -> None:
        """Remove ``key``; never raises."""

    def clear(self) -> None:
        """Remove every key; never raises."""


class StorageArea(Protocol):
    """Raw string storage shared between browsing contexts of one origin."""

    name: str
    source: str

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...

    def clear(self) -> None: ...

    def keys(self) -> list[str]: ...


@lru_cache(maxsize=None)
def _cached_adapter(schema: Any) -> TypeAdapter[Any]:
    return TypeAdapter(schema)


def as_type_adapter(schema: Schema) -> TypeAdapter[Any]:
    """Return a pydantic ``TypeAdapter`` for a model class, type or adapter."""

    if isinstance(schema, TypeAdapter):
        return schema
    try:
        return _cached_adapter(schema)
    except TypeError:
        # Unhashable type expressions cannot be cached.
        return TypeAdapter(schema)


__all__ = [
    "Schema",
    "StorageAccessError",
    "StorageAdapter",
    "StorageArea",
    "StorageName",
    "UnknownStorageError",
    "WebStorageName",
    "as_type_adapter",
]
