"""Runtime registry of named storage backends."""

from __future__ import annotations

from typing import Any

from .memory import MemoryStorage
from .types import StorageAdapter, StorageArea, UnknownStorageError
from .web import WebStorage


class StorageService:
    """Resolve storage backends (``localStorage``, ``sessionStorage``, ...) by name."""

    def __init__(
        self,
        *,
        local_area: StorageArea | None = None,
        session_area: StorageArea | None = None,
        memory: MemoryStorage | None = None,
    ) -> None:
        self._adapters: dict[str, StorageAdapter] = {}
        self.register("memoryStorage", memory or MemoryStorage())
        if local_area is not None:
            self.register("localStorage", WebStorage(local_area))
        if session_area is not None:
            self.register("sessionStorage", WebStorage(session_area))

    def register(self, name: str, adapter: StorageAdapter) -> None:
        """Register or replace the backend served under ``name``."""

        self._adapters[name] = adapter

    def from_storage(self, name: str) -> StorageAdapter:
        try:
            return self._adapters[name]
        except KeyError as exc:
            raise UnknownStorageError(f"StorageService: unsupported storage '{name}'") from exc

    def area(self, name: str) -> StorageArea:
        """Return the shared area behind a web storage backend."""

        adapter = self.from_storage(name)
        area: Any = getattr(adapter, "area", None)
        if area is None:
            raise UnknownStorageError(
                f"StorageService: storage '{name}' is not shared between contexts"
            )
        return area

    def available_storages(self) -> tuple[str, ...]:
        return tuple(sorted(self._adapters))


__all__ = ["StorageService"]
