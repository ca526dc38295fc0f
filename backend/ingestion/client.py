from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import httpx
from loguru import logger

from sportx.core.config import Settings
from sportx.schemas import SportEvent
from sportx.services.sport_service import CatalogFetchError

from .normalize import CatalogPayloadError, normalize_catalog


class CatalogClient:
    """Load the sport catalog from the catalog API or a local JSON file."""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        events_path: str = "/events",
        path: str | Path | None = None,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if base_url is None and path is None:
            raise ValueError("CatalogClient requires a base_url or a local catalog path")
        self.base_url = base_url
        self.events_path = events_path
        self.path = Path(path) if path is not None else None
        self.timeout = timeout
        self.client = (
            httpx.Client(base_url=base_url, timeout=timeout, transport=transport)
            if base_url is not None
            else None
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "CatalogClient":
        return cls(
            base_url=str(settings.catalog_base_url) if settings.catalog_base_url else None,
            events_path=settings.catalog_events_path,
            path=settings.catalog_path,
            timeout=settings.catalog_timeout_seconds,
        )

    def fetch_payload(self) -> Any:
        if self.client is not None:
            logger.bind(topic="CatalogClient", action="fetch_payload").info(
                "Catalog GET {}{}", self.base_url, self.events_path
            )
            try:
                response = self.client.get(self.events_path)
                response.raise_for_status()
                return response.json()
            except (httpx.HTTPError, ValueError) as exc:
                raise CatalogFetchError(f"Catalog request failed: {exc}") from exc

        assert self.path is not None
        logger.bind(topic="CatalogClient", action="fetch_payload").info(
            "Catalog read {}", self.path
        )
        try:
            return json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise CatalogFetchError(f"Cannot read catalog file {self.path}: {exc}") from exc

    def fetch_events(self) -> list[SportEvent]:
        payload = self.fetch_payload()
        try:
            return normalize_catalog(payload)
        except CatalogPayloadError as exc:
            raise CatalogFetchError(str(exc)) from exc

    def close(self) -> None:
        if self.client is not None:
            self.client.close()

    def __enter__(self) -> "CatalogClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
