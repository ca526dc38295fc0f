from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from sportx.schemas import SportEvent, SportEventsResponse


class CatalogPayloadError(ValueError):
    """Raised when a catalog payload does not match the expected shape."""


def _extract_events(payload: Any) -> Any:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        candidates: tuple[Any, ...] = (
            payload.get("events"),
            payload.get("data"),
            payload.get("result"),
        )
        return next((value for value in candidates if isinstance(value, list)), None)
    return None


def normalize_catalog(payload: Any) -> list[SportEvent]:
    """Validate a raw catalog payload and return its events.

    Accepts ``{"events": [...]}`` (or ``data``/``result`` envelopes) and bare
    lists. A single invalid event rejects the whole payload so consumers never
    see a partial catalog.
    """

    events = _extract_events(payload)
    if events is None:
        raise CatalogPayloadError("Catalog payload does not contain an events list")
    try:
        return SportEventsResponse.model_validate({"events": events}).events
    except ValidationError as exc:
        raise CatalogPayloadError(f"Invalid catalog payload: {exc}") from exc
