"""
NASA EONET - open natural-hazard events.

Each event keeps its raw ``geometry`` list (points, polygons, lines).
Point selection is left to ``modules.geo.first_point_location``.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from modules.errors import SourceFetchError

logger = logging.getLogger(__name__)

EONET_EVENTS_URL = "https://eonet.gsfc.nasa.gov/api/v3/events"
SOURCE = "NASA EONET"


def parse_eonet_events(payload: dict[str, Any]) -> list[dict[str, Any]]:
    try:
        raw_events = payload["events"]
    except (KeyError, TypeError) as exc:
        raise SourceFetchError(SOURCE, "response has no 'events' list") from exc
    if not isinstance(raw_events, list):
        raise SourceFetchError(SOURCE, f"'events' is not a list: {type(raw_events).__name__}")

    events: list[dict[str, Any]] = []
    for event in raw_events:
        if not isinstance(event, dict):
            continue
        categories = event.get("categories")
        category = "Unknown"
        if isinstance(categories, list) and categories and isinstance(categories[0], dict):
            category = categories[0].get("title") or "Unknown"
        events.append({
            "id": str(event.get("id", "")),
            "title": event.get("title", ""),
            "category": category,
            "geometry": event.get("geometry") or [],
        })
    return events


async def fetch_eonet_events(*, status: str = "open", limit: int = 50) -> list[dict[str, Any]]:
    """Fetch up to *limit* EONET events with the given *status*."""
    try:
        async with httpx.AsyncClient(timeout=20) as client:
            resp = await client.get(
                EONET_EVENTS_URL,
                params={"status": status, "limit": limit},
                headers={"Accept": "application/json"},
            )
            resp.raise_for_status()
            payload = resp.json()
    except httpx.HTTPStatusError as exc:
        logger.error("EONET request failed: HTTP %d", exc.response.status_code)
        raise SourceFetchError(SOURCE, f"HTTP {exc.response.status_code}") from exc
    except (httpx.HTTPError, ValueError) as exc:
        logger.error("EONET request failed: %s", exc)
        raise SourceFetchError(SOURCE, str(exc)) from exc

    events = parse_eonet_events(payload)
    logger.info("EONET: %d %s events", len(events), status)
    return events
