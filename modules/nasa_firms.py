"""
NASA FIRMS - satellite active-fire detections.

Pulls the area CSV for the last *days* days and keeps the fields the risk
prompt uses: location, brightness temperature (K) and confidence.
"""

from __future__ import annotations

import csv
import io
import logging
import os
from typing import Any

import httpx

from modules.errors import SourceFetchError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

FIRMS_AREA_URL = "https://firms.modaps.eosdis.nasa.gov/api/area/csv/{key}/{source}/{area}/{days}"
FIRMS_DEFAULT_SOURCE = "VIIRS_NOAA20_NRT"
# bright_ti4 is the VIIRS I-4 channel brightness temperature in Kelvin.
FIRMS_COLUMNS = {
    "latitude": "latitude",
    "longitude": "longitude",
    "brightness": "bright_ti4",
    "confidence": "confidence",
}
SOURCE = "NASA FIRMS"


def _nasa_api_key() -> str | None:
    return os.getenv("NASA_API_KEY")


def parse_firms_csv(text: str) -> list[dict[str, Any]]:
    """Parse a FIRMS CSV body into fire-point dicts.

    Rows whose latitude/longitude are not numbers are skipped.
    A missing required column raises SourceFetchError.
    """
    reader = csv.DictReader(io.StringIO(text.strip()))
    headers = reader.fieldnames or []
    missing = [col for col in FIRMS_COLUMNS.values() if col not in headers]
    if missing:
        raise SourceFetchError(
            SOURCE,
            f"required columns {missing} not found in CSV (headers: {', '.join(headers)})",
        )

    points: list[dict[str, Any]] = []
    for row in reader:
        try:
            lat = float(row["latitude"])
            lng = float(row["longitude"])
        except (TypeError, ValueError):
            continue
        try:
            brightness = float(row["bright_ti4"])
        except (TypeError, ValueError):
            brightness = None
        points.append({
            "latitude": lat,
            "longitude": lng,
            "brightness": brightness,
            "confidence": (row.get("confidence") or "").strip(),
        })
    return points


async def fetch_firms_data(
    *,
    area: str = "world",
    days: int = 1,
    source: str = FIRMS_DEFAULT_SOURCE,
) -> list[dict[str, Any]]:
    """Fetch active fire points for *area* (``world`` or ``W,S,E,N``).

    Raises:
        SourceFetchError: if the key is missing, the request fails or the
            CSV lacks the expected columns.
    """
    api_key = _nasa_api_key()
    if not api_key:
        raise SourceFetchError(SOURCE, "NASA_API_KEY is not set")

    url = FIRMS_AREA_URL.format(key=api_key, source=source, area=area, days=days)
    try:
        async with httpx.AsyncClient(timeout=60) as client:
            resp = await client.get(url, headers={"Accept": "text/csv"})
            resp.raise_for_status()
            text = resp.text
    except httpx.HTTPStatusError as exc:
        logger.error("FIRMS request failed: HTTP %d", exc.response.status_code)
        raise SourceFetchError(SOURCE, f"HTTP {exc.response.status_code}") from exc
    except httpx.HTTPError as exc:
        logger.error("FIRMS request failed: %s", exc)
        raise SourceFetchError(SOURCE, str(exc)) from exc

    points = parse_firms_csv(text)
    logger.info("FIRMS: %d fire points (%s, area=%s, days=%d)", len(points), source, area, days)
    return points
