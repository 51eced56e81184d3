"""
NASA POWER - hourly point weather.

Fetches 2 m temperature (T2M, C), 2 m relative humidity (RH2M, %) and
10 m wind speed (WS10M, m/s) for a single location.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx

from modules.errors import SourceFetchError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

POWER_HOURLY_URL = "https://power.larc.nasa.gov/api/temporal/hourly/point"
POWER_PARAMETERS = ("T2M", "RH2M", "WS10M")
POWER_COMMUNITY = "AG"
POWER_FILL_VALUE = -999.0
SOURCE = "NASA POWER"


def _nasa_api_key() -> str | None:
    return os.getenv("NASA_API_KEY")


def _default_window() -> tuple[str, str]:
    today = datetime.now(timezone.utc)
    yesterday = today - timedelta(days=1)
    return yesterday.strftime("%Y%m%d"), today.strftime("%Y%m%d")


def _value(series: Any, stamp: str) -> float | None:
    if not isinstance(series, dict):
        raise SourceFetchError(SOURCE, f"series is not an object: {type(series).__name__}")
    v = series.get(stamp)
    if v is None:
        return None
    try:
        value = float(v)
    except (TypeError, ValueError) as exc:
        raise SourceFetchError(SOURCE, f"non-numeric value {v!r} at {stamp}") from exc
    if value == POWER_FILL_VALUE:
        return None
    return value


def parse_power_response(payload: dict[str, Any]) -> list[dict[str, Any]]:
    """Flatten POWER's per-parameter series into one record per hour.

    POWER keys each series by ``YYYYMMDDHH``; all parameters share the keys
    of the T2M series.
    """
    try:
        params = payload["properties"]["parameter"]
        stamps = sorted(params["T2M"].keys())
    except (KeyError, TypeError, AttributeError) as exc:
        raise SourceFetchError(SOURCE, f"unexpected response shape: {exc!r}") from exc

    records: list[dict[str, Any]] = []
    for stamp in stamps:
        if len(stamp) < 10 or not stamp[:10].isdigit():
            logger.warning("Skipping POWER timestamp %r", stamp)
            continue
        record: dict[str, Any] = {
            "year": int(stamp[0:4]),
            "month": int(stamp[4:6]),
            "day": int(stamp[6:8]),
            "hour": int(stamp[8:10]),
        }
        for name in POWER_PARAMETERS:
            record[name] = _value(params.get(name) or {}, stamp)
        records.append(record)
    return records


async def fetch_power_data(
    lat: float,
    lng: float,
    *,
    start: str | None = None,
    end: str | None = None,
) -> list[dict[str, Any]]:
    """Fetch hourly weather for (*lat*, *lng*), oldest record first.

    Args:
        lat: Latitude of the location.
        lng: Longitude of the location.
        start: First day, ``YYYYMMDD``. Defaults to yesterday (UTC).
        end: Last day, ``YYYYMMDD``. Defaults to today (UTC).

    Raises:
        SourceFetchError: if the key is missing, the request fails or the
            payload cannot be parsed.
    """
    api_key = _nasa_api_key()
    if not api_key:
        raise SourceFetchError(SOURCE, "NASA_API_KEY is not set")

    default_start, default_end = _default_window()
    params = {
        "parameters": ",".join(POWER_PARAMETERS),
        "community": POWER_COMMUNITY,
        "longitude": lng,
        "latitude": lat,
        "start": start or default_start,
        "end": end or default_end,
        "format": "JSON",
    }

    try:
        async with httpx.AsyncClient(timeout=30) as client:
            resp = await client.get(POWER_HOURLY_URL, params=params)
            resp.raise_for_status()
            payload = resp.json()
    except httpx.HTTPStatusError as exc:
        logger.error("POWER request failed (%d): %s", exc.response.status_code, exc.response.text[:200])
        raise SourceFetchError(SOURCE, f"HTTP {exc.response.status_code}") from exc
    except (httpx.HTTPError, ValueError) as exc:
        logger.error("POWER request failed: %s", exc)
        raise SourceFetchError(SOURCE, str(exc)) from exc

    records = parse_power_response(payload)
    logger.info("POWER: %d hourly records for (%.4f, %.4f)", len(records), lat, lng)
    return records
