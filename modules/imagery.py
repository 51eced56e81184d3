"""
Satellite imagery - NASA Earth Imagery chips and GIBS WMTS tiles.

Images are returned as base64 data URIs so they can be embedded in JSON
responses, except for the tile proxy which passes raw bytes through.
"""

from __future__ import annotations

import base64
import logging
import os
from datetime import datetime, timezone
from typing import Any

import httpx

from modules.errors import SourceFetchError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

EARTH_IMAGERY_URL = "https://api.nasa.gov/planetary/earth/imagery"
GIBS_WMTS_BASE = "https://gibs.earthdata.nasa.gov/wmts/epsg3857/best"
GIBS_TILE_TEMPLATE = (
    GIBS_WMTS_BASE + "/{layer}/default/{date}/{resolution}/{zoom}/{y}/{x}.{fmt}"
)
DEFAULT_DIM_DEGREES = 0.15


def _nasa_api_key() -> str | None:
    return os.getenv("NASA_API_KEY")


def _require_key(source: str) -> str:
    api_key = _nasa_api_key()
    if not api_key:
        raise SourceFetchError(source, "NASA_API_KEY is not set")
    return api_key


def to_data_uri(content: bytes, mime_type: str) -> str:
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


# ---------------------------------------------------------------------------
# Earth Imagery
# ---------------------------------------------------------------------------

async def fetch_earth_imagery(
    lat: float,
    lng: float,
    *,
    date: str | None = None,
    dim: float = DEFAULT_DIM_DEGREES,
) -> dict[str, Any]:
    """Fetch a Landsat image chip centred on (*lat*, *lng*).

    The API is called twice: once for metadata (image URL and cloud
    score), then to download the image itself.

    Args:
        lat: Latitude of the chip centre.
        lng: Longitude of the chip centre.
        date: ``YYYY-MM-DD``; defaults to today (UTC), for which the API
            returns the closest available acquisition.
        dim: Chip width and height in degrees.

    Returns:
        ``{"image_url", "image_data_uri", "cloud_score"}``.
    """
    source = "NASA Earth Imagery"
    api_key = _require_key(source)
    params = {
        "lat": lat,
        "lon": lng,
        "date": date or datetime.now(timezone.utc).strftime("%Y-%m-%d"),
        "dim": dim,
        "cloud_score": "True",
        "api_key": api_key,
    }

    try:
        async with httpx.AsyncClient(timeout=60, follow_redirects=True) as client:
            resp = await client.get(EARTH_IMAGERY_URL, params=params)
            if resp.status_code >= 400:
                try:
                    body = resp.json()
                except ValueError:
                    body = None
                msg = (body.get("msg") if isinstance(body, dict) else None) or resp.reason_phrase
                raise SourceFetchError(source, f"metadata request failed: {msg}")
            meta = resp.json()

            image_url = meta.get("url") if isinstance(meta, dict) else None
            if not image_url:
                raise SourceFetchError(
                    source,
                    "no image URL returned; the location may not have recent imagery",
                )

            image_resp = await client.get(image_url)
            image_resp.raise_for_status()
    except httpx.HTTPError as exc:
        logger.error("Earth Imagery request failed: %s", exc)
        raise SourceFetchError(source, str(exc)) from exc
    except ValueError as exc:
        raise SourceFetchError(source, f"invalid metadata payload: {exc}") from exc

    mime_type = image_resp.headers.get("content-type", "image/jpeg")
    logger.info(
        "Earth Imagery: %d bytes for (%.4f, %.4f) date=%s",
        len(image_resp.content), lat, lng, params["date"],
    )
    return {
        "image_url": image_url,
        "image_data_uri": to_data_uri(image_resp.content, mime_type),
        "cloud_score": meta.get("cloud_score"),
    }


# ---------------------------------------------------------------------------
# GIBS tiles
# ---------------------------------------------------------------------------

def gibs_tile_url(
    layer: str,
    date: str,
    zoom: int,
    y: int,
    x: int,
    *,
    fmt: str = "jpg",
    resolution: str = "500m",
) -> str:
    """Build the WMTS REST URL for one GIBS tile (without the API key)."""
    return GIBS_TILE_TEMPLATE.format(
        layer=layer, date=date, resolution=resolution,
        zoom=zoom, y=y, x=x, fmt=fmt,
    )


async def fetch_gibs_tile(
    layer: str,
    date: str,
    zoom: int,
    y: int,
    x: int,
    *,
    fmt: str = "jpg",
    resolution: str = "500m",
) -> dict[str, str]:
    """Fetch one GIBS tile, e.g. ``MODIS_Terra_CorrectedReflectance_TrueColor``.

    Returns ``{"image_data_uri", "source_url"}``.
    """
    source = "NASA GIBS"
    api_key = _require_key(source)
    url = gibs_tile_url(layer, date, zoom, y, x, fmt=fmt, resolution=resolution)

    try:
        async with httpx.AsyncClient(timeout=30) as client:
            resp = await client.get(url, params={"api_key": api_key})
            resp.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise SourceFetchError(
            source, f"tile {url} returned HTTP {exc.response.status_code}",
        ) from exc
    except httpx.HTTPError as exc:
        raise SourceFetchError(source, str(exc)) from exc

    mime_type = resp.headers.get("content-type", f"image/{fmt}")
    return {"image_data_uri": to_data_uri(resp.content, mime_type), "source_url": url}


async def proxy_gibs_tile(tile_path: str) -> tuple[bytes, str, int]:
    """Forward ``{layer}/{date}/{resolution}/{z}/{y}/{x}.{fmt}`` to GIBS.

    Returns ``(content, content_type, status_code)``; upstream error
    statuses are passed through with their reason phrase as the body.
    """
    source = "NASA GIBS"
    api_key = _require_key(source)
    url = f"{GIBS_WMTS_BASE}/{tile_path.lstrip('/')}"

    try:
        async with httpx.AsyncClient(timeout=30) as client:
            resp = await client.get(url, params={"api_key": api_key})
    except httpx.HTTPError as exc:
        logger.error("GIBS proxy failed for %s: %s", tile_path, exc)
        raise SourceFetchError(source, str(exc)) from exc

    if resp.status_code >= 400:
        logger.warning("GIBS returned %d for %s", resp.status_code, tile_path)
        return resp.reason_phrase.encode(), "text/plain", resp.status_code
    return resp.content, resp.headers.get("content-type", "image/jpeg"), resp.status_code
