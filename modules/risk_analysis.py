"""
Risk analysis - NASA data -> nearest-neighbour context -> hosted model.

Pipeline:
  1. Validate the query point.
  2. Fetch POWER weather, FIRMS fire points and EONET events concurrently.
  3. Keep the 10 nearest fires within 200 km and the 10 nearest events
     within 500 km.
  4. Build the prompt (last 24 hourly weather records + both lists).
  5. Ask the model for a level and reasoning per hazard.

Usage:
    import asyncio
    from modules.risk_analysis import analyze_risk

    result = asyncio.run(analyze_risk(34.05, -118.25))
    print(result.wildfire.level, result.wildfire.reasoning)
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field

from modules.errors import SourceFetchError
from modules.geo import correlate_nearby, first_point_location, flat_location, validate_point
from modules.llm import generate_structured
from modules.nasa_eonet import fetch_eonet_events
from modules.nasa_firms import fetch_firms_data
from modules.nasa_power import fetch_power_data

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

FIRE_RADIUS_KM = 200
FIRE_MAX_ITEMS = 10
EVENT_RADIUS_KM = 500
EVENT_MAX_ITEMS = 10
WEATHER_HOURS = 24


class SourceFailurePolicy(str, Enum):
    """What to do when the fire or event feed cannot be fetched.

    Weather is always required; its failure propagates under either policy.
    ``EMPTY`` gives the older behaviour where a failed fire or event feed
    silently became an empty list. The default is ``PROPAGATE``.
    """

    PROPAGATE = "propagate"
    EMPTY = "empty"


def _failure_policy() -> SourceFailurePolicy:
    raw = os.getenv("SOURCE_FAILURE_POLICY", SourceFailurePolicy.PROPAGATE.value)
    try:
        return SourceFailurePolicy(raw.strip().lower())
    except ValueError:
        logger.warning("Unknown SOURCE_FAILURE_POLICY %r - using 'propagate'", raw)
        return SourceFailurePolicy.PROPAGATE


# ---------------------------------------------------------------------------
# Output schema
# ---------------------------------------------------------------------------

RiskLevel = Literal["Low", "Medium", "High", "Very High"]


class RiskAssessment(BaseModel):
    level: RiskLevel
    reasoning: str = Field(..., description="Brief explanation citing the data sources used")


class RiskAnalysis(BaseModel):
    wildfire: RiskAssessment
    heatwave: RiskAssessment
    flood: RiskAssessment
    landslide: RiskAssessment


# ---------------------------------------------------------------------------
# Correlation helpers
# ---------------------------------------------------------------------------

def nearby_fires(
    lat: float,
    lng: float,
    fire_points: list[dict[str, Any]],
    *,
    max_distance_km: float = FIRE_RADIUS_KM,
    max_items: int = FIRE_MAX_ITEMS,
) -> list[dict[str, Any]]:
    return correlate_nearby(
        lat, lng, fire_points, flat_location("latitude", "longitude"),
        max_distance_km=max_distance_km, max_items=max_items,
    )


def nearby_events(
    lat: float,
    lng: float,
    events: list[dict[str, Any]],
    *,
    max_distance_km: float = EVENT_RADIUS_KM,
    max_items: int = EVENT_MAX_ITEMS,
) -> list[dict[str, Any]]:
    """Nearest point-located events, each with ``coordinates`` ([lon, lat])
    in place of the full geometry list."""
    scored = correlate_nearby(
        lat, lng, events, first_point_location,
        max_distance_km=max_distance_km, max_items=max_items,
    )
    out = []
    for event in scored:
        ev_lat, ev_lng = first_point_location(event)
        item = {k: v for k, v in event.items() if k != "geometry"}
        item["coordinates"] = [ev_lng, ev_lat]
        out.append(item)
    return out


# ---------------------------------------------------------------------------
# Prompt
# ---------------------------------------------------------------------------

PROMPT_TEMPLATE = """You are an environmental risk assessment analyst for the AlertWave village alerting platform.
Assess the risk of Wildfire, Heatwave, Flood and Landslide for the location below, using ONLY the data provided.

LOCATION
- Latitude: {lat}
- Longitude: {lng}

1. NASA POWER hourly weather (last {hours} hours). T2M = temperature at 2 m (C), RH2M = relative humidity (%), WS10M = wind speed at 10 m (m/s). Null means no measurement.
```json
{weather}
```

2. NASA FIRMS active fires within {fire_radius} km (last 24 h), nearest first. brightness = brightness temperature (K).
```json
{fires}
```

3. NASA EONET open natural events within {event_radius} km, nearest first. coordinates = [lon, lat].
```json
{events}
```

GUIDANCE
- Wildfire: high temperature, low humidity, strong wind, and above all nearby FIRMS detections.
- Heatwave: sustained high temperatures in the POWER series.
- Flood: 'Severe Storms' or 'Floods' events in EONET. POWER has no precipitation here, so rely on storm systems.
- Landslide: 'Severe Storms' or 'Landslides' events in EONET.

Return ONLY JSON with this exact shape:
{{"wildfire": {{"level": "Low|Medium|High|Very High", "reasoning": "..."}},
  "heatwave": {{"level": "...", "reasoning": "..."}},
  "flood": {{"level": "...", "reasoning": "..."}},
  "landslide": {{"level": "...", "reasoning": "..."}}}}"""


def _rounded_distance(item: dict[str, Any]) -> dict[str, Any]:
    return {**item, "distance_km": round(item["distance_km"], 1)}


def build_risk_prompt(
    lat: float,
    lng: float,
    weather: list[dict[str, Any]],
    fires: list[dict[str, Any]],
    events: list[dict[str, Any]],
) -> str:
    return PROMPT_TEMPLATE.format(
        lat=lat,
        lng=lng,
        hours=WEATHER_HOURS,
        weather=json.dumps(weather[-WEATHER_HOURS:], indent=2),
        fire_radius=FIRE_RADIUS_KM,
        fires=json.dumps([_rounded_distance(f) for f in fires], indent=2),
        event_radius=EVENT_RADIUS_KM,
        events=json.dumps([_rounded_distance(e) for e in events], indent=2),
    )


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------

def _resolve(name: str, result: Any, policy: SourceFailurePolicy, *, optional: bool) -> Any:
    if not isinstance(result, BaseException):
        return result
    if optional and policy is SourceFailurePolicy.EMPTY and isinstance(result, SourceFetchError):
        logger.warning("%s unavailable, continuing without it: %s", name, result)
        return []
    raise result


async def gather_sources(
    lat: float,
    lng: float,
    *,
    on_source_failure: SourceFailurePolicy | None = None,
) -> tuple[list[dict[str, Any]], list[dict[str, Any]], list[dict[str, Any]]]:
    """Fetch weather, fire points and events concurrently.

    Returns ``(weather, fire_points, events)``.
    """
    policy = on_source_failure or _failure_policy()
    weather, fires, events = await asyncio.gather(
        fetch_power_data(lat, lng),
        fetch_firms_data(),
        fetch_eonet_events(),
        return_exceptions=True,
    )
    return (
        _resolve("NASA POWER", weather, policy, optional=False),
        _resolve("NASA FIRMS", fires, policy, optional=True),
        _resolve("NASA EONET", events, policy, optional=True),
    )


async def analyze_risk(
    lat: float,
    lng: float,
    *,
    on_source_failure: SourceFailurePolicy | None = None,
) -> RiskAnalysis:
    """Assess wildfire, heatwave, flood and landslide risk at (*lat*, *lng*).

    Raises:
        InvalidCoordinatesError: bad query point (before any fetch).
        SourceFetchError: a required source failed.
        ModelError: the model failed or its output did not match RiskAnalysis.
    """
    lat, lng = validate_point(lat, lng)

    weather, fire_points, events = await gather_sources(
        lat, lng, on_source_failure=on_source_failure,
    )
    fires = nearby_fires(lat, lng, fire_points)
    close_events = nearby_events(lat, lng, events)
    logger.info(
        "Risk context for (%.4f, %.4f): %d weather records, %d/%d fires, %d/%d events",
        lat, lng, len(weather), len(fires), len(fire_points), len(close_events), len(events),
    )

    prompt = build_risk_prompt(lat, lng, weather, fires, close_events)
    return await generate_structured(prompt, RiskAnalysis)
