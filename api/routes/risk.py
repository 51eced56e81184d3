"""
Risk Routes - hazard risk analysis and nearest-feed lookups.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from api.schemas import Coordinates, NearbyRequest, NearbyResponse, RiskAnalysis
from modules.errors import InvalidCoordinatesError, ModelError, SourceFetchError
from modules.nasa_eonet import fetch_eonet_events
from modules.nasa_firms import fetch_firms_data
from modules.risk_analysis import analyze_risk, nearby_events, nearby_fires

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/analyze-risk", response_model=RiskAnalysis)
async def analyze_risk_route(req: Coordinates):
    """Wildfire / heatwave / flood / landslide levels for a location."""
    try:
        return await analyze_risk(req.lat, req.lng)
    except InvalidCoordinatesError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except SourceFetchError as exc:
        logger.warning("analyze-risk failed for (%.4f, %.4f): %s", req.lat, req.lng, exc)
        raise HTTPException(status_code=502, detail=f"Data source unavailable - {exc}")
    except ModelError as exc:
        logger.warning("analyze-risk model failure for (%.4f, %.4f): %s", req.lat, req.lng, exc)
        raise HTTPException(status_code=502, detail=f"Risk model failed - {exc}")


@router.post("/nearby-fires", response_model=NearbyResponse)
async def nearby_fires_route(req: NearbyRequest):
    """FIRMS fire points nearest to a location."""
    try:
        points = await fetch_firms_data()
    except SourceFetchError as exc:
        raise HTTPException(status_code=502, detail=str(exc))
    items = nearby_fires(
        req.lat, req.lng, points,
        max_distance_km=req.max_distance_km, max_items=req.max_items,
    )
    return NearbyResponse(lat=req.lat, lng=req.lng, total_candidates=len(points), items=items)


@router.post("/nearby-events", response_model=NearbyResponse)
async def nearby_events_route(req: NearbyRequest):
    """EONET events nearest to a location (point geometries only)."""
    try:
        events = await fetch_eonet_events()
    except SourceFetchError as exc:
        raise HTTPException(status_code=502, detail=str(exc))
    items = nearby_events(
        req.lat, req.lng, events,
        max_distance_km=req.max_distance_km, max_items=req.max_items,
    )
    return NearbyResponse(lat=req.lat, lng=req.lng, total_candidates=len(events), items=items)
