"""
Dashboard Routes - health check and reference data for the admin console.
"""

from __future__ import annotations

from fastapi import APIRouter, Query

from api.schemas import Village
from modules.dashboard_data import (
    DIAGNOSTICS,
    EVENT_LOGS,
    USER_GROUPS,
    list_villages,
    nearest_villages,
)

router = APIRouter()


# ---- Health ---- #

@router.get("/health")
async def health():
    return {"status": "ok"}


# ---- Villages ---- #

@router.get("/villages", response_model=list[Village])
async def villages(risk_level: str | None = None):
    return list_villages(risk_level)


@router.get("/villages/nearby", response_model=list[Village])
async def villages_nearby(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    max_distance_km: float = Query(500, gt=0),
    max_items: int = Query(10, ge=0, le=100),
):
    """Monitored villages around a point, nearest first."""
    return nearest_villages(lat, lng, max_distance_km=max_distance_km, max_items=max_items)


# ---- Logs / groups / diagnostics ---- #

@router.get("/event-logs")
async def event_logs():
    return EVENT_LOGS


@router.get("/user-groups")
async def user_groups():
    return USER_GROUPS


@router.get("/diagnostics")
async def diagnostics():
    return DIAGNOSTICS
