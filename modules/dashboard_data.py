"""
Dashboard reference data - monitored villages, recent hazard events,
user groups and pipeline diagnostics.

Static sample data until the village registry is backed by a database.
"""

from __future__ import annotations

from typing import Any

from modules.geo import correlate_nearby, flat_location

VILLAGES: list[dict[str, Any]] = [
    {"id": "v001", "name": "Riverside", "risk_level": "High", "alert_status": "Sent", "lat": 34.0522, "lng": -118.2437},
    {"id": "v002", "name": "Hillview", "risk_level": "Medium", "alert_status": "Sent", "lat": 40.7128, "lng": -74.0060},
    {"id": "v003", "name": "Greenfield", "risk_level": "Low", "alert_status": "Inactive", "lat": 35.6895, "lng": 139.6917},
    {"id": "v004", "name": "Laketown", "risk_level": "High", "alert_status": "Paused", "lat": -33.8688, "lng": 151.2093},
    {"id": "v005", "name": "Sunnyside", "risk_level": "Low", "alert_status": "Inactive", "lat": 19.4326, "lng": -99.1332},
    {"id": "v006", "name": "Mountain Base", "risk_level": "Medium", "alert_status": "Sent", "lat": 48.8566, "lng": 2.3522},
    {"id": "v007", "name": "Coastal Point", "risk_level": "Low", "alert_status": "Inactive", "lat": -22.9068, "lng": -43.1729},
]

EVENT_LOGS: list[dict[str, Any]] = [
    {"id": "e001", "timestamp": "2024-07-21T14:30:00Z", "village": "Riverside", "hazard": "Flood", "risk_score": 0.85, "alert_sent": True},
    {"id": "e002", "timestamp": "2024-07-21T13:05:00Z", "village": "Hillview", "hazard": "Landslide", "risk_score": 0.65, "alert_sent": True},
    {"id": "e003", "timestamp": "2024-07-21T11:00:00Z", "village": "Laketown", "hazard": "Flood", "risk_score": 0.92, "alert_sent": False},
    {"id": "e004", "timestamp": "2024-07-20T18:00:00Z", "village": "Sunnyside", "hazard": "Heatwave", "risk_score": 0.78, "alert_sent": True},
    {"id": "e005", "timestamp": "2024-07-20T16:45:00Z", "village": "Mountain Base", "hazard": "Landslide", "risk_score": 0.55, "alert_sent": True},
]

USER_GROUPS: list[dict[str, Any]] = [
    {"id": "ug01", "name": "Northern District", "village_count": 12, "hazards": ["Flood", "Landslide"]},
    {"id": "ug02", "name": "Coastal Alliance", "village_count": 8, "hazards": ["Flood", "Heatwave"]},
    {"id": "ug03", "name": "Highlands Watch", "village_count": 5, "hazards": ["Landslide"]},
    {"id": "ug04", "name": "Southern Plains", "village_count": 22, "hazards": ["Heatwave", "Flood"]},
]

DIAGNOSTICS: list[dict[str, Any]] = [
    {"id": "d01", "name": "GPM Rainfall Fetch", "last_run": "5 minutes ago", "status": "Ok", "details": "Fetched 1.2GB of data successfully."},
    {"id": "d02", "name": "Sentinel-1 SAR Sync", "last_run": "3 hours ago", "status": "Ok", "details": "Latest imagery synced."},
    {"id": "d03", "name": "Temperature Forecasts", "last_run": "1 hour ago", "status": "Warning", "details": "Source API has high latency."},
    {"id": "d04", "name": "Risk Score Computation", "last_run": "6 minutes ago", "status": "Ok", "details": "All villages updated."},
    {"id": "d05", "name": "WhatsApp Alert Queue", "last_run": "1 minute ago", "status": "Ok", "details": "0 messages pending."},
    {"id": "d06", "name": "Raster Processing", "last_run": "3 hours ago", "status": "Error", "details": "DEM clipping failed for region 7."},
]


def list_villages(risk_level: str | None = None) -> list[dict[str, Any]]:
    if risk_level is None:
        return [dict(v) for v in VILLAGES]
    wanted = risk_level.strip().lower()
    return [dict(v) for v in VILLAGES if v["risk_level"].lower() == wanted]


def nearest_villages(
    lat: float,
    lng: float,
    *,
    max_distance_km: float = 500,
    max_items: int = 10,
) -> list[dict[str, Any]]:
    """Monitored villages around (*lat*, *lng*), nearest first."""
    return correlate_nearby(
        lat, lng, VILLAGES, flat_location("lat", "lng"),
        max_distance_km=max_distance_km, max_items=max_items,
    )
