"""
Pydantic models - data contracts for the AlertWave risk API.

Model-output shapes (RiskAnalysis, the model-assist replies) live next to the
flows that produce them in ``modules`` and are re-exported here.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from modules.model_assist import ModelDiffSummary, ModelUpdateSuggestions, RiskModelConfiguration
from modules.risk_analysis import RiskAnalysis, RiskAssessment

__all__ = [
    "Coordinates",
    "RiskAnalysis",
    "RiskAssessment",
    "NearbyRequest",
    "NearbyResponse",
    "EarthImageryRequest",
    "EarthImageryResponse",
    "HarmonyJobRequest",
    "HarmonyJobResponse",
    "QuickstartRequest",
    "RiskModelConfiguration",
    "SuggestUpdatesRequest",
    "ModelUpdateSuggestions",
    "ModelDiffRequest",
    "ModelDiffSummary",
    "Village",
]


# ---------- Risk analysis ---------- #

class Coordinates(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class NearbyRequest(Coordinates):
    max_distance_km: float = Field(default=200, gt=0, le=20040)
    max_items: int = Field(default=10, ge=0, le=100)


class NearbyResponse(BaseModel):
    lat: float
    lng: float
    total_candidates: int
    items: list[dict[str, Any]]


# ---------- Imagery ---------- #

class EarthImageryRequest(Coordinates):
    date: str | None = Field(default=None, pattern=r"^\d{4}-\d{2}-\d{2}$")
    dim: float = Field(default=0.15, gt=0, le=1.0, description="Width/height in degrees")


class EarthImageryResponse(BaseModel):
    image_url: str
    image_data_uri: str
    cloud_score: float | None = None


# ---------- Harmony ---------- #

class HarmonyJobRequest(BaseModel):
    dataset_id: str = Field(..., min_length=1, description='e.g. "ASTGTM_NC.003"')
    bbox: tuple[float, float, float, float] = Field(..., description="[min_lon, min_lat, max_lon, max_lat]")
    output_crs: str = "EPSG:4326"
    max_results: int = Field(default=10, ge=1)


class HarmonyJobResponse(BaseModel):
    job_id: str
    status_url: str


# ---------- Model administration ---------- #

class QuickstartRequest(BaseModel):
    prompt: str = Field(..., min_length=1)


class SuggestUpdatesRequest(BaseModel):
    ground_truth_data: str
    model_performance_metrics: str
    current_model_description: str


class ModelDiffRequest(BaseModel):
    previous_model_version: str
    current_model_version: str


# ---------- Dashboard ---------- #

class Village(BaseModel):
    id: str
    name: str
    risk_level: str
    alert_status: str
    lat: float
    lng: float
    distance_km: float | None = None
