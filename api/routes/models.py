"""
Model Routes - administration assistants for the risk model.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from api.schemas import (
    ModelDiffRequest,
    ModelDiffSummary,
    ModelUpdateSuggestions,
    QuickstartRequest,
    RiskModelConfiguration,
    SuggestUpdatesRequest,
)
from modules.errors import ModelError
from modules.model_assist import get_model_diff, quickstart_risk_model, suggest_model_updates

router = APIRouter(prefix="/models")


@router.post("/quickstart", response_model=RiskModelConfiguration)
async def quickstart(req: QuickstartRequest):
    try:
        return await quickstart_risk_model(req.prompt)
    except ModelError as exc:
        raise HTTPException(status_code=502, detail=str(exc))


@router.post("/suggest-updates", response_model=ModelUpdateSuggestions)
async def suggest_updates(req: SuggestUpdatesRequest):
    try:
        return await suggest_model_updates(
            req.ground_truth_data,
            req.model_performance_metrics,
            req.current_model_description,
        )
    except ModelError as exc:
        raise HTTPException(status_code=502, detail=str(exc))


@router.post("/diff", response_model=ModelDiffSummary)
async def model_diff(req: ModelDiffRequest):
    try:
        return await get_model_diff(req.previous_model_version, req.current_model_version)
    except ModelError as exc:
        raise HTTPException(status_code=502, detail=str(exc))
