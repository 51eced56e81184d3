"""
Model administration assistants - prompt flows that help operators
bootstrap, improve and compare versions of the village risk model.
"""

from __future__ import annotations

import json
import logging

from pydantic import BaseModel, field_validator

from modules.llm import generate_structured

logger = logging.getLogger(__name__)


class RiskModelConfiguration(BaseModel):
    configuration: str

    @field_validator("configuration")
    @classmethod
    def _must_be_json(cls, v: str) -> str:
        json.loads(v)
        return v


class ModelUpdateSuggestions(BaseModel):
    suggested_updates: str
    rationale: str


class ModelDiffSummary(BaseModel):
    summary: str


QUICKSTART_PROMPT = """You are an expert risk model configuration generator.
From the description below, produce a risk model configuration covering the hazards,
data sources, parameters, thresholds and escalation rules.

Description: {prompt}

Return ONLY JSON: {{"configuration": "<the configuration, itself serialized as a JSON string>"}}"""

SUGGEST_UPDATES_PROMPT = """You are a machine learning specialist for natural-hazard risk models.
Suggest concrete improvements to the risk model using the material below.

Ground truth reports: {ground_truth_data}
Model performance metrics: {model_performance_metrics}
Current model: {current_model_description}

Consider where the metrics show underperformance, likely biases or blind spots,
and new features or datasets that would improve accuracy.

Return ONLY JSON: {{"suggested_updates": "...", "rationale": "..."}}
Each suggestion in "rationale" must reference the ground truth or metrics it is based on."""

MODEL_DIFF_PROMPT = """You are a risk model reviewer helping an administrator decide on a rollback.
Summarize the differences between the two model versions, focusing on changes that
affect risk score calculation, alert thresholds or overall system behaviour.

Previous version: {previous_model_version}
Current version: {current_model_version}

Return ONLY JSON: {{"summary": "..."}}"""


async def quickstart_risk_model(prompt: str) -> RiskModelConfiguration:
    """Generate a starting configuration from a free-text description."""
    logger.info("Quickstart risk model (%d chars of description)", len(prompt))
    return await generate_structured(QUICKSTART_PROMPT.format(prompt=prompt), RiskModelConfiguration)


async def suggest_model_updates(
    ground_truth_data: str,
    model_performance_metrics: str,
    current_model_description: str,
) -> ModelUpdateSuggestions:
    prompt = SUGGEST_UPDATES_PROMPT.format(
        ground_truth_data=ground_truth_data,
        model_performance_metrics=model_performance_metrics,
        current_model_description=current_model_description,
    )
    return await generate_structured(prompt, ModelUpdateSuggestions)


async def get_model_diff(previous_model_version: str, current_model_version: str) -> ModelDiffSummary:
    prompt = MODEL_DIFF_PROMPT.format(
        previous_model_version=previous_model_version,
        current_model_version=current_model_version,
    )
    return await generate_structured(prompt, ModelDiffSummary, max_tokens=1024)
