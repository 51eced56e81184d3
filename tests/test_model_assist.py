from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from modules.errors import ModelError
from modules.model_assist import get_model_diff, quickstart_risk_model, suggest_model_updates


def _reply(payload: dict):
    text = json.dumps(payload)
    return lambda request: httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": text}]}}]})


def _prompt(request: httpx.Request) -> str:
    return json.loads(request.content)["contents"][0]["parts"][0]["text"]


def test_quickstart_returns_json_configuration(mock_http, gemini_key):
    config = json.dumps({"hazards": ["flood"], "thresholds": {"flood": 0.7}})
    seen = mock_http(_reply({"configuration": config}))
    result = asyncio.run(quickstart_risk_model("Flood model for river villages"))
    assert json.loads(result.configuration)["thresholds"]["flood"] == 0.7
    assert "Flood model for river villages" in _prompt(seen[0])


def test_quickstart_rejects_non_json_configuration(mock_http, gemini_key):
    mock_http(_reply({"configuration": "threshold = high"}))
    with pytest.raises(ModelError):
        asyncio.run(quickstart_risk_model("anything"))


def test_suggest_model_updates(mock_http, gemini_key):
    seen = mock_http(_reply({"suggested_updates": "Add SAR soil moisture.", "rationale": "Recall 0.4 on floods."}))
    result = asyncio.run(suggest_model_updates("3 missed floods", "recall=0.4", "v1.2 rainfall only"))
    assert result.suggested_updates == "Add SAR soil moisture."
    prompt = _prompt(seen[0])
    assert "3 missed floods" in prompt and "recall=0.4" in prompt and "v1.2 rainfall only" in prompt


def test_get_model_diff(mock_http, gemini_key):
    seen = mock_http(_reply({"summary": "v2 lowers the flood alert threshold."}))
    result = asyncio.run(get_model_diff("v1.0", "v2.0"))
    assert result.summary.startswith("v2 lowers")
    assert json.loads(seen[0].content)["generationConfig"]["maxOutputTokens"] == 1024
