from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from modules import risk_analysis
from modules.errors import InvalidCoordinatesError, ModelError, SourceFetchError
from modules.risk_analysis import (
    RiskAnalysis,
    SourceFailurePolicy,
    analyze_risk,
    build_risk_prompt,
    nearby_events,
    nearby_fires,
)

QUERY = (34.05, -118.25)

WEATHER = [
    {"year": 2024, "month": 7, "day": 21, "hour": h, "T2M": 30.0 + h / 10, "RH2M": 15.0, "WS10M": 6.0}
    for h in range(30)
]

FIRE_CSV = "latitude,longitude,bright_ti4,confidence\n" + "\n".join(
    [f"34.{i:02d},-118.25,33{i}.0,h" for i in range(15)] + ["51.5,-0.12,320.0,n"]
)

EONET = {
    "events": [
        {
            "id": "near",
            "title": "Bridge Fire",
            "categories": [{"title": "Wildfires"}],
            "geometry": [{"type": "Point", "coordinates": [-117.7, 34.3]}],
        },
        {
            "id": "polygon",
            "title": "Ice shelf",
            "categories": [{"title": "Sea and Lake Ice"}],
            "geometry": [{"type": "Polygon", "coordinates": [[[-118, 34], [-117, 34], [-117, 35], [-118, 34]]]}],
        },
        {
            "id": "far",
            "title": "Typhoon",
            "categories": [{"title": "Severe Storms"}],
            "geometry": [{"type": "Point", "coordinates": [130.0, 20.0]}],
        },
    ]
}

ANALYSIS = {
    "wildfire": {"level": "Very High", "reasoning": "Multiple FIRMS detections within 20 km, RH 15%."},
    "heatwave": {"level": "High", "reasoning": "Temperatures above 30 C for 24 hours."},
    "flood": {"level": "Low", "reasoning": "No storm events nearby."},
    "landslide": {"level": "Low", "reasoning": "No storm events nearby."},
}


def _power_payload() -> dict:
    stamps = [f"20240721{h:02d}" for h in range(24)] + [f"20240722{h:02d}" for h in range(6)]
    return {
        "properties": {
            "parameter": {
                "T2M": {s: 31.0 for s in stamps},
                "RH2M": {s: 14.0 for s in stamps},
                "WS10M": {s: 7.5 for s in stamps},
            }
        }
    }


def _gemini(text: str) -> httpx.Response:
    return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": text}]}}]})


def _handler(*, power=None, firms=None, eonet=None, model=None):
    def handle(request: httpx.Request) -> httpx.Response:
        host = request.url.host
        if host == "power.larc.nasa.gov":
            return power(request) if power else httpx.Response(200, json=_power_payload())
        if host == "firms.modaps.eosdis.nasa.gov":
            return firms(request) if firms else httpx.Response(200, text=FIRE_CSV)
        if host == "eonet.gsfc.nasa.gov":
            return eonet(request) if eonet else httpx.Response(200, json=EONET)
        if host == "generativelanguage.googleapis.com":
            return model(request) if model else _gemini(json.dumps(ANALYSIS))
        return httpx.Response(404)

    return handle


@pytest.fixture
def keys(nasa_key, gemini_key):
    return nasa_key, gemini_key


# ---- correlation helpers ---- #

def test_nearby_fires_limits_to_ten_within_200km():
    fires = [{"latitude": 34.0 + i / 100, "longitude": -118.25, "brightness": 330.0, "confidence": "h"} for i in range(15)]
    fires.append({"latitude": 51.5, "longitude": -0.12, "brightness": 320.0, "confidence": "n"})
    result = nearby_fires(*QUERY, fires)
    assert len(result) == 10
    assert all(r["distance_km"] <= 200 for r in result)


def test_nearby_events_replaces_geometry_with_point():
    events = [
        {"id": e["id"], "title": e["title"], "category": "x", "geometry": e["geometry"]}
        for e in EONET["events"]
    ]
    result = nearby_events(*QUERY, events)
    assert [e["id"] for e in result] == ["near"]
    assert result[0]["coordinates"] == [-117.7, 34.3]
    assert "geometry" not in result[0]
    assert "geometry" in events[0]


def test_build_risk_prompt_uses_last_24_weather_records():
    fires = [{"latitude": 34.1, "longitude": -118.3, "distance_km": 7.04321}]
    prompt = build_risk_prompt(*QUERY, WEATHER, fires, [])
    assert '"hour": 29' in prompt
    assert '"hour": 5,' not in prompt
    assert '"hour": 6,' in prompt
    assert '"distance_km": 7.0' in prompt
    assert "Latitude: 34.05" in prompt


# ---- orchestration ---- #

def test_analyze_risk_end_to_end(mock_http, keys):
    seen = mock_http(_handler())
    result = asyncio.run(analyze_risk(*QUERY))

    assert isinstance(result, RiskAnalysis)
    assert result.wildfire.level == "Very High"
    assert result.flood.level == "Low"

    model_calls = [r for r in seen if r.url.host == "generativelanguage.googleapis.com"]
    assert len(model_calls) == 1
    prompt = json.loads(model_calls[0].content)["contents"][0]["parts"][0]["text"]
    assert "Bridge Fire" in prompt
    assert "Typhoon" not in prompt
    assert "Ice shelf" not in prompt
    # the London detection is out of range
    assert "51.5" not in prompt
    assert prompt.count('"confidence": "h"') == 10


def test_analyze_risk_fetches_sources_concurrently(monkeypatch):
    active = 0
    peak = 0

    async def _slow(result):
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0.01)
        active -= 1
        return result

    async def fake_power(lat, lng):
        return await _slow(WEATHER)

    async def fake_firms():
        return await _slow([])

    async def fake_eonet():
        return await _slow([])

    monkeypatch.setattr(risk_analysis, "fetch_power_data", fake_power)
    monkeypatch.setattr(risk_analysis, "fetch_firms_data", fake_firms)
    monkeypatch.setattr(risk_analysis, "fetch_eonet_events", fake_eonet)

    weather, fires, events = asyncio.run(risk_analysis.gather_sources(*QUERY))
    assert peak == 3
    assert weather == WEATHER and fires == [] and events == []


def test_invalid_coordinates_rejected_before_fetch(mock_http, keys):
    seen = mock_http(_handler())
    with pytest.raises(InvalidCoordinatesError):
        asyncio.run(analyze_risk(120.0, 0.0))
    assert seen == []


def test_fire_feed_failure_propagates_by_default(mock_http, keys):
    seen = mock_http(_handler(firms=lambda r: httpx.Response(503)))
    with pytest.raises(SourceFetchError) as excinfo:
        asyncio.run(analyze_risk(*QUERY))
    assert excinfo.value.source == "NASA FIRMS"
    assert not any(r.url.host == "generativelanguage.googleapis.com" for r in seen)


def test_empty_policy_substitutes_empty_fire_list(mock_http, keys):
    seen = mock_http(_handler(firms=lambda r: httpx.Response(503)))
    result = asyncio.run(analyze_risk(*QUERY, on_source_failure=SourceFailurePolicy.EMPTY))
    assert result.heatwave.level == "High"
    prompt = json.loads(seen[-1].content)["contents"][0]["parts"][0]["text"]
    assert "Bridge Fire" in prompt


def test_empty_policy_from_environment(mock_http, keys, monkeypatch):
    monkeypatch.setenv("SOURCE_FAILURE_POLICY", "empty")
    mock_http(_handler(eonet=lambda r: httpx.Response(500)))
    result = asyncio.run(analyze_risk(*QUERY))
    assert result.wildfire.level == "Very High"


def test_weather_failure_always_propagates(mock_http, keys):
    mock_http(_handler(power=lambda r: httpx.Response(500)))
    with pytest.raises(SourceFetchError) as excinfo:
        asyncio.run(analyze_risk(*QUERY, on_source_failure=SourceFailurePolicy.EMPTY))
    assert excinfo.value.source == "NASA POWER"


def test_unknown_policy_falls_back_to_propagate(monkeypatch):
    monkeypatch.setenv("SOURCE_FAILURE_POLICY", "ignore-everything")
    assert risk_analysis._failure_policy() is SourceFailurePolicy.PROPAGATE


def test_model_output_schema_mismatch(mock_http, keys):
    bad = dict(ANALYSIS, flood={"level": "Extreme", "reasoning": "?"})
    mock_http(_handler(model=lambda r: _gemini(json.dumps(bad))))
    with pytest.raises(ModelError):
        asyncio.run(analyze_risk(*QUERY))


def test_model_missing_hazard(mock_http, keys):
    partial = {k: v for k, v in ANALYSIS.items() if k != "landslide"}
    mock_http(_handler(model=lambda r: _gemini(json.dumps(partial))))
    with pytest.raises(ModelError):
        asyncio.run(analyze_risk(*QUERY))


def test_empty_policy_covers_malformed_event_payload(mock_http, keys):
    seen = mock_http(_handler(eonet=lambda r: httpx.Response(200, json={"events": None})))
    result = asyncio.run(analyze_risk(*QUERY, on_source_failure=SourceFailurePolicy.EMPTY))
    assert result.wildfire.level == "Very High"
    prompt = json.loads(seen[-1].content)["contents"][0]["parts"][0]["text"]
    assert "Bridge Fire" not in prompt


def test_malformed_event_payload_propagates_by_default(mock_http, keys):
    mock_http(_handler(eonet=lambda r: httpx.Response(200, json={"events": None})))
    with pytest.raises(SourceFetchError) as excinfo:
        asyncio.run(analyze_risk(*QUERY))
    assert excinfo.value.source == "NASA EONET"


def test_malformed_weather_value_is_fetch_error(mock_http, keys):
    bad = {"properties": {"parameter": {"T2M": {"2024072100": "n/a"}}}}
    mock_http(_handler(power=lambda r: httpx.Response(200, json=bad)))
    with pytest.raises(SourceFetchError) as excinfo:
        asyncio.run(analyze_risk(*QUERY, on_source_failure=SourceFailurePolicy.EMPTY))
    assert excinfo.value.source == "NASA POWER"
