# AlertWave - Core Logic Modules
#
# Lazy imports - importing ``modules`` does not pull in httpx/pydantic
# until one of the entry points is used.

__all__ = ["analyze_risk", "correlate_nearby"]


def __getattr__(name: str):
    if name == "analyze_risk":
        from modules.risk_analysis import analyze_risk
        return analyze_risk
    if name == "correlate_nearby":
        from modules.geo import correlate_nearby
        return correlate_nearby
    raise AttributeError(f"module 'modules' has no attribute {name!r}")
