"""
NASA Harmony - dataset subsetting/reprojection job submission.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from modules.errors import SourceFetchError

logger = logging.getLogger(__name__)

HARMONY_JOBS_URL = "https://cmr.earthdata.nasa.gov/harmony/api/service/jobs"
SOURCE = "NASA Harmony"


async def submit_harmony_job(
    dataset_id: str,
    bbox: tuple[float, float, float, float],
    *,
    output_crs: str = "EPSG:4326",
    max_results: int = 10,
) -> dict[str, str]:
    """Submit a processing job for *dataset_id* over *bbox*.

    Args:
        dataset_id: Collection short name or concept ID, e.g. ``ASTGTM_NC.003``.
        bbox: ``(min_lon, min_lat, max_lon, max_lat)``.
        output_crs: EPSG code for the output.
        max_results: Maximum number of granules to process.

    Returns:
        ``{"job_id", "status_url"}``; poll *status_url* for progress.
    """
    payload: dict[str, Any] = {
        "source": {"collection": dataset_id, "spatial": {"bbox": list(bbox)}},
        "format": {"crs": output_crs},
        "maxResults": max_results,
    }

    try:
        async with httpx.AsyncClient(timeout=30) as client:
            resp = await client.post(HARMONY_JOBS_URL, json=payload)
            resp.raise_for_status()
            result = resp.json()
    except httpx.HTTPStatusError as exc:
        raise SourceFetchError(
            SOURCE,
            f"request failed with status {exc.response.status_code}: {exc.response.text[:300]}",
        ) from exc
    except (httpx.HTTPError, ValueError) as exc:
        raise SourceFetchError(SOURCE, str(exc)) from exc

    job_id = result.get("jobID") if isinstance(result, dict) else None
    if not job_id:
        raise SourceFetchError(SOURCE, "response did not include a jobID")

    logger.info("Harmony job %s submitted for %s", job_id, dataset_id)
    return {"job_id": job_id, "status_url": f"{HARMONY_JOBS_URL}/{job_id}"}
