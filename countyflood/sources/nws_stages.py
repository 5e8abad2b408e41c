"""
NWS Flood Stage Fetcher

Fetches flood stage thresholds from the NWS National Water Prediction Service.
These stages define when a gage reaches Action Stage, Flood (minor), Moderate
Flood and Major Flood.
"""

import logging
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from countyflood.models import NWSTier
from countyflood.utils.config import config

logger = logging.getLogger(__name__)

# NWPS category name -> tier
NWS_CATEGORIES = {
    "action": NWSTier.ACTION,
    "minor": NWSTier.FLOOD,
    "moderate": NWSTier.MODERATE,
    "major": NWSTier.MAJOR,
}

# NWPS reports unset categories with this sentinel
MISSING_STAGE = -9999


def _create_session() -> requests.Session:
    """Create a requests session that retries server errors."""
    session = requests.Session()

    retry_strategy = Retry(
        total=config.nws.max_retries,
        backoff_factor=1.0,
        status_forcelist=[500, 502, 503, 504],
        allowed_methods=["GET"],
        raise_on_status=False
    )

    adapter = HTTPAdapter(max_retries=retry_strategy)
    session.mount("https://", adapter)
    session.mount("http://", adapter)

    return session


def _parse_stage(category: Optional[dict]) -> Optional[float]:
    if not category:
        return None
    stage = category.get("stage")
    if stage is None:
        return None
    try:
        stage = float(stage)
    except (TypeError, ValueError):
        return None
    if stage <= MISSING_STAGE:
        return None
    return stage


def parse_flood_categories(data: dict) -> dict[NWSTier, float]:
    """
    Pull the stage for each flood category out of an NWPS gauge document.

    Args:
        data: Decoded JSON for one gauge

    Returns:
        Mapping of tier to stage in feet, only for categories that are set.
    """
    categories = (data.get("flood") or {}).get("categories") or {}

    stages = {}
    for name, tier in NWS_CATEGORIES.items():
        stage = _parse_stage(categories.get(name))
        if stage is not None:
            stages[tier] = stage

    return stages


def fetch_stage_thresholds(site_id: str, session: Optional[requests.Session] = None) -> dict[NWSTier, float]:
    """
    Fetch flood stage thresholds for a single gage.

    Args:
        site_id: USGS site identifier (NWPS resolves it to its own gauge id)
        session: Optional session to reuse

    Returns:
        Dictionary of tier -> stage (feet). Empty if the gage has no NWS
        forecast point or the service could not be reached.
    """
    url = f"{config.nws.gauges_url}/{site_id}"
    own_session = session is None
    if own_session:
        session = _create_session()

    try:
        response = session.get(url, timeout=config.nws.timeout)

        if response.status_code == 404:
            # Gage not in NWS system
            return {}

        response.raise_for_status()
        return parse_flood_categories(response.json())

    except requests.exceptions.Timeout:
        logger.warning(f"Timeout fetching NWS stages for {site_id}")
        return {}
    except requests.exceptions.RequestException as e:
        logger.debug(f"Error fetching NWS stages for {site_id}: {e}")
        return {}
    except ValueError as e:
        logger.debug(f"Bad NWS response for {site_id}: {e}")
        return {}
    finally:
        if own_session:
            session.close()
