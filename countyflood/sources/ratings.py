"""
Rating table fetcher.

Stage/discharge rating tables come from the NWIS ratings service.
"""

import logging

import pandas as pd
import dataretrieval.nwis as nwis

from countyflood.utils.config import config

logger = logging.getLogger(__name__)


def fetch_rating_table(site_id: str) -> list[tuple[float, float]]:
    """
    Fetch the expanded rating table for a gage.

    Args:
        site_id: USGS site identifier

    Returns:
        List of (stage_ft, discharge_cfs) pairs sorted by stage, empty if
        the gage has no published rating.
    """
    try:
        df, _ = nwis.get_ratings(site=site_id, file_type=config.usgs.rating_file_type)
    except Exception as e:
        logger.debug(f"No rating table for {site_id}: {e}")
        return []

    if df is None or df.empty or "INDEP" not in df.columns or "DEP" not in df.columns:
        return []

    table = pd.DataFrame({
        "stage": pd.to_numeric(df["INDEP"], errors="coerce"),
        "discharge": pd.to_numeric(df["DEP"], errors="coerce"),
    }).dropna()
    table = table.drop_duplicates(subset="stage", keep="last").sort_values("stage")

    return list(zip(table["stage"].astype(float), table["discharge"].astype(float)))
