"""
Daily discharge fetcher.

Fetches Daily Values (DV) of mean discharge for a single USGS site.
"""

import logging
from datetime import date

import pandas as pd
import dataretrieval.nwis as nwis

from countyflood.models import DischargeObservation
from countyflood.utils.config import config

logger = logging.getLogger(__name__)


def frame_to_observations(df: pd.DataFrame, site_id: str) -> list[DischargeObservation]:
    """
    Convert an NWIS daily-values frame into discharge observations.

    Args:
        df: DataFrame indexed by datetime with a 00060 mean column
        site_id: USGS site identifier

    Returns:
        Observations sorted by date, one per date, missing values dropped.
    """
    # Find the discharge column (00060_Mean, not site_no or quality codes)
    discharge_cols = [c for c in df.columns if config.usgs.discharge_param in c and "cd" not in c.lower()]
    if not discharge_cols:
        logger.debug(f"No discharge column found for site {site_id}")
        return []

    column = config.usgs.daily_stat_column
    if column not in discharge_cols:
        column = discharge_cols[0]

    series = pd.to_numeric(df[column], errors="coerce")
    series.index = pd.to_datetime(series.index)
    series = series.dropna()

    by_date = {}
    for timestamp, value in series.items():
        by_date[timestamp.date()] = float(value)

    return [
        DischargeObservation(site_id=site_id, date=day, discharge=value)
        for day, value in sorted(by_date.items())
    ]


def fetch_daily_discharge(site_id: str, start_date: date, end_date: date) -> list[DischargeObservation]:
    """
    Fetch daily mean discharge for a single USGS site.

    Args:
        site_id: USGS site identifier (e.g., "01013500")
        start_date: First day to fetch
        end_date: Last day to fetch

    Returns:
        List of observations, empty if no data is available.
    """
    try:
        df, _ = nwis.get_dv(
            sites=site_id,
            parameterCd=config.usgs.discharge_param,
            start=str(start_date),
            end=str(end_date)
        )
    except Exception as e:
        logger.debug(f"Error fetching daily discharge for site {site_id}: {e}")
        return []

    if df is None or df.empty:
        logger.debug(f"No daily discharge for site {site_id}")
        return []

    return frame_to_observations(df, site_id)
