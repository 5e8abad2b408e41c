"""
Annual peak streamflow fetcher.
"""

import logging

import pandas as pd
import dataretrieval.nwis as nwis

from countyflood.models import AnnualPeakRecord

logger = logging.getLogger(__name__)


def frame_to_peaks(df: pd.DataFrame, site_id: str) -> list[AnnualPeakRecord]:
    """
    Convert an NWIS peaks frame into annual peak records.

    Rows without a parseable date or peak value are skipped.
    """
    df = df.reset_index()
    date_col = next((c for c in ("peak_dt", "datetime") if c in df.columns), None)
    if date_col is None or "peak_va" not in df.columns:
        return []

    years = pd.to_datetime(df[date_col], errors="coerce", utc=True).dt.year
    peaks = pd.to_numeric(df["peak_va"], errors="coerce")

    records = []
    for year, peak in zip(years, peaks):
        if pd.isna(year) or pd.isna(peak):
            continue
        records.append(AnnualPeakRecord(site_id=site_id, year=int(year), peak_discharge=float(peak)))

    return records


def fetch_annual_peaks(site_id: str) -> list[AnnualPeakRecord]:
    """
    Fetch the annual peak discharge history for a gage.

    Args:
        site_id: USGS site identifier

    Returns:
        List of annual peaks, empty if the site has none.
    """
    try:
        df, _ = nwis.get_discharge_peaks(sites=site_id)
    except Exception as e:
        logger.debug(f"No annual peaks for {site_id}: {e}")
        return []

    if df is None or df.empty:
        return []

    return frame_to_peaks(df, site_id)
