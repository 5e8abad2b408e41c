"""
Per-gage flood summary over an analysis window.
"""

import logging
from datetime import date
from typing import Iterable, Optional

import numpy as np
import pandas as pd

from countyflood.models import (
    FloodDayRecord,
    FloodThreshold,
    Gage,
    GageFloodSummary,
    NWSFloodStatus,
    Q2Magnitude,
    ThresholdSource,
)
from countyflood.utils.config import config

logger = logging.getLogger(__name__)

SUMMARY_COLUMNS = [
    "site_id", "county_fips", "station_name", "latitude", "longitude",
    "threshold_source", "threshold", "drainage_area", "q2",
    "avg_peak", "max_peak", "flood_days", "n_days", "flood",
]


def magnitude_from_peak(peak_ratio: float) -> Q2Magnitude:
    """
    Classify a peak ratio into a Q2 flood magnitude.

    Args:
        peak_ratio: Discharge divided by Q2

    Returns:
        Q2Magnitude using the breakpoints in config.flood.
    """
    flood = config.flood
    if peak_ratio < flood.minor_ratio:
        return Q2Magnitude.NONE
    elif peak_ratio < flood.moderate_ratio:
        return Q2Magnitude.MINOR
    elif peak_ratio < flood.major_ratio:
        return Q2Magnitude.MODERATE
    elif peak_ratio <= flood.extreme_ratio:
        return Q2Magnitude.MAJOR
    else:
        return Q2Magnitude.EXTREME


def summarize_gage(
    gage: Gage,
    threshold: FloodThreshold,
    records: Iterable[FloodDayRecord],
    start_date: date,
    end_date: date,
    q2: Optional[float] = None
) -> Optional[GageFloodSummary]:
    """
    Reduce a gage's classified days within [start_date, end_date] to a summary.

    Args:
        gage: The gage
        threshold: The threshold its days were classified against
        records: FloodDayRecords for the gage
        start_date: First day of the window
        end_date: Last day of the window
        q2: Known Q2 for the gage, used as a size weight

    Returns:
        GageFloodSummary, or None if no records fall inside the window.
    """
    window = [r for r in records if start_date <= r.date <= end_date]
    if not window:
        return None

    ratios = np.array([r.peak_ratio for r in window], dtype=float)
    flood_days = sum(1 for r in window if r.is_flood)
    max_peak = float(ratios.max())

    if threshold.source is ThresholdSource.Q2:
        magnitude = magnitude_from_peak(max_peak)
        q2 = threshold.discharge
    else:
        magnitude = NWSFloodStatus.FLOOD if flood_days > 0 else NWSFloodStatus.NO_FLOOD

    return GageFloodSummary(
        site_id=gage.site_id,
        county_fips=gage.county_fips,
        source=threshold.source,
        threshold=threshold.discharge,
        avg_peak=float(ratios.mean()),
        max_peak=max_peak,
        flood_days=flood_days,
        n_days=len(window),
        magnitude_class=magnitude,
        drainage_area=gage.drainage_area,
        q2=q2,
        station_name=gage.station_name,
        latitude=gage.latitude,
        longitude=gage.longitude,
    )


def summarize_gages(
    gages: Iterable[Gage],
    thresholds: dict[str, FloodThreshold],
    records_by_gage: dict[str, list[FloodDayRecord]],
    start_date: date,
    end_date: date,
    q2_values: Optional[dict[str, float]] = None
) -> list[GageFloodSummary]:
    """Summarize every gage that has a threshold and records in the window."""
    q2_values = q2_values or {}
    summaries = []
    for gage in gages:
        threshold = thresholds.get(gage.site_id)
        records = records_by_gage.get(gage.site_id)
        if threshold is None or not records:
            continue
        summary = summarize_gage(
            gage, threshold, records, start_date, end_date, q2=q2_values.get(gage.site_id)
        )
        if summary is not None:
            summaries.append(summary)
    return summaries


def summaries_to_frame(summaries: Iterable[GageFloodSummary]) -> pd.DataFrame:
    """Gage-level output table."""
    rows = [
        {
            "site_id": s.site_id,
            "county_fips": s.county_fips,
            "station_name": s.station_name,
            "latitude": s.latitude,
            "longitude": s.longitude,
            "threshold_source": s.source.value,
            "threshold": s.threshold,
            "drainage_area": s.drainage_area,
            "q2": s.q2,
            "avg_peak": s.avg_peak,
            "max_peak": s.max_peak,
            "flood_days": s.flood_days,
            "n_days": s.n_days,
            "flood": s.magnitude_class.label,
        }
        for s in summaries
    ]
    return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)
