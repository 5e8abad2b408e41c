"""
Flags each day of a gage's discharge record as flood or no flood.
"""

import logging
from typing import Iterable

from countyflood.models import DischargeObservation, FloodDayRecord, FloodThreshold

logger = logging.getLogger(__name__)


def classify_flood_days(
    observations: Iterable[DischargeObservation],
    threshold: FloodThreshold
) -> list[FloodDayRecord]:
    """
    Compare each day's discharge to the gage's flood threshold.

    Args:
        observations: Daily discharge for one gage (any order)
        threshold: Resolved threshold for the same gage

    Returns:
        FloodDayRecords sorted by date.
    """
    records = [
        FloodDayRecord(
            site_id=obs.site_id,
            date=obs.date,
            discharge=obs.discharge,
            threshold=threshold.discharge,
            peak_ratio=obs.discharge / threshold.discharge,
            is_flood=obs.discharge >= threshold.discharge,
        )
        for obs in observations
        if obs.site_id == threshold.site_id
    ]
    records.sort(key=lambda r: r.date)
    return records


def classify_gages(
    flows_by_gage: dict[str, list[DischargeObservation]],
    thresholds: dict[str, FloodThreshold]
) -> dict[str, list[FloodDayRecord]]:
    """
    Inner join of discharge series and thresholds by site id.

    Gages missing from either side contribute no records.
    """
    classified = {}
    for site_id in flows_by_gage.keys() & thresholds.keys():
        records = classify_flood_days(flows_by_gage[site_id], thresholds[site_id])
        if records:
            classified[site_id] = records

    logger.debug(f"Classified {len(classified)} gages "
                 f"({len(flows_by_gage)} with flow, {len(thresholds)} with thresholds)")
    return classified
