"""
Daily county flood metric.

For each date, the flood metric is the share of a county's gages in flood,
with each gage weighted by the log of its river size (drainage area or Q2):

    flood_metric = sum(w_i for flooding gages) / sum(w_i for gages with data)

Unweighted percentages of gages in each magnitude tier are reported next to it.
"""

import logging
import math
from collections import defaultdict
from datetime import date, timedelta
from typing import Iterable, Optional

import pandas as pd

from countyflood.models import (
    FloodDayRecord,
    Gage,
    NWSFloodStatus,
    TemporalMetricRecord,
    ThresholdSource,
    magnitude_scale,
)
from .summarizer import magnitude_from_peak

logger = logging.getLogger(__name__)


def size_weight(value: Optional[float]) -> Optional[float]:
    """
    Log river-size weight.

    Returns None for a missing or non-positive input, and for inputs whose
    log is not positive, so every weight that is used is greater than zero.
    """
    if value is None:
        return None
    try:
        value = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    weight = math.log(value)
    if weight <= 0:
        return None
    return weight


def gage_weights(
    gages: Iterable[Gage],
    weight: str,
    q2_values: Optional[dict[str, float]] = None
) -> dict[str, float]:
    """
    Weight for each gage that has a usable size value.

    Args:
        gages: Gages in the county
        weight: "da" for drainage area, "q2" for median annual flood
        q2_values: Site id -> Q2, needed when weight is "q2"
    """
    q2_values = q2_values or {}
    weights = {}
    for gage in gages:
        raw = gage.drainage_area if weight == "da" else q2_values.get(gage.site_id)
        w = size_weight(raw)
        if w is not None:
            weights[gage.site_id] = w
        else:
            logger.debug(f"No {weight} weight for {gage.site_id} (value: {raw})")
    return weights


def _day_tier(record: FloodDayRecord, source: ThresholdSource):
    if source is ThresholdSource.Q2:
        return magnitude_from_peak(record.peak_ratio)
    return NWSFloodStatus.FLOOD if record.is_flood else NWSFloodStatus.NO_FLOOD


def compute_flood_metric(
    county_fips: str,
    gages: Iterable[Gage],
    records_by_gage: dict[str, list[FloodDayRecord]],
    start_date: date,
    end_date: date,
    source: ThresholdSource,
    weight: str = "da",
    q2_values: Optional[dict[str, float]] = None,
    filter_data: bool = True
) -> list[TemporalMetricRecord]:
    """
    Compute the daily flood metric for one county.

    Args:
        county_fips: County to report on
        gages: Gages in the county
        records_by_gage: Classified days per site id
        start_date: First date of the range
        end_date: Last date of the range
        source: Threshold source the records were classified with
        weight: "da" or "q2"
        q2_values: Site id -> Q2 for weight="q2"
        filter_data: Trim the output to the first through last date with a
            flooding gage. When False every date in the range is returned.

    Returns:
        One TemporalMetricRecord per date.
    """
    gages = [g for g in gages if g.county_fips == county_fips]
    weights = gage_weights(gages, weight, q2_values)
    tiers = list(magnitude_scale(source))

    by_date: dict[date, list[FloodDayRecord]] = defaultdict(list)
    for gage in gages:
        for record in records_by_gage.get(gage.site_id, []):
            if start_date <= record.date <= end_date:
                by_date[record.date].append(record)

    results = []
    day = start_date
    while day <= end_date:
        day_records = by_date.get(day, [])
        results.append(_metric_for_day(county_fips, day, day_records, weights, tiers, source))
        day += timedelta(days=1)

    if filter_data:
        results = _trim_to_flooding(county_fips, by_date, results)

    return results


def _metric_for_day(county_fips, day, day_records, weights, tiers, source) -> TemporalMetricRecord:
    n_gages = len(day_records)

    total_weight = 0.0
    flood_weight = 0.0
    n_weighted = 0
    for record in day_records:
        w = weights.get(record.site_id)
        if w is None:
            continue
        n_weighted += 1
        total_weight += w
        if record.is_flood:
            flood_weight += w

    flood_metric = flood_weight / total_weight if total_weight > 0 else None

    if n_gages:
        counts = defaultdict(int)
        for record in day_records:
            counts[_day_tier(record, source)] += 1
        percentages = {tier.name.lower(): 100.0 * counts[tier] / n_gages for tier in tiers}
    else:
        percentages = {tier.name.lower(): None for tier in tiers}

    return TemporalMetricRecord(
        county_fips=county_fips,
        date=day,
        n_gages=n_gages,
        n_weighted_gages=n_weighted,
        flood_metric=flood_metric,
        percentages=percentages,
    )


def _trim_to_flooding(county_fips, records_by_date, records):
    flood_dates = sorted(d for d, recs in records_by_date.items() if any(r.is_flood for r in recs))
    if not flood_dates:
        logger.info(f"No flooding recorded in county {county_fips}")
        return []
    first, last = flood_dates[0], flood_dates[-1]
    return [r for r in records if first <= r.date <= last]


def metrics_to_frame(records: Iterable[TemporalMetricRecord], source: ThresholdSource) -> pd.DataFrame:
    """Temporal output table."""
    tier_names = [tier.name.lower() for tier in magnitude_scale(source)]
    columns = ["county_fips", "date", "n_gages", "n_weighted_gages", "flood_metric"] + \
        [f"percent_{name}" for name in tier_names]

    rows = []
    for r in records:
        row = {
            "county_fips": r.county_fips,
            "date": r.date,
            "n_gages": r.n_gages,
            "n_weighted_gages": r.n_weighted_gages,
            "flood_metric": r.flood_metric,
        }
        for name, percent in r.percentages.items():
            row[f"percent_{name}"] = percent
        rows.append(row)

    return pd.DataFrame(rows, columns=columns)
