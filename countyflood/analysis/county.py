"""
County-level aggregation of gage flood summaries.
"""

import logging
from collections import defaultdict
from datetime import date
from typing import Iterable

import pandas as pd

from countyflood.models import (
    CountyFloodSummary,
    Gage,
    GageFloodSummary,
    ThresholdSource,
    magnitude_scale,
)

logger = logging.getLogger(__name__)


def tier_columns(source: ThresholdSource) -> list[str]:
    """Percentage column names, one per tier above the lowest."""
    return [f"percent_{tier.name.lower()}" for tier in list(magnitude_scale(source))[1:]]


def aggregate_counties(
    county_codes: Iterable[str],
    gages: Iterable[Gage],
    summaries: Iterable[GageFloodSummary],
    source: ThresholdSource,
    start_date: date,
    end_date: date
) -> list[CountyFloodSummary]:
    """
    Reduce gage summaries to the percentage of gages flooding per county.

    For each tier above the lowest, the percentage counts gages whose
    magnitude class is at or above that tier. Every requested county is
    returned, including counties where no gage could be summarized.

    Args:
        county_codes: Requested county FIPS codes
        gages: Every gage found in those counties
        summaries: Gage summaries for the window
        source: Threshold source the summaries were built from
        start_date: Window start
        end_date: Window end

    Returns:
        One CountyFloodSummary per requested county, in request order.
    """
    counties = list(dict.fromkeys(county_codes))
    tiers = list(magnitude_scale(source))[1:]

    known_gages: dict[str, set] = defaultdict(set)
    for gage in gages:
        known_gages[gage.county_fips].add(gage.site_id)

    by_county: dict[str, list[GageFloodSummary]] = {code: [] for code in counties}
    for summary in summaries:
        if summary.county_fips in by_county:
            by_county[summary.county_fips].append(summary)

    results = []
    for code, county_summaries in by_county.items():
        n_with_data = len(county_summaries)
        summarized = {s.site_id for s in county_summaries}
        n_missing = len(known_gages[code] - summarized)

        result = CountyFloodSummary(
            county_fips=code,
            start_date=start_date,
            end_date=end_date,
            n_gages_with_data=n_with_data,
            n_gages_missing=n_missing,
        )

        if n_with_data == 0:
            result.percentages = {tier.name.lower(): None for tier in tiers}
        else:
            result.avg_peak = sum(s.avg_peak for s in county_summaries) / n_with_data
            result.max_peak = max(s.max_peak for s in county_summaries)
            result.percentages = {
                tier.name.lower(): 100.0 * sum(1 for s in county_summaries if s.magnitude_class >= tier) / n_with_data
                for tier in tiers
            }

        results.append(result)

    n_empty = sum(1 for r in results if not r.has_data)
    if n_empty:
        logger.info(f"{n_empty} of {len(results)} counties have no gage data")

    return results


def county_summaries_to_frame(
    summaries: Iterable[CountyFloodSummary],
    source: ThresholdSource
) -> pd.DataFrame:
    """County-level output table."""
    columns = [
        "county_fips", "start_date", "end_date", "n_gages_with_data",
        "n_gages_missing", "has_data", "avg_peak", "max_peak",
    ] + tier_columns(source)

    rows = []
    for s in summaries:
        row = {
            "county_fips": s.county_fips,
            "start_date": s.start_date,
            "end_date": s.end_date,
            "n_gages_with_data": s.n_gages_with_data,
            "n_gages_missing": s.n_gages_missing,
            "has_data": s.has_data,
            "avg_peak": s.avg_peak,
            "max_peak": s.max_peak,
        }
        for tier, percent in s.percentages.items():
            row[f"percent_{tier}"] = percent
        rows.append(row)

    return pd.DataFrame(rows, columns=columns)
