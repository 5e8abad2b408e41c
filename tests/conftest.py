"""
Shared fixtures: an in-memory stand-in for the USGS / NWS data sources.
"""

from datetime import date, timedelta

import pytest

from countyflood.models import AnnualPeakRecord, DischargeObservation, Gage, NWSTier
from countyflood.sources.registry import DataSources


RATING = [(0.0, 0.0), (10.0, 500.0), (15.0, 900.0), (25.0, 3000.0)]


def make_sources(
    gages=None,
    counties_by_state=None,
    ratings=None,
    stages=None,
    peaks=None,
    flows=None,
):
    """
    Build DataSources backed by dictionaries.

    Args:
        gages: county fips -> list of Gage
        counties_by_state: state -> list of county fips
        ratings: site id -> rating table
        stages: site id -> {NWSTier: stage}
        peaks: site id -> list of peak values (one per year starting 1990)
        flows: site id -> {date: discharge}
    """
    gages = gages or {}
    counties_by_state = counties_by_state or {}
    ratings = ratings or {}
    stages = stages or {}
    peaks = peaks or {}
    flows = flows or {}

    def fetch_peaks(site_id):
        return [
            AnnualPeakRecord(site_id, 1990 + i, value)
            for i, value in enumerate(peaks.get(site_id, []))
        ]

    def fetch_flow(site_id, start, end):
        return [
            DischargeObservation(site_id, day, value)
            for day, value in sorted(flows.get(site_id, {}).items())
            if start <= day <= end
        ]

    return DataSources(
        gages=lambda county, start, end: list(gages.get(county, [])),
        county_codes=lambda state: list(counties_by_state.get(state, [])),
        rating_table=lambda site_id: list(ratings.get(site_id, [])),
        stage_thresholds=lambda site_id: dict(stages.get(site_id, {})),
        annual_peaks=fetch_peaks,
        daily_discharge=fetch_flow,
    )


def daily(start: date, values: list[float]) -> dict:
    """Map consecutive dates from start to the given values."""
    return {start + timedelta(days=i): v for i, v in enumerate(values)}


@pytest.fixture
def county_gages():
    """Three gages in county 51001, none in 51003."""
    return {
        "51001": [
            Gage("01000001", "51001", drainage_area=100.0),
            Gage("01000002", "51001", drainage_area=50.0),
            Gage("01000003", "51001", drainage_area=20.0),
        ],
    }


@pytest.fixture
def sample_sources(county_gages):
    """
    County 51001:
      01000001 - NWS flood stage 12.5 ft (700 cfs), 20 years of peaks (Q2 = 1000)
      01000002 - no NWS stages, 20 years of peaks (Q2 = 200)
      01000003 - no thresholds of any kind
    County 51003 has no gages.
    """
    start = date(2020, 1, 1)
    return make_sources(
        gages=county_gages,
        counties_by_state={"VA": ["51001", "51003"]},
        ratings={"01000001": RATING},
        stages={"01000001": {NWSTier.FLOOD: 12.5, NWSTier.MAJOR: 30.0}},
        peaks={
            "01000001": [1000.0] * 20,
            "01000002": [200.0] * 20,
        },
        flows={
            "01000001": daily(start, [350.0, 700.0, 1400.0, 100.0, 100.0]),
            "01000002": daily(start, [100.0, 100.0, 250.0, 500.0, 100.0]),
            "01000003": daily(start, [10.0] * 5),
        },
    )


@pytest.fixture
def sources_factory():
    return make_sources
