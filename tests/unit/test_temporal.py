"""
Unit Tests for the daily county flood metric

Tests verify:
1. Log size weights and their exclusions
2. Weighted flood metric in [0, 1], None when no gage can be weighted
3. Unweighted tier percentages ignore weight exclusions
4. filter_data trimming
"""

import math
from datetime import date, timedelta

import pytest

from countyflood.analysis.classifier import classify_flood_days
from countyflood.analysis.temporal import (
    compute_flood_metric,
    gage_weights,
    metrics_to_frame,
    size_weight,
)
from countyflood.models import (
    DischargeObservation,
    FloodThreshold,
    Gage,
    NWSTier,
    ThresholdSource,
)

COUNTY = "51001"
START = date(2020, 1, 1)
END = date(2020, 1, 7)

BIG = Gage("01000001", COUNTY, drainage_area=100.0)
SMALL = Gage("01000002", COUNTY, drainage_area=50.0)
NO_AREA = Gage("01000003", COUNTY, drainage_area=None)


def day_records(gage, values, threshold=100.0, source=ThresholdSource.Q2, start=START):
    t = FloodThreshold(gage.site_id, source, threshold, NWSTier.FLOOD if source is ThresholdSource.NWS else None)
    obs = [DischargeObservation(gage.site_id, start + timedelta(days=i), v) for i, v in enumerate(values)]
    return classify_flood_days(obs, t)


@pytest.fixture
def records():
    # Jan 3: both flood. Jan 5: only SMALL floods (ratio 2.5). NO_AREA floods Jan 2.
    return {
        BIG.site_id: day_records(BIG, [50, 50, 140, 10, 10, 10, 10]),
        SMALL.site_id: day_records(SMALL, [50, 50, 125, 10, 250, 10, 10]),
        NO_AREA.site_id: day_records(NO_AREA, [50, 300, 50]),
    }


def by_date(results):
    return {r.date: r for r in results}


def test_size_weight():
    assert size_weight(100.0) == pytest.approx(math.log(100.0))
    assert size_weight(None) is None
    assert size_weight(0.0) is None
    assert size_weight(-5.0) is None
    assert size_weight(math.nan) is None
    # log(1) = 0 and log(0.5) < 0 cannot act as weights
    assert size_weight(1.0) is None
    assert size_weight(0.5) is None


def test_gage_weights_da_and_q2():
    da = gage_weights([BIG, SMALL, NO_AREA], "da")
    q2 = gage_weights([BIG, SMALL, NO_AREA], "q2", {BIG.site_id: 1000.0, NO_AREA.site_id: 0.0})

    assert set(da) == {BIG.site_id, SMALL.site_id}
    assert set(q2) == {BIG.site_id}
    assert q2[BIG.site_id] == pytest.approx(math.log(1000.0))


def test_weighted_metric(records):
    results = by_date(compute_flood_metric(
        COUNTY, [BIG, SMALL, NO_AREA], records, START, END, ThresholdSource.Q2, filter_data=False
    ))

    w_big, w_small = math.log(100.0), math.log(50.0)

    assert results[date(2020, 1, 1)].flood_metric == 0.0
    assert results[date(2020, 1, 3)].flood_metric == pytest.approx(1.0)
    assert results[date(2020, 1, 5)].flood_metric == pytest.approx(w_small / (w_big + w_small))
    for r in results.values():
        assert r.flood_metric is None or 0.0 <= r.flood_metric <= 1.0


def test_unweighted_gage_counts_in_percentages_only(records):
    results = by_date(compute_flood_metric(
        COUNTY, [BIG, SMALL, NO_AREA], records, START, END, ThresholdSource.Q2, filter_data=False
    ))

    jan2 = results[date(2020, 1, 2)]
    assert jan2.n_gages == 3
    assert jan2.n_weighted_gages == 2
    # NO_AREA is flooding but carries no weight
    assert jan2.flood_metric == 0.0
    assert jan2.percentages["none"] == pytest.approx(200.0 / 3)
    assert jan2.percentages["major"] == pytest.approx(100.0 / 3)


def test_tier_percentages_are_exact_tiers(records):
    results = by_date(compute_flood_metric(
        COUNTY, [BIG, SMALL], records, START, END, ThresholdSource.Q2, filter_data=False
    ))

    jan3 = results[date(2020, 1, 3)]
    assert jan3.percentages == pytest.approx({
        "none": 0.0, "minor": 100.0, "moderate": 0.0, "major": 0.0, "extreme": 0.0
    })
    jan5 = results[date(2020, 1, 5)]
    assert jan5.percentages["none"] == pytest.approx(50.0)
    assert jan5.percentages["major"] == pytest.approx(50.0)


def test_metric_undefined_when_all_weights_excluded():
    records = {NO_AREA.site_id: day_records(NO_AREA, [300, 50])}

    results = compute_flood_metric(
        COUNTY, [NO_AREA], records, START, date(2020, 1, 2), ThresholdSource.Q2, filter_data=False
    )

    assert [r.flood_metric for r in results] == [None, None]
    assert results[0].percentages["major"] == pytest.approx(100.0)


def test_filter_data_trims_to_flooding_span(records):
    full = compute_flood_metric(
        COUNTY, [BIG, SMALL], records, START, END, ThresholdSource.Q2, filter_data=False
    )
    trimmed = compute_flood_metric(
        COUNTY, [BIG, SMALL], records, START, END, ThresholdSource.Q2, filter_data=True
    )

    assert len(full) == 7
    assert [r.date for r in trimmed] == [date(2020, 1, 3), date(2020, 1, 4), date(2020, 1, 5)]
    assert len(trimmed) <= len(full)
    for r in (trimmed[0], trimmed[-1]):
        assert any(rec.is_flood and rec.date == r.date for recs in records.values() for rec in recs)


def test_full_range_includes_dates_without_data():
    records = {BIG.site_id: day_records(BIG, [150.0])}

    results = compute_flood_metric(
        COUNTY, [BIG], records, START, date(2020, 1, 3), ThresholdSource.Q2, filter_data=False
    )

    assert [r.date for r in results] == [date(2020, 1, 1), date(2020, 1, 2), date(2020, 1, 3)]
    empty = results[1]
    assert empty.n_gages == 0
    assert empty.flood_metric is None
    assert all(v is None for v in empty.percentages.values())


def test_no_flooding_with_filter_returns_nothing():
    records = {BIG.site_id: day_records(BIG, [10.0, 20.0])}
    assert compute_flood_metric(
        COUNTY, [BIG], records, START, date(2020, 1, 2), ThresholdSource.Q2, filter_data=True
    ) == []


def test_nws_source_uses_flood_no_flood():
    records = {BIG.site_id: day_records(BIG, [50.0, 700.0], source=ThresholdSource.NWS)}

    results = compute_flood_metric(
        COUNTY, [BIG], records, START, date(2020, 1, 2), ThresholdSource.NWS, filter_data=False
    )

    assert results[1].percentages == {"no_flood": 0.0, "flood": 100.0}
    assert results[1].flood_metric == pytest.approx(1.0)


def test_gages_from_other_counties_are_ignored(records):
    elsewhere = Gage("09000001", "51003", drainage_area=500.0)
    records = dict(records)
    records[elsewhere.site_id] = day_records(elsewhere, [900.0] * 7)

    results = compute_flood_metric(
        COUNTY, [BIG, SMALL, elsewhere], records, START, END, ThresholdSource.Q2, filter_data=False
    )

    assert results[0].n_gages == 2


def test_metrics_to_frame(records):
    results = compute_flood_metric(
        COUNTY, [BIG, SMALL], records, START, END, ThresholdSource.Q2, filter_data=True
    )

    df = metrics_to_frame(results, ThresholdSource.Q2)

    assert list(df.columns) == [
        "county_fips", "date", "n_gages", "n_weighted_gages", "flood_metric",
        "percent_none", "percent_minor", "percent_moderate", "percent_major", "percent_extreme",
    ]
    assert len(df) == 3
    assert (df["county_fips"] == COUNTY).all()
