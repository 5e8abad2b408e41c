"""
Unit Tests for daily flood classification
"""

from datetime import date

import pytest

from countyflood.analysis.classifier import classify_flood_days, classify_gages
from countyflood.models import DischargeObservation, FloodThreshold, ThresholdSource

SITE = "01000001"
THRESHOLD = FloodThreshold(SITE, ThresholdSource.Q2, 1000.0)


def observations(values, site_id=SITE):
    return [DischargeObservation(site_id, date(2020, 1, i + 1), v) for i, v in enumerate(values)]


def test_peak_ratio_and_flood_flag():
    records = classify_flood_days(observations([500.0, 1000.0, 2500.0]), THRESHOLD)

    assert [r.peak_ratio for r in records] == pytest.approx([0.5, 1.0, 2.5])
    assert [r.is_flood for r in records] == [False, True, True]
    assert all(r.threshold == 1000.0 for r in records)


def test_output_sorted_by_date_regardless_of_input_order():
    obs = observations([1.0, 2.0, 3.0])
    records = classify_flood_days(list(reversed(obs)), THRESHOLD)
    assert [r.date for r in records] == [o.date for o in obs]


def test_classification_is_idempotent():
    obs = observations([500.0, 1500.0, 900.0])
    first = classify_flood_days(obs, THRESHOLD)
    second = classify_flood_days(obs, THRESHOLD)
    assert first == second


def test_ignores_observations_from_other_gages():
    obs = observations([5000.0], site_id="09999999")
    assert classify_flood_days(obs, THRESHOLD) == []


def test_classify_gages_is_inner_join():
    flows = {
        SITE: observations([1500.0]),
        "01000002": observations([10.0], site_id="01000002"),
    }
    thresholds = {
        SITE: THRESHOLD,
        "01000003": FloodThreshold("01000003", ThresholdSource.Q2, 10.0),
    }

    classified = classify_gages(flows, thresholds)

    assert set(classified) == {SITE}
    assert classified[SITE][0].is_flood
