"""
Unit Tests for the USGS / NWS data sources

Network calls are replaced with monkeypatched stand-ins; these tests check
parsing and that service failures turn into empty results.
"""

from datetime import date
from unittest.mock import MagicMock

import pandas as pd
import pytest
import requests

from countyflood.models import NWSTier
from countyflood.sources import daily_flow, gages, nws_stages, peaks, ratings


def test_parse_flood_categories():
    data = {
        "flood": {
            "categories": {
                "action": {"stage": 9.0, "flow": -9999},
                "minor": {"stage": 12.5},
                "moderate": {"stage": -9999},
                "major": {"stage": None},
            }
        }
    }
    assert nws_stages.parse_flood_categories(data) == {NWSTier.ACTION: 9.0, NWSTier.FLOOD: 12.5}


def test_parse_flood_categories_without_flood_block():
    assert nws_stages.parse_flood_categories({}) == {}
    assert nws_stages.parse_flood_categories({"flood": None}) == {}


def test_fetch_stage_thresholds_not_found():
    session = MagicMock()
    session.get.return_value = MagicMock(status_code=404)

    assert nws_stages.fetch_stage_thresholds("01646500", session=session) == {}


def test_fetch_stage_thresholds_success():
    session = MagicMock()
    response = MagicMock(status_code=200)
    response.json.return_value = {"flood": {"categories": {"minor": {"stage": 10.0}}}}
    session.get.return_value = response

    assert nws_stages.fetch_stage_thresholds("01646500", session=session) == {NWSTier.FLOOD: 10.0}
    session.close.assert_not_called()


def test_fetch_stage_thresholds_connection_error():
    session = MagicMock()
    session.get.side_effect = requests.exceptions.ConnectionError("refused")

    assert nws_stages.fetch_stage_thresholds("01646500", session=session) == {}


def test_frame_to_observations_drops_missing_and_duplicates():
    index = pd.to_datetime(["2020-01-02", "2020-01-01", "2020-01-03", "2020-01-03"], utc=True)
    df = pd.DataFrame({
        "site_no": ["01646500"] * 4,
        "00060_Mean": [200.0, 100.0, None, 300.0],
        "00060_Mean_cd": ["A"] * 4,
    }, index=index)

    obs = daily_flow.frame_to_observations(df, "01646500")

    assert [(o.date, o.discharge) for o in obs] == [
        (date(2020, 1, 1), 100.0),
        (date(2020, 1, 2), 200.0),
        (date(2020, 1, 3), 300.0),
    ]


def test_frame_to_observations_without_discharge_column():
    df = pd.DataFrame({"site_no": ["01646500"]}, index=pd.to_datetime(["2020-01-01"]))
    assert daily_flow.frame_to_observations(df, "01646500") == []


def test_fetch_daily_discharge_service_error(monkeypatch):
    def failing_get_dv(**kwargs):
        raise ValueError("No sites/data found using the selection criteria specified")

    monkeypatch.setattr(daily_flow.nwis, "get_dv", failing_get_dv)

    assert daily_flow.fetch_daily_discharge("01646500", date(2020, 1, 1), date(2020, 1, 31)) == []


def test_frame_to_peaks():
    df = pd.DataFrame({
        "site_no": ["01646500"] * 3,
        "peak_va": [1000.0, None, 3000.0],
    }, index=pd.Index(pd.to_datetime(["1990-03-01", "1991-04-01", "1992-05-01"]), name="peak_dt"))

    records = peaks.frame_to_peaks(df, "01646500")

    assert [(r.year, r.peak_discharge) for r in records] == [(1990, 1000.0), (1992, 3000.0)]


def test_fetch_annual_peaks_service_error(monkeypatch):
    monkeypatch.setattr(peaks.nwis, "get_discharge_peaks", MagicMock(side_effect=ValueError("no data")))
    assert peaks.fetch_annual_peaks("01646500") == []


def test_fetch_rating_table(monkeypatch):
    df = pd.DataFrame({
        "INDEP": ["2.0", "1.0", "2.0", "3.0"],
        "SHIFT": ["0", "0", "0", "0"],
        "DEP": ["20", "10", "25", "40"],
    })
    monkeypatch.setattr(ratings.nwis, "get_ratings", MagicMock(return_value=(df, None)))

    assert ratings.fetch_rating_table("01646500") == [(1.0, 10.0), (2.0, 25.0), (3.0, 40.0)]


def test_fetch_gages(monkeypatch):
    listing = pd.DataFrame({"site_no": ["01646500", "01646502"]})
    expanded = pd.DataFrame({
        "site_no": ["01646500", "01646502"],
        "station_nm": ["POTOMAC RIVER", "LITTLE FALLS"],
        "state_cd": ["24", "51"],
        "county_cd": ["31", "059"],
        "drain_area_va": [11560.0, None],
        "dec_lat_va": [38.95, 38.93],
        "dec_long_va": [-77.13, -77.12],
    })
    get_info = MagicMock(side_effect=[(listing, None), (expanded, None)])
    monkeypatch.setattr(gages.nwis, "get_info", get_info)

    result = gages.fetch_gages("24031", date(2020, 1, 1), date(2020, 12, 31))

    assert [g.county_fips for g in result] == ["24031", "51059"]
    assert result[0].drainage_area == 11560.0
    assert result[1].drainage_area is None
    assert result[0].station_name == "POTOMAC RIVER"
    assert get_info.call_args_list[0].kwargs["countyCd"] == "24031"


def test_fetch_gages_none_found(monkeypatch):
    monkeypatch.setattr(gages.nwis, "get_info", MagicMock(side_effect=ValueError("No sites found")))
    assert gages.fetch_gages("51001", date(2020, 1, 1), date(2020, 12, 31)) == []


def test_fetch_county_codes(monkeypatch):
    rdb = "\n".join([
        "# US county codes",
        "state_cd\tcounty_cd\tcounty_nm",
        "2s\t3s\t48s",
        "51\t001\tAccomack County",
        "51\t3\tAlbemarle County",
        "24\t031\tMontgomery County",
    ])
    response = MagicMock(text=rdb)
    monkeypatch.setattr(gages.requests, "get", MagicMock(return_value=response))

    assert gages.fetch_county_codes("va") == ["51001", "51003"]


def test_fetch_county_codes_errors(monkeypatch):
    monkeypatch.setattr(
        gages.requests, "get", MagicMock(side_effect=requests.exceptions.ConnectionError("down"))
    )
    assert gages.fetch_county_codes("VA") == []
    assert gages.fetch_county_codes("XX") == []


@pytest.mark.parametrize("body", [
    "county_cd\tcounty_nm\n3s\t48s\n001\tAccomack County",
    "<html><body>Service Unavailable</body></html>",
    "",
])
def test_fetch_county_codes_unexpected_listing(monkeypatch, body):
    monkeypatch.setattr(gages.requests, "get", MagicMock(return_value=MagicMock(text=body)))
    assert gages.fetch_county_codes("VA") == []
