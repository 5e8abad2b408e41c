"""
Gage catalog fetcher.

Lists the USGS stream gages with daily discharge in a county and the
counties that make up a state.
"""

import io
import logging
from datetime import date
from typing import Optional

import pandas as pd
import requests
import dataretrieval.nwis as nwis

from countyflood.models import Gage
from countyflood.utils.config import config
from countyflood.utils.validation import STATE_FIPS

logger = logging.getLogger(__name__)


def _to_float(value) -> Optional[float]:
    if value is None:
        return None
    value = pd.to_numeric(value, errors="coerce")
    if pd.isna(value):
        return None
    return float(value)


def _county_fips(state_cd, county_cd) -> Optional[str]:
    """Build a 5-digit FIPS code from NWIS state_cd / county_cd columns."""
    if pd.isna(state_cd) or pd.isna(county_cd):
        return None
    state = str(state_cd).split(".")[0].zfill(2)
    county = str(county_cd).split(".")[0].zfill(3)
    return f"{state}{county}"


def fetch_gages(county_fips: str, start_date: date, end_date: date) -> list[Gage]:
    """
    Fetch the stream gages in a county that report daily discharge in a period.

    Args:
        county_fips: 5-digit county FIPS code (e.g., "51059")
        start_date: First day of the analysis period
        end_date: Last day of the analysis period

    Returns:
        List of Gage objects. Empty if the county has no qualifying gages or
        the service could not be reached.
    """
    try:
        sites, _ = nwis.get_info(
            countyCd=county_fips,
            parameterCd=config.usgs.discharge_param,
            siteType=config.usgs.site_type,
            hasDataTypeCd="dv",
            startDt=str(start_date),
            endDt=str(end_date),
        )
    except Exception as e:
        # NWIS answers "no sites found" with an error, which is a normal outcome here
        logger.info(f"No gages listed for county {county_fips}: {e}")
        return []

    if sites is None or sites.empty:
        return []

    site_ids = sorted(set(sites["site_no"].astype(str)))

    try:
        expanded, _ = nwis.get_info(sites=site_ids, siteOutput="expanded")
    except Exception as e:
        logger.warning(f"Could not fetch site details for county {county_fips}: {e}")
        return []

    gages = []
    for _, row in expanded.iterrows():
        fips = _county_fips(row.get("state_cd"), row.get("county_cd")) or county_fips
        gages.append(Gage(
            site_id=str(row["site_no"]),
            county_fips=fips,
            drainage_area=_to_float(row.get("drain_area_va")),
            station_name=str(row.get("station_nm", "") or ""),
            latitude=_to_float(row.get("dec_lat_va")),
            longitude=_to_float(row.get("dec_long_va")),
        ))

    logger.debug(f"Found {len(gages)} gages in county {county_fips}")
    return gages


def fetch_county_codes(state: str) -> list[str]:
    """
    Get every county FIPS code in a state from the USGS county code listing.

    Args:
        state: Two-letter state code (e.g., "VA")

    Returns:
        Sorted list of 5-digit county FIPS codes, empty on failure.
    """
    state_fips = STATE_FIPS.get(state.upper())
    if state_fips is None:
        logger.warning(f"Unknown state code {state}")
        return []

    try:
        response = requests.get(
            config.usgs.county_codes_url,
            params={"stateCd": state_fips, "fmt": "rdb"},
            timeout=config.usgs.timeout
        )
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        logger.error(f"Error fetching county codes for {state}: {e}")
        return []

    try:
        df = pd.read_csv(io.StringIO(response.text), sep="\t", comment="#", dtype=str)
    except (ValueError, pd.errors.ParserError) as e:
        logger.error(f"Could not parse county codes for {state}: {e}")
        return []

    if df.empty or not {"state_cd", "county_cd"}.issubset(df.columns):
        logger.error(f"Unexpected county code listing for {state}: columns {list(df.columns)}")
        return []

    # First data row of an RDB file holds column formats (e.g. "3s")
    df = df.iloc[1:]
    df = df[df["state_cd"].str.zfill(2) == state_fips]

    codes = sorted({f"{state_fips}{c.zfill(3)}" for c in df["county_cd"].dropna()})
    logger.info(f"Found {len(codes)} counties in {state}")
    return codes
