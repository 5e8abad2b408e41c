"""
Caller input validation.

Everything here runs before any external request is issued. Data gaps are
never reported through this module; only configuration mistakes are.
"""

import re
from datetime import date, datetime
from typing import Iterable, Optional, Union

from countyflood.models import NWSTier, ThresholdSource

DateLike = Union[str, date]

THRESHOLD_OPTIONS = {"nws": ThresholdSource.NWS, "q2": ThresholdSource.Q2}
TIER_OPTIONS = {
    "action": NWSTier.ACTION,
    "flood": NWSTier.FLOOD,
    "minor": NWSTier.FLOOD,
    "moderate": NWSTier.MODERATE,
    "major": NWSTier.MAJOR,
}
OUTPUT_OPTIONS = ("gage", "county", "both")
WEIGHT_OPTIONS = ("da", "q2")

# Postal code -> state FIPS code
STATE_FIPS = {
    "AL": "01", "AK": "02", "AZ": "04", "AR": "05", "CA": "06", "CO": "08",
    "CT": "09", "DE": "10", "DC": "11", "FL": "12", "GA": "13", "HI": "15",
    "ID": "16", "IL": "17", "IN": "18", "IA": "19", "KS": "20", "KY": "21",
    "LA": "22", "ME": "23", "MD": "24", "MA": "25", "MI": "26", "MN": "27",
    "MS": "28", "MO": "29", "MT": "30", "NE": "31", "NV": "32", "NH": "33",
    "NJ": "34", "NM": "35", "NY": "36", "NC": "37", "ND": "38", "OH": "39",
    "OK": "40", "OR": "41", "PA": "42", "RI": "44", "SC": "45", "SD": "46",
    "TN": "47", "TX": "48", "UT": "49", "VT": "50", "VA": "51", "WA": "53",
    "WV": "54", "WI": "55", "WY": "56", "PR": "72",
}

_FIPS_RE = re.compile(r"^\d{5}$")
_SITE_RE = re.compile(r"^\d{8,15}$")


class InvalidInputError(ValueError):
    """Raised when a caller passes an argument the analysis cannot accept."""


def parse_date(value: DateLike, name: str = "date") -> date:
    """Parse an ISO ``YYYY-MM-DD`` string (or date) into a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise InvalidInputError(f"{name} must be a 'YYYY-MM-DD' string, got {type(value).__name__}")
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError:
        raise InvalidInputError(f"{name} must be formatted 'YYYY-MM-DD', got {value!r}") from None


def validate_date_range(start_date: DateLike, end_date: DateLike) -> tuple[date, date]:
    start = parse_date(start_date, "start_date")
    end = parse_date(end_date, "end_date")
    if end < start:
        raise InvalidInputError(f"end_date {end} is before start_date {start}")
    return start, end


def validate_county_code(value) -> str:
    """Return a 5-digit county FIPS code."""
    if not isinstance(value, str):
        raise InvalidInputError(
            f"county codes must be strings (leading zeros matter), got {type(value).__name__}: {value!r}"
        )
    code = value.strip()
    if not _FIPS_RE.match(code):
        raise InvalidInputError(f"county code must be a 5-digit FIPS string, got {value!r}")
    return code


def validate_county_codes(values: Iterable) -> list[str]:
    if isinstance(values, str):
        values = [values]
    codes = [validate_county_code(v) for v in values]
    if not codes:
        raise InvalidInputError("at least one county code is required")
    # Keep first-seen order, drop repeats
    return list(dict.fromkeys(codes))


def validate_site_id(value) -> str:
    if not isinstance(value, str):
        raise InvalidInputError(f"site ids must be strings, got {type(value).__name__}: {value!r}")
    site_id = value.strip()
    if not _SITE_RE.match(site_id):
        raise InvalidInputError(f"site id must be 8-15 digits, got {value!r}")
    return site_id


def validate_state(value) -> str:
    code = value.strip().upper() if isinstance(value, str) else None
    if code not in STATE_FIPS:
        raise InvalidInputError(f"state must be a two-letter US postal code, got {value!r}")
    return code


def _option(value, options, name: str):
    key = value.lower().strip() if isinstance(value, str) else value
    if key not in options:
        allowed = ", ".join(repr(o) for o in options)
        raise InvalidInputError(f"{name} must be one of {allowed}, got {value!r}")
    return key


def validate_threshold(value: str) -> ThresholdSource:
    if isinstance(value, ThresholdSource):
        return value
    return THRESHOLD_OPTIONS[_option(value, THRESHOLD_OPTIONS, "threshold")]


def validate_nws_tier(value: Union[str, NWSTier]) -> NWSTier:
    if isinstance(value, NWSTier):
        return value
    return TIER_OPTIONS[_option(value, TIER_OPTIONS, "nws_tier")]


def validate_output(value: str) -> str:
    return _option(value, OUTPUT_OPTIONS, "output")


def validate_weight(value: str) -> str:
    return _option(value, WEIGHT_OPTIONS, "weight")


def resolve_county_selection(
    county_codes: Optional[Iterable] = None,
    state: Optional[str] = None
) -> tuple[Optional[list[str]], Optional[str]]:
    """
    Check that exactly one way of naming counties was used.

    Returns:
        (county_codes, state) with the unused one set to None.
    """
    if county_codes is not None and state is not None:
        raise InvalidInputError("pass either county_codes or state, not both")
    if county_codes is None and state is None:
        raise InvalidInputError("either county_codes or state is required")
    if county_codes is not None:
        return validate_county_codes(county_codes), None
    return None, validate_state(state)
