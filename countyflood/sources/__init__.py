"""
External data sources: USGS NWIS gage catalogs, ratings, peaks and daily
values, plus NWS flood stages.
"""

from .registry import DataSources
from .gages import fetch_gages, fetch_county_codes
from .ratings import fetch_rating_table
from .nws_stages import fetch_stage_thresholds
from .peaks import fetch_annual_peaks
from .daily_flow import fetch_daily_discharge
