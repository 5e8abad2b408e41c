"""
Bundle of data-fetch functions consumed by the analysis pipeline.

The pipeline never talks to a web service directly; it calls whatever
functions are held here, so tests and offline runs can swap in their own.
"""

from dataclasses import dataclass
from datetime import date
from typing import Callable

from countyflood.models import AnnualPeakRecord, DischargeObservation, Gage, NWSTier


@dataclass
class DataSources:
    """Callables for each external collaborator."""
    gages: Callable[[str, date, date], list[Gage]]
    county_codes: Callable[[str], list[str]]
    rating_table: Callable[[str], list[tuple[float, float]]]
    stage_thresholds: Callable[[str], dict[NWSTier, float]]
    annual_peaks: Callable[[str], list[AnnualPeakRecord]]
    daily_discharge: Callable[[str, date, date], list[DischargeObservation]]

    @classmethod
    def default(cls) -> "DataSources":
        """Wire the USGS NWIS and NWS fetchers."""
        from .daily_flow import fetch_daily_discharge
        from .gages import fetch_county_codes, fetch_gages
        from .nws_stages import fetch_stage_thresholds
        from .peaks import fetch_annual_peaks
        from .ratings import fetch_rating_table

        return cls(
            gages=fetch_gages,
            county_codes=fetch_county_codes,
            rating_table=fetch_rating_table,
            stage_thresholds=fetch_stage_thresholds,
            annual_peaks=fetch_annual_peaks,
            daily_discharge=fetch_daily_discharge,
        )
