"""
Data model for the flood analysis pipeline.

Each stage hands the next one plain records: gages and their source data
come in, FloodThreshold and FloodDayRecord flow through the middle, and
GageFloodSummary / CountyFloodSummary / TemporalMetricRecord come out.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum, IntEnum
from typing import Optional, Union


class ThresholdSource(str, Enum):
    """Where a gage's flood threshold came from."""
    NWS = "nws"
    Q2 = "q2"


class NWSTier(IntEnum):
    """NWS stage categories, ordered by severity."""
    ACTION = 1
    FLOOD = 2
    MODERATE = 3
    MAJOR = 4

    @property
    def label(self) -> str:
        return self.name.capitalize()


class Q2Magnitude(IntEnum):
    """Flood magnitude for Q2-based thresholds."""
    NONE = 0
    MINOR = 1
    MODERATE = 2
    MAJOR = 3
    EXTREME = 4

    @property
    def label(self) -> str:
        return self.name.capitalize()


class NWSFloodStatus(IntEnum):
    """Two-state classification for NWS-based thresholds."""
    NO_FLOOD = 0
    FLOOD = 1

    @property
    def label(self) -> str:
        return "Flood" if self is NWSFloodStatus.FLOOD else "No Flood"


MagnitudeClass = Union[Q2Magnitude, NWSFloodStatus]


def magnitude_scale(source: ThresholdSource) -> type:
    """Return the magnitude enum used for summaries of the given source."""
    return Q2Magnitude if source is ThresholdSource.Q2 else NWSFloodStatus


@dataclass(frozen=True)
class Gage:
    """A USGS stream gage and the county it sits in."""
    site_id: str
    county_fips: str
    drainage_area: Optional[float] = None  # square miles
    station_name: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None


@dataclass(frozen=True)
class AnnualPeakRecord:
    site_id: str
    year: int
    peak_discharge: float


@dataclass(frozen=True)
class DischargeObservation:
    site_id: str
    date: date
    discharge: float  # cubic feet per second


@dataclass(frozen=True)
class FloodThreshold:
    """The single discharge threshold a gage is judged against."""
    site_id: str
    source: ThresholdSource
    discharge: float
    tier: Optional[NWSTier] = None  # only set for NWS thresholds


@dataclass(frozen=True)
class FloodDayRecord:
    site_id: str
    date: date
    discharge: float
    threshold: float
    peak_ratio: float
    is_flood: bool


@dataclass(frozen=True)
class AnalysisWindow:
    """A (county set, date range) unit of work."""
    county_codes: tuple
    start_date: date
    end_date: date
    window_id: int = 0


@dataclass
class GageFloodSummary:
    """Flood statistics for one gage over one analysis window."""
    site_id: str
    county_fips: str
    source: ThresholdSource
    threshold: float
    avg_peak: float
    max_peak: float
    flood_days: int
    n_days: int
    magnitude_class: MagnitudeClass
    drainage_area: Optional[float] = None
    q2: Optional[float] = None
    station_name: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None


@dataclass
class CountyFloodSummary:
    """Percentage of a county's gages at or above each flood tier."""
    county_fips: str
    start_date: date
    end_date: date
    n_gages_with_data: int
    n_gages_missing: int
    avg_peak: Optional[float] = None
    max_peak: Optional[float] = None
    percentages: dict = field(default_factory=dict)  # tier name -> percent or None

    @property
    def has_data(self) -> bool:
        return self.n_gages_with_data > 0


@dataclass
class TemporalMetricRecord:
    """County-level flood metric for a single date."""
    county_fips: str
    date: date
    n_gages: int
    n_weighted_gages: int
    flood_metric: Optional[float]
    percentages: dict = field(default_factory=dict)  # tier name -> percent or None
