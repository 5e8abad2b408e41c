"""
Configuration management for the County Flood Monitor.
"""

import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


@dataclass
class USGSConfig:
    """USGS NWIS data fetching configuration."""
    discharge_param: str = "00060"  # Discharge (cubic feet per second)
    daily_stat_column: str = "00060_Mean"
    site_type: str = "ST"  # Stream sites only
    rating_file_type: str = "exsa"  # Expanded, shift-adjusted rating
    county_codes_url: str = os.getenv(
        "USGS_COUNTY_CODES_URL",
        "https://help.waterdata.usgs.gov/code/county_query"
    )
    timeout: int = 60


@dataclass
class NWSConfig:
    """NWS National Water Prediction Service configuration."""
    gauges_url: str = os.getenv("NWS_GAUGES_URL", "https://api.water.noaa.gov/nwps/v1/gauges")
    timeout: int = 30
    max_retries: int = 3


@dataclass
class FloodConfig:
    """Flood classification settings."""
    q2_min_years: int = 20  # Annual peaks needed before trusting the median
    minor_ratio: float = 1.0     # peak ratio where Minor starts
    moderate_ratio: float = 1.5  # peak ratio where Moderate starts
    major_ratio: float = 2.0     # peak ratio where Major starts
    extreme_ratio: float = 5.0   # peak ratio above which flooding is Extreme
    default_threshold: str = "nws"
    default_nws_tier: str = "flood"
    default_weight: str = "da"


@dataclass
class Config:
    """Main configuration container."""
    usgs: USGSConfig
    nws: NWSConfig
    flood: FloodConfig
    max_workers: int = 10  # For concurrent.futures parallelization

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from environment."""
        return cls(
            usgs=USGSConfig(),
            nws=NWSConfig(),
            flood=FloodConfig(),
            max_workers=int(os.getenv("MAX_WORKERS", "10"))
        )


# Global config instance
config = Config.load()
