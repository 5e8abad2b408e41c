"""
Median annual flood (Q2) estimation.
"""

import logging
import math
from typing import Iterable, Optional

import numpy as np

from countyflood.models import AnnualPeakRecord
from countyflood.utils.config import config

logger = logging.getLogger(__name__)


def estimate_q2(
    peaks: Iterable[AnnualPeakRecord],
    min_years: Optional[int] = None
) -> Optional[float]:
    """
    Estimate Q2 as the median of a gage's annual peak discharges.

    When a year appears more than once, its largest peak is used.

    Args:
        peaks: Annual peak records for one gage
        min_years: Distinct years required (default: config.flood.q2_min_years)

    Returns:
        Median annual peak in cfs, or None if the record is too short.
    """
    if min_years is None:
        min_years = config.flood.q2_min_years

    by_year: dict[int, float] = {}
    for record in peaks:
        value = record.peak_discharge
        if value is None or not math.isfinite(value):
            continue
        if record.year not in by_year or value > by_year[record.year]:
            by_year[record.year] = value

    if len(by_year) < min_years:
        logger.debug(f"Only {len(by_year)} years of annual peaks, need {min_years}")
        return None

    return float(np.median(list(by_year.values())))
