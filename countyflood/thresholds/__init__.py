"""
Flood thresholds: rating-curve conversion of NWS flood stages and
median annual flood (Q2) estimation.
"""

from .rating_curve import stage_to_discharge
from .q2 import estimate_q2
from .resolver import (
    resolve_nws_thresholds,
    resolve_threshold,
    resolve_thresholds,
    resolve_q2_values,
)
