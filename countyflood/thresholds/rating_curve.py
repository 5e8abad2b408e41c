"""
Stage to discharge conversion through a gage's rating table.
"""

import logging
from typing import Optional, Sequence

import numpy as np

logger = logging.getLogger(__name__)


def stage_to_discharge(
    stage: float,
    rating: Sequence[tuple[float, float]]
) -> Optional[float]:
    """
    Interpolate the discharge for a stage height.

    Uses linear interpolation between the two rating points bracketing the
    stage. Stages outside the table are not extrapolated.

    Args:
        stage: Stage height in feet
        rating: (stage, discharge) pairs

    Returns:
        Discharge in cfs, or None if the stage is outside the table or the
        table has fewer than two points.
    """
    if stage is None or not np.isfinite(stage):
        return None

    if len(rating) < 2:
        return None

    # Sort by stage; a repeated stage keeps its last discharge
    table = dict(sorted(rating, key=lambda pair: pair[0]))
    stages = np.array(sorted(table), dtype=float)
    discharges = np.array([table[s] for s in stages], dtype=float)

    if len(stages) < 2:
        return None

    if stage < stages[0] or stage > stages[-1]:
        logger.debug(f"Stage {stage} outside rating range [{stages[0]}, {stages[-1]}]")
        return None

    return float(np.interp(stage, stages, discharges))
