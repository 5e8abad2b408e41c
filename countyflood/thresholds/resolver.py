"""
Flood Threshold Resolver

Resolves one flood discharge threshold per gage, either from NWS flood stages
converted through the gage's rating table, or from the gage's median annual
flood (Q2). Gages without enough source data are left out of the result.
"""

import logging
import math
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Iterable, Optional

from tqdm import tqdm

from countyflood.models import FloodThreshold, Gage, NWSTier, ThresholdSource
from countyflood.sources.registry import DataSources
from countyflood.utils.config import config
from countyflood.utils.validation import validate_site_id
from .q2 import estimate_q2
from .rating_curve import stage_to_discharge

logger = logging.getLogger(__name__)


def _usable(discharge: Optional[float]) -> bool:
    return discharge is not None and math.isfinite(discharge) and discharge > 0


def resolve_nws_thresholds(
    gage: Gage,
    stages: dict[NWSTier, float],
    rating: list[tuple[float, float]]
) -> dict[NWSTier, FloodThreshold]:
    """
    Convert each available NWS flood stage into a discharge threshold.

    Args:
        gage: The gage the stages belong to
        stages: Tier -> stage (feet)
        rating: The gage's (stage, discharge) rating table

    Returns:
        Tier -> FloodThreshold for every stage that falls inside the rating
        table. Empty if none could be converted.
    """
    thresholds = {}
    for tier, stage in sorted(stages.items()):
        discharge = stage_to_discharge(stage, rating)
        if not _usable(discharge):
            logger.debug(f"Dropping {tier.label} stage {stage} ft for {gage.site_id}: not convertible")
            continue
        thresholds[tier] = FloodThreshold(
            site_id=gage.site_id,
            source=ThresholdSource.NWS,
            discharge=discharge,
            tier=tier,
        )
    return thresholds


def resolve_q2_threshold(gage: Gage, sources: DataSources) -> Optional[FloodThreshold]:
    """Resolve a Q2 threshold from the gage's annual peaks."""
    q2 = estimate_q2(sources.annual_peaks(gage.site_id))
    if not _usable(q2):
        logger.debug(f"No Q2 threshold for {gage.site_id}")
        return None
    return FloodThreshold(site_id=gage.site_id, source=ThresholdSource.Q2, discharge=q2)


def resolve_threshold(
    gage: Gage,
    strategy: ThresholdSource,
    sources: DataSources,
    nws_tier: NWSTier = NWSTier.FLOOD
) -> Optional[FloodThreshold]:
    """
    Resolve the flood threshold for a single gage.

    Args:
        gage: Gage to resolve
        strategy: ThresholdSource.NWS or ThresholdSource.Q2
        sources: Data-fetch functions
        nws_tier: Which NWS tier to use when strategy is NWS

    Returns:
        FloodThreshold, or None if the gage lacks the data for this strategy
        or a fetch failed.

    Raises:
        InvalidInputError: If the gage's site id is malformed.
    """
    site_id = validate_site_id(gage.site_id)

    try:
        if strategy is ThresholdSource.Q2:
            return resolve_q2_threshold(gage, sources)

        stages = sources.stage_thresholds(site_id)
        if nws_tier not in stages:
            logger.debug(f"No NWS {nws_tier.label} stage for {site_id}")
            return None

        rating = sources.rating_table(site_id)
    except Exception as e:
        logger.error(f"Error fetching threshold data for {site_id}: {e}")
        return None

    thresholds = resolve_nws_thresholds(gage, {nws_tier: stages[nws_tier]}, rating)
    return thresholds.get(nws_tier)


def _run_per_gage(func, gages: list[Gage], max_workers: int, desc: str) -> dict:
    """Run func on every gage in parallel, keeping non-None results by site id."""
    results = {}
    if not gages:
        return results

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {executor.submit(func, gage): gage for gage in gages}

        for future in tqdm(as_completed(futures), total=len(futures), desc=desc, disable=len(futures) < 2):
            gage = futures[future]
            try:
                result = future.result()
                if result is not None:
                    results[gage.site_id] = result
            except Exception as e:
                logger.error(f"Error in {desc.lower()} for {gage.site_id}: {e}")

    return results


def resolve_thresholds(
    gages: Iterable[Gage],
    strategy: ThresholdSource,
    sources: DataSources,
    nws_tier: NWSTier = NWSTier.FLOOD,
    max_workers: Optional[int] = None
) -> dict[str, FloodThreshold]:
    """
    Resolve flood thresholds for many gages concurrently.

    Args:
        gages: Gages to resolve
        strategy: ThresholdSource.NWS or ThresholdSource.Q2
        sources: Data-fetch functions
        nws_tier: NWS tier used when strategy is NWS
        max_workers: Thread pool size (default: config.max_workers)

    Returns:
        Mapping of site id to FloodThreshold for gages that have one.
    """
    gages = list(gages)
    thresholds = _run_per_gage(
        lambda gage: resolve_threshold(gage, strategy, sources, nws_tier),
        gages,
        max_workers or config.max_workers,
        "Resolving thresholds",
    )
    logger.info(f"Resolved {strategy.value} thresholds for {len(thresholds)} of {len(gages)} gages")
    return thresholds


def resolve_q2_values(
    gages: Iterable[Gage],
    sources: DataSources,
    max_workers: Optional[int] = None
) -> dict[str, float]:
    """Estimate Q2 for many gages, for use as a river size weight."""
    return _run_per_gage(
        lambda gage: estimate_q2(sources.annual_peaks(gage.site_id)),
        list(gages),
        max_workers or config.max_workers,
        "Estimating Q2",
    )
