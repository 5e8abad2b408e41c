"""
Analysis Orchestrator

Runs the flood pipeline for one or many (county set, date range) windows:

    counties -> gages -> thresholds -> daily flow -> classified days
             -> gage summaries -> county summaries / daily flood metric

A county, gage or window that runs out of data is skipped and logged; only
invalid caller input stops a run, and it does so before any data is fetched.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional, Union

import pandas as pd
from tqdm import tqdm

from countyflood.models import (
    AnalysisWindow,
    DischargeObservation,
    FloodDayRecord,
    FloodThreshold,
    Gage,
    GageFloodSummary,
    NWSTier,
    ThresholdSource,
)
from countyflood.sources.registry import DataSources
from countyflood.thresholds.resolver import resolve_q2_values, resolve_thresholds
from countyflood.utils.config import config
from countyflood.utils.validation import (
    InvalidInputError,
    resolve_county_selection,
    validate_county_code,
    validate_date_range,
    validate_nws_tier,
    validate_output,
    validate_threshold,
    validate_weight,
)
from .classifier import classify_gages
from .county import aggregate_counties, county_summaries_to_frame
from .summarizer import summaries_to_frame, summarize_gages
from .temporal import compute_flood_metric, metrics_to_frame

logger = logging.getLogger(__name__)

WINDOW_COLUMNS = ("county_cd", "start_date", "end_date")


@dataclass
class WindowData:
    """Intermediate results of the pipeline for one window."""
    window: AnalysisWindow
    gages: list[Gage] = field(default_factory=list)
    thresholds: dict[str, FloodThreshold] = field(default_factory=dict)
    records: dict[str, list[FloodDayRecord]] = field(default_factory=dict)
    summaries: list[GageFloodSummary] = field(default_factory=list)
    q2_values: Optional[dict[str, float]] = None


@dataclass
class FloodAnalysisResult:
    """Gage- and/or county-level output for one window."""
    window: AnalysisWindow
    gages: Optional[pd.DataFrame] = None
    counties: Optional[pd.DataFrame] = None
    metrics: Optional[pd.DataFrame] = None


@dataclass
class MultiWindowResult:
    """Per-window results plus the window-tagged concatenation of each level."""
    windows: list[FloodAnalysisResult]
    gages: Optional[pd.DataFrame] = None
    counties: Optional[pd.DataFrame] = None
    metrics: Optional[pd.DataFrame] = None


def _fetch_county_gages(window: AnalysisWindow, sources: DataSources, max_workers: int) -> list[Gage]:
    """Fetch gages for every county in the window, dropping duplicates."""
    gages: dict[str, Gage] = {}

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {
            executor.submit(sources.gages, county, window.start_date, window.end_date): county
            for county in window.county_codes
        }
        for future in as_completed(futures):
            county = futures[future]
            try:
                for gage in future.result() or []:
                    gages.setdefault(gage.site_id, gage)
            except Exception as e:
                logger.error(f"Error fetching gages for county {county}: {e}")

    return sorted(gages.values(), key=lambda g: g.site_id)


def _fetch_flows(
    gages: list[Gage],
    window: AnalysisWindow,
    sources: DataSources,
    max_workers: int
) -> dict[str, list[DischargeObservation]]:
    """Fetch daily discharge for each gage in parallel."""
    flows = {}
    if not gages:
        return flows

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {
            executor.submit(sources.daily_discharge, gage.site_id, window.start_date, window.end_date): gage
            for gage in gages
        }
        for future in tqdm(as_completed(futures), total=len(futures), desc="Fetching daily flow",
                           disable=len(futures) < 2):
            gage = futures[future]
            try:
                observations = future.result()
                if observations:
                    flows[gage.site_id] = observations
            except Exception as e:
                logger.error(f"Error fetching daily flow for {gage.site_id}: {e}")

    return flows


def collect_window(
    window: AnalysisWindow,
    threshold: ThresholdSource,
    sources: DataSources,
    nws_tier: NWSTier = NWSTier.FLOOD,
    max_workers: Optional[int] = None,
    with_q2: bool = False
) -> WindowData:
    """
    Run the pipeline for one window up to the gage summaries.

    Args:
        window: Counties and dates to analyze
        threshold: Threshold strategy
        sources: Data-fetch functions
        nws_tier: NWS tier for threshold=NWS
        max_workers: Thread pool size (default: config.max_workers)
        with_q2: Estimate Q2 for every gage with records, even when the
            thresholds are NWS, and carry it into the gage summaries

    Returns:
        WindowData holding every intermediate stage.
    """
    max_workers = max_workers or config.max_workers
    data = WindowData(window=window)

    data.gages = _fetch_county_gages(window, sources, max_workers)
    if not data.gages:
        logger.warning(f"No gages found for counties {', '.join(window.county_codes)}")
        return data

    logger.info(f"Found {len(data.gages)} gages in {len(window.county_codes)} counties")

    data.thresholds = resolve_thresholds(data.gages, threshold, sources, nws_tier, max_workers)
    with_thresholds = [g for g in data.gages if g.site_id in data.thresholds]

    flows = _fetch_flows(with_thresholds, window, sources, max_workers)
    data.records = classify_gages(flows, data.thresholds)
    if with_q2:
        data.q2_values = window_q2_values(data, threshold, sources, max_workers)
    data.summaries = summarize_gages(
        data.gages, data.thresholds, data.records, window.start_date, window.end_date,
        q2_values=data.q2_values,
    )

    logger.info(f"Summarized {len(data.summaries)} of {len(data.gages)} gages "
                f"for {window.start_date} to {window.end_date}")
    return data


def window_q2_values(
    data: WindowData,
    threshold: ThresholdSource,
    sources: DataSources,
    max_workers: Optional[int] = None
) -> dict[str, float]:
    """Q2 per site id for the gages of a window that have classified days."""
    if threshold is ThresholdSource.Q2:
        return {site_id: t.discharge for site_id, t in data.thresholds.items()}
    with_records = [g for g in data.gages if g.site_id in data.records]
    return resolve_q2_values(with_records, sources, max_workers)


def _shape_output(data: WindowData, threshold: ThresholdSource, output: str) -> FloodAnalysisResult:
    result = FloodAnalysisResult(window=data.window)

    if output in ("gage", "both"):
        result.gages = summaries_to_frame(data.summaries)

    if output in ("county", "both"):
        county_summaries = aggregate_counties(
            data.window.county_codes,
            data.gages,
            data.summaries,
            threshold,
            data.window.start_date,
            data.window.end_date,
        )
        result.counties = county_summaries_to_frame(county_summaries, threshold)

    return result


def _county_list(
    county_codes: Optional[list[str]],
    state: Optional[str],
    sources: DataSources
) -> list[str]:
    if county_codes is not None:
        return county_codes
    try:
        codes = sources.county_codes(state) or []
    except Exception as e:
        logger.error(f"Error fetching counties for state {state}: {e}")
        codes = []
    if not codes:
        logger.warning(f"No counties found for state {state}")
    return list(codes)


def run_flood(
    county_codes: Optional[Iterable[str]] = None,
    state: Optional[str] = None,
    start_date: Union[str, date] = None,
    end_date: Union[str, date] = None,
    threshold: str = config.flood.default_threshold,
    nws_tier: str = config.flood.default_nws_tier,
    output: str = "both",
    sources: Optional[DataSources] = None,
    max_workers: Optional[int] = None
) -> FloodAnalysisResult:
    """
    Flood summary for a set of counties over one date range.

    Args:
        county_codes: 5-digit county FIPS codes (or pass state instead)
        state: Two-letter state code, meaning every county in the state
        start_date: First day, 'YYYY-MM-DD'
        end_date: Last day, 'YYYY-MM-DD'
        threshold: "nws" or "q2"
        nws_tier: "action", "flood", "moderate" or "major" (threshold="nws")
        output: "gage", "county" or "both"
        sources: Data-fetch functions (default: USGS NWIS / NWS)
        max_workers: Thread pool size

    Returns:
        FloodAnalysisResult with the requested levels filled in.

    Raises:
        InvalidInputError: For any malformed argument, before fetching data.
    """
    counties, state = resolve_county_selection(county_codes, state)
    start, end = validate_date_range(start_date, end_date)
    source = validate_threshold(threshold)
    tier = validate_nws_tier(nws_tier)
    output = validate_output(output)

    sources = sources or DataSources.default()
    window = AnalysisWindow(tuple(_county_list(counties, state, sources)), start, end)

    logger.info(f"Running {source.value} flood analysis for {len(window.county_codes)} counties, "
                f"{start} to {end}")

    data = collect_window(window, source, sources, tier, max_workers)
    return _shape_output(data, source, output)


def run_time_flood(
    county_codes: Optional[Iterable[str]] = None,
    state: Optional[str] = None,
    start_date: Union[str, date] = None,
    end_date: Union[str, date] = None,
    threshold: str = config.flood.default_threshold,
    nws_tier: str = config.flood.default_nws_tier,
    weight: str = config.flood.default_weight,
    filter_data: bool = True,
    sources: Optional[DataSources] = None,
    max_workers: Optional[int] = None
) -> pd.DataFrame:
    """
    Daily county flood metric over a date range.

    Args:
        county_codes: 5-digit county FIPS codes (or pass state instead)
        state: Two-letter state code
        start_date: First day, 'YYYY-MM-DD'
        end_date: Last day, 'YYYY-MM-DD'
        threshold: "nws" or "q2"
        nws_tier: NWS tier for threshold="nws"
        weight: "da" (drainage area) or "q2"
        filter_data: Keep only the span from first to last flooding date per county
        sources: Data-fetch functions
        max_workers: Thread pool size

    Returns:
        DataFrame with one row per county and date.
    """
    counties, state = resolve_county_selection(county_codes, state)
    start, end = validate_date_range(start_date, end_date)
    source = validate_threshold(threshold)
    tier = validate_nws_tier(nws_tier)
    weight = validate_weight(weight)

    sources = sources or DataSources.default()
    window = AnalysisWindow(tuple(_county_list(counties, state, sources)), start, end)

    data = collect_window(window, source, sources, tier, max_workers, with_q2=weight == "q2")
    return window_metrics(data, source, sources, weight, filter_data, max_workers)


def window_metrics(
    data: WindowData,
    threshold: ThresholdSource,
    sources: DataSources,
    weight: str = "da",
    filter_data: bool = True,
    max_workers: Optional[int] = None
) -> pd.DataFrame:
    """Daily flood metric for every county of a collected window."""
    q2_values = {}
    if weight == "q2":
        q2_values = data.q2_values
        if q2_values is None:
            q2_values = window_q2_values(data, threshold, sources, max_workers)

    records = []
    for county in data.window.county_codes:
        records.extend(compute_flood_metric(
            county, data.gages, data.records, data.window.start_date, data.window.end_date,
            threshold, weight=weight, q2_values=q2_values, filter_data=filter_data,
        ))

    return metrics_to_frame(records, threshold)


def _windows_from_table(windows) -> list[AnalysisWindow]:
    """Validate a window table and turn each row into an AnalysisWindow."""
    if isinstance(windows, pd.DataFrame):
        missing = [c for c in WINDOW_COLUMNS if c not in windows.columns]
        if missing:
            raise InvalidInputError(f"window table is missing columns: {', '.join(missing)}")
        rows = windows[list(WINDOW_COLUMNS)].itertuples(index=False, name=None)
    else:
        rows = windows

    result = []
    for i, row in enumerate(rows):
        if isinstance(row, dict):
            try:
                row = tuple(row[c] for c in WINDOW_COLUMNS)
            except KeyError as e:
                raise InvalidInputError(f"window row {i} is missing {e}") from None
        if len(row) != 3:
            raise InvalidInputError(f"window row {i} must be (county_cd, start_date, end_date)")
        county, start_date, end_date = row
        try:
            county = validate_county_code(county)
            start, end = validate_date_range(start_date, end_date)
        except InvalidInputError as e:
            raise InvalidInputError(f"window row {i}: {e}") from None
        result.append(AnalysisWindow((county,), start, end, window_id=i))

    if not result:
        raise InvalidInputError("window table is empty")
    return result


def _tag(df: Optional[pd.DataFrame], window: AnalysisWindow) -> Optional[pd.DataFrame]:
    if df is None:
        return None
    df = df.copy()
    df.insert(0, "window_id", window.window_id)
    df.insert(1, "window_start", window.start_date)
    df.insert(2, "window_end", window.end_date)
    return df


def _concat(frames: list[Optional[pd.DataFrame]]) -> Optional[pd.DataFrame]:
    frames = [f for f in frames if f is not None]
    if not frames:
        return None
    non_empty = [f for f in frames if not f.empty]
    if not non_empty:
        return frames[0].iloc[0:0]
    return pd.concat(non_empty, ignore_index=True)


def long_term_flood(
    windows,
    threshold: str = config.flood.default_threshold,
    nws_tier: str = config.flood.default_nws_tier,
    output: str = "both",
    include_metrics: bool = False,
    weight: str = config.flood.default_weight,
    filter_data: bool = True,
    sources: Optional[DataSources] = None,
    max_workers: Optional[int] = None
) -> MultiWindowResult:
    """
    Run the flood summary for many (county, start, end) windows.

    Each row is processed on its own and every output record is tagged with
    window_id, window_start and window_end, so repeated periods for the same
    county stay distinguishable.

    Args:
        windows: DataFrame with county_cd, start_date, end_date columns, or an
            iterable of (county_cd, start_date, end_date) tuples or dicts
        threshold: "nws" or "q2"
        nws_tier: NWS tier for threshold="nws"
        output: "gage", "county" or "both"
        include_metrics: Also compute the daily flood metric per window
        weight: "da" or "q2", for the daily flood metric
        filter_data: Trim each window's daily metric to its flooding span
        sources: Data-fetch functions
        max_workers: Thread pool size

    Returns:
        MultiWindowResult, with windows in input order.
    """
    analysis_windows = _windows_from_table(windows)
    source = validate_threshold(threshold)
    tier = validate_nws_tier(nws_tier)
    output = validate_output(output)
    weight = validate_weight(weight)

    sources = sources or DataSources.default()
    max_workers = max_workers or config.max_workers

    logger.info(f"Running {source.value} flood analysis for {len(analysis_windows)} windows")

    results: dict[int, FloodAnalysisResult] = {}
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        with_q2 = include_metrics and weight == "q2"
        futures = {
            executor.submit(collect_window, window, source, sources, tier, max_workers, with_q2): window
            for window in analysis_windows
        }
        for future in tqdm(as_completed(futures), total=len(futures), desc="Processing windows"):
            window = futures[future]
            try:
                data = future.result()
                shaped = _shape_output(data, source, output)
                shaped.gages = _tag(shaped.gages, window)
                shaped.counties = _tag(shaped.counties, window)
                if include_metrics:
                    metrics = window_metrics(data, source, sources, weight, filter_data, max_workers)
                    shaped.metrics = _tag(metrics, window)
                results[window.window_id] = shaped
            except Exception as e:
                logger.error(f"Error processing window {window.window_id} "
                             f"({window.county_codes[0]}, {window.start_date} to {window.end_date}): {e}")

    ordered = [results[w.window_id] for w in analysis_windows if w.window_id in results]

    return MultiWindowResult(
        windows=ordered,
        gages=_concat([r.gages for r in ordered]),
        counties=_concat([r.counties for r in ordered]),
        metrics=_concat([r.metrics for r in ordered]),
    )
