"""
Flood analysis: daily classification, gage and county summaries, the daily
county flood metric, and the orchestration that ties them together.
"""

from .classifier import classify_flood_days, classify_gages
from .summarizer import magnitude_from_peak, summarize_gage, summarize_gages, summaries_to_frame
from .county import aggregate_counties, county_summaries_to_frame
from .temporal import compute_flood_metric, metrics_to_frame
from .orchestrator import (
    run_flood,
    run_time_flood,
    long_term_flood,
    FloodAnalysisResult,
    MultiWindowResult,
)
