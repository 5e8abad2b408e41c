#!/usr/bin/env python3
"""
Command line entry point for the County Flood Monitor.

Usage:
    python -m countyflood.main --mode=summary --counties=51059,51061 --start=2015-01-01 --end=2015-12-31
    python -m countyflood.main --mode=summary --state=VA --start=2016-01-01 --end=2016-12-31 --threshold=q2
    python -m countyflood.main --mode=timeseries --counties=51059 --start=2015-01-01 --end=2015-12-31 --weight=q2
    python -m countyflood.main --mode=batch --windows=windows.csv --output=county
"""

import argparse
import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd

from countyflood.analysis.orchestrator import long_term_flood, run_flood, run_time_flood
from countyflood.utils.config import config
from countyflood.utils.validation import InvalidInputError

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(f"county_flood_{datetime.now().strftime('%Y%m%d')}.log")
        ]
    )


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="County Flood Monitor",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Gage and county flood summary for two counties
    python -m countyflood.main --mode=summary --counties=51059,51061 --start=2015-01-01 --end=2015-12-31

    # Daily flood metric, trimmed to the flooding span
    python -m countyflood.main --mode=timeseries --counties=51059 --start=2015-01-01 --end=2015-12-31

    # Many windows from a CSV with county_cd,start_date,end_date columns
    python -m countyflood.main --mode=batch --windows=windows.csv --out=batch.parquet

    # Same windows with the daily flood metric, weighted by Q2
    python -m countyflood.main --mode=batch --windows=windows.csv --metrics --weight=q2
        """
    )

    parser.add_argument(
        "--mode",
        required=True,
        choices=["summary", "timeseries", "batch"],
        help="'summary' for one window, 'timeseries' for the daily metric, 'batch' for a window table"
    )
    parser.add_argument("--counties", type=str, default=None,
                        help="Comma-separated 5-digit county FIPS codes")
    parser.add_argument("--state", type=str, default=None,
                        help="Two-letter state code, meaning every county in the state")
    parser.add_argument("--start", type=str, default=None, help="Start date (YYYY-MM-DD)")
    parser.add_argument("--end", type=str, default=None, help="End date (YYYY-MM-DD)")
    parser.add_argument("--windows", type=str, default=None,
                        help="CSV with county_cd,start_date,end_date columns (batch mode)")
    parser.add_argument("--threshold", default=config.flood.default_threshold,
                        help="Flood threshold: 'nws' or 'q2'")
    parser.add_argument("--tier", default=config.flood.default_nws_tier,
                        help="NWS tier: action, flood, moderate or major")
    parser.add_argument("--output", default="both", help="'gage', 'county' or 'both'")
    parser.add_argument("--weight", default=config.flood.default_weight,
                        help="Flood metric weight: 'da' or 'q2'")
    parser.add_argument("--metrics", action="store_true",
                        help="Also compute the daily flood metric for each window (batch mode)")
    parser.add_argument("--no-filter", action="store_true",
                        help="Return every date in the range instead of the flooding span")
    parser.add_argument("--out", type=str, default=None,
                        help="Output path prefix (.csv or .parquet)")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Enable verbose (debug) logging")

    return parser.parse_args(argv)


def write_table(df: Optional[pd.DataFrame], out: Optional[str], level: str) -> None:
    """Write one result table next to the requested output path, or print it."""
    if df is None:
        return

    if out is None:
        print(f"\n{level} ({len(df)} rows)")
        print(df.to_string(index=False))
        return

    path = Path(out)
    path = path.with_name(f"{path.stem}_{level}{path.suffix or '.csv'}")
    if path.suffix == ".parquet":
        df.to_parquet(path, index=False)
    else:
        df.to_csv(path, index=False)
    logger.info(f"Saved {len(df)} {level} rows to {path}")


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    configure_logging(args.verbose)

    counties = None
    if args.counties:
        counties = [c.strip() for c in args.counties.split(",")]

    logger.info(f"Starting County Flood Monitor in {args.mode} mode")
    start_time = time.time()

    try:
        if args.mode == "summary":
            result = run_flood(
                county_codes=counties, state=args.state,
                start_date=args.start, end_date=args.end,
                threshold=args.threshold, nws_tier=args.tier, output=args.output,
            )
            write_table(result.gages, args.out, "gages")
            write_table(result.counties, args.out, "counties")

        elif args.mode == "timeseries":
            metrics = run_time_flood(
                county_codes=counties, state=args.state,
                start_date=args.start, end_date=args.end,
                threshold=args.threshold, nws_tier=args.tier,
                weight=args.weight, filter_data=not args.no_filter,
            )
            write_table(metrics, args.out, "metrics")

        elif args.mode == "batch":
            if not args.windows:
                raise InvalidInputError("--windows is required in batch mode")
            windows = pd.read_csv(args.windows, dtype=str)
            result = long_term_flood(
                windows, threshold=args.threshold, nws_tier=args.tier, output=args.output,
                include_metrics=args.metrics, weight=args.weight,
                filter_data=not args.no_filter,
            )
            logger.info(f"Processed {len(result.windows)} windows")
            write_table(result.gages, args.out, "gages")
            write_table(result.counties, args.out, "counties")
            write_table(result.metrics, args.out, "metrics")

        logger.info(f"Execution time: {time.time() - start_time:.1f} seconds")
        return 0

    except InvalidInputError as e:
        logger.error(f"Invalid input: {e}")
        return 2
    except Exception as e:
        logger.exception(f"Error running analysis: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
