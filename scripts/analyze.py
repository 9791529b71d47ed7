#!/usr/bin/env python3
"""
AIRPROX Proximity Analysis Script

Runs encounter detection and flock mining over a set of flight logs and
writes the results (encounters, flocks, penalties, summary, report).

Usage:
    python scripts/analyze.py [--config CONFIG] [--output OUTPUT_DIR] LOG.csv [LOG.csv ...]
    python scripts/analyze.py --db DATABASE_FILE [--output OUTPUT_DIR]
"""

import sys
import argparse
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from airprox.config import Config
from airprox.analysis import FlightCollection, ReportGenerator, AnalysisError, write_outputs


def main():
    """Main entry point for analysis."""
    parser = argparse.ArgumentParser(
        description="AIRPROX Proximity Analyzer - Encounters and flocks in flight logs"
    )
    parser.add_argument(
        "logs",
        nargs="*",
        help="CSV flight logs, one per aircraft (id taken from the filename)",
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Path to YAML configuration file (default: built-in defaults)",
    )
    parser.add_argument(
        "--db",
        type=str,
        help="Read flights from a database file instead of CSV logs",
    )
    parser.add_argument(
        "--output",
        type=str,
        help="Output directory (default: from config)",
    )
    parser.add_argument(
        "--format",
        choices=["json", "txt", "html"],
        default=None,
        help="Additionally write a full report in this format",
    )
    parser.add_argument(
        "--traces",
        action="store_true",
        help="Include interpolated aircraft traces (needed for track maps)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )

    args = parser.parse_args()
    config = Config(args.config)

    if not args.db and not args.logs:
        parser.error("give CSV logs or --db")

    if args.db:
        if not Path(args.db).exists():
            print(f"❌ Database not found: {args.db}")
            sys.exit(1)
    else:
        missing = [p for p in args.logs if not Path(p).exists()]
        if missing:
            print(f"❌ Log file not found: {missing[0]}")
            sys.exit(1)

    try:
        if args.db:
            collection = FlightCollection.from_database(
                args.db, config, keep_traces=args.traces, verbose=not args.quiet
            )
        else:
            collection = FlightCollection.from_csv(
                args.logs, config, keep_traces=args.traces, verbose=not args.quiet
            )
        results = collection.run()
    except AnalysisError as e:
        print(f"❌ Analysis failed: {e}")
        sys.exit(1)
    except (OSError, ValueError) as e:
        print(f"❌ Error reading flight data: {e}")
        sys.exit(1)

    output_dir = args.output or config.output_dir
    written = write_outputs(results, output_dir)

    if args.format:
        report_path = Path(output_dir) / f"airprox_report.{args.format}"
        ReportGenerator().generate_report(results, str(report_path), format=args.format)
        written.append(report_path)

    print(f"\n💾 Results saved to: {output_dir}")
    for path in written:
        print(f"   {path.name}")
    print("\n✅ Analysis complete!")


if __name__ == "__main__":
    main()
