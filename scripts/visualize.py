#!/usr/bin/env python3
"""
AIRPROX Visualization Script

Builds an interactive map from the files written by scripts/analyze.py.

Usage:
    python scripts/visualize.py [--input OUTPUT_DIR] [--output MAP_FILE] [OPTIONS]

Examples:
    # Map of the latest analysis
    python scripts/visualize.py --input output

    # Dark map, opened in the browser
    python scripts/visualize.py --style CartoDB.DarkMatter --open
"""

import sys
import json
import argparse
import webbrowser
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from airprox.config import Config, Settings
from airprox.visualization import MapGenerator


def load_results(directory: str) -> dict:
    """
    Reassemble a results dictionary from an output directory.

    Args:
        directory: Directory containing summary.json and friends

    Returns:
        Results dictionary with metadata, encounters, flocks and traces
    """
    base = Path(directory)
    with open(base / "summary.json") as f:
        summary = json.load(f)

    results = {"metadata": summary["metadata"], "encounters": [], "flocks": []}
    for key in ("encounters", "flocks", "traces"):
        path = base / f"{key}.json"
        if path.exists():
            with open(path) as f:
                results[key] = json.load(f)
    return results


def main():
    """Main entry point for visualization."""
    parser = argparse.ArgumentParser(
        description="AIRPROX Visualizer - Map encounters and flocks"
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Path to YAML configuration file",
    )
    parser.add_argument(
        "--input",
        type=str,
        help="Analysis output directory (default: from config)",
    )
    parser.add_argument(
        "--output",
        type=str,
        help="Map file (default: <input>/airprox_map.html)",
    )
    parser.add_argument(
        "--style",
        type=str,
        default=Settings.DEFAULT_MAP_STYLE,
        help=f"Map style (default: {Settings.DEFAULT_MAP_STYLE})",
    )
    parser.add_argument(
        "--zoom",
        type=int,
        default=Settings.DEFAULT_ZOOM,
        help=f"Initial zoom level (default: {Settings.DEFAULT_ZOOM})",
    )
    parser.add_argument(
        "--open",
        action="store_true",
        help="Open the map in a browser",
    )

    args = parser.parse_args()
    config = Config(args.config)
    input_dir = args.input or config.output_dir

    if not (Path(input_dir) / "summary.json").exists():
        print(f"❌ No analysis results in: {input_dir}")
        print("   Run scripts/analyze.py first")
        sys.exit(1)

    results = load_results(input_dir)
    print(f"\n🗺️  Mapping {len(results['encounters'])} encounters, "
          f"{len(results['flocks'])} flocks")

    generator = MapGenerator.from_results(results, zoom=args.zoom, style=args.style)
    generator.add_results(results)

    output = args.output or str(Path(input_dir) / "airprox_map.html")
    generator.save(output)

    if args.open:
        webbrowser.open(Path(output).resolve().as_uri())


if __name__ == "__main__":
    main()
