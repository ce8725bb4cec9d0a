#!/usr/bin/env python3
"""
Local RTV Report

Runs the RTV calculator over a JSON file of keyword records and prints a
per-keyword table plus a summary.

The input file holds a list of keyword records, e.g.:

    [
        {"keyword": "crm software", "search_volume": 2400, "cpc": 12.5,
         "serp_items": [{"type": "ai_overview"}, {"type": "paid"}]},
        {"keyword": "plumber near me", "volume": 9900,
         "serp_features": ["local_pack", "top_ads"], "position": 4}
    ]

Usage:
    python scripts/rtv_report.py keywords.json
    python scripts/rtv_report.py keywords.json --position 3 --output report.json
"""

import argparse
import json
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

from rtv_engine.scoring import (
    calculate_batch_rtv,
    format_volume,
    get_rtv_summary,
    prioritize_by_rtv,
)
from rtv_engine.utils import setup_logging

logger = logging.getLogger(__name__)


def load_keywords(path: Path) -> list:
    """Load keyword records from a JSON file."""
    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    # Accept {"keywords": [...]} as well as a bare list
    if isinstance(data, dict):
        data = data.get("keywords", [])
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of keyword records in {path}")
    return data


def run_report(
    input_file: str,
    position: int = None,
    output_file: str = None,
) -> dict:
    """Run the RTV report."""
    keywords = load_keywords(Path(input_file))
    logger.info(f"Loaded {len(keywords)} keyword records from {input_file}")

    analyses = prioritize_by_rtv(calculate_batch_rtv(keywords, position))
    summary = get_rtv_summary(analyses)

    print(f"\n{'='*72}")
    print("RTV REPORT")
    print(f"{'='*72}")
    for a in analyses:
        print(
            f"  {a.keyword[:32]:32s} | vol: {format_volume(a.volume):>6s} "
            f"| rtv: {format_volume(a.rtv):>6s} | loss: {a.result.loss_percent:2d}% "
            f"| {a.opportunity_level.value}"
        )

    print(f"\n{'='*72}")
    print("SUMMARY")
    print(f"{'='*72}")
    for key, value in summary.items():
        print(f"  {key}: {value}")

    report = {
        "summary": summary,
        "keywords": [a.to_dict() for a in analyses],
    }

    if output_file:
        output_path = Path(output_file)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(report, f, indent=2, default=str)

        print(f"\nResults saved to: {output_path}")

    return report


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Calculate Realizable Traffic Value for a keyword list"
    )
    parser.add_argument(
        "input",
        help="JSON file with keyword records"
    )
    parser.add_argument(
        "--position",
        type=int,
        default=None,
        help="Ranking position used for click estimates (default: from settings)"
    )
    parser.add_argument(
        "--output", "-o",
        help="Save results to JSON file"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose logging"
    )

    args = parser.parse_args()

    load_dotenv()
    setup_logging(verbose=args.verbose)

    try:
        run_report(args.input, position=args.position, output_file=args.output)
    except (OSError, ValueError) as e:
        # json.JSONDecodeError is a ValueError
        logger.error(f"Could not build RTV report: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
