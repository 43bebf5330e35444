#!/usr/bin/env python3
"""
Command-line interface for W' Balance Analyser.

This module provides CLI tools for computing W' balance and matches from
ride power data.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from analyzers.wprime_model import compute
from config import settings
from models.ride import Ride
from models.wprime import BalanceResult
from models.zones import Zones
from visualizers.chart_generator import ChartGenerator

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    """Set up logging configuration.

    Args:
        verbose: Enable verbose logging
    """
    level = logging.DEBUG if verbose else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format=settings.LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)]
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for CLI commands."""
    parser = argparse.ArgumentParser(
        description="Compute W' balance and matches from ride power data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s analyze ride.csv --zones zones.json --output results.json
  %(prog)s analyze ride.csv --cp 270 --wprime 20000 --format summary --chart wbal.png
  %(prog)s batch --input-dir ./rides --output-dir ./results
  %(prog)s config --show
        """
    )

    parser.add_argument('--verbose', '-v', action='store_true', help='Enable verbose logging')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Analyze command
    analyze_parser = subparsers.add_parser('analyze', help='Analyze a single ride file')
    analyze_parser.add_argument('file', help='Path to the ride file (.csv with secs/watts columns)')
    analyze_parser.add_argument('--output', '-o', help='Output file for results (JSON format)')
    analyze_parser.add_argument('--format', choices=['json', 'summary'], default='json',
                                help='Output format (default: json)')
    analyze_parser.add_argument('--chart', help="Save a W' balance chart to this path")
    analyze_parser.add_argument('--series', action='store_true',
                                help='Include the per-second balance series in JSON output')
    _add_zone_arguments(analyze_parser)

    # Batch command
    batch_parser = subparsers.add_parser('batch', help='Analyze multiple ride files')
    batch_parser.add_argument('--input-dir', '-i', required=True, help='Directory containing ride files')
    batch_parser.add_argument('--output-dir', '-o', required=True, help='Directory for output files')
    batch_parser.add_argument('--pattern', default='*.csv', help='File pattern to match (default: *.csv)')
    _add_zone_arguments(batch_parser)

    # Config command
    config_parser = subparsers.add_parser('config', help='Manage configuration')
    config_parser.add_argument('--show', action='store_true', help='Show current configuration')

    return parser


def _add_zone_arguments(parser: argparse.ArgumentParser):
    parser.add_argument('--zones', help='Zones JSON file with CP and W\' by date')
    parser.add_argument('--cp', type=float, help='Critical Power (W), overrides zones')
    parser.add_argument('--wprime', type=float, help="W' (J), used with --cp")


def load_zones(zones_file: Optional[str] = None, cp: Optional[float] = None,
               wprime: Optional[float] = None) -> Optional[Zones]:
    """
    Resolve the zone provider for a run.

    Explicit CP/W' win over a zones file; the configured ZONES_FILE is used
    when it exists. Returns None when no zones are available, which makes
    the model fall back to its defaults.
    """
    if cp is not None:
        return Zones.single(cp, wprime or 0)

    if zones_file:
        return Zones.from_file(zones_file)

    if settings.ZONES_FILE.exists():
        logger.debug(f"Using zones from {settings.ZONES_FILE}")
        return Zones.from_file(settings.ZONES_FILE)

    return None


def analyze_file(file_path: str, zones: Optional[Zones] = None) -> BalanceResult:
    """
    Analyze a single ride file.

    Args:
        file_path: Path to the ride file
        zones: Zone provider, None for defaults

    Returns:
        BalanceResult for the ride
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    if path.suffix.lower() not in settings.SUPPORTED_FORMATS:
        raise ValueError(f"Unsupported file format: {path.suffix}")

    ride = Ride.from_csv(path)
    return compute(ride, zones)


def batch_analyze(input_dir: str, output_dir: str, zones: Optional[Zones] = None,
                  pattern: str = '*.csv') -> List[str]:
    """
    Analyze multiple ride files in a directory.

    Args:
        input_dir: Directory containing ride files
        output_dir: Directory for output files
        zones: Zone provider, None for defaults
        pattern: File pattern to match

    Returns:
        List of processed file paths
    """
    input_path = Path(input_dir)
    output_path = Path(output_dir)

    if not input_path.exists():
        raise FileNotFoundError(f"Input directory not found: {input_dir}")

    output_path.mkdir(parents=True, exist_ok=True)

    processed_files = []
    for file_path in sorted(input_path.glob(pattern)):
        try:
            print(f"Analyzing {file_path.name}...")
            result = analyze_file(str(file_path), zones)

            output_file = output_path / f"{file_path.stem}_wprime.json"
            with open(output_file, 'w') as f:
                json.dump(result.to_dict(), f, indent=2, default=str)

            processed_files.append(str(file_path))
            print(f"  ✓ Results saved to {output_file.name}")

        except (OSError, ValueError) as e:
            logger.error(f"Failed to analyze {file_path}: {e}")
            print(f"  ✗ Error analyzing {file_path.name}: {e}")

    return processed_files


def show_config():
    """Display current configuration."""
    print("Current Configuration:")
    print("-" * 30)
    config_dict = {
        'DEFAULT_CP': settings.WPrimeConfig.DEFAULT_CP,
        'DEFAULT_WPRIME': settings.WPrimeConfig.DEFAULT_WPRIME,
        'DECAY_PERIOD_SECS': settings.WPrimeConfig.DECAY_PERIOD_SECS,
        'MATCH_SMOOTHING_SECS': settings.WPrimeConfig.MATCH_SMOOTHING_SECS,
        'MATCH_MIN_JOULES': settings.WPrimeConfig.MATCH_MIN_JOULES,
        'MATCH_SIGNIFICANT_JOULES': settings.WPrimeConfig.MATCH_SIGNIFICANT_JOULES,
        'ZONES_FILE': settings.ZONES_FILE,
        'REPORTS_DIR': settings.REPORTS_DIR,
    }

    for key, value in config_dict.items():
        print(f"{key}: {value}")


def print_summary(result: BalanceResult):
    """Print a human-readable summary of the W' analysis."""
    print("\n" + "=" * 50)
    print("W' BALANCE SUMMARY")
    print("=" * 50)

    if result.is_empty:
        print("No power data available")
        print("=" * 50)
        return

    params = result.parameters
    print(f"Duration: {len(result.series) / 60:.1f} minutes")
    print(f"CP: {params.cp:.0f} W")
    print(f"W': {params.wprime / 1000:.1f} kJ")
    print(f"Tau: {params.tau} s{'' if params.tau_estimated else ' (no recovery below CP)'}")
    print(f"Minimum W' balance: {result.min_balance_kj:.1f} kJ")

    if result.matches:
        print(f"\nMatches ({len(result.matches)}):")
        for match in result.matches:
            print(f"  {match.start // 60:>4d}:{match.start % 60:02d}  "
                  f"{match.secs:>4d}s  {match.cost / 1000:.1f} kJ")
    else:
        print("\nNo matches burned")

    print("=" * 50)


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return

    setup_logging(args.verbose)

    try:
        if args.command == 'analyze':
            zones = load_zones(args.zones, args.cp, args.wprime)
            result = analyze_file(args.file, zones)

            if args.chart:
                chart_path = Path(args.chart)
                generator = ChartGenerator(chart_path.parent)
                saved = generator.create_wprime_chart(result, chart_path.name, title=Path(args.file).stem)
                if saved:
                    print(f"Chart saved to {saved}")

            if args.format == 'json':
                results = result.to_dict(include_series=args.series)
                if args.output:
                    with open(args.output, 'w') as f:
                        json.dump(results, f, indent=2, default=str)
                    print(f"Analysis complete. Results saved to {args.output}")
                else:
                    print(json.dumps(results, indent=2, default=str))

            elif args.format == 'summary':
                print_summary(result)

        elif args.command == 'batch':
            zones = load_zones(args.zones, args.cp, args.wprime)
            processed = batch_analyze(args.input_dir, args.output_dir, zones, pattern=args.pattern)
            print(f"\nBatch analysis complete. Processed {len(processed)} files.")

        elif args.command == 'config':
            show_config()

    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
