"""Command-line click-track analysis.

Usage:
    clickmeter click.wav                       # JSON report on stdout
    clickmeter click.wav -o report.json        # write report to a file
    clickmeter click.wav --tolerance-bpm 1.5 --debounce-count 4
"""

import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from clickmeter.analysis.engine import AnalysisEngine
from clickmeter.analysis.models import InvalidAudioError
from clickmeter.api.schemas import result_to_response
from clickmeter.config import AnalysisConfig, settings

# CLI flag -> AnalysisConfig field
_OVERRIDES = {
    "threshold_fraction": float,
    "min_gap_seconds": float,
    "fft_size": int,
    "tolerance_bpm": float,
    "smoothing_window": int,
    "debounce_count": int,
    "min_segment_beats": int,
    "max_workers": int,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clickmeter",
        description="Detect clicks, downbeats, meter and tempo segments in a click track",
    )
    parser.add_argument("audio", type=Path, help="Audio file to analyze")
    parser.add_argument("-o", "--output", type=Path, help="Write the JSON report here instead of stdout")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log pipeline steps to stderr")
    for name, kind in _OVERRIDES.items():
        parser.add_argument("--" + name.replace("_", "-"), type=kind, default=None)
    parser.add_argument("--centroid-band", type=float, nargs=2, metavar=("MIN", "MAX"))
    parser.add_argument("--meter-range", type=int, nargs=2, metavar=("MIN", "MAX"))
    return parser


def config_from_args(args: argparse.Namespace) -> AnalysisConfig:
    """Merge command-line overrides onto the configured defaults."""
    values = settings.analysis.model_dump()
    for name in _OVERRIDES:
        value = getattr(args, name)
        if value is not None:
            values[name] = value
    if args.centroid_band:
        values["centroid_band"] = tuple(args.centroid_band)
    if args.meter_range:
        values["meter_candidate_range"] = tuple(args.meter_range)
    return AnalysisConfig.model_validate(values)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        config = config_from_args(args)
    except ValidationError as e:
        parser.error(str(e))

    if not args.audio.is_file():
        print(f"error: no such file: {args.audio}", file=sys.stderr)
        return 1

    try:
        result = AnalysisEngine(config).analyze_file(str(args.audio))
    except InvalidAudioError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    report = result_to_response(result).model_dump_json(indent=2)
    if args.output:
        args.output.write_text(report + "\n")
    else:
        print(report)
    return 0


if __name__ == "__main__":
    sys.exit(main())
