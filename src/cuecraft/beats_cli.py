"""CLI for beat selection -- impact beats and clip timeline from analysis JSON.

Usage:
    cuecraft beats analysis.json --output beats.json
    cuecraft beats analysis.json --start 54 --duration 30 --max-beats 12
    cuecraft beats analysis.json --clips 4 --profile fast-cuts.yaml
"""

import argparse
import json
import logging
from pathlib import Path

from .beats import plan_beat_cuts
from .inputs import read_json
from .profile import load_profile
from .timeline import build_beat_timeline


def _read_analysis(path: str) -> dict:
    return read_json(path, "Analysis")


def _parse_args(args=None):
    parser = argparse.ArgumentParser(
        description="Select impact beats from audio analysis and build a clip timeline.",
    )
    parser.add_argument(
        "analysis",
        help="Path to audio analysis JSON",
    )
    parser.add_argument(
        "--output", default=None,
        help="Output JSON path (default: <analysis>.beats.json)",
    )
    parser.add_argument(
        "--start", type=float, default=0.0,
        help="Audio start offset in seconds (default: 0)",
    )
    parser.add_argument(
        "--duration", type=float, default=None,
        help="Audio window length in seconds (default: to the end)",
    )
    parser.add_argument(
        "--max-beats", type=int, default=0,
        help="Number of beats to select, 0 = auto (default: 0)",
    )
    parser.add_argument(
        "--min-time-diff", type=float, default=0.5,
        help="Minimum seconds between beats (default: 0.5)",
    )
    parser.add_argument(
        "--clips", type=int, default=None,
        help="Number of clips to assign to timeline segments",
    )
    parser.add_argument(
        "--no-repeat-clips", action="store_true",
        help="Drop segments once clips run out instead of cycling",
    )
    parser.add_argument(
        "--profile", default=None,
        help="Heuristics profile YAML",
    )
    parser.add_argument(
        "--verbose", action="store_true",
        help="Log selection details",
    )
    parsed = parser.parse_args(args)

    if parsed.start < 0:
        parser.error("--start must be >= 0")
    if parsed.max_beats < 0:
        parser.error("--max-beats must be >= 0")
    if parsed.min_time_diff <= 0:
        parser.error("--min-time-diff must be > 0")
    if parsed.clips is not None and parsed.clips < 1:
        parser.error("--clips must be >= 1")
    return parsed


def main(args=None):
    parsed = _parse_args(args)

    if parsed.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    profile = load_profile(parsed.profile) if parsed.profile else {}
    beat_heuristics = profile.get("beats")
    timeline_heuristics = profile.get("timeline")

    print(f"Analysis: {parsed.analysis}")
    print(f"Window: start={parsed.start:.1f}s duration="
          f"{'auto' if parsed.duration is None else f'{parsed.duration:.1f}s'}")

    plan_kwargs = {}
    if beat_heuristics is not None:
        plan_kwargs["heuristics"] = beat_heuristics
    plan = plan_beat_cuts(
        _read_analysis,
        parsed.analysis,
        start=parsed.start,
        duration=parsed.duration,
        max_beats=parsed.max_beats,
        min_time_diff=parsed.min_time_diff,
        **plan_kwargs,
    )

    if parsed.duration is not None:
        window_end = parsed.duration
    elif plan.duration_in_seconds > parsed.start:
        window_end = plan.duration_in_seconds - parsed.start
    else:
        window_end = None

    timeline_kwargs = {}
    if timeline_heuristics is not None:
        timeline_kwargs["heuristics"] = timeline_heuristics
    timeline = build_beat_timeline(
        plan.beats,
        window_end=window_end,
        clip_count=parsed.clips,
        repeat_clips=not parsed.no_repeat_clips,
        **timeline_kwargs,
    )

    result = {**plan.to_dict(), "timeline": timeline}

    output = parsed.output
    if output is None:
        output = str(Path(parsed.analysis).with_suffix("").with_suffix(".beats.json"))
    Path(output).parent.mkdir(parents=True, exist_ok=True)
    with open(output, "w") as f:
        json.dump(result, f, indent=2)

    if plan.is_empty:
        print("No analysis events; no beat-synced cuts")
    else:
        print(f"Done: {len(plan.beats)} beats, {len(timeline)} segments")
    print(f"Output: {output}")


if __name__ == "__main__":
    main()
