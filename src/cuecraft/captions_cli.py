"""CLI for caption processing -- parts, emphasis and gap closing.

Usage:
    cuecraft captions transcript.json --output processed.json
    cuecraft captions transcript.json --max-lines 3 --no-gaps 1.5
    cuecraft captions transcript.json --profile kinetic.yaml --seed 7
"""

import argparse
import json
import logging
import random
from dataclasses import replace
from pathlib import Path

from .captions import process_captions
from .heuristics import CaptionOptions, NoGapsOptions, VALID_HIGHLIGHT_MODES
from .inputs import load_transcript
from .profile import load_profile


def _parse_args(args=None):
    parser = argparse.ArgumentParser(
        description="Split captions into parts, pick emphasized words, close gaps.",
    )
    parser.add_argument(
        "transcript",
        help="Path to transcript JSON",
    )
    parser.add_argument(
        "--output", default=None,
        help="Output JSON path (default: <transcript>.captions.json)",
    )
    parser.add_argument(
        "--profile", default=None,
        help="Heuristics profile YAML (its options are overridden by flags)",
    )
    parser.add_argument(
        "--max-lines", type=int, default=None,
        help="Target number of parts per caption (default: 5)",
    )
    parser.add_argument(
        "--no-gaps", type=float, default=None, metavar="MAX_SECONDS",
        help="Extend captions into following silence, up to MAX_SECONDS",
    )
    parser.add_argument(
        "--negative-offset", type=float, default=None,
        help="Shift captions earlier by this many seconds",
    )
    parser.add_argument(
        "--disable-metadata", action="store_true",
        help="Ignore keyword/splitParts hints in the transcript",
    )
    parser.add_argument(
        "--highlight-mode", choices=sorted(VALID_HIGHLIGHT_MODES), default=None,
        help="How to pick the emphasized word without a keyword",
    )
    parser.add_argument(
        "--per-part", action="store_true",
        help="Emphasize one word per part instead of one per caption",
    )
    parser.add_argument(
        "--seed", type=int, default=None,
        help="Random seed for --highlight-mode random",
    )
    parser.add_argument(
        "--verbose", action="store_true",
        help="Log processing details",
    )
    parsed = parser.parse_args(args)

    if parsed.max_lines is not None and parsed.max_lines < 1:
        parser.error("--max-lines must be >= 1")
    if parsed.no_gaps is not None and parsed.no_gaps < 0:
        parser.error("--no-gaps must be >= 0")
    return parsed


def _resolve_options(parsed, base: CaptionOptions) -> CaptionOptions:
    """Apply CLI flags on top of profile options."""
    options = base
    if parsed.max_lines is not None:
        options = replace(options, max_lines=parsed.max_lines)
    if parsed.no_gaps is not None:
        options = replace(options, no_gaps=NoGapsOptions(enabled=True, max_length=parsed.no_gaps))
    if parsed.negative_offset is not None:
        options = replace(options, negative_offset=parsed.negative_offset)
    if parsed.disable_metadata:
        options = replace(options, disable_metadata=True)
    if parsed.highlight_mode is not None:
        options = replace(options, highlight_mode=parsed.highlight_mode)
    if parsed.per_part:
        options = replace(options, per_part_emphasis=True)
    return options


def main(args=None):
    parsed = _parse_args(args)

    if parsed.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    profile = load_profile(parsed.profile) if parsed.profile else {}
    options = _resolve_options(parsed, profile.get("options", CaptionOptions()))

    captions = load_transcript(parsed.transcript)
    print(f"Transcript: {parsed.transcript} ({len(captions)} captions)")

    kwargs = {}
    if "captions" in profile:
        kwargs["heuristics"] = profile["captions"]
    rng = random.Random(parsed.seed) if parsed.seed is not None else None

    processed = process_captions(captions, options, rng=rng, **kwargs)

    output = parsed.output
    if output is None:
        output = str(Path(parsed.transcript).with_suffix("").with_suffix(".captions.json"))
    Path(output).parent.mkdir(parents=True, exist_ok=True)
    with open(output, "w") as f:
        json.dump({
            "options": options.to_dict(),
            "captions": [p.to_dict() for p in processed],
        }, f, indent=2)

    n_parts = sum(len(p.parts) for p in processed)
    n_highlights = sum(len(p.highlighted_indices) for p in processed)
    print(f"Done: {len(processed)} captions, {n_parts} parts, {n_highlights} highlights")
    print(f"Output: {output}")


if __name__ == "__main__":
    main()
