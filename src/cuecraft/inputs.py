"""Input loaders -- audio analysis and transcript JSON.

Analysis file schema (from the audio-analysis collaborator):
  {
    "analysis": [{"timestamp": 0.5, "intensity": 0.8, "frequency": 1200,
                  "spectralCentroid": 0.4}, ...],
    "durationInSeconds": 30.0,
    "summary": {...}                # optional, passed through untouched
  }

Transcript file schema:
  {"captions": [{"text": ..., "absoluteStart": ..., "absoluteEnd": ...,
                 "duration": ..., "words": [...], "metadata": {...}}]}
  or a bare list of captions.
"""

import json
from pathlib import Path

from .models import AnalysisEvent, Caption, validate_event_order


def read_json(path: str | Path, what: str):
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"{what} file not found: {path}")
    with open(p) as f:
        return json.load(f)


def parse_analysis(raw: dict, sort: bool = False) -> dict:
    """Normalize an analysis result into typed events.

    Args:
        raw: Analysis result dict (see module docstring).
        sort: Sort events by timestamp instead of rejecting disorder.

    Returns:
        {"events": list[AnalysisEvent], "duration_in_seconds": float,
         "summary": any}

    Raises:
        ValueError: Missing 'analysis', bad event, or timestamps not
            strictly increasing (when sort is False).
    """
    if not isinstance(raw, dict) or "analysis" not in raw:
        raise ValueError("Analysis: missing required 'analysis' field")
    if not isinstance(raw["analysis"], list):
        raise ValueError("Analysis: 'analysis' must be a list")

    events = [AnalysisEvent.from_dict(e, i) for i, e in enumerate(raw["analysis"])]
    if sort:
        events.sort(key=lambda e: e.timestamp)
    validate_event_order(events)

    return {
        "events": events,
        "duration_in_seconds": float(raw.get("durationInSeconds") or 0.0),
        "summary": raw.get("summary"),
    }


def load_analysis(path: str | Path, sort: bool = False) -> dict:
    """Load and parse an analysis JSON file (see parse_analysis)."""
    return parse_analysis(read_json(path, "Analysis"), sort=sort)


def parse_transcript(raw) -> list[Caption]:
    """Normalize a transcript into Caption records.

    Raises:
        ValueError: Missing 'captions' or malformed caption/word.
    """
    if isinstance(raw, dict):
        if "captions" not in raw:
            raise ValueError("Transcript: missing required 'captions' field")
        raw = raw["captions"]
    if not isinstance(raw, list):
        raise ValueError("Transcript: captions must be a list")
    return [Caption.from_dict(c, i) for i, c in enumerate(raw)]


def load_transcript(path: str | Path) -> list[Caption]:
    """Load and parse a transcript JSON file (see parse_transcript)."""
    return parse_transcript(read_json(path, "Transcript"))
