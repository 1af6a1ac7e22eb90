"""Heuristic profile loader -- tuning the selectors from YAML.

Profile schema (every section and key optional; omitted keys keep
their defaults from heuristics.py):
  beats:
    neighbor_window: 10
    local_peak_threshold: 0.05
    w_intensity: 0.3
    min_count: 5
    max_count: 30
  timeline:
    overlap: 0.3
  captions:
    significant_mean_ratio: 0.8
  options:
    max_lines: 3
    negative_offset: 0.15
    highlight_mode: longest        # or "random"
    per_part_emphasis: false
    no_gaps:
      enabled: true
      max_length: 3
"""

from dataclasses import fields
from pathlib import Path

import yaml

from .heuristics import (
    BeatHeuristics,
    CaptionHeuristics,
    CaptionOptions,
    NoGapsOptions,
    TimelineHeuristics,
    VALID_HIGHLIGHT_MODES,
)


VALID_SECTIONS = {"beats", "timeline", "captions", "options"}


def _check_value(section: str, key: str, value, default):
    """Validate one value against the type of its default; returns it coerced."""
    if isinstance(default, bool):
        if not isinstance(value, bool):
            raise ValueError(f"Profile {section}.{key}: must be true/false, got {value!r}")
    elif isinstance(default, (int, float)):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"Profile {section}.{key}: must be a number, got {value!r}")
        if value < 0:
            raise ValueError(f"Profile {section}.{key}: must be >= 0, got {value}")
        if isinstance(default, int):
            if value != int(value):
                raise ValueError(f"Profile {section}.{key}: must be an integer, got {value}")
            value = int(value)
    return value


def _build(cls, values: dict | None, section: str):
    """Instantiate a heuristics dataclass, checking names and numeric types."""
    if values is None:
        return cls()
    if not isinstance(values, dict):
        raise ValueError(f"Profile: '{section}' must be a mapping")

    defaults = {f.name: getattr(cls(), f.name) for f in fields(cls)}
    kwargs = {}
    for key, value in values.items():
        if key not in defaults:
            raise ValueError(
                f"Profile {section}: unknown key '{key}'. "
                f"Valid: {sorted(defaults)}"
            )
        kwargs[key] = _check_value(section, key, value, defaults[key])
    return cls(**kwargs)


def _build_options(values: dict | None) -> CaptionOptions:
    if values is None:
        return CaptionOptions()
    if not isinstance(values, dict):
        raise ValueError("Profile: 'options' must be a mapping")

    values = dict(values)
    no_gaps = _build(NoGapsOptions, values.pop("no_gaps", None), "options.no_gaps")

    defaults = CaptionOptions()
    valid = sorted(f.name for f in fields(CaptionOptions))
    kwargs = {}
    for key, value in values.items():
        if key not in valid:
            raise ValueError(
                f"Profile options: unknown key '{key}'. Valid: {valid}"
            )
        if key == "highlight_mode":
            if value not in VALID_HIGHLIGHT_MODES:
                raise ValueError(
                    f"Profile options: invalid highlight_mode '{value}'. "
                    f"Valid: {sorted(VALID_HIGHLIGHT_MODES)}"
                )
        elif key == "max_lines":
            if value is not None and (
                isinstance(value, bool) or not isinstance(value, int) or value < 1
            ):
                raise ValueError(
                    f"Profile options.max_lines: must be a positive integer, got {value!r}"
                )
        else:
            value = _check_value("options", key, value, getattr(defaults, key))
        kwargs[key] = value

    return CaptionOptions(no_gaps=no_gaps, **kwargs)


def parse_profile(raw: dict | None) -> dict:
    """Validate a profile mapping and build heuristics/options objects.

    Returns:
        {"beats": BeatHeuristics, "timeline": TimelineHeuristics,
         "captions": CaptionHeuristics, "options": CaptionOptions}

    Raises:
        ValueError: Unknown section/key, or a value of the wrong type.
    """
    raw = raw or {}
    if not isinstance(raw, dict):
        raise ValueError("Profile: top level must be a mapping")

    unknown = set(raw) - VALID_SECTIONS
    if unknown:
        raise ValueError(
            f"Profile: unknown section(s) {sorted(unknown)}. "
            f"Valid: {sorted(VALID_SECTIONS)}"
        )

    beats = _build(BeatHeuristics, raw.get("beats"), "beats")
    if beats.min_count > beats.max_count:
        raise ValueError(
            f"Profile beats: min_count ({beats.min_count}) must be <= "
            f"max_count ({beats.max_count})"
        )

    return {
        "beats": beats,
        "timeline": _build(TimelineHeuristics, raw.get("timeline"), "timeline"),
        "captions": _build(CaptionHeuristics, raw.get("captions"), "captions"),
        "options": _build_options(raw.get("options")),
    }


def load_profile(profile_path: str | Path) -> dict:
    """Load, validate, and build a heuristics profile from YAML.

    Raises:
        FileNotFoundError: Missing profile file.
        ValueError: Invalid profile content (see parse_profile).
    """
    with open(profile_path) as f:
        raw = yaml.safe_load(f)
    return parse_profile(raw)
