"""Heuristic profiles for the beat and caption selectors.

Every threshold, weight and tier boundary used by the selectors lives
here, so alternative profiles can be tested or loaded from YAML
(see profile.py) without touching the algorithms. Instances are frozen;
derive variants with dataclasses.replace.
"""
from dataclasses import dataclass, field, fields


@dataclass(frozen=True)
class BeatHeuristics:
    """Tuning for impact-beat scoring, selection and auto count."""

    # Local peak detection
    neighbor_window: int = 10  # events on each side of the sample
    local_peak_threshold: float = 0.05  # intensity above neighbor mean

    # Score weights
    w_intensity: float = 0.3
    w_peak: float = 0.4
    w_frequency: float = 0.2
    w_spectral: float = 0.1
    frequency_norm: float = 3000.0  # Hz mapped to a frequency score of 1

    # Auto count tiers (tempo in events per minute)
    fast_tempo: float = 140.0
    medium_tempo: float = 100.0
    fast_rate: float = 1.5  # beats per second of window
    medium_rate: float = 1.2
    slow_rate: float = 0.8
    fast_cap: int = 25
    medium_cap: int = 20
    slow_cap: int = 15

    # Auto count dynamics bonuses
    intensity_variance_threshold: float = 0.1
    intensity_variance_bonus: int = 5
    frequency_variance_threshold: float = 100000.0
    frequency_variance_bonus: int = 3

    # Auto count bounds
    min_count: int = 5
    max_count: int = 30
    empty_count: int = 10  # returned when there is nothing to analyze
    fallback_window: float = 20.0  # seconds, used when the window is unusable

    def to_dict(self) -> dict:
        """Convert heuristics to a dictionary for serialization."""
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class TimelineHeuristics:
    """Tuning for turning selected beats into clip segments."""

    overlap: float = 0.3  # seconds shared by neighbouring segments
    last_segment_default: float = 2.0  # used when the window end is unknown

    # Transition choice
    fast_cut_gap: float = 0.5  # gaps shorter than this get a blur cut
    close_cut_gap: float = 1.0
    high_intensity: float = 0.8
    medium_intensity: float = 0.5
    fast_cut_duration: float = 0.3
    high_cut_duration: float = 0.6
    medium_cut_duration: float = 0.4
    low_cut_duration: float = 0.3

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class CaptionHeuristics:
    """Tuning for caption segmentation, emphasis and pacing analysis."""

    default_max_lines: int = 5

    # A word is significant if it is long relative to its caption.
    significant_mean_ratio: float = 0.8
    significant_max_ratio: float = 0.7

    # Pacing analysis
    fast_words_per_second: float = 2.5
    slow_words_per_second: float = 1.0
    high_variance_ratio: float = 0.5  # (max - min) duration vs mean
    long_caption_seconds: float = 5.0
    short_caption_seconds: float = 2.0

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class NoGapsOptions:
    """Gap-closing between consecutive captions."""
    enabled: bool = False
    max_length: float = 3.0  # max seconds a caption may be extended


VALID_HIGHLIGHT_MODES = {"longest", "random"}


@dataclass(frozen=True)
class CaptionOptions:
    """Caller options for process_captions."""
    max_lines: int | None = None
    no_gaps: NoGapsOptions = field(default_factory=NoGapsOptions)
    negative_offset: float = 0.0  # seconds to shift captions earlier
    disable_metadata: bool = False  # ignore keyword/splitParts/highlight hints
    highlight_mode: str = "longest"
    per_part_emphasis: bool = False
    highlight_whole_word: bool = False

    def to_dict(self) -> dict:
        return {
            "max_lines": self.max_lines,
            "no_gaps": {
                "enabled": self.no_gaps.enabled,
                "max_length": self.no_gaps.max_length,
            },
            "negative_offset": self.negative_offset,
            "disable_metadata": self.disable_metadata,
            "highlight_mode": self.highlight_mode,
            "per_part_emphasis": self.per_part_emphasis,
            "highlight_whole_word": self.highlight_whole_word,
        }


# Default instances
DEFAULT_BEAT_HEURISTICS = BeatHeuristics()
DEFAULT_TIMELINE_HEURISTICS = TimelineHeuristics()
DEFAULT_CAPTION_HEURISTICS = CaptionHeuristics()
