"""Typed records for analysis events and transcripts.

Wire format (produced by the audio-analysis and transcription
collaborators) uses camelCase keys; records expose snake_case attributes
and convert at the boundary with from_dict / to_dict.

  AnalysisEvent:  {timestamp, intensity, frequency, spectralCentroid?, ...}
  Word:           {text, start, duration, absoluteStart, absoluteEnd,
                   confidence, metadata?: {isHighlight?}}
  Caption:        {text, absoluteStart, absoluteEnd, duration, words,
                   metadata?: {keyword?, splitParts?, highlightWordIndex?}}

Caption/word metadata dicts keep their wire keys unchanged. All records
are frozen; transforms build new instances with dataclasses.replace.
"""

from dataclasses import dataclass, field


# ── Audio analysis ────────────────────────────────────────────────

_EVENT_KEYS = {"timestamp", "intensity", "frequency", "spectralCentroid", "spectral_centroid"}


@dataclass(frozen=True)
class AnalysisEvent:
    """One scored audio sample from the analysis collaborator."""
    timestamp: float
    intensity: float
    frequency: float = 0.0
    spectral_centroid: float | None = None
    extra: dict = field(default_factory=dict, compare=False)

    @classmethod
    def from_dict(cls, data: dict, index: int = 0) -> "AnalysisEvent":
        """Build an event from a wire dict.

        Raises:
            ValueError: Missing timestamp or intensity.
        """
        for key in ("timestamp", "intensity"):
            if key not in data:
                raise ValueError(f"Event {index}: missing required field '{key}'")
        centroid = data.get("spectralCentroid", data.get("spectral_centroid"))
        return cls(
            timestamp=float(data["timestamp"]),
            intensity=float(data["intensity"]),
            frequency=float(data.get("frequency") or 0.0),
            spectral_centroid=None if centroid is None else float(centroid),
            extra={k: v for k, v in data.items() if k not in _EVENT_KEYS},
        )

    def to_dict(self) -> dict:
        out = {
            **self.extra,
            "timestamp": self.timestamp,
            "intensity": self.intensity,
            "frequency": self.frequency,
        }
        if self.spectral_centroid is not None:
            out["spectralCentroid"] = self.spectral_centroid
        return out


@dataclass(frozen=True)
class ScoredEvent:
    """An AnalysisEvent plus the fields derived during one selection call."""
    event: AnalysisEvent
    avg_neighbor_intensity: float
    local_peak_strength: float
    is_local_peak: bool
    intensity_score: float
    peak_score: float
    frequency_score: float
    spectral_score: float
    total_score: float

    @property
    def timestamp(self) -> float:
        return self.event.timestamp

    @property
    def intensity(self) -> float:
        return self.event.intensity

    @property
    def frequency(self) -> float:
        return self.event.frequency

    def to_dict(self) -> dict:
        return {
            **self.event.to_dict(),
            "avgNeighborIntensity": self.avg_neighbor_intensity,
            "localPeakStrength": self.local_peak_strength,
            "isLocalPeak": self.is_local_peak,
            "intensityScore": self.intensity_score,
            "peakScore": self.peak_score,
            "frequencyScore": self.frequency_score,
            "spectralScore": self.spectral_score,
            "totalScore": self.total_score,
        }


def validate_event_order(events: list[AnalysisEvent]) -> None:
    """Check that timestamps are strictly increasing.

    Raises:
        ValueError: Names the first out-of-order event.
    """
    for i in range(1, len(events)):
        prev, cur = events[i - 1].timestamp, events[i].timestamp
        if cur <= prev:
            raise ValueError(
                f"Event {i}: timestamp {cur} not after previous {prev}"
            )


# ── Transcript ────────────────────────────────────────────────────

def _pick(data: dict, camel: str, snake: str, default=None):
    if camel in data:
        return data[camel]
    return data.get(snake, default)


@dataclass(frozen=True)
class Word:
    """One spoken word. `start` is relative to the owning caption."""
    text: str
    start: float
    duration: float
    absolute_start: float
    absolute_end: float
    confidence: float = 1.0
    metadata: dict = field(default_factory=dict)
    original_word_index: int | None = None
    is_sub_word: bool = False

    @property
    def is_highlight(self) -> bool:
        return bool(self.metadata.get("isHighlight"))

    @classmethod
    def from_dict(cls, data: dict, prefix: str = "Word") -> "Word":
        """Build a word from a wire dict.

        Missing duration is derived from absoluteEnd - absoluteStart.

        Raises:
            ValueError: Missing text or absolute timing.
        """
        if "text" not in data:
            raise ValueError(f"{prefix}: missing required field 'text'")
        abs_start = _pick(data, "absoluteStart", "absolute_start")
        abs_end = _pick(data, "absoluteEnd", "absolute_end")
        if abs_start is None or abs_end is None:
            raise ValueError(f"{prefix}: missing 'absoluteStart'/'absoluteEnd'")
        abs_start, abs_end = float(abs_start), float(abs_end)
        duration = data.get("duration")
        duration = abs_end - abs_start if duration is None else float(duration)
        return cls(
            text=str(data["text"]),
            start=float(data.get("start", 0.0)),
            duration=duration,
            absolute_start=abs_start,
            absolute_end=abs_end,
            confidence=float(data.get("confidence", 1.0)),
            metadata=dict(data.get("metadata") or {}),
            original_word_index=_pick(data, "originalWordIndex", "original_word_index"),
            is_sub_word=bool(_pick(data, "isSubWord", "is_sub_word", False)),
        )

    def to_dict(self) -> dict:
        out = {
            "text": self.text,
            "start": self.start,
            "duration": self.duration,
            "absoluteStart": self.absolute_start,
            "absoluteEnd": self.absolute_end,
            "confidence": self.confidence,
            "metadata": dict(self.metadata),
        }
        if self.original_word_index is not None:
            out["originalWordIndex"] = self.original_word_index
            out["isSubWord"] = self.is_sub_word
        return out


def _validate_caption_metadata(metadata: dict, prefix: str) -> None:
    """Check the types of the author hints segmentation and emphasis read."""
    keyword = metadata.get("keyword")
    if keyword is not None and not isinstance(keyword, str):
        raise ValueError(f"{prefix}: 'keyword' must be a string, got {keyword!r}")

    split_parts = metadata.get("splitParts")
    if split_parts is not None:
        if not isinstance(split_parts, list) or not all(isinstance(p, str) for p in split_parts):
            raise ValueError(
                f"{prefix}: 'splitParts' must be a list of strings, got {split_parts!r}"
            )

    index = metadata.get("highlightWordIndex")
    if index is not None and (isinstance(index, bool) or not isinstance(index, int)):
        raise ValueError(f"{prefix}: 'highlightWordIndex' must be an integer, got {index!r}")


@dataclass(frozen=True)
class Caption:
    """One utterance with absolute timing and its ordered words."""
    text: str
    absolute_start: float
    absolute_end: float
    duration: float
    words: tuple[Word, ...] = ()
    metadata: dict = field(default_factory=dict)

    @property
    def keyword(self) -> str | None:
        return self.metadata.get("keyword") or None

    @property
    def split_parts(self) -> list[str] | None:
        return self.metadata.get("splitParts") or None

    @classmethod
    def from_dict(cls, data: dict, index: int = 0) -> "Caption":
        """Build a caption from a wire dict, validating word order.

        Raises:
            ValueError: Missing timing, words not in time order, or
                author hints (keyword, splitParts, highlightWordIndex) of
                the wrong type.
        """
        prefix = f"Caption {index}"
        abs_start = _pick(data, "absoluteStart", "absolute_start")
        abs_end = _pick(data, "absoluteEnd", "absolute_end")
        if abs_start is None or abs_end is None:
            raise ValueError(f"{prefix}: missing 'absoluteStart'/'absoluteEnd'")
        abs_start, abs_end = float(abs_start), float(abs_end)

        words = tuple(
            Word.from_dict(w, prefix=f"{prefix}, word {j}")
            for j, w in enumerate(data.get("words") or [])
        )
        for j in range(1, len(words)):
            if words[j].absolute_start < words[j - 1].absolute_start:
                raise ValueError(
                    f"{prefix}, word {j}: starts at {words[j].absolute_start}, "
                    f"before previous word ({words[j - 1].absolute_start})"
                )

        duration = data.get("duration")
        duration = abs_end - abs_start if duration is None else float(duration)
        text = data.get("text")
        if text is None:
            text = " ".join(w.text for w in words)

        metadata = data.get("metadata") or {}
        if not isinstance(metadata, dict):
            raise ValueError(f"{prefix}: 'metadata' must be a mapping")
        _validate_caption_metadata(metadata, prefix)

        return cls(
            text=str(text),
            absolute_start=abs_start,
            absolute_end=abs_end,
            duration=duration,
            words=words,
            metadata=dict(metadata),
        )

    def to_dict(self) -> dict:
        return {
            "text": self.text,
            "absoluteStart": self.absolute_start,
            "absoluteEnd": self.absolute_end,
            "duration": self.duration,
            "words": [w.to_dict() for w in self.words],
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class Part:
    """A contiguous display group of a caption's words.

    Carries no timing of its own beyond spanning the whole caption;
    word timing stays authoritative.
    """
    index: int
    words: tuple[Word, ...]
    start: float = 0.0
    duration: float = 0.0

    @property
    def text(self) -> str:
        return " ".join(w.text for w in self.words)

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "text": self.text,
            "start": self.start,
            "duration": self.duration,
            "words": [w.to_dict() for w in self.words],
        }


@dataclass(frozen=True)
class CaptionCharacteristics:
    """Pacing summary of one caption."""
    words_per_second: float
    is_fast_paced: bool
    is_slow_paced: bool
    has_high_variance: bool
    is_long: bool
    is_short: bool

    def to_dict(self) -> dict:
        return {
            "wordsPerSecond": self.words_per_second,
            "isFastPaced": self.is_fast_paced,
            "isSlowPaced": self.is_slow_paced,
            "hasHighVariance": self.has_high_variance,
            "isLong": self.is_long,
            "isShort": self.is_short,
        }


@dataclass(frozen=True)
class ProcessedCaption:
    """Output of process_captions for one caption."""
    caption: Caption
    parts: tuple[Part, ...]
    highlighted_indices: tuple[int, ...]
    characteristics: CaptionCharacteristics | None = None

    @property
    def words(self) -> tuple[Word, ...]:
        return self.caption.words

    def to_dict(self) -> dict:
        out = self.caption.to_dict()
        out["parts"] = [p.to_dict() for p in self.parts]
        out["highlightedIndices"] = list(self.highlighted_indices)
        if self.characteristics is not None:
            out["characteristics"] = self.characteristics.to_dict()
        return out
