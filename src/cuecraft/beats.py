"""Impact-beat selection.

Picks a sparse, well-spread subset of "impact moments" from a dense
stream of audio-analysis events. Selected beats drive clip cuts in the
beat timeline (see timeline.py).

Pipeline:
  1. Score every event (intensity, local peak strength, frequency,
     spectral centroid).
  2. Greedy pass in descending score order, rejecting any event closer
     than min_time_diff to an accepted one.
  3. Fill pass over the still-unused candidates, same spacing rule.
  4. Return the accepted set in ascending time order.

When max_beats is 0 the target count is derived from the stream's tempo
and dynamics (calculate_optimal_beat_count).
"""
import logging
import math
from dataclasses import dataclass, field
from typing import Callable

import numpy as np

from .common import local_peak_strengths, population_variance, safe_duration
from .heuristics import BeatHeuristics, DEFAULT_BEAT_HEURISTICS
from .models import AnalysisEvent, ScoredEvent, validate_event_order

logger = logging.getLogger(__name__)


# ── Auto count ────────────────────────────────────────────────────

def calculate_optimal_beat_count(
    events: list[AnalysisEvent],
    window_duration: float | None,
    heuristics: BeatHeuristics = DEFAULT_BEAT_HEURISTICS,
) -> int:
    """Derive a beat count from tempo and dynamics of the stream.

    Tempo is events per minute over the window. Faster streams get more
    cuts; high intensity or frequency variance adds a bonus. The result
    is always within [min_count, max_count].

    Args:
        events: Analysis events inside the window.
        window_duration: Window length in seconds. None, zero or negative
            falls back to heuristics.fallback_window.
        heuristics: Tier boundaries, rates and bonuses.

    Returns:
        Target number of beats.
    """
    h = heuristics
    if not events:
        return max(h.min_count, min(h.empty_count, h.max_count))

    duration = safe_duration(window_duration, h.fallback_window)
    tempo = (len(events) / duration) * 60

    if tempo > h.fast_tempo:
        count = min(h.fast_cap, math.floor(duration * h.fast_rate))
    elif tempo > h.medium_tempo:
        count = min(h.medium_cap, math.floor(duration * h.medium_rate))
    else:
        count = min(h.slow_cap, math.floor(duration * h.slow_rate))

    intensity_var = population_variance([e.intensity for e in events])
    frequency_var = population_variance([e.frequency for e in events])

    if intensity_var > h.intensity_variance_threshold:
        count = min(count + h.intensity_variance_bonus, h.max_count)
    if frequency_var > h.frequency_variance_threshold:
        count = min(count + h.frequency_variance_bonus, h.max_count)

    count = max(h.min_count, min(count, h.max_count))
    logger.debug(
        f"Auto beat count: tempo={tempo:.1f}/min, "
        f"intensity_var={intensity_var:.3f}, frequency_var={frequency_var:.0f} "
        f"-> {count}"
    )
    return count


# ── Scoring ───────────────────────────────────────────────────────

def score_events(
    events: list[AnalysisEvent],
    heuristics: BeatHeuristics = DEFAULT_BEAT_HEURISTICS,
) -> list[ScoredEvent]:
    """Attach local-peak and weighted scores to every event, in input order."""
    if not events:
        return []

    h = heuristics
    intensities = np.array([e.intensity for e in events], dtype=float)
    means, strengths = local_peak_strengths(intensities, h.neighbor_window)

    scored = []
    for event, mean, strength in zip(events, means, strengths):
        strength = float(strength)
        is_peak = strength > h.local_peak_threshold

        intensity_score = event.intensity * h.w_intensity
        peak_score = strength * h.w_peak if is_peak else 0.0
        frequency_score = min(event.frequency / h.frequency_norm, 1.0) * h.w_frequency
        spectral_score = (event.spectral_centroid or 0.0) * h.w_spectral

        scored.append(ScoredEvent(
            event=event,
            avg_neighbor_intensity=float(mean),
            local_peak_strength=strength,
            is_local_peak=is_peak,
            intensity_score=intensity_score,
            peak_score=peak_score,
            frequency_score=frequency_score,
            spectral_score=spectral_score,
            total_score=intensity_score + peak_score + frequency_score + spectral_score,
        ))
    return scored


# ── Selection ─────────────────────────────────────────────────────

def _too_close(timestamp: float, accepted: list[float], min_time_diff: float) -> bool:
    return any(abs(timestamp - t) < min_time_diff for t in accepted)


def select_impactful_beats(
    events: list[AnalysisEvent],
    max_count: int = 30,
    min_time_diff: float = 0.5,
    heuristics: BeatHeuristics = DEFAULT_BEAT_HEURISTICS,
) -> list[ScoredEvent]:
    """Greedily select the highest-impact events subject to spacing.

    Candidates are ranked by total score, ties broken by ascending
    timestamp, so the result never depends on input array order. The
    fill pass revisits unused candidates in the same ranking and still
    enforces min_time_diff against everything accepted so far.

    Args:
        events: Analysis events in ascending time order.
        max_count: Maximum number of beats to return.
        min_time_diff: Minimum spacing in seconds between returned beats.
        heuristics: Scoring weights and thresholds.

    Returns:
        Selected events sorted ascending by timestamp.
    """
    if not events or max_count <= 0:
        return []

    scored = score_events(events, heuristics)
    order = sorted(
        range(len(scored)),
        key=lambda i: (-scored[i].total_score, scored[i].timestamp),
    )

    accepted_idx: list[int] = []
    accepted_ts: list[float] = []
    used = set()

    for i in order:
        if len(accepted_idx) >= max_count:
            break
        ts = scored[i].timestamp
        if not _too_close(ts, accepted_ts, min_time_diff):
            accepted_idx.append(i)
            accepted_ts.append(ts)
            used.add(i)

    if len(accepted_idx) < max_count:
        for i in order:
            if len(accepted_idx) >= max_count:
                break
            if i in used:
                continue
            ts = scored[i].timestamp
            if not _too_close(ts, accepted_ts, min_time_diff):
                accepted_idx.append(i)
                accepted_ts.append(ts)
                used.add(i)

    selected = sorted((scored[i] for i in accepted_idx), key=lambda s: s.timestamp)
    logger.info(
        f"Selected {len(selected)} of {len(events)} events "
        f"(max={max_count}, min_time_diff={min_time_diff}s)"
    )
    return selected


def select_beats(
    events: list[AnalysisEvent],
    max_beats: int = 0,
    min_time_diff: float = 0.5,
    window_duration: float | None = None,
    heuristics: BeatHeuristics = DEFAULT_BEAT_HEURISTICS,
) -> list[ScoredEvent]:
    """Select beats, deriving the count from the stream when max_beats is 0."""
    if not events:
        return []

    if max_beats == 0:
        max_beats = calculate_optimal_beat_count(events, window_duration, heuristics)
    return select_impactful_beats(events, max_beats, min_time_diff, heuristics)


# ── Analysis windowing ────────────────────────────────────────────

def clip_analysis_window(
    events: list[AnalysisEvent],
    start: float = 0.0,
    duration: float | None = None,
) -> list[AnalysisEvent]:
    """Keep events inside [start, start + duration] and rebase to start.

    An audio track placed at 54s of a video has its beat at 54.5s shown
    at 0.5s. With duration None (or 0) there is no upper bound.
    """
    end = start + duration if duration else None
    clipped = []
    for e in events:
        if e.timestamp < start:
            continue
        if end is not None and e.timestamp > end:
            continue
        clipped.append(AnalysisEvent(
            timestamp=e.timestamp - start,
            intensity=e.intensity,
            frequency=e.frequency,
            spectral_centroid=e.spectral_centroid,
            extra=dict(e.extra),
        ))
    return clipped


# ── Fetch-then-select ────────────────────────────────────────────

@dataclass
class BeatPlan:
    """Beats chosen for one audio window, ready for the timeline builder."""
    beats: list[ScoredEvent] = field(default_factory=list)
    duration_in_seconds: float = 0.0  # full audio length reported upstream
    window_duration: float = 0.0  # length of the analyzed window

    @property
    def is_empty(self) -> bool:
        return not self.beats

    def to_dict(self) -> dict:
        return {
            "durationInSeconds": self.duration_in_seconds,
            "windowDuration": self.window_duration,
            "beats": [b.to_dict() for b in self.beats],
        }


def plan_beat_cuts(
    fetch_analysis: Callable[[str], dict],
    audio_src: str,
    start: float = 0.0,
    duration: float | None = None,
    max_beats: int = 0,
    min_time_diff: float = 0.5,
    heuristics: BeatHeuristics = DEFAULT_BEAT_HEURISTICS,
) -> BeatPlan:
    """Fetch pre-computed analysis once, then select beats in the window.

    The fetcher is called exactly once and any exception it raises
    propagates unchanged. A missing or empty analysis gives an empty plan
    (no beat-synced cuts). Out-of-order events raise ValueError.

    Args:
        fetch_analysis: Callable returning
            {"analysis": [...], "durationInSeconds": float, "summary"?: any}.
        audio_src: Audio source identifier passed to the fetcher.
        start: Where the audio starts (seconds into the analysis).
        duration: Length of the audio window, None for "until the end".
        max_beats: Beat count, 0 for auto.
        min_time_diff: Minimum spacing between beats.
        heuristics: Beat heuristics profile.
    """
    result = fetch_analysis(audio_src) or {}
    raw = result.get("analysis") or []
    total = float(result.get("durationInSeconds") or 0.0)

    if not raw:
        logger.warning(f"No analysis events for {audio_src}; returning empty plan")
        return BeatPlan(duration_in_seconds=total)

    events = [AnalysisEvent.from_dict(d, i) for i, d in enumerate(raw)]
    validate_event_order(events)
    window = clip_analysis_window(events, start, duration)
    window_duration = safe_duration(duration, heuristics.fallback_window)

    beats = select_beats(
        window,
        max_beats=max_beats,
        min_time_diff=min_time_diff,
        window_duration=window_duration,
        heuristics=heuristics,
    )
    return BeatPlan(
        beats=beats,
        duration_in_seconds=total,
        window_duration=window_duration,
    )
