"""Beat timeline -- clip segments derived from selected beats.

Maps an ascending beat list onto per-clip timing windows for the
external tree builder:

  0 ────── b0 ─────────── b1 ──────── b2 ─────────── window_end
  │ lead-in │  segment 0   │ segment 1 │  segment 2   │

  - lead-in: window origin to the first beat (skipped when b0 == 0).
  - segment k: beat k to beat k+1; the last one runs to the window end.
  - overlap: each internal boundary is widened by overlap/2 on both
    sides, so neighbouring clips intersect instead of flashing black.
    Beat timestamps themselves are never moved.

Clip assignment: the lead-in uses clip 0 and segment k uses clip k+1.
With repeat_clips the sequence wraps around; without it, segments past
the last clip are dropped.
"""

from .heuristics import TimelineHeuristics, DEFAULT_TIMELINE_HEURISTICS
from .models import ScoredEvent


def select_transition(
    intensity: float,
    time_diff: float,
    heuristics: TimelineHeuristics = DEFAULT_TIMELINE_HEURISTICS,
) -> dict:
    """Choose a cut effect for a beat from its intensity and the gap after it.

    Returns:
        {"effect": str, "duration": float, "shake": bool}
    """
    h = heuristics
    if time_diff < h.fast_cut_gap:
        effect, duration = "blur-in-cut", h.fast_cut_duration
    elif intensity > h.high_intensity and time_diff < h.close_cut_gap:
        effect, duration = "shake-in-cut", h.fast_cut_duration
    elif intensity > h.high_intensity:
        effect, duration = "scale-in-cut", h.high_cut_duration
    elif intensity > h.medium_intensity:
        effect, duration = "scale-in-cut", h.medium_cut_duration
    else:
        effect, duration = "scale-in-cut", h.low_cut_duration

    return {
        "effect": effect,
        "duration": duration,
        "shake": intensity > h.high_intensity,
    }


def _clip_index(segment: int, clip_count: int | None, repeat_clips: bool) -> int | None:
    """Clip for beat segment `segment` (clip 0 belongs to the lead-in)."""
    if not clip_count:
        return None
    idx = segment + 1
    if repeat_clips:
        return idx % clip_count
    return idx if idx < clip_count else -1


def build_beat_timeline(
    beats: list[ScoredEvent],
    window_end: float | None = None,
    clip_count: int | None = None,
    repeat_clips: bool = True,
    heuristics: TimelineHeuristics = DEFAULT_TIMELINE_HEURISTICS,
) -> list[dict]:
    """Build clip segments from ascending beats.

    Args:
        beats: Selected beats, ascending by timestamp.
        window_end: End of the audio window in seconds. None means the
            last segment gets heuristics.last_segment_default seconds.
        clip_count: Number of available clips, or None to skip assignment.
        repeat_clips: Cycle through clips when there are more segments.
        heuristics: Overlap and transition tuning.

    Returns:
        List of segment dicts:
          {id, kind, beat_index, clip_index, start, duration,
           base_start, base_duration, transition}
        kind is "lead-in" or "beat"; beat_index is None for the lead-in.
        A beat's transition is chosen from the gap to the next beat; the
        last beat always uses heuristics.last_segment_default as its gap,
        whatever the window end.
    """
    if not beats:
        return []

    h = heuristics
    half = h.overlap / 2

    # ── Base windows (no overlap) ─────────────────────────────────
    windows = []
    first_ts = beats[0].timestamp
    if first_ts > 0:
        windows.append(("lead-in", None, 0.0, first_ts))

    for i, beat in enumerate(beats):
        if i + 1 < len(beats):
            end = beats[i + 1].timestamp
        elif window_end is not None and window_end > beat.timestamp:
            end = window_end
        else:
            end = beat.timestamp + h.last_segment_default
        windows.append(("beat", i, beat.timestamp, end))

    timeline_end = windows[-1][3]

    # ── Widen internal boundaries and assign clips ────────────────
    segments = []
    for n, (kind, beat_idx, base_start, base_end) in enumerate(windows):
        if kind == "lead-in":
            clip_idx = 0 if clip_count else None
        else:
            clip_idx = _clip_index(beat_idx, clip_count, repeat_clips)
            if clip_idx == -1:
                continue

        start = base_start - half if n > 0 else base_start
        end = base_end + half if n < len(windows) - 1 else base_end
        start = max(0.0, start)
        end = min(timeline_end, end)

        if kind == "beat":
            beat = beats[beat_idx]
            gap = (
                beats[beat_idx + 1].timestamp - beat.timestamp
                if beat_idx + 1 < len(beats) else h.last_segment_default
            )
            transition = select_transition(beat.intensity, gap, h)
            seg_id = f"beat-clip-{beat_idx}"
        else:
            transition = None
            seg_id = "beat-clip-first"

        segments.append({
            "id": seg_id,
            "kind": kind,
            "beat_index": beat_idx,
            "clip_index": clip_idx,
            "start": start,
            "duration": end - start,
            "base_start": base_start,
            "base_duration": base_end - base_start,
            "transition": transition,
        })

    return segments
