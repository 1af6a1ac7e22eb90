"""cuecraft.common — shared scoring and heuristic utilities.

Contains: windowed neighbor averages, local-peak strength, population
variance, text normalization for keyword matching, and deterministic
argmax/tie-break helpers used by both the beat and caption selectors.
"""

import math
import re

import numpy as np


_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")


# ── Windowed statistics ────────────────────────────────────────────

def windowed_neighbor_means(values, half_window: int) -> np.ndarray:
    """Mean of each sample's ±half_window neighborhood, clipped at the ends.

    The neighborhood includes the sample itself. Computed with a cumulative
    sum so the cost is linear in the stream length.
    """
    arr = np.asarray(values, dtype=float)
    n = len(arr)
    if n == 0:
        return np.zeros(0)

    idx = np.arange(n)
    lo = np.maximum(0, idx - half_window)
    hi = np.minimum(n, idx + half_window + 1)

    csum = np.concatenate(([0.0], np.cumsum(arr)))
    return (csum[hi] - csum[lo]) / (hi - lo)


def local_peak_strengths(values, half_window: int) -> tuple[np.ndarray, np.ndarray]:
    """Return (neighbor_means, strengths) where strength = value - mean."""
    arr = np.asarray(values, dtype=float)
    means = windowed_neighbor_means(arr, half_window)
    return means, arr - means


def population_variance(values) -> float:
    """Population variance (divide by N). Empty input gives 0.0."""
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        return 0.0
    return float(np.var(arr))


def safe_duration(value: float | None, fallback: float) -> float:
    """Replace a missing, non-finite or non-positive duration with fallback."""
    if value is None:
        return fallback
    try:
        value = float(value)
    except (TypeError, ValueError):
        return fallback
    if not math.isfinite(value) or value <= 0:
        return fallback
    return value


# ── Text utilities ─────────────────────────────────────────────────

def normalize_token(text: str) -> str:
    """Lower-case and strip everything that is not an ASCII letter or digit."""
    return _NON_ALNUM.sub("", (text or "").lower())


def tokens_match(a: str, b: str) -> bool:
    """Substring match in either direction on already-normalized tokens.

    Empty tokens never match.
    """
    if not a or not b:
        return False
    return a in b or b in a


# ── Deterministic selection ───────────────────────────────────────

def first_argmax(values) -> int:
    """Index of the largest value, first occurrence on ties. -1 if empty."""
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        return -1
    # np.argmax already returns the first maximal index.
    return int(np.argmax(arr))
