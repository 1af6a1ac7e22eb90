"""Shared test fixtures for cuecraft tests."""

import json

import pytest


def make_word(text, absolute_start, duration, caption_start=0.0, **extra):
    """Return a wire-format word dict."""
    return {
        "text": text,
        "start": absolute_start - caption_start,
        "duration": duration,
        "absoluteStart": absolute_start,
        "absoluteEnd": absolute_start + duration,
        "confidence": 1.0,
        **extra,
    }


def make_caption(rows, metadata=None, start=None, end=None):
    """Return a wire-format caption dict from [(text, abs_start, duration), ...].

    Caption bounds default to the first word start and last word end.
    """
    if start is None:
        start = rows[0][1] if rows else 0.0
    words = [make_word(t, s, d, caption_start=start) for t, s, d in rows]
    if end is None:
        end = words[-1]["absoluteEnd"] if words else start
    return {
        "text": " ".join(t for t, _, _ in rows),
        "absoluteStart": start,
        "absoluteEnd": end,
        "duration": end - start,
        "words": words,
        "metadata": metadata or {},
    }


@pytest.fixture
def alternating_analysis():
    """Ten events at t=0..9 alternating intensity 0.9 / 0.1."""
    return {
        "analysis": [
            {"timestamp": float(t), "intensity": 0.9 if t % 2 == 0 else 0.1, "frequency": 0.0}
            for t in range(10)
        ],
        "durationInSeconds": 10.0,
    }


@pytest.fixture
def analysis_file(tmp_path, alternating_analysis):
    """alternating_analysis written to a JSON file."""
    path = tmp_path / "song.analysis.json"
    path.write_text(json.dumps(alternating_analysis))
    return path


@pytest.fixture
def transcript_file(tmp_path):
    """Two captions with a 2s gap, the first carrying a keyword hint."""
    captions = [
        make_caption(
            [("We", 0.0, 1.0), ("light", 1.0, 1.5), ("the", 2.5, 0.5), ("fire", 3.0, 2.0)],
            metadata={"keyword": "fire"},
        ),
        make_caption([("Hello", 7.0, 2.5), ("world", 9.5, 2.5)]),
    ]
    path = tmp_path / "talk.transcript.json"
    path.write_text(json.dumps({"captions": captions}))
    return path
