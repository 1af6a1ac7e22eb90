"""Caption segmentation, emphasis selection and gap closing.

process_captions runs a transcript through four steps:

  A. split_compound_words -- words whose text holds several tokens are
     split into sub-words with evenly divided timing.
  B. split_into_parts     -- each caption's words are grouped into display
     parts, from author hint phrases (metadata.splitParts) or a
     character budget per part.
  C. select_highlights    -- one word is emphasized, from the author
     keyword (metadata.keyword) or a word-duration heuristic.
  D. apply_no_gaps        -- captions are extended into the silence
     before the next caption, up to a maximum.

Every step returns new records; inputs are never modified.
"""
import logging
import math
import random
from dataclasses import replace

from .common import first_argmax, normalize_token, tokens_match
from .heuristics import (
    CaptionHeuristics,
    CaptionOptions,
    DEFAULT_CAPTION_HEURISTICS,
    VALID_HIGHLIGHT_MODES,
)
from .models import Caption, CaptionCharacteristics, Part, ProcessedCaption, Word

logger = logging.getLogger(__name__)


# ── Step A: sub-word pre-split ───────────────────────────────────

def split_compound_words(caption: Caption) -> Caption:
    """Split multi-token words into sub-words with proportional timing.

    Each emitted word records the index of the word it came from in
    original_word_index; sub-words are flagged with is_sub_word.
    """
    words = []
    for i, word in enumerate(caption.words):
        source_index = word.original_word_index if word.original_word_index is not None else i
        tokens = word.text.split()

        if len(tokens) <= 1:
            words.append(replace(word, original_word_index=source_index))
            continue

        sub_duration = word.duration / len(tokens)
        for k, token in enumerate(tokens):
            sub_abs_start = word.absolute_start + k * sub_duration
            words.append(replace(
                word,
                text=token,
                start=word.start + k * sub_duration,
                duration=sub_duration,
                absolute_start=sub_abs_start,
                absolute_end=sub_abs_start + sub_duration,
                metadata=dict(word.metadata),
                original_word_index=source_index,
                is_sub_word=True,
            ))

    return replace(caption, words=tuple(words))


# ── Step B: part segmentation ────────────────────────────────────

def _split_by_hints(words: list[Word], split_parts: list[str]) -> list[list[Word]]:
    """Consume words greedily against each hint phrase, in order."""
    parts = []
    cursor = 0

    for phrase in split_parts:
        target = phrase.strip().lower()
        target_tokens = target.split()
        if not target_tokens:
            continue

        part = []
        while cursor < len(words):
            text = words[cursor].text.lower()
            if text in target or target_tokens[0] in text:
                part.append(words[cursor])
                cursor += 1
                if len(part) >= len(target_tokens):
                    break
            else:
                break

        if part:
            parts.append(part)

    if cursor < len(words):
        if parts:
            parts[-1].extend(words[cursor:])
        else:
            parts.append(list(words[cursor:]))

    return parts


def _split_by_characters(words: list[Word], max_lines: int) -> list[list[Word]]:
    """Fill parts up to ceil(total_chars / max_lines) characters each."""
    total_chars = sum(len(w.text) for w in words)
    target_chars = math.ceil(total_chars / max_lines)

    parts = []
    current = []
    count = 0
    for i, word in enumerate(words):
        current.append(word)
        count += len(word.text)
        if count >= target_chars or i == len(words) - 1:
            parts.append(current)
            current = []
            count = 0

    if len(parts) > max_lines:
        last = parts.pop()
        parts[-1] = parts[-1] + last

    return parts


def split_into_parts(
    words,
    max_lines: int | None = None,
    split_parts: list[str] | None = None,
    heuristics: CaptionHeuristics = DEFAULT_CAPTION_HEURISTICS,
) -> list[list[Word]]:
    """Group words into contiguous display parts, preserving order.

    Args:
        words: The caption's words.
        max_lines: Target number of parts for character-budget splitting
            (defaults to heuristics.default_max_lines).
        split_parts: Author hint phrases; when given they take precedence.
        heuristics: Caption heuristics profile.

    Returns:
        List of word lists. Empty input gives no parts; a single word is
        never split.
    """
    words = list(words)
    if not words:
        return []

    if split_parts:
        parts = _split_by_hints(words, split_parts)
        return parts if parts else [words]

    if len(words) <= 1:
        return [words]

    return _split_by_characters(words, max_lines or heuristics.default_max_lines)


def build_parts(
    words,
    duration: float,
    max_lines: int | None = None,
    split_parts: list[str] | None = None,
    heuristics: CaptionHeuristics = DEFAULT_CAPTION_HEURISTICS,
) -> tuple[Part, ...]:
    """split_into_parts wrapped as Part records spanning the caption."""
    groups = split_into_parts(words, max_lines, split_parts, heuristics)
    return tuple(
        Part(index=i, words=tuple(group), start=0.0, duration=duration)
        for i, group in enumerate(groups)
    )


# ── Step C: emphasis selection ───────────────────────────────────

def match_keyword(words, keyword: str) -> list[int]:
    """Indices of words matching any token of the keyword.

    Both sides are normalized (alphanumerics only, lower case); a match is
    a substring relation in either direction.
    """
    keys = [normalize_token(k) for k in keyword.lower().split()]
    keys = [k for k in keys if k]
    if not keys:
        return []

    matches = []
    for i, word in enumerate(words):
        clean = normalize_token(word.text)
        if any(tokens_match(clean, k) for k in keys):
            matches.append(i)
    return matches


def significant_word_indices(
    words,
    heuristics: CaptionHeuristics = DEFAULT_CAPTION_HEURISTICS,
) -> list[int]:
    """Words lasting >= 80% of the mean or >= 70% of the max duration."""
    durations = [w.duration for w in words]
    if not durations:
        return []
    mean = sum(durations) / len(durations)
    longest = max(durations)
    return [
        i for i, d in enumerate(durations)
        if d >= mean * heuristics.significant_mean_ratio
        or d >= longest * heuristics.significant_max_ratio
    ]


def pick_significant_word(
    words,
    mode: str = "longest",
    rng: random.Random | None = None,
    heuristics: CaptionHeuristics = DEFAULT_CAPTION_HEURISTICS,
) -> int:
    """Pick one word to emphasize from durations alone.

    "longest" takes the longest significant word, first occurrence on
    ties. "random" draws uniformly among significant words from rng.
    With no significant word the absolute longest is used. Returns -1
    only for an empty word list.
    """
    words = list(words)
    if not words:
        return -1

    candidates = significant_word_indices(words, heuristics)
    if not candidates:
        return first_argmax([w.duration for w in words])

    if mode == "random":
        rng = rng or random.Random()
        return candidates[rng.randrange(len(candidates))]

    best = candidates[0]
    for i in candidates[1:]:
        if words[i].duration > words[best].duration:
            best = i
    return best


def _expand_to_whole_words(words, indices: list[int]) -> list[int]:
    sources = {words[i].original_word_index for i in indices}
    sources.discard(None)
    expanded = set(indices)
    for i, word in enumerate(words):
        if word.original_word_index in sources:
            expanded.add(i)
    return sorted(expanded)


def select_highlights(
    words,
    keyword: str | None = None,
    highlight_word_index: int | None = None,
    parts: list[list[Word]] | None = None,
    mode: str = "longest",
    rng: random.Random | None = None,
    whole_word: bool = False,
    heuristics: CaptionHeuristics = DEFAULT_CAPTION_HEURISTICS,
) -> list[int]:
    """Choose which words of a caption to emphasize.

    Order of precedence:
      1. keyword matches (every matching word is emphasized);
      2. author-supplied highlight_word_index, when in range;
      3. the duration heuristic -- once per caption, or once per part
         when parts are given.

    Args:
        words: The caption's words, in order.
        keyword: Author keyword hint.
        highlight_word_index: Author word index hint.
        parts: Per-part emphasis; one heuristic pick within each part.
        mode: "longest" (deterministic) or "random".
        rng: Random source for "random" mode.
        whole_word: Extend each pick to every sub-word of its source word.
        heuristics: Caption heuristics profile.

    Returns:
        Ascending word indices.
    """
    words = list(words)
    if not words:
        return []
    if mode not in VALID_HIGHLIGHT_MODES:
        raise ValueError(
            f"Unknown highlight mode '{mode}'. Valid: {sorted(VALID_HIGHLIGHT_MODES)}"
        )

    indices = match_keyword(words, keyword) if keyword else []

    if not indices and highlight_word_index is not None:
        if 0 <= highlight_word_index < len(words):
            indices = [highlight_word_index]

    if not indices:
        if parts:
            offset = 0
            for group in parts:
                pick = pick_significant_word(group, mode, rng, heuristics)
                if pick >= 0:
                    indices.append(offset + pick)
                offset += len(group)
        else:
            indices = [pick_significant_word(words, mode, rng, heuristics)]

    if whole_word:
        indices = _expand_to_whole_words(words, indices)
    return sorted(set(indices))


def mark_highlights(caption: Caption, indices) -> Caption:
    """Return a copy with metadata.isHighlight set on every word."""
    chosen = set(indices)
    words = tuple(
        replace(word, metadata={**word.metadata, "isHighlight": i in chosen})
        for i, word in enumerate(caption.words)
    )
    return replace(caption, words=words)


# ── Step D: gap closing ──────────────────────────────────────────

def apply_no_gaps(captions: list[Caption], max_extension_length: float = 3.0) -> list[Caption]:
    """Extend each caption into the silence before the next one.

    The extension is min(gap, max_extension_length). The caption's
    duration grows by it and its absolute_end becomes absolute_start plus
    the new duration; the last word's duration and absolute_end grow by
    the same amount and earlier words are untouched. Re-applying to
    output whose gaps are closed changes nothing; a gap wider than the
    maximum is only partly closed and extends again on re-application.
    """
    result = list(captions)
    for i in range(len(result) - 1):
        current = result[i]
        gap = result[i + 1].absolute_start - current.absolute_end
        if gap <= 0:
            continue

        extension = min(gap, max_extension_length)
        words = current.words
        if words:
            last = words[-1]
            words = words[:-1] + (replace(
                last,
                duration=last.duration + extension,
                absolute_end=last.absolute_end + extension,
            ),)

        duration = current.duration + extension
        result[i] = replace(
            current,
            duration=duration,
            absolute_end=current.absolute_start + duration,
            words=words,
        )
        logger.debug(f"Caption {i}: extended by {extension:.3f}s (gap {gap:.3f}s)")
    return result


# ── Timing offset and pacing ─────────────────────────────────────

def offset_captions(captions: list[Caption], negative_offset: float) -> list[Caption]:
    """Shift captions (and their words' absolute times) earlier."""
    if not negative_offset:
        return list(captions)
    shifted = []
    for caption in captions:
        words = tuple(
            replace(
                w,
                absolute_start=w.absolute_start - negative_offset,
                absolute_end=w.absolute_end - negative_offset,
            )
            for w in caption.words
        )
        shifted.append(replace(
            caption,
            absolute_start=caption.absolute_start - negative_offset,
            absolute_end=caption.absolute_end - negative_offset,
            words=words,
        ))
    return shifted


def analyze_caption(
    caption: Caption,
    heuristics: CaptionHeuristics = DEFAULT_CAPTION_HEURISTICS,
) -> CaptionCharacteristics:
    """Summarize pacing: speaking rate, duration spread and length."""
    h = heuristics
    durations = [w.duration for w in caption.words]
    wps = len(durations) / caption.duration if caption.duration > 0 else 0.0

    if durations:
        mean = sum(durations) / len(durations)
        spread = max(durations) - min(durations)
        high_variance = spread > mean * h.high_variance_ratio
    else:
        high_variance = False

    return CaptionCharacteristics(
        words_per_second=wps,
        is_fast_paced=wps > h.fast_words_per_second,
        is_slow_paced=wps < h.slow_words_per_second,
        has_high_variance=high_variance,
        is_long=caption.duration > h.long_caption_seconds,
        is_short=caption.duration < h.short_caption_seconds,
    )


# ── Pipeline ─────────────────────────────────────────────────────

def _as_caption(obj, index: int) -> Caption:
    if isinstance(obj, Caption):
        return obj
    return Caption.from_dict(obj, index)


def process_captions(
    captions,
    options: CaptionOptions | None = None,
    heuristics: CaptionHeuristics = DEFAULT_CAPTION_HEURISTICS,
    rng: random.Random | None = None,
) -> list[ProcessedCaption]:
    """Run the full segmentation and emphasis pipeline on a transcript.

    Args:
        captions: Caption records or wire dicts, in transcript order.
        options: Caller options (max_lines, no_gaps, offsets, emphasis).
        heuristics: Caption heuristics profile.
        rng: Random source, only used with highlight_mode "random".

    Returns:
        One ProcessedCaption per input caption, same order. Captions
        without words are passed through with no parts or highlights.
    """
    options = options or CaptionOptions()
    records = [_as_caption(c, i) for i, c in enumerate(captions)]

    records = [split_compound_words(c) for c in records]
    records = offset_captions(records, options.negative_offset)
    if options.no_gaps.enabled:
        records = apply_no_gaps(records, options.no_gaps.max_length)

    processed = []
    for caption in records:
        if not caption.words:
            processed.append(ProcessedCaption(caption=caption, parts=(), highlighted_indices=()))
            continue

        use_meta = not options.disable_metadata
        hints = caption.split_parts if use_meta else None
        groups = split_into_parts(caption.words, options.max_lines, hints, heuristics)
        indices = select_highlights(
            caption.words,
            keyword=caption.keyword if use_meta else None,
            highlight_word_index=caption.metadata.get("highlightWordIndex") if use_meta else None,
            parts=groups if options.per_part_emphasis else None,
            mode=options.highlight_mode,
            rng=rng,
            whole_word=options.highlight_whole_word,
            heuristics=heuristics,
        )

        marked = mark_highlights(caption, indices)
        # Built from the marked words so parts carry isHighlight.
        parts = build_parts(
            marked.words, marked.duration, options.max_lines, hints, heuristics,
        )

        processed.append(ProcessedCaption(
            caption=marked,
            parts=parts,
            highlighted_indices=tuple(indices),
            characteristics=analyze_caption(marked, heuristics),
        ))

    logger.info(f"Processed {len(processed)} captions")
    return processed
