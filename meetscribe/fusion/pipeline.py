"""
fuse_channels: mic + speaker segments -> labeled runs.

The mic records everything (user voice + speaker bleed). The speaker recording
captures only the other participants. Flow:

    mic words -> hallucination filter -> tokens (original, normalized)
              -> run labeler (vs normalized speaker text) -> gap absorber

Pure and deterministic: no I/O, no clock, no settings lookups.
"""
from __future__ import annotations

import logging
from typing import Sequence

from meetscribe.asr.base import Segment
from meetscribe.fusion.dead_channel import is_dead_channel
from meetscribe.fusion.gaps import GapAbsorber
from meetscribe.fusion.hallucination import remove_repeated_phrases
from meetscribe.fusion.labelers import RunLabeler, build_reference, get_labeler
from meetscribe.fusion.models import FusionOptions, FusionResult, Word
from meetscribe.fusion.normalizer import comparison_key, split_words, tokenize

logger = logging.getLogger(__name__)


def session_duration(primary: Sequence[Segment]) -> float:
    """End time of the last mic segment, 0 when there are none."""
    return primary[-1].end if primary else 0.0


def filter_primary_words(words: Sequence[Word], options: FusionOptions) -> list[Word]:
    """Mic words with hallucination loops removed."""
    return remove_repeated_phrases(
        words,
        ngram=options.hallucination_ngram,
        window=options.hallucination_window,
        min_repeats=options.hallucination_min_repeats,
        keep_one=options.hallucination_keep_one,
        key=lambda w: comparison_key(w.text),
    )


def fuse_channels(
    primary: Sequence[Segment],
    reference: Sequence[Segment],
    options: FusionOptions | None = None,
    labeler: RunLabeler | None = None,
) -> FusionResult:
    """
    Label every mic word You or Them.

    primary: mic segments, chronological. reference: speaker segments, chronological.
    labeler: overrides options.label_strategy (used for strategy comparison).
    An empty speaker channel returns a degraded result with no runs.
    """
    options = options or FusionOptions()
    all_words = split_words(primary)
    words = filter_primary_words(all_words, options)
    removed = len(all_words) - len(words)
    if removed:
        logger.debug("Hallucination filter removed %d of %d mic words", removed, len(all_words))
    duration = session_duration(primary)
    primary_text = " ".join(w.text for w in words)

    if is_dead_channel(reference):
        logger.info("Speaker channel empty; skipping speaker separation (%d mic words)", len(words))
        return FusionResult(runs=[], primary_text=primary_text, duration=duration, degraded=True, removed_words=removed)

    tokens = tokenize(words, options.filler_words)
    ref = build_reference(reference, options.filler_words)
    labeler = labeler or get_labeler(options.label_strategy, options)
    runs = labeler.label(tokens, ref)
    logger.debug("%s labeler: %d tokens -> %d runs", labeler.name, len(tokens), len(runs))

    absorber = GapAbsorber(
        min_gap_words=options.min_gap_words,
        policy=options.gap_policy,
        anchor_words=options.gap_anchor_words,
        anchor_max_chars=options.gap_anchor_max_chars,
    )
    runs = absorber.absorb(runs, ref.text)
    logger.debug("After gap absorption: %d runs", len(runs))
    return FusionResult(runs=runs, primary_text=primary_text, duration=duration, removed_words=removed)
