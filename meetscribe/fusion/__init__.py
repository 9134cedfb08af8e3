"""
Mic/speaker transcript fusion.

- Text-level only: no audio alignment, no voice embeddings.
- Two channels, two labels: You (mic) and Them (speaker channel).

Limitations:
- A short genuine You remark between two Them turns is absorbed into Them.
- Speech present only on the mic is always You, even if the remote party said it
  and the speaker channel missed it.
"""
from __future__ import annotations

from meetscribe.fusion.dead_channel import is_dead_channel
from meetscribe.fusion.gaps import GapAbsorber, merge_adjacent
from meetscribe.fusion.hallucination import remove_repeated_phrases
from meetscribe.fusion.labelers import (
    LABELERS,
    RunLabeler,
    RunLengthLabeler,
    SimilarityLabeler,
    TimestampOverlapLabeler,
    build_reference,
    get_labeler,
    group_runs,
)
from meetscribe.fusion.models import FusionOptions, FusionResult, ReferenceChannel, Run, Speaker, Token, Word
from meetscribe.fusion.normalizer import normalize, normalize_text, tokenize
from meetscribe.fusion.pipeline import fuse_channels

__all__ = [
    "LABELERS",
    "FusionOptions",
    "FusionResult",
    "GapAbsorber",
    "ReferenceChannel",
    "Run",
    "RunLabeler",
    "RunLengthLabeler",
    "SimilarityLabeler",
    "Speaker",
    "TimestampOverlapLabeler",
    "Token",
    "Word",
    "build_reference",
    "fuse_channels",
    "get_labeler",
    "group_runs",
    "is_dead_channel",
    "merge_adjacent",
    "normalize",
    "normalize_text",
    "remove_repeated_phrases",
    "tokenize",
]
