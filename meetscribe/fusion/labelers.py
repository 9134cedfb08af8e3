"""
RunLabeler: assigns You/Them to every mic token using speaker-channel evidence.

Strategies share one interface, label(tokens, reference) -> runs:
- RunLengthLabeler (default): a window of run_length consecutive mic words that
  appears verbatim in the speaker text marks all of its words Them.
- TimestampOverlapLabeler: a mic segment overlapping any speaker segment in time is Them.
- SimilarityLabeler: a mic segment textually similar to a nearby speaker segment is Them.

The last two are kept for comparison runs (see services/evaluation.py).
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from difflib import SequenceMatcher
from typing import Iterable, Sequence

from meetscribe.asr.base import Segment
from meetscribe.fusion.models import DEFAULT_FILLER_WORDS, FusionOptions, ReferenceChannel, Run, Speaker, Token
from meetscribe.fusion.normalizer import normalize, normalize_text

logger = logging.getLogger(__name__)


def build_reference(
    segments: Sequence[Segment], filler_words: Iterable[str] = DEFAULT_FILLER_WORDS
) -> ReferenceChannel:
    """Concatenate speaker segments into one normalized string (not segment-aligned)."""
    text = normalize_text(" ".join(s.text for s in segments), filler_words)
    return ReferenceChannel(segments=tuple(segments), text=text)


def group_runs(tokens: Sequence[Token], is_them: Sequence[bool]) -> list[Run]:
    """
    Group tokens into maximal runs of identical label, preserving order.

    Trailing pieces of a split mic word (text "") follow the label of the piece
    before them, so one word never spans two runs.
    """
    runs: list[Run] = []
    for token, them in zip(tokens, is_them):
        speaker = Speaker.REFERENCE if them else Speaker.PRIMARY
        if runs and not token.text:
            runs[-1].tokens.append(token)
        elif runs and runs[-1].speaker == speaker:
            runs[-1].tokens.append(token)
        else:
            runs.append(Run(speaker=speaker, tokens=[token]))
    return runs


class RunLabeler(ABC):
    """Labels a normalized mic token sequence; the returned runs partition it."""

    name: str = ""

    @abstractmethod
    def label(self, tokens: Sequence[Token], reference: ReferenceChannel) -> list[Run]:
        ...


class RunLengthLabeler(RunLabeler):
    """
    Slide a run_length window over the mic tokens; a window whose space-joined
    text occurs in the speaker text marks every token in it Them. Marks only
    ever get added, so one hit labels the whole window even if neighbouring
    windows miss.
    """

    name = "run_length"

    def __init__(self, run_length: int = 5) -> None:
        if run_length < 1:
            raise ValueError(f"run_length must be >= 1, got {run_length}")
        self._run_length = run_length

    def mark(self, tokens: Sequence[Token], reference: ReferenceChannel) -> list[bool]:
        n = self._run_length
        is_them = [False] * len(tokens)
        reference_text = reference.text
        if len(tokens) < n or not reference_text:
            return is_them
        norms = [t.norm for t in tokens]
        for i in range(len(norms) - n + 1):
            if " ".join(norms[i:i + n]) in reference_text:
                for j in range(i, i + n):
                    is_them[j] = True
        return is_them

    def label(self, tokens: Sequence[Token], reference: ReferenceChannel) -> list[Run]:
        return group_runs(tokens, self.mark(tokens, reference))


def _overlaps(start: float, end: float, seg: Segment, slack: float = 0.0) -> bool:
    return seg.start < end + slack and seg.end > start - slack


class TimestampOverlapLabeler(RunLabeler):
    """Any mic segment that temporally overlaps a speaker segment is Them."""

    name = "timestamp"

    def label(self, tokens: Sequence[Token], reference: ReferenceChannel) -> list[Run]:
        verdicts: dict[int, bool] = {}
        is_them = []
        for token in tokens:
            if token.segment not in verdicts:
                verdicts[token.segment] = any(_overlaps(token.start, token.end, s) for s in reference.segments)
            is_them.append(verdicts[token.segment])
        return group_runs(tokens, is_them)


class SimilarityLabeler(RunLabeler):
    """
    A mic segment is Them when its text is close (SequenceMatcher ratio >= threshold)
    to a speaker segment within slack seconds of it: the mic picked up the speaker.
    """

    name = "similarity"

    def __init__(
        self,
        threshold: float = 0.6,
        slack_seconds: float = 2.0,
        filler_words: Iterable[str] = DEFAULT_FILLER_WORDS,
    ) -> None:
        self._threshold = threshold
        self._slack = slack_seconds
        self._fillers = frozenset(filler_words)

    def _best_ratio(self, text: str, start: float, end: float, reference: ReferenceChannel) -> float:
        best = 0.0
        for seg in reference.segments:
            if not _overlaps(start, end, seg, self._slack):
                continue
            candidate = " ".join(normalize(seg.text, self._fillers))
            if candidate:
                best = max(best, SequenceMatcher(None, text, candidate).ratio())
        return best

    def label(self, tokens: Sequence[Token], reference: ReferenceChannel) -> list[Run]:
        by_segment: dict[int, list[Token]] = {}
        for token in tokens:
            by_segment.setdefault(token.segment, []).append(token)
        verdicts = {}
        for idx, seg_tokens in by_segment.items():
            text = " ".join(t.norm for t in seg_tokens)
            first = seg_tokens[0]
            verdicts[idx] = self._best_ratio(text, first.start, first.end, reference) >= self._threshold
        return group_runs(tokens, [verdicts[t.segment] for t in tokens])


LABELERS = ("run_length", "timestamp", "similarity")


def get_labeler(name: str, options: FusionOptions | None = None) -> RunLabeler:
    """Build the labeling strategy called name, configured from options."""
    options = options or FusionOptions()
    if name == "run_length":
        return RunLengthLabeler(options.run_length)
    if name == "timestamp":
        return TimestampOverlapLabeler()
    if name == "similarity":
        return SimilarityLabeler(
            threshold=options.similarity_threshold,
            slack_seconds=options.similarity_slack_seconds,
            filler_words=options.filler_words,
        )
    raise ValueError(f"unknown label strategy: {name!r} (expected one of {', '.join(LABELERS)})")
