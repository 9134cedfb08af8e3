"""
Data carried through mic/speaker fusion.

Every surviving mic word travels as one Token that holds both its original
text and its normalized form, so no stage can shift the two out of step.
Runs partition the token sequence: concatenating run tokens in order gives
back exactly the tokens that were labeled.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from meetscribe.asr.base import Segment
    from meetscribe.config import Settings

DEFAULT_FILLER_WORDS = frozenset({"uh", "um"})


class Speaker(str, Enum):
    """Label of a run. PRIMARY = local speaker (mic), REFERENCE = remote party (speaker channel)."""

    PRIMARY = "You"
    REFERENCE = "Them"


@dataclass(frozen=True)
class Word:
    """One whitespace-delimited mic word with the times of the segment it came from."""

    text: str
    segment: int = 0
    start: float = 0.0
    end: float = 0.0


@dataclass(frozen=True)
class Token:
    """
    One normalized word paired with the original text it renders as.

    text: original-case words carried by this token. Punctuation-only and filler
    words ride along on a neighbouring token; when one mic word normalizes to
    several tokens ("follow-up"), the first carries the text and the rest carry "".
    """

    text: str
    norm: str
    segment: int = 0
    start: float = 0.0
    end: float = 0.0


@dataclass
class Run:
    """Maximal contiguous span of tokens with the same label."""

    speaker: Speaker
    tokens: list[Token] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.tokens)

    @property
    def norm_words(self) -> list[str]:
        return [t.norm for t in self.tokens]

    @property
    def text(self) -> str:
        """Original-case text of the run."""
        return " ".join(t.text for t in self.tokens if t.text)

    def extended(self, other: "Run") -> "Run":
        """New run with other's tokens appended; label stays this run's."""
        return Run(speaker=self.speaker, tokens=self.tokens + other.tokens)


@dataclass(frozen=True)
class ReferenceChannel:
    """Speaker-channel evidence: its segments plus all their text normalized into one string."""

    segments: tuple["Segment", ...] = ()
    text: str = ""

    @property
    def words(self) -> list[str]:
        return self.text.split() if self.text else []


@dataclass
class FusionResult:
    """
    Outcome of one fusion call.

    degraded: speaker channel was empty; runs is empty and primary_text holds the
    filtered mic text to render unlabeled.
    """

    runs: list[Run]
    primary_text: str
    duration: float
    degraded: bool = False
    removed_words: int = 0  # dropped by the hallucination filter


@dataclass(frozen=True)
class FusionOptions:
    """Tunables for one fusion call. Values mirror Settings; see config.py for meaning."""

    run_length: int = 5
    label_strategy: str = "run_length"
    similarity_threshold: float = 0.6
    similarity_slack_seconds: float = 2.0
    min_gap_words: int = 7
    gap_policy: str = "unconditional"
    gap_anchor_words: int = 3
    gap_anchor_max_chars: int = 30
    hallucination_ngram: int = 8
    hallucination_window: int = 120
    hallucination_min_repeats: int = 3
    hallucination_keep_one: bool = False
    filler_words: frozenset = DEFAULT_FILLER_WORDS

    def __post_init__(self) -> None:
        if self.run_length < 1:
            raise ValueError(f"run_length must be >= 1, got {self.run_length}")
        if self.min_gap_words < 0:
            raise ValueError(f"min_gap_words must be >= 0, got {self.min_gap_words}")
        if self.hallucination_ngram < 1:
            raise ValueError(f"hallucination_ngram must be >= 1, got {self.hallucination_ngram}")
        if self.hallucination_min_repeats < 2:
            raise ValueError(f"hallucination_min_repeats must be >= 2, got {self.hallucination_min_repeats}")
        if self.gap_policy not in ("unconditional", "anchored"):
            raise ValueError(f"unknown gap policy: {self.gap_policy!r}")

    @classmethod
    def from_settings(cls, settings: "Settings") -> "FusionOptions":
        return cls(
            run_length=settings.RUN_LENGTH,
            label_strategy=settings.LABEL_STRATEGY,
            similarity_threshold=settings.SIMILARITY_THRESHOLD,
            similarity_slack_seconds=settings.SIMILARITY_SLACK_SECONDS,
            min_gap_words=settings.MIN_GAP_WORDS,
            gap_policy=settings.GAP_ABSORB_POLICY,
            gap_anchor_words=settings.GAP_ANCHOR_WORDS,
            gap_anchor_max_chars=settings.GAP_ANCHOR_MAX_CHARS,
            hallucination_ngram=settings.HALLUCINATION_NGRAM,
            hallucination_window=settings.HALLUCINATION_WINDOW,
            hallucination_min_repeats=settings.HALLUCINATION_MIN_REPEATS,
            hallucination_keep_one=settings.HALLUCINATION_KEEP_ONE,
            filler_words=settings.filler_words,
        )


def flatten(runs: Sequence[Run]) -> list[Token]:
    """Tokens of all runs in order."""
    return [t for run in runs for t in run.tokens]
