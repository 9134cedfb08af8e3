"""
GapAbsorber: folds short spurious You runs back into the surrounding Them turn.

One misheard word ("will" on the mic, "we'll" on the speaker channel) or a short
backchannel breaks a run-length match and splits a real Them turn in two. A You
run of at most min_gap_words sitting between two Them runs is absorbed into the
preceding Them run, then newly adjacent same-label runs are merged.

Policies:
- "unconditional": word count alone decides.
- "anchored": additionally, the tail of the previous Them run and the head of
  the next one must sit close together in the speaker text.

Either way a genuine short You contribution between two Them runs ends up
attributed to Them.
"""
from __future__ import annotations

import logging
from typing import Sequence

from meetscribe.fusion.models import Run, Speaker

logger = logging.getLogger(__name__)


def merge_adjacent(runs: Sequence[Run]) -> list[Run]:
    """Merge consecutive runs with the same label. Inputs are not modified."""
    merged: list[Run] = []
    for run in runs:
        if not run.tokens:
            continue
        if merged and merged[-1].speaker == run.speaker:
            merged[-1] = merged[-1].extended(run)
        else:
            merged.append(Run(speaker=run.speaker, tokens=list(run.tokens)))
    return merged


class GapAbsorber:
    def __init__(
        self,
        min_gap_words: int = 7,
        policy: str = "unconditional",
        anchor_words: int = 3,
        anchor_max_chars: int = 30,
    ) -> None:
        if policy not in ("unconditional", "anchored"):
            raise ValueError(f"unknown gap policy: {policy!r}")
        self._min_gap_words = min_gap_words
        self._policy = policy
        self._anchor_words = max(1, anchor_words)
        self._anchor_max_chars = anchor_max_chars

    @property
    def policy(self) -> str:
        return self._policy

    def _anchors_close(self, prev: Run, nxt: Run, reference_text: str) -> bool:
        """Previous run's tail and next run's head found within anchor_max_chars in the speaker text."""
        prev_tail = " ".join(prev.norm_words[-self._anchor_words:])
        next_head = " ".join(nxt.norm_words[: self._anchor_words])
        prev_pos = reference_text.rfind(prev_tail)
        if prev_pos == -1:
            return False
        next_pos = reference_text.find(next_head, prev_pos)
        if next_pos == -1:
            return False
        return next_pos - prev_pos < len(prev_tail) + self._anchor_max_chars

    def _should_absorb(self, prev: Run, curr: Run, nxt: Run | None, reference_text: str) -> bool:
        if nxt is None:
            return False
        if not (
            curr.speaker == Speaker.PRIMARY
            and prev.speaker == Speaker.REFERENCE
            and nxt.speaker == Speaker.REFERENCE
        ):
            return False
        if len(curr) > self._min_gap_words:
            return False
        if self._policy == "anchored":
            return self._anchors_close(prev, nxt, reference_text)
        return True

    def absorb(self, runs: Sequence[Run], reference_text: str = "") -> list[Run]:
        """Return new runs with short gaps absorbed and no two adjacent runs sharing a label."""
        runs = merge_adjacent(runs)
        if len(runs) < 3:
            return runs
        out: list[Run] = [runs[0]]
        absorbed = 0
        for i in range(1, len(runs)):
            curr = runs[i]
            nxt = runs[i + 1] if i + 1 < len(runs) else None
            if self._should_absorb(out[-1], curr, nxt, reference_text):
                out[-1] = out[-1].extended(curr)
                absorbed += 1
            else:
                out.append(curr)
        if absorbed:
            logger.debug("Absorbed %d short You gap(s) (%s policy)", absorbed, self._policy)
        return merge_adjacent(out)
