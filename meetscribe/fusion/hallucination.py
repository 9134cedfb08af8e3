"""
Removal of whisper hallucination loops.

On near-silent audio whisper tends to emit the same phrase over and over
("Thank you. Thank you. Thank you."). A phrase of `ngram` words repeated back
to back at least `min_repeats` times within `window` words is a loop: the
whole cluster is dropped (or collapsed to one copy with keep_one) and the scan
resumes right after it.

Passes repeat until nothing changes, so the result never contains a loop the
filter would remove: filter(filter(x)) == filter(x).
"""
from __future__ import annotations

import logging
from typing import Callable, Hashable, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

NGRAM = 8
WINDOW = 120
MIN_REPEATS = 3


def _find_loop_end(keys: Sequence[Hashable], start: int, ngram: int, window: int) -> tuple[int, int]:
    """Count back-to-back repeats of keys[start:start+ngram]. Returns (count, end index of last repeat)."""
    phrase = keys[start:start + ngram]
    limit = min(len(keys), start + max(window, ngram))
    count = 1
    end = start + ngram
    while end + ngram <= limit and keys[end:end + ngram] == phrase:
        count += 1
        end += ngram
    return count, end


def _single_pass(
    items: list[T],
    keys: list[Hashable],
    ngram: int,
    window: int,
    min_repeats: int,
    keep_one: bool,
) -> tuple[list[T], list[Hashable]]:
    out: list[T] = []
    out_keys: list[Hashable] = []
    n = len(items)
    i = 0
    while i < n:
        if i + ngram <= n:
            count, end = _find_loop_end(keys, i, ngram, window)
            if count >= min_repeats:
                logger.debug("Hallucination loop at word %d: %d x %d words", i, count, ngram)
                if keep_one:
                    out.extend(items[i:i + ngram])
                    out_keys.extend(keys[i:i + ngram])
                i = end
                continue
        out.append(items[i])
        out_keys.append(keys[i])
        i += 1
    return out, out_keys


def remove_repeated_phrases(
    items: Sequence[T],
    ngram: int = NGRAM,
    window: int = WINDOW,
    min_repeats: int = MIN_REPEATS,
    keep_one: bool = False,
    key: Callable[[T], Hashable] | None = None,
) -> list[T]:
    """
    Drop looping n-gram clusters from items. key maps an item to what is compared
    (default: the item itself). Items shorter than one n-gram at the tail are kept.
    """
    current = list(items)
    if ngram < 1 or min_repeats < 2 or len(current) < ngram * min_repeats:
        return current
    keys = [key(x) for x in current] if key is not None else list(current)
    while True:
        filtered, filtered_keys = _single_pass(current, keys, ngram, window, min_repeats, keep_one)
        if len(filtered) == len(current):
            return filtered
        current, keys = filtered, filtered_keys
