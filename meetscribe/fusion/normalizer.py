"""Text normalization for mic/speaker comparison, and mic word → token pairing."""
from __future__ import annotations

import re
from typing import Iterable, Sequence

from meetscribe.fusion.models import DEFAULT_FILLER_WORDS, Token, Word

_HYPHENS = re.compile(r"[-‐‑‒–—]")
_PUNCT = re.compile(r"[^\w\s]")
_SPACES = re.compile(r"\s+")


def normalize(text: str, filler_words: Iterable[str] = DEFAULT_FILLER_WORDS) -> list[str]:
    """
    Lowercase, hyphens to spaces, strip punctuation, collapse whitespace, drop fillers.

    "Well-known, uh, facts." -> ["well", "known", "facts"]. Never raises; "" -> [].
    """
    if not text:
        return []
    fillers = filler_words if isinstance(filler_words, (set, frozenset)) else frozenset(filler_words)
    s = _HYPHENS.sub(" ", text.lower())
    s = _PUNCT.sub("", s)
    return [w for w in _SPACES.split(s.strip()) if w and w not in fillers]


def normalize_text(text: str, filler_words: Iterable[str] = DEFAULT_FILLER_WORDS) -> str:
    """normalize() joined with single spaces."""
    return " ".join(normalize(text, filler_words))


def comparison_key(word: str) -> str:
    """Key used to compare raw words for repeats: case and punctuation insensitive, fillers kept."""
    return " ".join(normalize(word, ()))


def split_words(segments: Sequence) -> list[Word]:
    """Whitespace-split every segment's text into Words that remember their segment."""
    words: list[Word] = []
    for idx, seg in enumerate(segments):
        for w in (seg.text or "").split():
            words.append(Word(text=w, segment=idx, start=seg.start, end=seg.end))
    return words


def tokenize(words: Sequence[Word], filler_words: Iterable[str] = DEFAULT_FILLER_WORDS) -> list[Token]:
    """
    Pair each surviving normalized token with the original text it came from.

    Words that normalize to nothing (fillers, stray punctuation) are appended to
    the previous token's text, or prefixed to the next one at the very start,
    so the rendered transcript keeps every original word.
    """
    fillers = frozenset(filler_words)
    tokens: list[Token] = []
    pending: list[str] = []
    for word in words:
        pieces = normalize(word.text, fillers)
        if not pieces:
            if tokens:
                last = tokens[-1]
                tokens[-1] = Token(
                    text=f"{last.text} {word.text}" if last.text else word.text,
                    norm=last.norm,
                    segment=last.segment,
                    start=last.start,
                    end=last.end,
                )
            else:
                pending.append(word.text)
            continue
        for i, piece in enumerate(pieces):
            text = word.text if i == 0 else ""
            if pending and i == 0:
                text = " ".join(pending + [text])
                pending = []
            tokens.append(Token(text=text, norm=piece, segment=word.segment, start=word.start, end=word.end))
    return tokens
