"""
TranscriptionEngine: abstract interface for Whisper-compatible ASR over recorded files.

Implementations: LocalWhisperEngine (faster-whisper), CloudflareWhisperEngine.
All run heavy work in executor to avoid blocking the event loop.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Segment:
    """One recognized speech span: start/end in seconds, text."""

    start: float
    end: float
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"start": self.start, "end": self.end, "text": self.text}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Segment":
        return cls(start=float(data["start"]), end=float(data["end"]), text=str(data.get("text") or ""))


def clean_segments(segments: list[Segment]) -> list[Segment]:
    """Strip text and drop segments that recognized nothing."""
    out: list[Segment] = []
    for seg in segments:
        text = (seg.text or "").strip()
        if text:
            out.append(Segment(start=seg.start, end=seg.end, text=text))
    return out


class TranscriptionEngine(ABC):
    """
    Abstract ASR engine. Transcribes one channel recording (WAV) into ordered segments.
    transcribe() is async; implementations may run sync work in executor.
    """

    @abstractmethod
    async def transcribe(self, wav_path: str, vad: bool = False) -> list[Segment]:
        """
        Transcribe one recording.
        - vad=True: voice-activity gating (used for the speaker channel, which is
          often silent and otherwise makes whisper loop).
        Returns chronological segments with non-empty text.
        Must not block event loop; run heavy work in executor.
        """
        ...
