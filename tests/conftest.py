"""Test configuration and fixtures.

Provides reusable fixtures for:
- Isolated settings (all directories under tmp_path)
- Segment and token builders
- A fake transcription engine (no whisper, no network)
"""

import asyncio
import os

import pytest

from meetscribe.asr.base import Segment, TranscriptionEngine
from meetscribe.fusion.models import Run, Speaker, Token


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point every directory setting at tmp_path so tests never touch the working tree."""
    monkeypatch.setenv("TRANSCRIPT_DIR", str(tmp_path / "transcripts"))
    monkeypatch.setenv("RECORDINGS_DIR", str(tmp_path / "recordings"))
    monkeypatch.setenv("SEGMENT_CACHE_DIR", str(tmp_path / "eval-cache"))
    monkeypatch.setenv("TRANSCRIPT_SAVE_ENABLED", "true")
    monkeypatch.setenv("LOCAL_WHISPER_PRELOAD", "false")
    return tmp_path


def make_tokens(text):
    """Tokens whose original text equals their normalized form."""
    return [Token(text=w, norm=w) for w in text.split()]


def make_run(speaker, count, prefix="w"):
    return Run(speaker=speaker, tokens=[Token(text=f"{prefix}{i}", norm=f"{prefix}{i}") for i in range(count)])


def them(count, prefix="t"):
    return make_run(Speaker.REFERENCE, count, prefix)


def you(count, prefix="y"):
    return make_run(Speaker.PRIMARY, count, prefix)


def segs(*items):
    """segs((0, 3, "hello"), (3, 5, "world")) -> [Segment, ...]"""
    return [Segment(start=s, end=e, text=t) for s, e, t in items]


class FakeEngine(TranscriptionEngine):
    """Returns canned segments per channel file name; records calls and concurrency."""

    def __init__(self, by_channel=None, delay=0.0, fail=False):
        self.by_channel = by_channel or {}
        self.delay = delay
        self.fail = fail
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def transcribe(self, wav_path, vad=False):
        self.calls.append((wav_path, vad))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if self.fail:
                raise RuntimeError("engine exploded")
            channel = "speaker" if os.path.basename(wav_path).startswith("speaker_") else "mic"
            return list(self.by_channel.get(channel, []))
        finally:
            self.in_flight -= 1


@pytest.fixture
def recordings_dir(tmp_path):
    d = tmp_path / "recordings"
    d.mkdir()
    return d


def touch_recording(recordings_dir, session_ts, channel):
    path = recordings_dir / f"{channel}_{session_ts}.wav"
    path.write_bytes(b"")
    return path
