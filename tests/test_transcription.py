"""Tests for two-channel session transcription."""

import asyncio
import os

import pytest

from meetscribe.asr.cache import SegmentCache
from meetscribe.services.transcription import transcribe_session

from conftest import FakeEngine, segs, touch_recording

TS = "2026-02-13T19-25-11"
MIC = segs((0, 2, "hello there"))
SPEAKER = segs((1, 2, "there"))


def run(coro):
    return asyncio.run(coro)


def test_both_channels_transcribed_concurrently(recordings_dir):
    touch_recording(recordings_dir, TS, "mic")
    touch_recording(recordings_dir, TS, "speaker")
    engine = FakeEngine({"mic": MIC, "speaker": SPEAKER}, delay=0.05)
    mic, speaker = run(transcribe_session(engine, TS, str(recordings_dir)))
    assert (mic, speaker) == (MIC, SPEAKER)
    assert engine.max_in_flight == 2


def test_vad_only_on_speaker_channel(recordings_dir):
    touch_recording(recordings_dir, TS, "mic")
    touch_recording(recordings_dir, TS, "speaker")
    engine = FakeEngine({"mic": MIC, "speaker": SPEAKER})
    run(transcribe_session(engine, TS, str(recordings_dir)))
    vad_by_file = {os.path.basename(path): vad for path, vad in engine.calls}
    assert vad_by_file == {f"mic_{TS}.wav": False, f"speaker_{TS}.wav": True}


def test_reference_vad_can_be_disabled(recordings_dir):
    touch_recording(recordings_dir, TS, "mic")
    touch_recording(recordings_dir, TS, "speaker")
    engine = FakeEngine()
    run(transcribe_session(engine, TS, str(recordings_dir), reference_vad=False))
    assert all(vad is False for _, vad in engine.calls)


def test_missing_speaker_recording_gives_no_segments(recordings_dir):
    touch_recording(recordings_dir, TS, "mic")
    engine = FakeEngine({"mic": MIC, "speaker": SPEAKER})
    mic, speaker = run(transcribe_session(engine, TS, str(recordings_dir)))
    assert (mic, speaker) == (MIC, [])
    assert len(engine.calls) == 1


def test_missing_mic_recording(recordings_dir):
    with pytest.raises(FileNotFoundError):
        run(transcribe_session(FakeEngine(), TS, str(recordings_dir)))


def test_engine_errors_propagate(recordings_dir):
    touch_recording(recordings_dir, TS, "mic")
    with pytest.raises(RuntimeError, match="engine exploded"):
        run(transcribe_session(FakeEngine(fail=True), TS, str(recordings_dir)))


class TestWithCache:
    def test_results_cached(self, recordings_dir, tmp_path):
        touch_recording(recordings_dir, TS, "mic")
        touch_recording(recordings_dir, TS, "speaker")
        cache = SegmentCache(str(tmp_path / "cache"))
        run(transcribe_session(FakeEngine({"mic": MIC, "speaker": SPEAKER}), TS, str(recordings_dir), cache))
        assert cache.load(TS, "mic") == MIC
        assert cache.load(TS, "speaker") == SPEAKER

    def test_cached_sessions_skip_engine(self, recordings_dir, tmp_path):
        cache = SegmentCache(str(tmp_path / "cache"))
        cache.save(TS, "mic", MIC)
        cache.save(TS, "speaker", SPEAKER)
        engine = FakeEngine()
        mic, speaker = run(transcribe_session(engine, TS, str(recordings_dir), cache))
        assert (mic, speaker) == (MIC, SPEAKER)
        assert engine.calls == []

    def test_force_retranscribes(self, recordings_dir, tmp_path):
        touch_recording(recordings_dir, TS, "mic")
        cache = SegmentCache(str(tmp_path / "cache"))
        cache.save(TS, "mic", segs((0, 1, "stale")))
        engine = FakeEngine({"mic": MIC})
        mic, _ = run(transcribe_session(engine, TS, str(recordings_dir), cache, force=True))
        assert mic == MIC
        assert cache.load(TS, "mic") == MIC
