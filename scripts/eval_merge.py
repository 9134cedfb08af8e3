#!/usr/bin/env python3
"""
Evaluate merge quality: transcribe (or load cached) mic/speaker segments for a
session and preview the turns produced by every labeling strategy.

Usage:
  python scripts/eval_merge.py [timestamp ...]          # given sessions
  python scripts/eval_merge.py                          # all sessions with a mic recording
  python scripts/eval_merge.py --retranscribe [ts ...]  # ignore the segment cache
"""
import argparse
import asyncio
import glob
import logging
import os

from meetscribe.asr.cache import SegmentCache
from meetscribe.asr.local_whisper import LocalWhisperEngine, load_whisper_model
from meetscribe.config import configure_logging, get_settings
from meetscribe.fusion.models import FusionOptions
from meetscribe.services.evaluation import compare_strategies, format_reports
from meetscribe.services.transcription import recording_path, transcribe_session

logger = logging.getLogger("eval_merge")


def _recorded_sessions(recordings_dir: str) -> list[str]:
    names = sorted(os.path.basename(p) for p in glob.glob(os.path.join(recordings_dir, "mic_*.wav")))
    return [n[len("mic_"):-len(".wav")] for n in names]


async def _run(sessions: list[str], force: bool) -> None:
    settings = get_settings()
    cache = SegmentCache(settings.SEGMENT_CACHE_DIR)
    options = FusionOptions.from_settings(settings)
    engine = None
    for ts in sessions:
        speaker_wav = recording_path(settings.RECORDINGS_DIR, ts, "speaker")
        needs_whisper = (
            force
            or not cache.has(ts, "mic")
            or (not cache.has(ts, "speaker") and os.path.isfile(speaker_wav))
        )
        if engine is None and needs_whisper:
            engine = LocalWhisperEngine(model=load_whisper_model(settings))
        print(f"\n{'=' * 70}\nSESSION: {ts}\n{'=' * 70}")
        try:
            mic, speaker = await transcribe_session(
                engine or LocalWhisperEngine(), ts, settings.RECORDINGS_DIR, cache, force
            )
        except FileNotFoundError as e:
            logger.warning("SKIP %s: %s", ts, e)
            continue
        logger.info("%s: %d mic segments, %d speaker segments", ts, len(mic), len(speaker))
        print(format_reports(compare_strategies(mic, speaker, options)))


def main() -> int:
    parser = argparse.ArgumentParser(description="Compare merge strategies on recorded sessions")
    parser.add_argument("sessions", nargs="*", help="Session keys (default: all with a mic recording)")
    parser.add_argument("--retranscribe", action="store_true", help="Force re-transcription")
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings)
    sessions = args.sessions or _recorded_sessions(settings.RECORDINGS_DIR)
    asyncio.run(_run(sessions, args.retranscribe))
    print(f"\nDone. Transcription cache: {settings.SEGMENT_CACHE_DIR}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
