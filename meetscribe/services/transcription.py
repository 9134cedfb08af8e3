"""
Two-channel transcription of a recorded session.

recordings/mic_<ts>.wav and recordings/speaker_<ts>.wav are transcribed
concurrently; fusion only starts once both are done. The speaker channel is
transcribed with VAD so silent system audio yields no segments instead of loops.
"""
from __future__ import annotations

import asyncio
import logging
import os
from typing import Optional

from meetscribe.asr.base import Segment, TranscriptionEngine
from meetscribe.asr.cache import Channel, SegmentCache
from meetscribe.config import get_settings

logger = logging.getLogger(__name__)


def recording_path(recordings_dir: str, session_ts: str, channel: Channel) -> str:
    return os.path.join(recordings_dir, f"{channel}_{session_ts}.wav")


async def _channel_segments(
    engine: TranscriptionEngine,
    wav_path: str,
    session_ts: str,
    channel: Channel,
    vad: bool,
    cache: Optional[SegmentCache],
    force: bool,
) -> list[Segment]:
    if cache is not None and not force:
        cached = cache.load(session_ts, channel)
        if cached is not None:
            logger.debug("Using cached %s segments for %s", channel, session_ts)
            return cached
    logger.info("Transcribing %s%s", os.path.basename(wav_path), " (VAD)" if vad else "")
    segments = await engine.transcribe(wav_path, vad=vad)
    if cache is not None:
        cache.save(session_ts, channel, segments)
    return segments


async def transcribe_session(
    engine: TranscriptionEngine,
    session_ts: str,
    recordings_dir: Optional[str] = None,
    cache: Optional[SegmentCache] = None,
    force: bool = False,
    reference_vad: Optional[bool] = None,
) -> tuple[list[Segment], list[Segment]]:
    """
    Return (mic segments, speaker segments) for session_ts.

    Raises FileNotFoundError when the mic recording is missing. A missing speaker
    recording yields no speaker segments (the transcript is then rendered degraded).
    """
    settings = get_settings()
    recordings_dir = recordings_dir or settings.RECORDINGS_DIR
    vad = settings.REFERENCE_VAD if reference_vad is None else reference_vad

    mic_path = recording_path(recordings_dir, session_ts, "mic")
    speaker_path = recording_path(recordings_dir, session_ts, "speaker")
    mic_cached = cache is not None and not force and cache.has(session_ts, "mic")
    if not mic_cached and not os.path.isfile(mic_path):
        raise FileNotFoundError(f"Mic recording not found: {mic_path}")

    mic_task = _channel_segments(engine, mic_path, session_ts, "mic", False, cache, force)
    speaker_cached = cache is not None and not force and cache.has(session_ts, "speaker")
    if speaker_cached or os.path.isfile(speaker_path):
        speaker_task = _channel_segments(engine, speaker_path, session_ts, "speaker", vad, cache, force)
        mic_segments, speaker_segments = await asyncio.gather(mic_task, speaker_task)
    else:
        logger.warning("Speaker recording not found for %s; mic only", session_ts)
        mic_segments = await mic_task
        speaker_segments = []
    return mic_segments, speaker_segments
