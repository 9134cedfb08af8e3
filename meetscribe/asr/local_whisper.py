"""
LocalWhisperEngine: Whisper-compatible ASR using faster-whisper.

- Model loaded ONCE (singleton, injected at construction).
- Audio: WAV PCM 16-bit, converted to float32 mono [-1, 1] before decode.
- vad=True enables faster-whisper's Silero VAD filter (speaker channel).
- Runs in executor so event loop stays responsive.
"""
from __future__ import annotations

import asyncio
import logging
import wave
from typing import Any

import numpy as np

from meetscribe.asr.base import Segment, TranscriptionEngine, clean_segments
from meetscribe.config import get_settings

logger = logging.getLogger(__name__)

# Type for shared WhisperModel (loaded at startup)
WhisperModelT = Any


def pcm_bytes_to_float32(pcm_bytes: bytes, channels: int = 1) -> np.ndarray:
    """Convert PCM 16-bit bytes to float32 [-1.0, 1.0]. Multi-channel input is averaged to mono."""
    samples = np.frombuffer(pcm_bytes, dtype=np.int16).astype(np.float32) / 32768.0
    if channels > 1:
        samples = samples[: len(samples) - len(samples) % channels]
        samples = samples.reshape(-1, channels).mean(axis=1)
    return samples


def load_wav(path: str) -> tuple[np.ndarray, int]:
    """Read a 16-bit PCM WAV. Returns (float32 mono samples, sample rate)."""
    with wave.open(path, "rb") as wf:
        if wf.getsampwidth() != 2:
            raise ValueError(f"{path}: expected 16-bit PCM, got {wf.getsampwidth() * 8}-bit")
        channels = wf.getnchannels()
        rate = wf.getframerate()
        pcm = wf.readframes(wf.getnframes())
    return pcm_bytes_to_float32(pcm, channels), rate


def load_whisper_model(settings=None) -> WhisperModelT:
    """Load faster-whisper model once."""
    try:
        from faster_whisper import WhisperModel
    except ImportError as err:
        raise ImportError(
            "faster-whisper is required for ASR_BACKEND=local. "
            "Install with: pip install 'meetscribe[whisper]'"
        ) from err
    settings = settings or get_settings()
    logger.info("Loading whisper model %s (%s)", settings.LOCAL_WHISPER_MODEL, settings.LOCAL_WHISPER_DEVICE)
    return WhisperModel(
        settings.LOCAL_WHISPER_MODEL,
        device=settings.LOCAL_WHISPER_DEVICE,
        compute_type=settings.LOCAL_WHISPER_COMPUTE_TYPE,
    )


class LocalWhisperEngine(TranscriptionEngine):
    """
    Local Whisper via faster-whisper. Uses shared model (singleton).
    transcribe() is async; heavy work runs in executor.
    """

    def __init__(self, model: WhisperModelT | None = None, beam_size: int | None = None) -> None:
        """
        model: shared WhisperModel instance (loaded at app startup).
        If None, transcribe() raises until a model is provided.
        """
        self._model = model
        self._beam_size = beam_size or get_settings().LOCAL_WHISPER_BEAM_SIZE

    def _transcribe_sync(self, wav_path: str, vad: bool) -> list[Segment]:
        if self._model is None:
            raise RuntimeError("Whisper model not loaded")

        audio, rate = load_wav(wav_path)
        if rate != get_settings().SAMPLE_RATE:
            logger.warning("%s: sample rate %d Hz, whisper expects %d Hz", wav_path, rate, get_settings().SAMPLE_RATE)

        segments, _ = self._model.transcribe(
            audio,
            beam_size=self._beam_size,
            vad_filter=vad,
            condition_on_previous_text=False,  # limits loops carried across segments
        )
        out = [Segment(start=float(seg.start), end=float(seg.end), text=seg.text or "") for seg in segments]
        return clean_segments(out)

    async def transcribe(self, wav_path: str, vad: bool = False) -> list[Segment]:
        """Run _transcribe_sync in executor so event loop is not blocked."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._transcribe_sync, wav_path, vad)
