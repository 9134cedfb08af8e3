"""ASR: swappable Whisper-compatible engines and the segment cache."""
from .base import Segment, TranscriptionEngine, clean_segments
from .cache import SegmentCache
from .cloudflare import CloudflareWhisperEngine
from .local_whisper import LocalWhisperEngine, load_wav, load_whisper_model, pcm_bytes_to_float32

__all__ = [
    "Segment",
    "TranscriptionEngine",
    "clean_segments",
    "SegmentCache",
    "CloudflareWhisperEngine",
    "LocalWhisperEngine",
    "load_wav",
    "load_whisper_model",
    "pcm_bytes_to_float32",
]
