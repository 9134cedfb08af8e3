"""Application configuration. Loads from env vars."""
from __future__ import annotations

import logging
import os
from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings. Override via environment variables."""

    # Run labeling: a window of RUN_LENGTH mic words found verbatim in the speaker text → Them.
    # Shorter windows produce many spurious matches on dense sessions.
    RUN_LENGTH: int = 5
    # "run_length" | "timestamp" | "similarity"
    LABEL_STRATEGY: Literal["run_length", "timestamp", "similarity"] = "run_length"
    SIMILARITY_THRESHOLD: float = 0.6  # similarity strategy: SequenceMatcher ratio cut-off
    SIMILARITY_SLACK_SECONDS: float = 2.0  # similarity strategy: time slack around a mic segment

    # Gap absorption: short You runs between two Them runs are folded into Them.
    MIN_GAP_WORDS: int = 7
    GAP_ABSORB_POLICY: Literal["unconditional", "anchored"] = "unconditional"
    GAP_ANCHOR_WORDS: int = 3  # anchored: words taken from the tail/head of the neighbouring runs
    GAP_ANCHOR_MAX_CHARS: int = 30  # anchored: allowed speaker-text distance between the two anchors

    # Hallucination filter: whisper loops on near-silent audio.
    HALLUCINATION_NGRAM: int = 8
    HALLUCINATION_WINDOW: int = 120  # lookahead in words
    HALLUCINATION_MIN_REPEATS: int = 3
    HALLUCINATION_KEEP_ONE: bool = False  # keep one copy of a confirmed loop instead of dropping it

    # Filler words removed before comparison. Comma-separated.
    FILLER_WORDS: str = "uh,um"

    # Transcript storage: one Markdown file per session, written once.
    TRANSCRIPT_SAVE_ENABLED: bool = True
    TRANSCRIPT_DIR: str = "./transcripts"
    LIST_DEFAULT_LIMIT: int = 10  # listing without a filter shows the N most recent

    # Recordings: mic_<ts>.wav and speaker_<ts>.wav (captured upstream)
    RECORDINGS_DIR: str = "./recordings"
    # Cached segments (mic_<ts>.json / speaker_<ts>.json) so fusion can be re-run without whisper
    SEGMENT_CACHE_DIR: str = "./eval-cache"

    # ASR backend: "local" | "cloudflare"
    ASR_BACKEND: Literal["local", "cloudflare"] = "local"

    # Cloudflare Workers AI (when ASR_BACKEND=cloudflare)
    CLOUDFLARE_ACCOUNT_ID: str = ""
    CLOUDFLARE_API_TOKEN: str = ""

    # Local Whisper (when ASR_BACKEND=local): model loaded once at startup
    LOCAL_WHISPER_MODEL: str = "large-v3-turbo"
    LOCAL_WHISPER_DEVICE: Literal["cpu", "cuda", "auto"] = "auto"
    LOCAL_WHISPER_COMPUTE_TYPE: Literal["int8", "float16", "default"] = "default"
    LOCAL_WHISPER_BEAM_SIZE: int = 5
    LOCAL_WHISPER_PRELOAD: bool = True  # load model in lifespan; false = load on first request
    # Voice activity gating on the speaker channel only; suppresses loops on silent system audio.
    REFERENCE_VAD: bool = True

    SAMPLE_RATE: int = 16000

    # Logging: level (DEBUG, INFO, WARNING, ERROR); file path = also log to file (empty = console only).
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def filler_words(self) -> frozenset[str]:
        return frozenset(w.strip().lower() for w in self.FILLER_WORDS.split(",") if w.strip())


def get_settings() -> Settings:
    return Settings()


_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(settings: Settings | None = None) -> None:
    """Apply LOG_LEVEL and optional LOG_FILE to the root logger. Safe to call more than once."""
    settings = settings or get_settings()
    level = getattr(logging, (settings.LOG_LEVEL or "INFO").upper(), logging.INFO)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if settings.LOG_FILE:
        log_dir = os.path.dirname(settings.LOG_FILE)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(settings.LOG_FILE, encoding="utf-8"))
    logging.basicConfig(level=level, format=_LOG_FORMAT, handlers=handlers, force=True)
