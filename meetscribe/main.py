"""
FastAPI app: merge mic + speaker transcripts into a labeled meeting transcript.

HTTP API:
- POST /api/merge: fuse already-transcribed segments (JSON) and store the transcript.
- POST /api/sessions/{ts}/transcribe: transcribe recordings/mic_<ts>.wav + speaker_<ts>.wav, then merge.
- GET  /api/transcripts: list stored transcripts (date filters).
- GET  /api/transcripts/{ts}: one transcript as Markdown.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import PlainTextResponse

from meetscribe.asr.base import TranscriptionEngine
from meetscribe.asr.cache import SegmentCache
from meetscribe.asr.cloudflare import CloudflareWhisperEngine
from meetscribe.asr.local_whisper import LocalWhisperEngine, load_whisper_model
from meetscribe.config import configure_logging, get_settings
from meetscribe.fusion.models import FusionOptions
from meetscribe.schemas.merge import MergeRequest, MergeResponse, TranscriptListItem, TurnOut
from meetscribe.services.merge_service import MergeOutcome, merge_transcripts
from meetscribe.services.transcription import transcribe_session
from meetscribe.transcript.listing import list_transcripts, read_transcript
from meetscribe.transcript.renderer import is_session_key, make_session_timestamp, to_session_key
from meetscribe.transcript.writer import NoOpTranscriptWriter, TranscriptWriterBase, create_transcript_writer

logger = logging.getLogger(__name__)


def _try_load_whisper_model():
    try:
        return load_whisper_model()
    except ImportError as e:
        logger.warning("Local whisper unavailable, /transcribe will fail: %s", e)
        return None


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    # Load Whisper model once at startup when using local backend (singleton)
    settings = get_settings()
    if settings.ASR_BACKEND == "local" and settings.LOCAL_WHISPER_PRELOAD:
        app.state.whisper_model = _try_load_whisper_model()
    else:
        app.state.whisper_model = None
    yield
    app.state.whisper_model = None


app = FastAPI(
    title="Meeting Transcript Merge",
    description="Mic + speaker channel transcripts fused into one You/Them transcript",
    lifespan=lifespan,
)


def get_asr_engine(request: Request) -> TranscriptionEngine:
    """Return ASR engine based on config. Local uses singleton model from app.state."""
    settings = get_settings()
    if settings.ASR_BACKEND == "cloudflare":
        return CloudflareWhisperEngine()
    model = getattr(request.app.state, "whisper_model", None)
    if model is None and not settings.LOCAL_WHISPER_PRELOAD:
        model = _try_load_whisper_model()
        request.app.state.whisper_model = model
    return LocalWhisperEngine(model=model)


def get_transcript_writer() -> TranscriptWriterBase:
    return create_transcript_writer()


def get_fusion_options() -> FusionOptions:
    return FusionOptions.from_settings(get_settings())


def get_segment_cache() -> SegmentCache:
    return SegmentCache()


def _session_key(value: str | None) -> str:
    if not value:
        return make_session_timestamp()
    if is_session_key(value):
        return value
    key = to_session_key(value)
    if not is_session_key(key):
        raise HTTPException(status_code=400, detail=f"Invalid session timestamp: {value}")
    return key


def _to_response(outcome: MergeOutcome) -> MergeResponse:
    return MergeResponse(
        session_timestamp=outcome.session_ts,
        degraded=outcome.result.degraded,
        markdown=outcome.markdown,
        turns=[TurnOut(speaker=label, text=text) for label, text in outcome.turns],
        path=outcome.path,
    )


def _merge_or_500(primary, reference, session_ts, options, writer) -> MergeOutcome:
    try:
        return merge_transcripts(primary, reference, session_ts, options, writer)
    except OSError as e:
        logger.exception("Transcript write failed for %s: %s", session_ts, e)
        raise HTTPException(status_code=500, detail="Failed to write transcript")


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


@app.post("/api/merge", response_model=MergeResponse)
def merge(
    request: MergeRequest,
    options: FusionOptions = Depends(get_fusion_options),
    writer: TranscriptWriterBase = Depends(get_transcript_writer),
) -> MergeResponse:
    """
    Fuse mic (primary) and speaker (reference) segments. Empty speaker channel → degraded
    transcript (unlabeled mic text). Written once to TRANSCRIPT_DIR when save=true.
    """
    session_ts = _session_key(request.session_timestamp)
    primary = [s.to_segment() for s in request.primary]
    reference = [s.to_segment() for s in request.reference]
    outcome = _merge_or_500(
        primary, reference, session_ts, options, writer if request.save else NoOpTranscriptWriter()
    )
    return _to_response(outcome)


@app.post("/api/sessions/{session_timestamp}/transcribe", response_model=MergeResponse)
async def transcribe_and_merge(
    session_timestamp: str,
    force: bool = Query(False, description="Re-transcribe even when cached segments exist"),
    engine: TranscriptionEngine = Depends(get_asr_engine),
    cache: SegmentCache = Depends(get_segment_cache),
    options: FusionOptions = Depends(get_fusion_options),
    writer: TranscriptWriterBase = Depends(get_transcript_writer),
) -> MergeResponse:
    """Transcribe both channels of a recorded session concurrently, then merge."""
    if not is_session_key(session_timestamp):
        raise HTTPException(status_code=400, detail=f"Invalid session timestamp: {session_timestamp}")
    try:
        primary, reference = await transcribe_session(engine, session_timestamp, cache=cache, force=force)
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.exception("Transcription failed for %s: %s", session_timestamp, e)
        raise HTTPException(status_code=502, detail="Transcription failed")
    outcome = _merge_or_500(primary, reference, session_timestamp, options, writer)
    return _to_response(outcome)


@app.get("/api/transcripts", response_model=list[TranscriptListItem])
def transcripts(
    filter_: str | None = Query(None, alias="filter", description="today | week | all | N | YYYY-MM-DD"),
    until: str | None = Query(None, description="End date (YYYY-MM-DD) for a date range"),
) -> list[TranscriptListItem]:
    """Stored transcripts, newest first. No filter = most recent LIST_DEFAULT_LIMIT."""
    settings = get_settings()
    try:
        entries = list_transcripts(
            settings.TRANSCRIPT_DIR, filter_, until, default_limit=settings.LIST_DEFAULT_LIMIT
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return [
        TranscriptListItem(session_timestamp=e.session_ts, date=e.date, duration=e.duration, path=e.path)
        for e in entries
    ]


@app.get("/api/transcripts/{session_timestamp}", response_class=PlainTextResponse)
def transcript(session_timestamp: str) -> PlainTextResponse:
    text = read_transcript(get_settings().TRANSCRIPT_DIR, session_timestamp)
    if text is None:
        raise HTTPException(status_code=404, detail="Transcript not found")
    return PlainTextResponse(text, media_type="text/markdown")
