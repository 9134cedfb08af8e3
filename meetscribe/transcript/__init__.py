"""Transcript document: rendering, atomic persistence, listing."""
from .listing import TranscriptEntry, list_transcripts, read_transcript
from .renderer import (
    format_display_date,
    format_duration,
    make_session_timestamp,
    render_transcript,
    render_turns,
)
from .writer import NoOpTranscriptWriter, TranscriptWriter, TranscriptWriterBase, create_transcript_writer

__all__ = [
    "TranscriptEntry",
    "list_transcripts",
    "read_transcript",
    "format_display_date",
    "format_duration",
    "make_session_timestamp",
    "render_transcript",
    "render_turns",
    "NoOpTranscriptWriter",
    "TranscriptWriter",
    "TranscriptWriterBase",
    "create_transcript_writer",
]
