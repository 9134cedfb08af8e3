"""
Schemas for the merge API.

Inputs: mic (primary) and speaker (reference) segments, as produced by whisper.
Output: the rendered Markdown plus the labeled turns it was built from.
Malformed segments are rejected here so fusion only ever sees well-formed input.
"""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from meetscribe.asr.base import Segment


class SegmentIn(BaseModel):
    """One recognized speech span."""

    start: float = Field(..., ge=0.0, description="Start time in seconds")
    end: float = Field(..., ge=0.0, description="End time in seconds")
    text: str = Field("", description="Recognized text (may be empty)")

    @model_validator(mode="after")
    def _end_after_start(self) -> "SegmentIn":
        if self.end < self.start:
            raise ValueError("end must be >= start")
        return self

    def to_segment(self) -> Segment:
        return Segment(start=self.start, end=self.end, text=self.text)


class MergeRequest(BaseModel):
    """Request body for POST /api/merge."""

    session_timestamp: str | None = Field(
        None,
        description="Session key (2026-02-13T19-25-11) or ISO timestamp; defaults to now (UTC)",
    )
    primary: list[SegmentIn] = Field(default_factory=list, description="Mic channel segments, chronological")
    reference: list[SegmentIn] = Field(default_factory=list, description="Speaker channel segments, chronological")
    save: bool = Field(True, description="Write the transcript document")


class TurnOut(BaseModel):
    speaker: str = Field(..., description="You | Them")
    text: str


class MergeResponse(BaseModel):
    """Response body for merge and transcribe endpoints."""

    session_timestamp: str
    degraded: bool = Field(False, description="True when the speaker channel was empty")
    markdown: str
    turns: list[TurnOut] = Field(default_factory=list)
    path: str | None = Field(None, description="Written transcript path, null when not saved")


class TranscriptListItem(BaseModel):
    session_timestamp: str
    date: datetime
    duration: str
    path: str
