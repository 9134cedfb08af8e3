"""Pydantic schemas for API request/response."""
from meetscribe.schemas.merge import (
    MergeRequest,
    MergeResponse,
    SegmentIn,
    TranscriptListItem,
    TurnOut,
)

__all__ = [
    "MergeRequest",
    "MergeResponse",
    "SegmentIn",
    "TranscriptListItem",
    "TurnOut",
]
