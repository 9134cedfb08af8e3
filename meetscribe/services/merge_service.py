"""
Merge mic and speaker transcripts into a labeled conversation and persist it.

Single seam used by the API and the re-merge/evaluation tooling:
fuse -> render -> write once.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from meetscribe.asr.base import Segment
from meetscribe.config import get_settings
from meetscribe.fusion.models import FusionOptions, FusionResult
from meetscribe.fusion.pipeline import fuse_channels
from meetscribe.transcript.renderer import render_transcript, render_turns
from meetscribe.transcript.writer import TranscriptWriterBase

logger = logging.getLogger(__name__)


@dataclass
class MergeOutcome:
    session_ts: str
    result: FusionResult
    markdown: str
    path: Optional[str] = None

    @property
    def turns(self) -> list[tuple[str, str]]:
        return render_turns(self.result)


def default_fusion_options() -> FusionOptions:
    return FusionOptions.from_settings(get_settings())


def merge_transcripts(
    primary: Sequence[Segment],
    reference: Sequence[Segment],
    session_ts: str,
    options: Optional[FusionOptions] = None,
    writer: Optional[TranscriptWriterBase] = None,
) -> MergeOutcome:
    """
    Fuse, render and (when writer is given) write the transcript for session_ts.
    Writer errors (OSError) propagate to the caller.
    """
    options = options or default_fusion_options()
    result = fuse_channels(primary, reference, options)
    markdown = render_transcript(result, session_ts)
    path = writer.write(session_ts, markdown) if writer is not None else None
    logger.info(
        "Merged session %s: %d mic / %d speaker segments -> %s",
        session_ts,
        len(primary),
        len(reference),
        "degraded" if result.degraded else f"{len(result.runs)} turns",
    )
    return MergeOutcome(session_ts=session_ts, result=result, markdown=markdown, path=path)
