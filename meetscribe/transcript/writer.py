"""
TranscriptWriter: one Markdown document per session, written once, atomically.

The complete text goes to a temporary file in the same directory and is
renamed over the target: readers (listing, API) see the old version or the
new one, never a partial file.

The output directory is always explicit (constructor or settings); nothing
depends on the process working directory beyond a relative default.
"""
from __future__ import annotations

import logging
import os
import tempfile
from abc import ABC, abstractmethod
from typing import Optional

from meetscribe.config import get_settings

logger = logging.getLogger(__name__)


class TranscriptWriterBase(ABC):
    """Base for session transcript writer."""

    @abstractmethod
    def write(self, session_ts: str, document: str) -> Optional[str]:
        """Write the full document for session_ts. Returns the path, or None when nothing was written."""
        ...

    @abstractmethod
    def path_for(self, session_ts: str) -> Optional[str]:
        ...


class NoOpTranscriptWriter(TranscriptWriterBase):
    """When transcript saving is disabled. No file I/O."""

    def write(self, session_ts: str, document: str) -> Optional[str]:
        return None

    def path_for(self, session_ts: str) -> Optional[str]:
        return None


class TranscriptWriter(TranscriptWriterBase):
    """
    One file per session: {transcript_dir}/{session_ts}.md.
    Rewriting a session replaces the whole file.
    """

    def __init__(self, transcript_dir: Optional[str] = None) -> None:
        self._transcript_dir = transcript_dir or get_settings().TRANSCRIPT_DIR

    @property
    def transcript_dir(self) -> str:
        return self._transcript_dir

    def path_for(self, session_ts: str) -> str:
        return os.path.join(self._transcript_dir, f"{session_ts}.md")

    def write(self, session_ts: str, document: str) -> str:
        """Atomic write. OSError propagates after the temporary file is cleaned up."""
        path = self.path_for(session_ts)
        os.makedirs(self._transcript_dir, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=f".{session_ts}.", suffix=".tmp", dir=self._transcript_dir)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(document)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
        except OSError as e:
            logger.warning("Transcript write failed for %s: %s", path, e)
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
        logger.info("Transcript written: %s", path)
        return path


def create_transcript_writer(transcript_dir: Optional[str] = None) -> TranscriptWriterBase:
    """Create writer when TRANSCRIPT_SAVE_ENABLED is true; else no-op."""
    settings = get_settings()
    if not settings.TRANSCRIPT_SAVE_ENABLED:
        return NoOpTranscriptWriter()
    return TranscriptWriter(transcript_dir=transcript_dir or settings.TRANSCRIPT_DIR)
