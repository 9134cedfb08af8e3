"""
SegmentCache: per-session JSON cache of transcription results.

One file per channel and session: {cache_dir}/mic_<ts>.json, {cache_dir}/speaker_<ts>.json,
each a list of {"start", "end", "text"}. Lets the merge be re-run and tuned
without re-running whisper.
"""
from __future__ import annotations

import json
import logging
import os
from typing import Literal, Optional

from meetscribe.asr.base import Segment
from meetscribe.config import get_settings

logger = logging.getLogger(__name__)

Channel = Literal["mic", "speaker"]


class SegmentCache:
    def __init__(self, cache_dir: Optional[str] = None) -> None:
        self._cache_dir = cache_dir or get_settings().SEGMENT_CACHE_DIR

    @property
    def cache_dir(self) -> str:
        return self._cache_dir

    def path_for(self, session_ts: str, channel: Channel) -> str:
        return os.path.join(self._cache_dir, f"{channel}_{session_ts}.json")

    def has(self, session_ts: str, channel: Channel) -> bool:
        return os.path.isfile(self.path_for(session_ts, channel))

    def load(self, session_ts: str, channel: Channel) -> list[Segment] | None:
        """Cached segments, or None when the channel was never cached."""
        path = self.path_for(session_ts, channel)
        if not os.path.isfile(path):
            return None
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return [Segment.from_dict(item) for item in data]

    def save(self, session_ts: str, channel: Channel, segments: list[Segment]) -> str:
        os.makedirs(self._cache_dir, exist_ok=True)
        path = self.path_for(session_ts, channel)
        with open(path, "w", encoding="utf-8") as f:
            json.dump([s.to_dict() for s in segments], f, ensure_ascii=False, indent=2)
        logger.debug("Cached %d %s segments: %s", len(segments), channel, path)
        return path

    def sessions(self) -> list[str]:
        """Session timestamps that have a cached mic channel, oldest first."""
        if not os.path.isdir(self._cache_dir):
            return []
        out = []
        for name in sorted(os.listdir(self._cache_dir)):
            if name.startswith("mic_") and name.endswith(".json"):
                out.append(name[len("mic_"):-len(".json")])
        return out
