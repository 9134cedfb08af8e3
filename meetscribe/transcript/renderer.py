"""
Markdown rendering of a fused session.

    # Meeting Transcript — 2026-02-13 19:25 (12m 5s)

    **You:** ...

    **Them:** ...

Degraded sessions (speaker channel empty) get one unlabeled block after a note.
"""
from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Optional

from meetscribe.fusion.models import FusionResult

TITLE_PREFIX = "# Meeting Transcript — "
DEGRADED_NOTE = "*[Speaker separation unavailable — only mic audio captured]*"

_SESSION_TS = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}-\d{2}-\d{2}$")


def make_session_timestamp(dt: Optional[datetime] = None) -> str:
    """Session key shared by mic/speaker files and the transcript: 2026-02-13T19-25-11 (UTC)."""
    dt = dt or datetime.now(timezone.utc)
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return to_session_key(dt.isoformat())


def to_session_key(value: str) -> str:
    """ISO timestamp -> file-safe key: ':' and '.' become '-', cut at second precision."""
    return re.sub(r"[:.]", "-", value.strip())[:19]


def is_session_key(value: str) -> bool:
    return bool(_SESSION_TS.match(value or ""))


def format_display_date(session_ts: str) -> str:
    """2026-02-13T19-25-11 -> 2026-02-13 19:25. Other strings only get 'T' replaced."""
    return re.sub(r"-(\d{2})-(\d{2})$", r":\1", session_ts.replace("T", " ", 1))


def format_duration(seconds: float) -> str:
    """Xm Ys, or Ys under a minute."""
    seconds = max(0.0, seconds or 0.0)
    m = int(seconds // 60)
    s = int(seconds % 60)
    if m == 0:
        return f"{s}s"
    return f"{m}m {s}s"


def render_title(session_ts: str, duration: float) -> str:
    return f"{TITLE_PREFIX}{format_display_date(session_ts)} ({format_duration(duration)})"


def render_turns(result: FusionResult) -> list[tuple[str, str]]:
    """
    (label, original text) per run. Runs with no original text are skipped and
    the same-label turns on either side of them are joined, so labels alternate.
    """
    turns: list[tuple[str, str]] = []
    for run in result.runs:
        text = run.text
        if not text:
            continue
        label = run.speaker.value
        if turns and turns[-1][0] == label:
            turns[-1] = (label, f"{turns[-1][1]} {text}")
        else:
            turns.append((label, text))
    return turns


def render_transcript(result: FusionResult, session_ts: str) -> str:
    """Full Markdown document. Empty input renders the title only."""
    md = render_title(session_ts, result.duration) + "\n\n"
    if result.degraded:
        if result.primary_text:
            md += f"{DEGRADED_NOTE}\n\n{result.primary_text}\n"
        return md
    for label, text in render_turns(result):
        md += f"**{label}:** {text}\n\n"
    return md
