"""
Listing stored transcripts, newest first, with date filters.

Files are named by session key (2026-02-13T14-30-00.md, UTC). Filters:
  None          10 most recent (LIST_DEFAULT_LIMIT)
  "today"       since local midnight
  "week"        last 7 days
  "all"         everything
  "N"           last N days
  "YYYY-MM-DD"  one local date, or a range with until="YYYY-MM-DD"
"""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from meetscribe.transcript.renderer import TITLE_PREFIX

logger = logging.getLogger(__name__)

_FILENAME = re.compile(r"^(\d{4})-(\d{2})-(\d{2})T(\d{2})-(\d{2})-(\d{2})\.md$")
_DURATION = re.compile(r"^" + re.escape(TITLE_PREFIX) + r".+ \(([^)]+)\)", re.MULTILINE)
_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass(frozen=True)
class TranscriptEntry:
    session_ts: str
    date: datetime  # UTC
    duration: str
    path: str


def parse_filename(filename: str) -> Optional[datetime]:
    """2026-02-13T14-30-00.md -> aware UTC datetime; None for anything else."""
    match = _FILENAME.match(filename)
    if not match:
        return None
    y, mo, d, h, mi, s = (int(g) for g in match.groups())
    try:
        return datetime(y, mo, d, h, mi, s, tzinfo=timezone.utc)
    except ValueError:
        return None


def extract_duration(path: str) -> str:
    """Duration from the title line, "?" if the file can't be read or has no title."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        logger.debug("Could not read transcript %s: %s", path, e)
        return "?"
    match = _DURATION.search(content)
    return match.group(1) if match else "?"


def scan_transcripts(transcript_dir: str) -> list[TranscriptEntry]:
    """All well-named transcripts in transcript_dir, unsorted by date."""
    if not os.path.isdir(transcript_dir):
        return []
    entries = []
    for name in sorted(os.listdir(transcript_dir)):
        date = parse_filename(name)
        if date is None:
            continue
        path = os.path.join(transcript_dir, name)
        entries.append(
            TranscriptEntry(session_ts=name[: -len(".md")], date=date, duration=extract_duration(path), path=path)
        )
    return entries


def _start_of_day(dt: datetime) -> datetime:
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def _local_date(value: str, tz) -> datetime:
    return datetime.strptime(value, "%Y-%m-%d").replace(tzinfo=tz)


def date_range(
    filter_arg: Optional[str], until: Optional[str] = None, now: Optional[datetime] = None
) -> tuple[datetime, datetime, bool]:
    """
    Resolve a filter to (from, to, limited). limited=True means "apply the default limit".
    Raises ValueError for an unknown filter.
    """
    now = now or datetime.now().astimezone()
    tz = now.tzinfo or timezone.utc
    epoch = datetime(1970, 1, 1, tzinfo=timezone.utc)
    to = now + timedelta(days=1)
    arg = (filter_arg or "").strip()

    if not arg:
        return epoch, to, True
    if arg == "today":
        return _start_of_day(now), to, False
    if arg == "week":
        return _start_of_day(now - timedelta(days=6)), to, False
    if arg == "all":
        return epoch, to, False
    if arg.isdigit():
        days = max(1, int(arg))
        return _start_of_day(now - timedelta(days=days - 1)), to, False
    if _DATE.match(arg):
        start = _local_date(arg, tz)
        last = until.strip() if until else ""
        end_day = _local_date(last, tz) if _DATE.match(last) else start
        return start, end_day + timedelta(days=1) - timedelta(microseconds=1), False
    raise ValueError(f"Unknown filter: {arg} (use today | week | all | N days | YYYY-MM-DD [YYYY-MM-DD])")


def list_transcripts(
    transcript_dir: str,
    filter_arg: Optional[str] = None,
    until: Optional[str] = None,
    now: Optional[datetime] = None,
    default_limit: int = 10,
) -> list[TranscriptEntry]:
    """Transcripts matching the filter, newest first."""
    start, end, limited = date_range(filter_arg, until, now)
    selected = [e for e in scan_transcripts(transcript_dir) if start <= e.date <= end]
    selected.sort(key=lambda e: e.date, reverse=True)
    if limited and default_limit > 0:
        selected = selected[:default_limit]
    return selected


def read_transcript(transcript_dir: str, session_ts: str) -> Optional[str]:
    """Document text for session_ts, or None if there is none."""
    if parse_filename(f"{session_ts}.md") is None:
        return None
    path = os.path.join(transcript_dir, f"{session_ts}.md")
    if not os.path.isfile(path):
        return None
    with open(path, "r", encoding="utf-8") as f:
        return f.read()
