"""
Merge evaluation over cached transcriptions.

- compare_strategies: run every labeling strategy on one session and summarize.
- remerge_cached: re-run the merge for cached sessions and rewrite their transcripts.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from meetscribe.asr.base import Segment
from meetscribe.asr.cache import SegmentCache
from meetscribe.fusion.labelers import LABELERS, get_labeler
from meetscribe.fusion.models import FusionOptions, Speaker
from meetscribe.fusion.pipeline import fuse_channels
from meetscribe.services.merge_service import merge_transcripts
from meetscribe.transcript.renderer import render_turns
from meetscribe.transcript.writer import TranscriptWriterBase

logger = logging.getLogger(__name__)


@dataclass
class StrategyReport:
    strategy: str
    turn_count: int
    them_share: float  # fraction of mic words labeled Them
    degraded: bool = False
    turns: list[tuple[str, str]] = field(default_factory=list)


def compare_strategies(
    primary: Sequence[Segment],
    reference: Sequence[Segment],
    options: Optional[FusionOptions] = None,
    strategies: Sequence[str] = LABELERS,
) -> list[StrategyReport]:
    """One report per strategy, same order as strategies."""
    options = options or FusionOptions()
    reports = []
    for name in strategies:
        result = fuse_channels(primary, reference, options, labeler=get_labeler(name, options))
        total = sum(len(r) for r in result.runs)
        them = sum(len(r) for r in result.runs if r.speaker == Speaker.REFERENCE)
        reports.append(
            StrategyReport(
                strategy=name,
                turn_count=len(result.runs),
                them_share=(them / total) if total else 0.0,
                degraded=result.degraded,
                turns=render_turns(result),
            )
        )
    return reports


def format_reports(reports: Sequence[StrategyReport], max_turns: int = 40, preview_chars: int = 150) -> str:
    """Plain-text preview of each strategy's turns."""
    lines: list[str] = []
    for report in reports:
        header = f"=== {report.strategy.upper()} ({report.turn_count} turns, {report.them_share:.0%} Them)"
        if report.degraded:
            header += " [degraded]"
        lines.append(header)
        for label, text in report.turns[:max_turns]:
            preview = text if len(text) <= preview_chars else text[:preview_chars] + "..."
            lines.append(f"**{label}:** {preview}")
        if len(report.turns) > max_turns:
            lines.append(f"  ... ({len(report.turns) - max_turns} more turns)")
        lines.append("")
    return "\n".join(lines)


def remerge_cached(
    cache: SegmentCache,
    writer: TranscriptWriterBase,
    options: Optional[FusionOptions] = None,
    match: Sequence[str] = (),
) -> list[str]:
    """
    Re-merge every cached session whose key contains one of match (all when empty).
    Sessions without a cached speaker channel are skipped. Returns written paths.
    """
    written = []
    for session_ts in cache.sessions():
        if match and not any(m in session_ts for m in match):
            continue
        primary = cache.load(session_ts, "mic") or []
        reference = cache.load(session_ts, "speaker")
        if reference is None:
            logger.info("SKIP %s: no speaker cache", session_ts)
            continue
        outcome = merge_transcripts(primary, reference, session_ts, options, writer)
        if outcome.path:
            written.append(outcome.path)
    return written
