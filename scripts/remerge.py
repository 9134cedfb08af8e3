#!/usr/bin/env python3
"""
Re-run the merge on all cached transcriptions.

Reads mic/speaker JSON from the segment cache (SEGMENT_CACHE_DIR, written by
eval_merge.py or the transcribe endpoint) and rewrites transcripts in TRANSCRIPT_DIR.

Usage:
  python scripts/remerge.py              # all cached sessions
  python scripts/remerge.py 2026-02-20   # sessions whose key contains the argument
"""
import argparse
import logging

from meetscribe.asr.cache import SegmentCache
from meetscribe.config import configure_logging, get_settings
from meetscribe.fusion.models import FusionOptions
from meetscribe.services.evaluation import remerge_cached
from meetscribe.transcript.writer import TranscriptWriter

logger = logging.getLogger("remerge")


def main() -> int:
    parser = argparse.ArgumentParser(description="Re-merge cached sessions")
    parser.add_argument("sessions", nargs="*", help="Substring(s) of session keys to re-merge")
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings)
    paths = remerge_cached(
        SegmentCache(settings.SEGMENT_CACHE_DIR),
        TranscriptWriter(settings.TRANSCRIPT_DIR),
        FusionOptions.from_settings(settings),
        match=args.sessions,
    )
    for path in paths:
        logger.info("Written: %s", path)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
