"""Speaker-channel liveness check."""
from __future__ import annotations

from typing import Sized


def is_dead_channel(reference_segments: Sized) -> bool:
    """
    True when the speaker channel produced no segments at all (usually VAD found
    no speech in system audio). Fusion is skipped and the mic text is rendered unlabeled.
    Only the count matters; segment text is not inspected.
    """
    return len(reference_segments) == 0
