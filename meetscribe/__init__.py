"""Meeting transcripts from two recorded channels: mic (You) and system audio (Them)."""
