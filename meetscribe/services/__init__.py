"""Application services: merge, two-channel transcription, evaluation."""
from meetscribe.services.merge_service import MergeOutcome, merge_transcripts
from meetscribe.services.transcription import transcribe_session

__all__ = ["MergeOutcome", "merge_transcripts", "transcribe_session"]
