"""Turns a finished inspection recording into time-aligned text."""

from field_inspection.domain.models import (
    DEFAULT_SEGMENT_CONFIDENCE,
    RawTranscript,
    TranscriptionResult,
    TranscriptSegment,
)
from field_inspection.exceptions import CacheServiceError, TranscriptionFailedError
from field_inspection.infrastructure.interfaces.storage import StorageClient
from field_inspection.infrastructure.interfaces.transcript_cache import (
    TranscriptCache,
)
from field_inspection.infrastructure.interfaces.transcription_service import (
    TranscriptionService,
)
from field_inspection.logging import setup_logging

logger = setup_logging()


def normalize_transcript(raw: RawTranscript) -> TranscriptionResult:
    """Converts service segments to milliseconds and fills missing confidence."""
    segments = [
        TranscriptSegment(
            start_ms=round(segment.start * raw.time_unit_ms),
            end_ms=round(segment.end * raw.time_unit_ms),
            text=segment.text,
            confidence=(
                segment.confidence
                if segment.confidence is not None
                else DEFAULT_SEGMENT_CONFIDENCE
            ),
        )
        for segment in raw.segments
    ]
    segments.sort(key=lambda s: (s.start_ms, s.end_ms))
    return TranscriptionResult(
        full_text=raw.text,
        segments=segments,
        confidence=(
            raw.confidence if raw.confidence is not None else DEFAULT_SEGMENT_CONFIDENCE
        ),
    )


class TranscriptionStage:
    """Fetches an uploaded recording and transcribes it, using cache when available."""

    def __init__(
        self,
        storage: StorageClient,
        transcription_service: TranscriptionService,
        cache: TranscriptCache | None = None,
    ):
        self._storage = storage
        self._transcription_service = transcription_service
        self._cache = cache

    def transcribe(self, remote_audio_location: str) -> TranscriptionResult:
        """
        Transcribes the recording at remote_audio_location.

        Raises:
            TranscriptionFailedError: On any download, service or decode error.
        """
        try:
            audio_data = self._storage.download(remote_audio_location)
            raw = self._transcription_service.transcribe(audio_data)
            result = normalize_transcript(raw)
        except Exception as e:
            logger.exception(
                "Transcription failed", extra={"audio": remote_audio_location}
            )
            raise TranscriptionFailedError(remote_audio_location, e) from e

        logger.info(
            "Recording transcribed",
            extra={"audio": remote_audio_location, "segments": len(result.segments)},
        )
        return result

    def transcribe_inspection(
        self, inspection_id: str, remote_audio_location: str
    ) -> TranscriptionResult:
        """Transcribes an inspection's recording, reusing a cached transcript."""
        cached = self._cached_transcript(inspection_id)
        if cached is not None:
            return cached

        result = self.transcribe(remote_audio_location)
        self._cache_transcript(inspection_id, result)
        return result

    def _cached_transcript(self, inspection_id: str) -> TranscriptionResult | None:
        if self._cache is None:
            return None
        try:
            return self._cache.get(inspection_id)
        except CacheServiceError:
            logger.warning(
                "Transcript cache unavailable", extra={"inspection_id": inspection_id}
            )
            return None

    def _cache_transcript(
        self, inspection_id: str, transcript: TranscriptionResult
    ) -> None:
        if self._cache is None:
            return
        try:
            self._cache.put(inspection_id, transcript)
        except CacheServiceError:
            logger.warning(
                "Transcript not cached", extra={"inspection_id": inspection_id}
            )
