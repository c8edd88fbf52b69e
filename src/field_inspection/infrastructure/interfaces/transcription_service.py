"""Abstract interface for transcription service operations."""

from abc import ABC, abstractmethod

from field_inspection.domain.models import RawTranscript


class TranscriptionService(ABC):
    """Abstract base class for speech-to-text backends."""

    @abstractmethod
    def transcribe(self, audio_data: bytes) -> RawTranscript:
        """
        Transcribes audio data into time-aligned segments.

        Args:
            audio_data: Raw audio file bytes.

        Returns:
            RawTranscript with segment boundaries in the service's native
            unit, declared by its time_unit_ms.

        Raises:
            TranscriptionServiceError: If transcription fails.
        """
        pass
