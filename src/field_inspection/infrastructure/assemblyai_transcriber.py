"""AssemblyAI implementation of the TranscriptionService interface."""

import tempfile

import assemblyai as aai

from field_inspection.domain.models import RawSegment, RawTranscript
from field_inspection.exceptions import TranscriptionServiceError
from field_inspection.infrastructure.interfaces import TranscriptionService
from field_inspection.logging import setup_logging

logger = setup_logging()

# AssemblyAI reports utterance boundaries in milliseconds.
ASSEMBLYAI_TIME_UNIT_MS = 1.0


class AssemblyAITranscriber(TranscriptionService):
    """Handles audio transcription using AssemblyAI."""

    def __init__(self, transcriber: aai.Transcriber):
        self._transcriber = transcriber

    def transcribe(self, audio_data: bytes) -> RawTranscript:
        """
        Transcribes audio data using AssemblyAI.

        Writes audio to a temp file (required by AssemblyAI SDK), performs
        transcription, and returns utterance-level segments.
        """
        try:
            with tempfile.NamedTemporaryFile(suffix=".m4a", delete=True) as temp_file:
                temp_file.write(audio_data)
                temp_file.flush()

                transcription = self._transcriber.transcribe(temp_file.name)

            if transcription.status == aai.TranscriptStatus.error:
                raise TranscriptionServiceError(
                    f"AssemblyAI transcription error: {transcription.error}"
                )

            if transcription.text is None:
                raise TranscriptionServiceError("Transcription returned no text")

            segments = [
                RawSegment(
                    start=u.start,
                    end=u.end,
                    text=u.text,
                    confidence=u.confidence,
                )
                for u in transcription.utterances or []
            ]

            logger.info(
                "Audio transcription successful",
                extra={"segment_count": len(segments)},
            )
            return RawTranscript(
                text=transcription.text,
                segments=segments,
                confidence=transcription.confidence,
                time_unit_ms=ASSEMBLYAI_TIME_UNIT_MS,
            )

        except TranscriptionServiceError:
            raise
        except Exception as e:
            logger.exception("AssemblyAI transcription failed")
            raise TranscriptionServiceError(
                f"AssemblyAI transcription failed: {e}", cause=e
            ) from e
