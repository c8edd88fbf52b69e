"""Handler for post-capture inspection analysis."""

from field_inspection.db_models import Inspection, InspectionStatus, Photo
from field_inspection.domain.caption_pipeline import CaptionBatchPipeline
from field_inspection.domain.context_extraction import (
    BATCH_WINDOW_MS,
    LOOKUP_WINDOW_MS,
    context_for,
)
from field_inspection.domain.models import (
    FAILED_CAPTION,
    AnalysisResult,
    AnalysisStatus,
    CaptionRequest,
    CaptionResult,
    InspectionDetails,
    TranscriptionResult,
)
from field_inspection.domain.transcription_stage import TranscriptionStage
from field_inspection.exceptions import (
    InvalidStatusTransitionError,
    NoAudioError,
    TranscriptionFailedError,
)
from field_inspection.logging import setup_logging
from field_inspection.repositories.evidence_store import EvidenceStore

logger = setup_logging()


class AnalysisHandler:
    """Transcribes an inspection's recording and captions its photos."""

    def __init__(
        self,
        store: EvidenceStore,
        transcription_stage: TranscriptionStage,
        caption_pipeline: CaptionBatchPipeline,
        window_ms: int = BATCH_WINDOW_MS,
        lookup_window_ms: int = LOOKUP_WINDOW_MS,
    ):
        self._store = store
        self._transcription_stage = transcription_stage
        self._caption_pipeline = caption_pipeline
        self._window_ms = window_ms
        self._lookup_window_ms = lookup_window_ms

    def process(self, inspection_id: str) -> AnalysisResult:
        """
        Runs the full analysis for one inspection.

        Transcription failures and a missing recording move the inspection to
        ERROR and are reported as FAILED. Individual caption failures leave
        the sentinel caption on the photo and are reported as PARTIAL.

        Args:
            inspection_id: The inspection to analyze.

        Returns:
            AnalysisResult with the transcript and one caption per photo.

        Raises:
            InspectionNotFoundError: If the inspection does not exist.
        """
        logger.info("Processing inspection", extra={"inspection_id": inspection_id})

        inspection = self._store.get_inspection(inspection_id)

        try:
            self._store.update_status(inspection_id, InspectionStatus.PROCESSING)
        except InvalidStatusTransitionError as e:
            logger.warning(
                "Inspection cannot be analyzed in its current status",
                extra={"inspection_id": inspection_id, "status": inspection.status},
            )
            return AnalysisResult(
                inspection_id=inspection_id,
                status=AnalysisStatus.FAILED,
                error=str(e),
            )

        try:
            transcription = self._transcribe(inspection)
        except (NoAudioError, TranscriptionFailedError) as e:
            logger.exception("Analysis failed", extra={"inspection_id": inspection_id})
            self._mark_error(inspection_id)
            return AnalysisResult(
                inspection_id=inspection_id,
                status=AnalysisStatus.FAILED,
                error=str(e),
            )

        photos = self._store.list_photos(inspection_id)
        requests = [
            self._caption_request(inspection, photo, transcription, self._window_ms)
            for photo in photos
        ]
        captions = self._caption_pipeline.generate_batch(requests)

        failed_persists = 0
        for caption in captions:
            try:
                self._store.update_caption(caption.photo_id, caption.caption)
            except Exception:
                logger.exception(
                    "Failed to save caption",
                    extra={
                        "inspection_id": inspection_id,
                        "photo_id": caption.photo_id,
                    },
                )
                failed_persists += 1

        self._store.update_status(inspection_id, InspectionStatus.READY)

        failed_captions = sum(1 for caption in captions if caption.failed)
        status = (
            AnalysisStatus.PARTIAL
            if failed_captions or failed_persists
            else AnalysisStatus.COMPLETED
        )

        logger.info(
            "Inspection processed",
            extra={
                "inspection_id": inspection_id,
                "status": status.value,
                "photos": len(photos),
                "failed_captions": failed_captions,
                "failed_persists": failed_persists,
            },
        )

        return AnalysisResult(
            inspection_id=inspection_id,
            status=status,
            transcription=transcription,
            photo_captions=captions,
            failed_captions=failed_captions,
            failed_persists=failed_persists,
        )

    def retry_caption(self, photo_id: str) -> CaptionResult:
        """
        Regenerates the caption of a single photo.

        The inspection status is left untouched. Context is taken from the
        wider lookup window.

        Raises:
            PhotoNotFoundError: If the photo does not exist.
            NoAudioError: If the inspection has no uploaded recording.
            TranscriptionFailedError: If the recording cannot be transcribed.
            CaptionGenerationError: If the caption service fails again.
        """
        photo = self._store.get_photo(photo_id)
        inspection = self._store.get_inspection(photo.inspection_id)
        transcription = self._transcribe(inspection)

        result = self._caption_pipeline.generate(
            self._caption_request(
                inspection, photo, transcription, self._lookup_window_ms
            )
        )
        self._store.update_caption(photo_id, result.caption)

        logger.info(
            "Caption regenerated",
            extra={"inspection_id": inspection.id, "photo_id": photo_id},
        )
        return result

    def failed_photo_ids(self, inspection_id: str) -> list[str]:
        """Ids of photos with no caption or the failure sentinel."""
        return [
            photo.id
            for photo in self._store.list_photos(inspection_id)
            if not photo.caption or photo.caption == FAILED_CAPTION
        ]

    def _transcribe(self, inspection: Inspection) -> TranscriptionResult:
        if not inspection.remote_audio_url:
            raise NoAudioError(inspection.id)
        return self._transcription_stage.transcribe_inspection(
            inspection.id, inspection.remote_audio_url
        )

    def _caption_request(
        self,
        inspection: Inspection,
        photo: Photo,
        transcription: TranscriptionResult,
        window_ms: int,
    ) -> CaptionRequest:
        return CaptionRequest(
            photo_id=photo.id,
            photo_timestamp_ms=photo.audio_timestamp,
            audio_context=context_for(
                transcription.segments, photo.audio_timestamp, window_ms
            ),
            inspection=InspectionDetails(
                client=inspection.client,
                address=inspection.address,
                claim_number=inspection.claim_number,
            ),
        )

    def _mark_error(self, inspection_id: str) -> None:
        try:
            self._store.update_status(inspection_id, InspectionStatus.ERROR)
        except Exception:
            logger.exception(
                "Failed to mark inspection as errored",
                extra={"inspection_id": inspection_id},
            )
