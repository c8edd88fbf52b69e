from unittest.mock import MagicMock

import pytest

from field_inspection.db_models import InspectionStatus
from field_inspection.domain.models import FAILED_CAPTION, AnalysisStatus, NewPhoto
from field_inspection.domain.transcription_stage import TranscriptionStage
from field_inspection.exceptions import (
    CaptionGenerationError,
    InspectionNotFoundError,
    PhotoNotFoundError,
    StoreError,
)
from field_inspection.handlers import AnalysisHandler
from field_inspection.infrastructure import RedisTranscriptCache

AUDIO_OBJECT = "insp-1/audio/a.m4a"
AUDIO_REFERENCE = f"http://minio.test/inspection-files/{AUDIO_OBJECT}"


@pytest.fixture
def inspection(store, storage, make_inspection):
    """An inspection with an uploaded recording and two photos."""
    inspection = make_inspection("insp-1")
    store.update_audio_location("insp-1", "/media/insp-1/audio/a.m4a")
    store.update_remote_audio_location("insp-1", AUDIO_REFERENCE)
    storage.objects[AUDIO_OBJECT] = b"audio-bytes"
    for photo_id, audio_timestamp in [("p1", 1000), ("p2", 10_000)]:
        store.add_photo(
            NewPhoto(
                id=photo_id,
                inspection_id="insp-1",
                photo_uri=f"/media/{photo_id}.jpg",
                timestamp=1_700_000_000_000,
                audio_timestamp=audio_timestamp,
            )
        )
    return inspection


def test_successful_run_captions_every_photo(analysis_handler, store, inspection):
    result = analysis_handler.process("insp-1")

    assert result.status == AnalysisStatus.COMPLETED
    assert result.failed_captions == 0
    assert [c.photo_id for c in result.photo_captions] == ["p1", "p2"]
    assert result.photo_captions[0].audio_context == "roof shingles missing"
    assert result.photo_captions[1].audio_context == "water stain in attic"
    assert store.get_inspection("insp-1").status == InspectionStatus.READY
    for photo in store.list_photos("insp-1"):
        assert photo.caption.startswith("Caption #")


def test_one_failed_caption_still_completes_ready(
    analysis_handler, caption_service, store, inspection
):
    caption_service.failing_markers = {"water stain"}

    result = analysis_handler.process("insp-1")

    assert result.status == AnalysisStatus.PARTIAL
    assert result.failed_captions == 1
    assert store.get_inspection("insp-1").status == InspectionStatus.READY
    p1, p2 = store.list_photos("insp-1")
    assert p1.caption.startswith("Caption #")
    assert p2.caption == FAILED_CAPTION
    assert analysis_handler.failed_photo_ids("insp-1") == ["p2"]


def test_missing_remote_audio_moves_to_error(
    analysis_handler, transcription_service, store, make_inspection
):
    make_inspection("insp-2")

    result = analysis_handler.process("insp-2")

    assert result.status == AnalysisStatus.FAILED
    assert "No audio file found" in result.error
    assert store.get_inspection("insp-2").status == InspectionStatus.ERROR
    assert transcription_service.calls == 0


def test_transcription_failure_aborts_run(
    analysis_handler, transcription_service, caption_service, store, inspection
):
    transcription_service.fail = True

    result = analysis_handler.process("insp-1")

    assert result.status == AnalysisStatus.FAILED
    assert result.transcription is None
    assert caption_service.prompts == []
    assert store.get_inspection("insp-1").status == InspectionStatus.ERROR
    assert all(photo.caption is None for photo in store.list_photos("insp-1"))


def test_failed_error_write_still_reports_failed(
    analysis_handler, transcription_service, store, inspection, monkeypatch
):
    transcription_service.fail = True
    original = store.update_status

    def update_status(inspection_id, status):
        if status == InspectionStatus.ERROR:
            raise StoreError("disk full")
        return original(inspection_id, status)

    monkeypatch.setattr(store, "update_status", update_status)

    result = analysis_handler.process("insp-1")

    assert result.status == AnalysisStatus.FAILED


def test_inspection_without_photos_completes(
    analysis_handler, caption_service, store, storage, make_inspection
):
    make_inspection("insp-1")
    store.update_remote_audio_location("insp-1", AUDIO_REFERENCE)
    storage.objects[AUDIO_OBJECT] = b"audio-bytes"

    result = analysis_handler.process("insp-1")

    assert result.status == AnalysisStatus.COMPLETED
    assert result.photo_captions == []
    assert caption_service.prompts == []
    assert store.get_inspection("insp-1").status == InspectionStatus.READY


def test_unknown_inspection(analysis_handler):
    with pytest.raises(InspectionNotFoundError):
        analysis_handler.process("missing")


def test_caption_persist_failure_is_skipped(
    analysis_handler, store, inspection, monkeypatch
):
    original = store.update_caption

    def update_caption(photo_id, caption):
        if photo_id == "p1":
            raise PhotoNotFoundError(photo_id)
        return original(photo_id, caption)

    monkeypatch.setattr(store, "update_caption", update_caption)

    result = analysis_handler.process("insp-1")

    assert result.status == AnalysisStatus.PARTIAL
    assert result.failed_persists == 1
    assert store.get_photo("p2").caption.startswith("Caption #")
    assert store.get_inspection("insp-1").status == InspectionStatus.READY


def test_errored_inspection_can_be_reanalyzed(
    analysis_handler, transcription_service, store, inspection
):
    transcription_service.fail = True
    analysis_handler.process("insp-1")
    transcription_service.fail = False

    result = analysis_handler.process("insp-1")

    assert result.status == AnalysisStatus.COMPLETED
    assert store.get_inspection("insp-1").status == InspectionStatus.READY


def test_ready_inspection_is_not_reanalyzed(analysis_handler, store, inspection):
    analysis_handler.process("insp-1")

    result = analysis_handler.process("insp-1")

    assert result.status == AnalysisStatus.FAILED
    assert store.get_inspection("insp-1").status == InspectionStatus.READY


def test_retry_caption_fixes_single_photo(
    analysis_handler, caption_service, transcription_service, store, inspection
):
    caption_service.failing_markers = {"water stain"}
    analysis_handler.process("insp-1")
    caption_service.failing_markers = set()

    result = analysis_handler.retry_caption("p2")

    assert not result.failed
    assert result.audio_context == "water stain in attic"
    assert store.get_photo("p2").caption == result.caption
    assert store.get_inspection("insp-1").status == InspectionStatus.READY
    assert analysis_handler.failed_photo_ids("insp-1") == []
    assert transcription_service.calls == 1


def test_retry_caption_failure_raises(
    analysis_handler, caption_service, store, inspection
):
    caption_service.failing_markers = {"water stain"}
    analysis_handler.process("insp-1")

    with pytest.raises(CaptionGenerationError):
        analysis_handler.retry_caption("p2")

    assert store.get_photo("p2").caption == FAILED_CAPTION


def test_retry_caption_unknown_photo(analysis_handler):
    with pytest.raises(PhotoNotFoundError):
        analysis_handler.retry_caption("missing")


def test_undecodable_cached_transcript_is_transcribed_again(
    store, storage, transcription_service, caption_pipeline, inspection
):
    redis_client = MagicMock()
    redis_client.get.return_value = "{not json"
    handler = AnalysisHandler(
        store,
        TranscriptionStage(
            storage, transcription_service, RedisTranscriptCache(redis_client, 60)
        ),
        caption_pipeline,
    )

    result = handler.process("insp-1")

    assert result.status == AnalysisStatus.COMPLETED
    assert store.get_inspection("insp-1").status == InspectionStatus.READY
    assert transcription_service.calls == 1
    redis_client.delete.assert_called_once_with("transcript:insp-1")
    redis_client.set.assert_called_once()
