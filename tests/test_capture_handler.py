from pathlib import Path

import pytest

from field_inspection.db_models import InspectionStatus, OutboxKind
from field_inspection.exceptions import (
    FileMoveError,
    InspectionNotFoundError,
    NoActiveRecordingError,
    PermissionDeniedError,
)
from field_inspection.infrastructure.interfaces import FileMover


class FailingFileMover(FileMover):
    def move(self, source: str, destination: Path) -> str:
        raise FileMoveError(source, str(destination), OSError("disk full"))


def test_begin_inspection_creates_draft(capture_handler, store, details):
    inspection = capture_handler.begin_inspection(details, "2024-05-01")

    stored = store.get_inspection(inspection.id)
    assert stored.status == InspectionStatus.DRAFT
    assert stored.claim_number == "CLM-001"


def test_photos_are_stamped_with_recording_duration(
    capture_handler, session, recording_clock, store, details, tmp_path
):
    inspection = capture_handler.begin_inspection(details, "2024-05-01", "insp-1")
    capture_handler.start_recording("insp-1")

    recording_clock.advance(2000)
    session.tick()
    first = capture_handler.capture_photo("insp-1")
    recording_clock.advance(3000)
    session.tick()
    second = capture_handler.capture_photo("insp-1")

    assert first.audio_timestamp == 2000
    assert second.audio_timestamp == 5000
    assert Path(first.photo_uri).parent == tmp_path / "media" / inspection.id / "photos"
    assert Path(first.photo_uri).is_file()
    assert [p.id for p in store.list_photos("insp-1")] == [first.id, second.id]


def test_photo_without_recording_has_zero_audio_timestamp(
    capture_handler, make_inspection
):
    make_inspection("insp-1")

    photo = capture_handler.capture_photo("insp-1")

    assert photo.audio_timestamp == 0


def test_camera_permission_denied(capture_handler, device, store, make_inspection):
    make_inspection("insp-1")
    device.camera_granted = False

    with pytest.raises(PermissionDeniedError):
        capture_handler.capture_photo("insp-1")

    assert store.list_photos("insp-1") == []
    assert device.photos_taken == 0


def test_stop_recording_links_durable_audio(
    capture_handler, recording_clock, session, store, make_inspection, tmp_path
):
    make_inspection("insp-1")
    capture_handler.start_recording("insp-1")
    recording_clock.advance(60_000)

    inspection = capture_handler.stop_recording("insp-1")

    expected = tmp_path / "media" / "insp-1" / "audio" / "recording-0.m4a"
    assert inspection.audio_uri == str(expected)
    assert expected.read_bytes() == b"audio-bytes"
    assert not session.state.is_recording
    assert (OutboxKind.AUDIO_UPLOAD, "insp-1") in [
        (e.kind, e.entity_id) for e in store.list_events()
    ]


def test_stop_without_recording(capture_handler, make_inspection):
    make_inspection("insp-1")

    with pytest.raises(NoActiveRecordingError):
        capture_handler.stop_recording("insp-1")


def test_start_recording_requires_known_inspection(capture_handler, session):
    with pytest.raises(InspectionNotFoundError):
        capture_handler.start_recording("missing")

    assert not session.state.is_recording


def test_failed_move_aborts_photo_capture(
    store, session, device, tmp_path, clock, make_inspection
):
    from field_inspection.handlers import CaptureHandler

    handler = CaptureHandler(
        store, session, device, FailingFileMover(), tmp_path / "media", clock=clock
    )
    make_inspection("insp-1")

    with pytest.raises(FileMoveError):
        handler.capture_photo("insp-1")

    assert store.list_photos("insp-1") == []


def test_reset_recording(capture_handler, session, make_inspection):
    make_inspection("insp-1")
    capture_handler.start_recording("insp-1")

    capture_handler.reset_recording()

    assert not session.state.is_recording
    capture_handler.start_recording("insp-1")
