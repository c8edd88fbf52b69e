"""Handler for on-site evidence capture."""

from pathlib import Path
from uuid import uuid4

from field_inspection.db_models import Inspection, Photo
from field_inspection.domain.clock import Clock, SystemClock
from field_inspection.domain.models import (
    InspectionDetails,
    NewInspection,
    NewPhoto,
    RecordingState,
)
from field_inspection.domain.recording_session import RecordingSession, Ticker
from field_inspection.exceptions import CaptureDeviceError, PermissionDeniedError
from field_inspection.infrastructure.interfaces.capture_device import CaptureDevice
from field_inspection.infrastructure.interfaces.file_mover import FileMover
from field_inspection.logging import setup_logging
from field_inspection.repositories.evidence_store import EvidenceStore

logger = setup_logging()

DEFAULT_PHOTO_SUFFIX = ".jpg"


class CaptureHandler:
    """
    Orchestrates an inspection's recording and the photos taken during it.

    Captured files are moved into media_dir before their records are written,
    so every stored location points at durable storage. Remote sync is left to
    the outbox written alongside each record.
    """

    def __init__(
        self,
        store: EvidenceStore,
        session: RecordingSession,
        device: CaptureDevice,
        file_mover: FileMover,
        media_dir: Path,
        ticker: Ticker | None = None,
        clock: Clock | None = None,
    ):
        self._store = store
        self._session = session
        self._device = device
        self._file_mover = file_mover
        self._media_dir = Path(media_dir)
        self._ticker = ticker
        self._clock = clock or SystemClock()

    def begin_inspection(
        self,
        details: InspectionDetails,
        inspection_date: str,
        inspection_id: str | None = None,
    ) -> Inspection:
        """Creates a DRAFT inspection ready for capture."""
        return self._store.create_inspection(
            NewInspection(
                id=inspection_id or str(uuid4()),
                client=details.client,
                address=details.address,
                claim_number=details.claim_number,
                inspection_date=inspection_date,
            )
        )

    def start_recording(self, inspection_id: str) -> RecordingState:
        """
        Starts the inspection's audio recording.

        Raises:
            InspectionNotFoundError: If the inspection does not exist.
            PermissionDeniedError: If microphone access is refused.
            DeviceBusyError: If a recording is already active.
        """
        self._store.get_inspection(inspection_id)
        state = self._session.start()
        if self._ticker is not None:
            self._ticker.start()

        logger.info("Capture started", extra={"inspection_id": inspection_id})
        return state

    def capture_photo(self, inspection_id: str) -> Photo:
        """
        Takes a photo stamped with the current recording duration.

        The duration is held steady from the shutter until the record is
        committed.

        Raises:
            PermissionDeniedError: If camera access is refused.
            CaptureDeviceError: If the camera fails.
            FileMoveError: If the photo cannot be moved to durable storage.
            UnknownInspectionError: If the inspection does not exist.
        """
        if not self._device.request_camera_permission():
            logger.warning(
                "Camera permission denied", extra={"inspection_id": inspection_id}
            )
            raise PermissionDeniedError("camera")

        photo_id = str(uuid4())
        with self._session.stamp() as audio_timestamp:
            try:
                media = self._device.capture_photo()
            except CaptureDeviceError:
                raise
            except Exception as e:
                logger.exception(
                    "Failed to capture photo", extra={"inspection_id": inspection_id}
                )
                raise CaptureDeviceError("capture_photo", e) from e

            suffix = Path(media.local_uri).suffix or DEFAULT_PHOTO_SUFFIX
            file_name = f"{photo_id}{suffix}"
            destination = self._media_dir / inspection_id / "photos" / file_name
            photo_uri = self._file_mover.move(media.local_uri, destination)

            return self._store.add_photo(
                NewPhoto(
                    id=photo_id,
                    inspection_id=inspection_id,
                    photo_uri=photo_uri,
                    timestamp=self._clock.now_ms(),
                    audio_timestamp=audio_timestamp,
                )
            )

    def stop_recording(self, inspection_id: str) -> Inspection:
        """
        Stops the recording and links the durable audio file to the inspection.

        Raises:
            NoActiveRecordingError: If no recording is active.
            CaptureDeviceError: If the device fails to finalize the file.
            FileMoveError: If the audio cannot be moved to durable storage.
        """
        try:
            local_uri = self._session.stop()
        finally:
            if self._ticker is not None:
                self._ticker.stop()

        destination = self._media_dir / inspection_id / "audio" / Path(local_uri).name
        audio_uri = self._file_mover.move(local_uri, destination)
        inspection = self._store.update_audio_location(inspection_id, audio_uri)

        logger.info(
            "Capture stopped",
            extra={"inspection_id": inspection_id, "audio_uri": audio_uri},
        )
        return inspection

    def reset_recording(self) -> None:
        if self._ticker is not None:
            self._ticker.stop()
        self._session.reset()
