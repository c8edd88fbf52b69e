"""Handler that mirrors the local evidence store to remote storage."""

import mimetypes
from pathlib import Path

from field_inspection.db_models import OutboxEvent, OutboxKind
from field_inspection.domain.clock import Clock, SystemClock
from field_inspection.domain.models import SyncReport
from field_inspection.exceptions import LocalFileNotFoundError, NotFoundError, SyncError
from field_inspection.infrastructure.interfaces.document_store import DocumentStore
from field_inspection.infrastructure.interfaces.storage import StorageClient
from field_inspection.logging import setup_logging
from field_inspection.repositories.evidence_store import EvidenceStore

logger = setup_logging()

DEFAULT_AUDIO_CONTENT_TYPE = "audio/mp4"
DEFAULT_PHOTO_CONTENT_TYPE = "image/jpeg"


def audio_object_name(inspection_id: str, audio_uri: str) -> str:
    return f"{inspection_id}/audio/{Path(audio_uri).name}"


def photo_object_name(inspection_id: str, photo_id: str, photo_uri: str) -> str:
    suffix = Path(photo_uri).suffix or ".jpg"
    return f"{inspection_id}/photos/{photo_id}{suffix}"


class SyncHandler:
    """
    Drains the outbox into the remote document store and object storage.

    Delivery is at-least-once: upserts are keyed by the local id and uploads
    use deterministic object names, so redelivering an event never creates a
    second remote record.
    """

    def __init__(
        self,
        store: EvidenceStore,
        document_store: DocumentStore,
        storage: StorageClient,
        clock: Clock | None = None,
        max_attempts: int = 5,
        backoff_base_ms: int = 2000,
        backoff_cap_ms: int = 300_000,
        batch_limit: int = 50,
    ):
        self._store = store
        self._document_store = document_store
        self._storage = storage
        self._clock = clock or SystemClock()
        self._max_attempts = max_attempts
        self._backoff_base_ms = backoff_base_ms
        self._backoff_cap_ms = backoff_cap_ms
        self._batch_limit = batch_limit

    def drain(self) -> SyncReport:
        """Delivers every outbox event that is currently due."""
        report = SyncReport()
        events = self._store.due_events(self._clock.now_ms(), self._batch_limit)

        for event in events:
            try:
                delivered = self.deliver(event)
            except LocalFileNotFoundError as e:
                logger.exception(
                    "Local file missing, dead-lettering event",
                    extra={"event_id": event.id, "entity_id": event.entity_id},
                )
                self._store.dead_letter_event(event, str(e))
                report.dead_lettered += 1
                continue
            except SyncError as e:
                logger.exception(
                    "Sync event delivery failed",
                    extra={
                        "event_id": event.id,
                        "kind": event.kind,
                        "attempt": event.attempts + 1,
                    },
                )
                if self._retry_later(event, str(e)):
                    report.retried += 1
                else:
                    report.dead_lettered += 1
                continue

            if not delivered:
                self._store.drop_event(event)
                report.dropped += 1
            elif self._store.complete_event(event):
                report.delivered += 1
            else:
                logger.info(
                    "Record changed during delivery, event kept pending",
                    extra={"event_id": event.id, "entity_id": event.entity_id},
                )
                report.superseded += 1

        if events:
            logger.info("Outbox drained", extra=report.model_dump())
        return report

    def deliver(self, event: OutboxEvent) -> bool:
        """
        Delivers one event.

        Returns:
            False if the event's record no longer exists locally.

        Raises:
            LocalFileNotFoundError: If a file to upload is gone.
            SyncError: If a remote call fails.
        """
        kind = OutboxKind(event.kind)
        try:
            if kind == OutboxKind.INSPECTION_UPSERT:
                return self._upsert_inspection(event.entity_id)
            if kind == OutboxKind.PHOTO_UPSERT:
                return self._upsert_photo(event.entity_id)
            if kind == OutboxKind.AUDIO_UPLOAD:
                return self._upload_audio(event.entity_id)
            if kind == OutboxKind.PHOTO_UPLOAD:
                return self._upload_photo(event.entity_id)
            self._document_store.delete_inspection(event.entity_id)
            return True
        except NotFoundError:
            # Deleted locally while the upload was in flight.
            return False

    def reconcile(self) -> int:
        """
        Re-enqueues uploads for media that never reached remote storage.

        Covers a process exit between stopping a recording and linking its
        remote copy. Returns the number of uploads scheduled.
        """
        scheduled = 0
        for inspection in self._store.inspections_missing_remote_audio():
            self._store.enqueue(OutboxKind.AUDIO_UPLOAD, inspection.id)
            scheduled += 1
        for photo in self._store.photos_missing_remote_url():
            self._store.enqueue(OutboxKind.PHOTO_UPLOAD, photo.id)
            scheduled += 1

        if scheduled:
            logger.info("Reconciliation scheduled uploads", extra={"count": scheduled})
        return scheduled

    def backoff_ms(self, attempts: int) -> int:
        """Delay before the next attempt after `attempts` failures so far."""
        return min(self._backoff_cap_ms, self._backoff_base_ms * 2**attempts)

    def _retry_later(self, event: OutboxEvent, error: str) -> bool:
        if event.attempts + 1 >= self._max_attempts:
            logger.error(
                "Sync event exhausted retries",
                extra={"event_id": event.id, "kind": event.kind},
            )
            self._store.dead_letter_event(event, error)
            return False

        next_attempt_at = self._clock.now_ms() + self.backoff_ms(event.attempts)
        self._store.reschedule_event(event, next_attempt_at, error)
        return True

    def _upsert_inspection(self, inspection_id: str) -> bool:
        inspection = self._store.find_inspection(inspection_id)
        if inspection is None:
            return False
        self._document_store.upsert_inspection(inspection)
        return True

    def _upsert_photo(self, photo_id: str) -> bool:
        photo = self._store.find_photo(photo_id)
        if photo is None:
            return False
        self._document_store.upsert_photo(photo)
        return True

    def _upload_audio(self, inspection_id: str) -> bool:
        inspection = self._store.find_inspection(inspection_id)
        if inspection is None or inspection.audio_uri is None:
            return False

        audio_uri = inspection.audio_uri
        result = self._storage.upload_file(
            local_path=audio_uri,
            object_name=audio_object_name(inspection.id, audio_uri),
            content_type=_content_type(audio_uri, DEFAULT_AUDIO_CONTENT_TYPE),
        )
        self._store.update_remote_audio_location(inspection.id, result.reference)
        return True

    def _upload_photo(self, photo_id: str) -> bool:
        photo = self._store.find_photo(photo_id)
        if photo is None:
            return False

        result = self._storage.upload_file(
            local_path=photo.photo_uri,
            object_name=photo_object_name(
                photo.inspection_id, photo.id, photo.photo_uri
            ),
            content_type=_content_type(photo.photo_uri, DEFAULT_PHOTO_CONTENT_TYPE),
        )
        self._store.update_remote_photo_location(photo.id, result.reference)
        return True


def _content_type(path: str, default: str) -> str:
    content_type, _ = mimetypes.guess_type(path)
    return content_type or default
