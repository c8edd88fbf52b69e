"""Durable on-device store for inspections, photos and the sync outbox."""

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import delete, func
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session as DBSession
from sqlmodel import select

from field_inspection.db_models import (
    Inspection,
    InspectionStatus,
    OutboxEvent,
    OutboxKind,
    OutboxStatus,
    Photo,
)
from field_inspection.domain.clock import Clock, SystemClock
from field_inspection.domain.models import NewInspection, NewPhoto
from field_inspection.exceptions import (
    DuplicateIdError,
    InspectionNotFoundError,
    InvalidStatusTransitionError,
    PhotoNotFoundError,
    UnknownInspectionError,
)
from field_inspection.logging import setup_logging

logger = setup_logging()

ALLOWED_TRANSITIONS = {
    InspectionStatus.DRAFT: {InspectionStatus.PROCESSING},
    InspectionStatus.PROCESSING: {InspectionStatus.READY, InspectionStatus.ERROR},
    InspectionStatus.ERROR: {InspectionStatus.PROCESSING},
    InspectionStatus.READY: set(),
}


class EvidenceStore:
    """
    Handles all local reads and writes for inspections and photos.

    Every mutation commits before returning and appends the matching outbox
    event in the same transaction, so a record is never durable without its
    pending sync obligation.
    """

    def __init__(self, engine: Engine, clock: Clock | None = None):
        self._engine = engine
        self._clock = clock or SystemClock()

    @contextmanager
    def _transaction(self) -> Iterator[DBSession]:
        with DBSession(self._engine, expire_on_commit=False) as db_session:
            yield db_session
            db_session.commit()

    def _read(self) -> DBSession:
        return DBSession(self._engine, expire_on_commit=False)

    def create_inspection(self, new_inspection: NewInspection) -> Inspection:
        """
        Inserts a new inspection with a caller-supplied id.

        Raises:
            DuplicateIdError: If the id already exists.
        """
        now = self._clock.now_ms()
        inspection = Inspection(
            **new_inspection.model_dump(exclude={"status"}),
            status=InspectionStatus(new_inspection.status).value,
            created_at=now,
            updated_at=now,
        )

        try:
            with self._transaction() as db_session:
                if db_session.get(Inspection, inspection.id) is not None:
                    raise DuplicateIdError(inspection.id)
                db_session.add(inspection)
                self._enqueue(db_session, OutboxKind.INSPECTION_UPSERT, inspection.id)
        except IntegrityError as e:
            raise DuplicateIdError(inspection.id) from e

        logger.info("Inspection created", extra={"inspection_id": inspection.id})
        return inspection

    def add_photo(self, new_photo: NewPhoto) -> Photo:
        """
        Inserts a new photo for an existing inspection.

        Raises:
            UnknownInspectionError: If the referenced inspection does not exist.
            DuplicateIdError: If the photo id already exists.
        """
        now = self._clock.now_ms()
        photo = Photo(**new_photo.model_dump(), created_at=now)

        try:
            with self._transaction() as db_session:
                inspection = db_session.get(Inspection, photo.inspection_id)
                if inspection is None:
                    raise UnknownInspectionError(photo.inspection_id)
                if db_session.get(Photo, photo.id) is not None:
                    raise DuplicateIdError(photo.id, entity="Photo")

                db_session.add(photo)
                inspection.updated_at = now
                db_session.add(inspection)
                self._enqueue(db_session, OutboxKind.PHOTO_UPSERT, photo.id)
                self._enqueue(db_session, OutboxKind.PHOTO_UPLOAD, photo.id)
        except IntegrityError as e:
            raise UnknownInspectionError(photo.inspection_id) from e

        logger.info(
            "Photo added",
            extra={
                "photo_id": photo.id,
                "inspection_id": photo.inspection_id,
                "audio_timestamp": photo.audio_timestamp,
            },
        )
        return photo

    def get_inspection(self, inspection_id: str) -> Inspection:
        """
        Raises:
            InspectionNotFoundError: If the inspection does not exist.
        """
        inspection = self.find_inspection(inspection_id)
        if inspection is None:
            raise InspectionNotFoundError(inspection_id)
        return inspection

    def find_inspection(self, inspection_id: str) -> Inspection | None:
        with self._read() as db_session:
            return db_session.get(Inspection, inspection_id)

    def get_photo(self, photo_id: str) -> Photo:
        """
        Raises:
            PhotoNotFoundError: If the photo does not exist.
        """
        photo = self.find_photo(photo_id)
        if photo is None:
            raise PhotoNotFoundError(photo_id)
        return photo

    def find_photo(self, photo_id: str) -> Photo | None:
        with self._read() as db_session:
            return db_session.get(Photo, photo_id)

    def list_inspections(self) -> list[Inspection]:
        """Returns all inspections, most recently created first."""
        statement = select(Inspection).order_by(
            Inspection.created_at.desc(), Inspection.id
        )
        with self._read() as db_session:
            return list(db_session.exec(statement).all())

    def list_photos(self, inspection_id: str) -> list[Photo]:
        """Returns an inspection's photos ordered by audio timestamp."""
        statement = (
            select(Photo)
            .where(Photo.inspection_id == inspection_id)
            .order_by(Photo.audio_timestamp, Photo.created_at, Photo.id)
        )
        with self._read() as db_session:
            return list(db_session.exec(statement).all())

    def delete_inspection(self, inspection_id: str) -> None:
        """
        Deletes an inspection and, through the foreign key cascade, its photos.

        Raises:
            InspectionNotFoundError: If the inspection does not exist.
        """
        with self._transaction() as db_session:
            if db_session.get(Inspection, inspection_id) is None:
                raise InspectionNotFoundError(inspection_id)
            db_session.execute(
                delete(Inspection).where(Inspection.id == inspection_id)
            )
            self._enqueue(db_session, OutboxKind.INSPECTION_DELETE, inspection_id)

        logger.info("Inspection deleted", extra={"inspection_id": inspection_id})

    def update_audio_location(self, inspection_id: str, audio_uri: str) -> Inspection:
        """Records the durable local audio file and schedules its upload."""
        return self._update_inspection(
            inspection_id,
            {"audio_uri": audio_uri},
            OutboxKind.INSPECTION_UPSERT,
            OutboxKind.AUDIO_UPLOAD,
        )

    def update_remote_audio_location(
        self, inspection_id: str, remote_audio_url: str
    ) -> Inspection:
        return self._update_inspection(
            inspection_id,
            {"remote_audio_url": remote_audio_url},
            OutboxKind.INSPECTION_UPSERT,
        )

    def update_status(
        self, inspection_id: str, status: InspectionStatus
    ) -> Inspection:
        """
        Moves an inspection through its lifecycle.

        Writing the current status again is accepted and changes nothing.

        Raises:
            InspectionNotFoundError: If the inspection does not exist.
            InvalidStatusTransitionError: If the transition is not allowed.
        """
        status = InspectionStatus(status)
        with self._transaction() as db_session:
            inspection = db_session.get(Inspection, inspection_id)
            if inspection is None:
                raise InspectionNotFoundError(inspection_id)

            current = InspectionStatus(inspection.status)
            if current == status:
                return inspection
            if status not in ALLOWED_TRANSITIONS[current]:
                raise InvalidStatusTransitionError(
                    inspection_id, current.value, status.value
                )

            inspection.status = status.value
            inspection.updated_at = self._clock.now_ms()
            db_session.add(inspection)
            self._enqueue(db_session, OutboxKind.INSPECTION_UPSERT, inspection_id)

        logger.info(
            "Inspection status updated",
            extra={
                "inspection_id": inspection_id,
                "from_status": current.value,
                "to_status": status.value,
            },
        )
        return inspection

    def update_remote_photo_location(self, photo_id: str, remote_url: str) -> Photo:
        return self._update_photo(photo_id, {"remote_url": remote_url})

    def update_caption(self, photo_id: str, caption: str) -> Photo:
        return self._update_photo(photo_id, {"caption": caption})

    def inspections_missing_remote_audio(self) -> list[Inspection]:
        """Inspections with a local recording that never reached remote storage."""
        statement = select(Inspection).where(
            Inspection.audio_uri.is_not(None),
            Inspection.remote_audio_url.is_(None),
        )
        with self._read() as db_session:
            return list(db_session.exec(statement).all())

    def photos_missing_remote_url(self) -> list[Photo]:
        statement = select(Photo).where(Photo.remote_url.is_(None))
        with self._read() as db_session:
            return list(db_session.exec(statement).all())

    def enqueue(self, kind: OutboxKind, entity_id: str) -> None:
        """Schedules a sync event outside of any record mutation."""
        with self._transaction() as db_session:
            self._enqueue(db_session, kind, entity_id)

    def due_events(self, now_ms: int, limit: int = 50) -> list[OutboxEvent]:
        """Pending outbox events whose next attempt is due, oldest first."""
        statement = (
            select(OutboxEvent)
            .where(
                OutboxEvent.status == OutboxStatus.PENDING.value,
                OutboxEvent.next_attempt_at <= now_ms,
            )
            .order_by(OutboxEvent.id)
            .limit(limit)
        )
        with self._read() as db_session:
            return list(db_session.exec(statement).all())

    def complete_event(self, event: OutboxEvent) -> bool:
        """
        Removes a delivered event.

        Returns False and keeps the event pending when a newer mutation was
        coalesced into it while it was being delivered.
        """
        with self._transaction() as db_session:
            current = db_session.get(OutboxEvent, event.id)
            if current is None:
                return True
            if current.revision != event.revision:
                current.attempts = 0
                current.next_attempt_at = self._clock.now_ms()
                db_session.add(current)
                return False
            db_session.delete(current)
            return True

    def reschedule_event(
        self, event: OutboxEvent, next_attempt_at: int, error: str
    ) -> OutboxEvent:
        with self._transaction() as db_session:
            current = db_session.get(OutboxEvent, event.id)
            current.attempts += 1
            current.next_attempt_at = next_attempt_at
            current.last_error = error
            db_session.add(current)
            return current

    def dead_letter_event(self, event: OutboxEvent, error: str) -> OutboxEvent:
        with self._transaction() as db_session:
            current = db_session.get(OutboxEvent, event.id)
            current.attempts += 1
            current.status = OutboxStatus.DEAD.value
            current.last_error = error
            db_session.add(current)
            return current

    def drop_event(self, event: OutboxEvent) -> None:
        with self._transaction() as db_session:
            current = db_session.get(OutboxEvent, event.id)
            if current is not None:
                db_session.delete(current)

    def count_events(self, status: OutboxStatus = OutboxStatus.PENDING) -> int:
        statement = select(func.count(OutboxEvent.id)).where(
            OutboxEvent.status == OutboxStatus(status).value
        )
        with self._read() as db_session:
            return db_session.exec(statement).one()

    def list_events(
        self, status: OutboxStatus = OutboxStatus.PENDING
    ) -> list[OutboxEvent]:
        statement = (
            select(OutboxEvent)
            .where(OutboxEvent.status == OutboxStatus(status).value)
            .order_by(OutboxEvent.id)
        )
        with self._read() as db_session:
            return list(db_session.exec(statement).all())

    def _update_inspection(
        self, inspection_id: str, changes: dict, *kinds: OutboxKind
    ) -> Inspection:
        with self._transaction() as db_session:
            inspection = db_session.get(Inspection, inspection_id)
            if inspection is None:
                raise InspectionNotFoundError(inspection_id)

            for field, value in changes.items():
                setattr(inspection, field, value)
            inspection.updated_at = self._clock.now_ms()
            db_session.add(inspection)
            for kind in kinds:
                self._enqueue(db_session, kind, inspection_id)

        logger.info(
            "Inspection updated",
            extra={"inspection_id": inspection_id, "fields": sorted(changes)},
        )
        return inspection

    def _update_photo(self, photo_id: str, changes: dict) -> Photo:
        with self._transaction() as db_session:
            photo = db_session.get(Photo, photo_id)
            if photo is None:
                raise PhotoNotFoundError(photo_id)

            for field, value in changes.items():
                setattr(photo, field, value)
            db_session.add(photo)

            inspection = db_session.get(Inspection, photo.inspection_id)
            inspection.updated_at = self._clock.now_ms()
            db_session.add(inspection)
            self._enqueue(db_session, OutboxKind.PHOTO_UPSERT, photo_id)

        logger.info(
            "Photo updated", extra={"photo_id": photo_id, "fields": sorted(changes)}
        )
        return photo

    def _enqueue(
        self, db_session: DBSession, kind: OutboxKind, entity_id: str
    ) -> None:
        kind = OutboxKind(kind)
        statement = select(OutboxEvent).where(
            OutboxEvent.kind == kind.value,
            OutboxEvent.entity_id == entity_id,
            OutboxEvent.status == OutboxStatus.PENDING.value,
        )
        pending = db_session.exec(statement).first()
        if pending is not None:
            pending.revision += 1
            db_session.add(pending)
            return

        now = self._clock.now_ms()
        db_session.add(
            OutboxEvent(
                kind=kind.value,
                entity_id=entity_id,
                next_attempt_at=now,
                created_at=now,
            )
        )
