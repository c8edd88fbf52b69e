"""PostgreSQL implementation of the remote DocumentStore."""

from sqlalchemy import delete
from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from field_inspection.db_models import Inspection, Photo
from field_inspection.exceptions import DocumentStoreError
from field_inspection.infrastructure.interfaces import DocumentStore
from field_inspection.logging import setup_logging

logger = setup_logging()


class PostgresDocumentStore(DocumentStore):
    """
    Mirrors local inspection and photo records into PostgreSQL.

    Writes merge on primary key, so replaying the same record any number of
    times leaves exactly one row.
    """

    def __init__(self, engine: Engine):
        self._engine = engine

    def upsert_inspection(self, inspection: Inspection) -> None:
        self._merge(
            "inspections", inspection.id, Inspection(**inspection.model_dump())
        )

    def upsert_photo(self, photo: Photo) -> None:
        self._merge("photos", photo.id, Photo(**photo.model_dump()))

    def delete_inspection(self, inspection_id: str) -> None:
        try:
            with Session(self._engine) as db_session:
                db_session.execute(
                    delete(Photo).where(Photo.inspection_id == inspection_id)
                )
                db_session.execute(
                    delete(Inspection).where(Inspection.id == inspection_id)
                )
                db_session.commit()
            logger.info(
                "Remote inspection deleted", extra={"inspection_id": inspection_id}
            )
        except Exception as e:
            logger.exception(
                "Remote delete failed", extra={"inspection_id": inspection_id}
            )
            raise DocumentStoreError("inspections", inspection_id, cause=e) from e

    def get_inspection(self, inspection_id: str) -> Inspection | None:
        with Session(self._engine, expire_on_commit=False) as db_session:
            return db_session.get(Inspection, inspection_id)

    def list_photos(self, inspection_id: str) -> list[Photo]:
        statement = (
            select(Photo)
            .where(Photo.inspection_id == inspection_id)
            .order_by(Photo.audio_timestamp, Photo.created_at)
        )
        with Session(self._engine, expire_on_commit=False) as db_session:
            return list(db_session.exec(statement).all())

    def _merge(self, collection: str, document_id: str, document) -> None:
        try:
            with Session(self._engine) as db_session:
                db_session.merge(document)
                db_session.commit()
            logger.info(
                "Remote document upserted",
                extra={"collection": collection, "document_id": document_id},
            )
        except Exception as e:
            logger.exception(
                "Remote upsert failed",
                extra={"collection": collection, "document_id": document_id},
            )
            raise DocumentStoreError(collection, document_id, cause=e) from e
