"""Abstract interface for the remote document store."""

from abc import ABC, abstractmethod

from field_inspection.db_models import Inspection, Photo


class DocumentStore(ABC):
    """Remote mirror of inspections and photos, keyed by local ids."""

    @abstractmethod
    def upsert_inspection(self, inspection: Inspection) -> None:
        """
        Creates or replaces the inspection document with the same id.

        Raises:
            DocumentStoreError: If the write fails.
        """
        pass

    @abstractmethod
    def upsert_photo(self, photo: Photo) -> None:
        """
        Creates or replaces the photo document with the same id.

        Raises:
            DocumentStoreError: If the write fails.
        """
        pass

    @abstractmethod
    def delete_inspection(self, inspection_id: str) -> None:
        """
        Removes an inspection document and its photos. Missing ids are ignored.

        Raises:
            DocumentStoreError: If the delete fails.
        """
        pass

    @abstractmethod
    def get_inspection(self, inspection_id: str) -> Inspection | None:
        pass

    @abstractmethod
    def list_photos(self, inspection_id: str) -> list[Photo]:
        """Returns the inspection's photos ordered by audio timestamp."""
        pass
