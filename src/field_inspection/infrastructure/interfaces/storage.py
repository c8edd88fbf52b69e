"""Abstract interface for object storage operations."""

from abc import ABC, abstractmethod

from field_inspection.domain.models import UploadResult


class StorageClient(ABC):
    """Abstract base class for blob storage backends."""

    @abstractmethod
    def upload_file(
        self, local_path: str, object_name: str, content_type: str
    ) -> UploadResult:
        """
        Uploads a local file, overwriting any object with the same name.

        Args:
            local_path: Path of the file on disk.
            object_name: The destination path/name in storage.
            content_type: MIME type of the file.

        Returns:
            UploadResult with a retrievable reference and the object path.

        Raises:
            LocalFileNotFoundError: If the local file does not exist.
            StorageAuthError: If the credentials are rejected.
            StorageTransportError: If the upload fails for any other reason.
        """
        pass

    @abstractmethod
    def download(self, reference: str) -> bytes:
        """
        Downloads an object by the reference returned from upload_file.

        Raises:
            StorageDownloadError: If the download fails.
        """
        pass

    @abstractmethod
    def ensure_bucket_exists(self) -> None:
        """Ensures the configured bucket exists, creating it if necessary."""
        pass
