"""MinIO implementation of the StorageClient interface."""

from pathlib import Path

from minio import Minio
from minio.error import S3Error

from field_inspection.domain.models import UploadResult
from field_inspection.exceptions import (
    LocalFileNotFoundError,
    StorageAuthError,
    StorageDownloadError,
    StorageTransportError,
)
from field_inspection.infrastructure.interfaces import StorageClient
from field_inspection.logging import setup_logging

logger = setup_logging()

AUTH_ERROR_CODES = frozenset(
    {
        "AccessDenied",
        "InvalidAccessKeyId",
        "SignatureDoesNotMatch",
        "ExpiredToken",
        "InvalidToken",
    }
)


class MinioStorageClient(StorageClient):
    """Handles inspection blob storage using MinIO."""

    def __init__(self, client: Minio, bucket_name: str, base_url: str):
        self._client = client
        self._bucket_name = bucket_name
        self._base_url = base_url.rstrip("/")

    def upload_file(
        self, local_path: str, object_name: str, content_type: str
    ) -> UploadResult:
        path = Path(local_path)
        if not path.is_file():
            logger.error("Local file missing", extra={"local_path": local_path})
            raise LocalFileNotFoundError(local_path)

        try:
            self._client.fput_object(
                bucket_name=self._bucket_name,
                object_name=object_name,
                file_path=str(path),
                content_type=content_type,
            )
        except S3Error as e:
            logger.exception(
                "MinIO upload rejected",
                extra={"object_name": object_name, "code": e.code},
            )
            if e.code in AUTH_ERROR_CODES:
                raise StorageAuthError(object_name, e) from e
            raise StorageTransportError(object_name, e) from e
        except Exception as e:
            logger.exception("MinIO upload failed", extra={"object_name": object_name})
            raise StorageTransportError(object_name, e) from e

        logger.info(
            "File uploaded to MinIO",
            extra={
                "object_name": object_name,
                "size": path.stat().st_size,
                "bucket": self._bucket_name,
            },
        )
        return UploadResult(
            reference=f"{self._base_url}/{object_name}",
            object_path=object_name,
        )

    def download(self, reference: str) -> bytes:
        prefix = f"{self._base_url}/"
        if not reference.startswith(prefix):
            raise StorageDownloadError(
                reference, ValueError(f"Reference is not under {prefix}")
            )
        object_name = reference[len(prefix) :]

        try:
            response = self._client.get_object(self._bucket_name, object_name)
            try:
                data = response.data
            finally:
                response.close()
                response.release_conn()
            logger.info(
                "File downloaded from MinIO",
                extra={"bucket_name": self._bucket_name, "object_name": object_name},
            )
            return data
        except Exception as e:
            logger.exception(
                "MinIO download failed",
                extra={"bucket_name": self._bucket_name, "object_name": object_name},
            )
            raise StorageDownloadError(reference, e) from e

    def ensure_bucket_exists(self) -> None:
        if not self._client.bucket_exists(self._bucket_name):
            self._client.make_bucket(self._bucket_name)
            logger.info("Bucket created", extra={"bucket_name": self._bucket_name})
        else:
            logger.info(
                "Bucket already exists", extra={"bucket_name": self._bucket_name}
            )
