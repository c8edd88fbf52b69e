"""Infrastructure layer exports."""

from field_inspection.infrastructure.assemblyai_transcriber import AssemblyAITranscriber
from field_inspection.infrastructure.gemini_captioner import GeminiCaptionService
from field_inspection.infrastructure.local_file_mover import LocalFileMover
from field_inspection.infrastructure.minio_storage import MinioStorageClient
from field_inspection.infrastructure.postgres_document_store import (
    PostgresDocumentStore,
)
from field_inspection.infrastructure.rabbitmq_broker import RabbitMQBroker
from field_inspection.infrastructure.redis_transcript_cache import RedisTranscriptCache

__all__ = [
    "AssemblyAITranscriber",
    "GeminiCaptionService",
    "LocalFileMover",
    "MinioStorageClient",
    "PostgresDocumentStore",
    "RabbitMQBroker",
    "RedisTranscriptCache",
]
