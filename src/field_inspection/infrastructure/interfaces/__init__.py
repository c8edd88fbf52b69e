"""Infrastructure interface exports."""

from field_inspection.infrastructure.interfaces.caption_service import CaptionService
from field_inspection.infrastructure.interfaces.capture_device import (
    CaptureDevice,
    RecordingHandle,
)
from field_inspection.infrastructure.interfaces.document_store import DocumentStore
from field_inspection.infrastructure.interfaces.file_mover import FileMover
from field_inspection.infrastructure.interfaces.message_broker import (
    MessageBroker,
    MessagePublisher,
)
from field_inspection.infrastructure.interfaces.storage import StorageClient
from field_inspection.infrastructure.interfaces.transcript_cache import (
    TranscriptCache,
)
from field_inspection.infrastructure.interfaces.transcription_service import (
    TranscriptionService,
)

__all__ = [
    "CaptionService",
    "CaptureDevice",
    "RecordingHandle",
    "DocumentStore",
    "FileMover",
    "MessageBroker",
    "MessagePublisher",
    "StorageClient",
    "TranscriptCache",
    "TranscriptionService",
]
