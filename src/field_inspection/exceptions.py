"""Typed errors for capture, local storage, sync and analysis."""


class CaptureError(Exception):
    """Base class for errors raised while capturing evidence."""


class PermissionDeniedError(CaptureError):
    """Raised when the microphone or camera permission is not granted."""

    def __init__(self, device: str):
        self.device = device
        super().__init__(f"Permission to use the {device} was not granted")


class DeviceBusyError(CaptureError):
    """Raised when a recording is started while another one is active."""

    def __init__(self):
        super().__init__("Another recording is already active")


class NoActiveRecordingError(CaptureError):
    """Raised when stopping a recording that was never started."""

    def __init__(self):
        super().__init__("No active recording")


class CaptureDeviceError(CaptureError):
    """Raised when the capture device fails to record or finalize media."""

    def __init__(self, operation: str, cause: Exception | None = None):
        self.operation = operation
        self.cause = cause
        super().__init__(f"Capture device failed during '{operation}'")


class FileMoveError(CaptureError):
    """Raised when a captured file cannot be moved into durable storage."""

    def __init__(self, source: str, destination: str, cause: Exception | None = None):
        self.source = source
        self.destination = destination
        self.cause = cause
        super().__init__(f"Failed to move '{source}' to '{destination}'")


class StoreError(Exception):
    """Base class for local evidence store errors."""


class DuplicateIdError(StoreError):
    """Raised when creating a record whose id already exists."""

    def __init__(self, entity_id: str, entity: str = "Inspection"):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} '{entity_id}' already exists")


class UnknownInspectionError(StoreError):
    """Raised when a photo references an inspection that does not exist."""

    def __init__(self, inspection_id: str):
        self.inspection_id = inspection_id
        super().__init__(f"Photo references unknown inspection '{inspection_id}'")


class NotFoundError(StoreError):
    """Raised when a targeted record does not exist."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} '{entity_id}' not found")


class InspectionNotFoundError(NotFoundError):
    """Raised when an inspection id does not exist."""

    def __init__(self, inspection_id: str):
        super().__init__("Inspection", inspection_id)


class PhotoNotFoundError(NotFoundError):
    """Raised when a photo id does not exist."""

    def __init__(self, photo_id: str):
        super().__init__("Photo", photo_id)


class InvalidStatusTransitionError(StoreError):
    """Raised when an inspection status change breaks the lifecycle order."""

    def __init__(self, inspection_id: str, current: str, requested: str):
        self.inspection_id = inspection_id
        self.current = current
        self.requested = requested
        super().__init__(
            f"Inspection '{inspection_id}' cannot move from {current} to {requested}"
        )


class SyncError(Exception):
    """Base class for errors talking to remote storage."""


class LocalFileNotFoundError(SyncError):
    """Raised when a file to upload no longer exists locally."""

    def __init__(self, local_path: str):
        self.local_path = local_path
        super().__init__(f"Local file '{local_path}' does not exist")


class StorageTransportError(SyncError):
    """Raised when object storage is unreachable or rejects the request."""

    def __init__(self, object_name: str, cause: Exception | None = None):
        self.object_name = object_name
        self.cause = cause
        super().__init__(f"Failed to upload '{object_name}' to storage")


class StorageAuthError(SyncError):
    """Raised when object storage refuses the configured credentials."""

    def __init__(self, object_name: str, cause: Exception | None = None):
        self.object_name = object_name
        self.cause = cause
        super().__init__(f"Not authorized to upload '{object_name}' to storage")


class StorageDownloadError(SyncError):
    """Raised when downloading a file from storage fails."""

    def __init__(self, reference: str, cause: Exception | None = None):
        self.reference = reference
        self.cause = cause
        super().__init__(f"Failed to download '{reference}' from storage")


class DocumentStoreError(SyncError):
    """Raised when a remote document write fails."""

    def __init__(
        self, collection: str, document_id: str, cause: Exception | None = None
    ):
        self.collection = collection
        self.document_id = document_id
        self.cause = cause
        super().__init__(f"Failed to write {collection} document '{document_id}'")


class AnalysisError(Exception):
    """Base class for errors raised by the analysis pipeline."""


class NoAudioError(AnalysisError):
    """Raised when an inspection has no uploaded recording to analyze."""

    def __init__(self, inspection_id: str):
        self.inspection_id = inspection_id
        super().__init__(f"No audio file found for inspection '{inspection_id}'")


class TranscriptionServiceError(AnalysisError):
    """Raised when the speech-to-text service rejects or fails a request."""

    def __init__(self, message: str, cause: Exception | None = None):
        self.cause = cause
        super().__init__(message)


class TranscriptionFailedError(AnalysisError):
    """Raised when the recording of an inspection cannot be transcribed."""

    def __init__(self, audio_reference: str, cause: Exception | None = None):
        self.audio_reference = audio_reference
        self.cause = cause
        super().__init__(f"Failed to transcribe audio '{audio_reference}'")


class LLMServiceError(AnalysisError):
    """Raised when the caption language model call fails."""

    def __init__(self, message: str, cause: Exception | None = None):
        self.cause = cause
        super().__init__(message)


class CaptionGenerationError(AnalysisError):
    """Raised when a caption cannot be generated for a photo."""

    def __init__(self, photo_id: str, cause: Exception | None = None):
        self.photo_id = photo_id
        self.cause = cause
        super().__init__(f"Caption generation failed for photo '{photo_id}'")


class CacheServiceError(AnalysisError):
    """Raised when cache operations fail."""

    def __init__(self, key: str, operation: str, cause: Exception | None = None):
        self.key = key
        self.operation = operation
        self.cause = cause
        super().__init__(f"Cache {operation} failed for key '{key}'")


class EventPublishError(Exception):
    """Raised when publishing an event to the message broker fails."""

    def __init__(self, routing_key: str, cause: Exception | None = None):
        self.routing_key = routing_key
        self.cause = cause
        super().__init__(f"Failed to publish event with routing key '{routing_key}'")
