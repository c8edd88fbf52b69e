"""Domain models for evidence capture and analysis."""

from enum import Enum

from pydantic import BaseModel, Field

from field_inspection.db_models import InspectionStatus

FAILED_CAPTION = "Caption generation failed"
DEFAULT_SEGMENT_CONFIDENCE = 0.8


class InspectionDetails(BaseModel, frozen=True):
    """Identity of an inspection as it appears in a caption prompt."""

    client: str
    address: str
    claim_number: str


class NewInspection(BaseModel, frozen=True):
    """Caller-supplied fields for a new inspection record."""

    id: str = Field(min_length=1)
    client: str
    address: str
    claim_number: str
    inspection_date: str
    audio_uri: str | None = None
    status: InspectionStatus = InspectionStatus.DRAFT


class NewPhoto(BaseModel, frozen=True):
    """Caller-supplied fields for a new photo record."""

    id: str = Field(min_length=1)
    inspection_id: str
    photo_uri: str
    timestamp: int
    audio_timestamp: int = Field(ge=0)
    caption: str | None = None


class RecordingState(BaseModel, frozen=True):
    """Snapshot of the active recording, if any."""

    is_recording: bool = False
    start_time: int | None = None
    duration: int = 0


class CapturedMedia(BaseModel, frozen=True):
    """A file produced by the capture device."""

    local_uri: str


class UploadResult(BaseModel, frozen=True):
    """Where an uploaded blob ended up."""

    reference: str
    object_path: str


class RawSegment(BaseModel, frozen=True):
    """A segment as returned by the speech service, in its native time unit."""

    start: float
    end: float
    text: str
    confidence: float | None = None


class RawTranscript(BaseModel, frozen=True):
    """Speech service output before normalization."""

    text: str
    segments: list[RawSegment]
    confidence: float | None = None
    time_unit_ms: float = 1.0


class TranscriptSegment(BaseModel, frozen=True):
    """A time-aligned piece of the transcript, in recording milliseconds."""

    start_ms: int
    end_ms: int
    text: str
    confidence: float = DEFAULT_SEGMENT_CONFIDENCE


class TranscriptionResult(BaseModel, frozen=True):
    """Full transcript of one inspection recording."""

    full_text: str
    segments: list[TranscriptSegment]
    confidence: float = DEFAULT_SEGMENT_CONFIDENCE


class CaptionRequest(BaseModel, frozen=True):
    """Everything needed to caption one photo."""

    photo_id: str
    photo_timestamp_ms: int
    audio_context: str
    inspection: InspectionDetails


class CaptionResult(BaseModel, frozen=True):
    """Generated caption for one photo."""

    photo_id: str
    caption: str
    confidence: float
    audio_context: str
    timestamp: int
    failed: bool = False


class AnalysisStatus(str, Enum):
    COMPLETED = "COMPLETED"
    PARTIAL = "PARTIAL"
    FAILED = "FAILED"


class AnalysisResult(BaseModel, frozen=True):
    """Outcome of analyzing one inspection."""

    inspection_id: str
    status: AnalysisStatus
    transcription: TranscriptionResult | None = None
    photo_captions: list[CaptionResult] = []
    failed_captions: int = 0
    failed_persists: int = 0
    error: str | None = None


class AnalysisMessage(BaseModel, frozen=True):
    """Incoming analysis request from the queue."""

    inspection_id: str
    photo_id: str | None = None


class SyncReport(BaseModel):
    """Counts from one pass over the outbox."""

    delivered: int = 0
    retried: int = 0
    dead_lettered: int = 0
    dropped: int = 0
    superseded: int = 0
