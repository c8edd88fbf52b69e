"""Domain layer exports."""

from field_inspection.domain.clock import (
    Clock,
    MonotonicClock,
    SystemClock,
    VirtualClock,
)
from field_inspection.domain.context_extraction import (
    BATCH_WINDOW_MS,
    LOOKUP_WINDOW_MS,
    context_for,
    segment_at,
)
from field_inspection.domain.models import (
    FAILED_CAPTION,
    AnalysisMessage,
    AnalysisResult,
    AnalysisStatus,
    CaptionRequest,
    CaptionResult,
    CapturedMedia,
    InspectionDetails,
    NewInspection,
    NewPhoto,
    RawSegment,
    RawTranscript,
    RecordingState,
    SyncReport,
    TranscriptionResult,
    TranscriptSegment,
    UploadResult,
)

__all__ = [
    "BATCH_WINDOW_MS",
    "FAILED_CAPTION",
    "LOOKUP_WINDOW_MS",
    "AnalysisMessage",
    "AnalysisResult",
    "AnalysisStatus",
    "CaptionRequest",
    "CaptionResult",
    "CapturedMedia",
    "Clock",
    "InspectionDetails",
    "MonotonicClock",
    "NewInspection",
    "NewPhoto",
    "RawSegment",
    "RawTranscript",
    "RecordingState",
    "SyncReport",
    "SystemClock",
    "TranscriptionResult",
    "TranscriptSegment",
    "UploadResult",
    "VirtualClock",
    "context_for",
    "segment_at",
]
