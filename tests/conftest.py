"""
Pytest configuration and fixtures for the field inspection tests.

Every external collaborator is replaced by an in-memory fake; the local store
and the remote document store run on throwaway SQLite files.
"""

import threading
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from field_inspection.database import get_local_engine, init_local_db, init_remote_db
from field_inspection.domain.caption_pipeline import CaptionBatchPipeline
from field_inspection.domain.clock import VirtualClock
from field_inspection.domain.models import (
    CapturedMedia,
    InspectionDetails,
    NewInspection,
    RawSegment,
    RawTranscript,
    TranscriptionResult,
    UploadResult,
)
from field_inspection.domain.recording_session import RecordingSession
from field_inspection.domain.transcription_stage import TranscriptionStage
from field_inspection.exceptions import (
    CacheServiceError,
    EventPublishError,
    LLMServiceError,
    LocalFileNotFoundError,
    StorageDownloadError,
    StorageTransportError,
    TranscriptionServiceError,
)
from field_inspection.handlers import AnalysisHandler, CaptureHandler, SyncHandler
from field_inspection.infrastructure import LocalFileMover, PostgresDocumentStore
from field_inspection.infrastructure.interfaces import (
    CaptionService,
    CaptureDevice,
    MessagePublisher,
    RecordingHandle,
    StorageClient,
    TranscriptCache,
    TranscriptionService,
)
from field_inspection.repositories import EvidenceStore
from field_inspection.routes import inspections_router

BASE_URL = "http://minio.test/inspection-files"
START_MS = 1_700_000_000_000


class FakeRecordingHandle(RecordingHandle):
    def __init__(self, local_uri: str, fail: bool = False):
        self.local_uri = local_uri
        self.fail = fail
        self.stopped = False

    def stop(self) -> CapturedMedia:
        self.stopped = True
        if self.fail:
            raise RuntimeError("encoder crashed")
        Path(self.local_uri).write_bytes(b"audio-bytes")
        return CapturedMedia(local_uri=self.local_uri)


class FakeCaptureDevice(CaptureDevice):
    def __init__(self, tmp_dir: Path):
        self.tmp_dir = tmp_dir
        self.microphone_granted = True
        self.camera_granted = True
        self.fail_stop = False
        self.handles: list[FakeRecordingHandle] = []
        self.photos_taken = 0

    def request_microphone_permission(self) -> bool:
        return self.microphone_granted

    def request_camera_permission(self) -> bool:
        return self.camera_granted

    def start_recording(self) -> RecordingHandle:
        local_uri = str(self.tmp_dir / f"recording-{len(self.handles)}.m4a")
        handle = FakeRecordingHandle(local_uri, fail=self.fail_stop)
        self.handles.append(handle)
        return handle

    def capture_photo(self) -> CapturedMedia:
        self.photos_taken += 1
        path = self.tmp_dir / f"photo-{self.photos_taken}.jpg"
        path.write_bytes(b"jpeg-bytes")
        return CapturedMedia(local_uri=str(path))


class FakeStorage(StorageClient):
    """Object storage keyed by object name."""

    def __init__(self):
        self.objects: dict[str, bytes] = {}
        self.upload_calls: list[str] = []
        self.failures_remaining = 0

    def upload_file(
        self, local_path: str, object_name: str, content_type: str
    ) -> UploadResult:
        self.upload_calls.append(object_name)
        path = Path(local_path)
        if not path.is_file():
            raise LocalFileNotFoundError(local_path)
        if self.failures_remaining > 0:
            self.failures_remaining -= 1
            raise StorageTransportError(object_name, ConnectionError("offline"))
        self.objects[object_name] = path.read_bytes()
        return UploadResult(
            reference=f"{BASE_URL}/{object_name}", object_path=object_name
        )

    def download(self, reference: str) -> bytes:
        object_name = reference.removeprefix(f"{BASE_URL}/")
        if object_name not in self.objects:
            raise StorageDownloadError(reference)
        return self.objects[object_name]

    def ensure_bucket_exists(self) -> None:
        pass


class FakeTranscriptionService(TranscriptionService):
    def __init__(self, transcript: RawTranscript | None = None):
        self.transcript = transcript
        self.fail = False
        self.calls = 0

    def transcribe(self, audio_data: bytes) -> RawTranscript:
        self.calls += 1
        if self.fail:
            raise TranscriptionServiceError("Transcription failed: bad audio")
        return self.transcript


class FakeCaptionService(CaptionService):
    """
    Returns a caption derived from the prompt.

    Prompts containing any of `failing_markers` fail. Tracks the peak number
    of concurrent calls.
    """

    def __init__(self):
        self.failing_markers: set[str] = set()
        self.prompts: list[str] = []
        self.in_flight = 0
        self.peak_in_flight = 0
        self._lock = threading.Lock()

    def generate_caption(self, prompt: str) -> str:
        with self._lock:
            self.prompts.append(prompt)
            self.in_flight += 1
            self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            if any(marker in prompt for marker in self.failing_markers):
                raise LLMServiceError("quota exceeded")
            return f"Caption #{len(self.prompts)}"
        finally:
            with self._lock:
                self.in_flight -= 1


class FakeCache(TranscriptCache):
    def __init__(self):
        self.values: dict[str, TranscriptionResult] = {}
        self.available = True

    def get(self, inspection_id: str) -> TranscriptionResult | None:
        if not self.available:
            raise CacheServiceError(inspection_id, "get")
        return self.values.get(inspection_id)

    def put(self, inspection_id: str, transcript: TranscriptionResult) -> None:
        if not self.available:
            raise CacheServiceError(inspection_id, "set")
        self.values[inspection_id] = transcript


class FakePublisher(MessagePublisher):
    def __init__(self):
        self.published: list[tuple[str, dict]] = []
        self.fail = False

    def publish(self, routing_key: str, payload: dict) -> None:
        if self.fail:
            raise EventPublishError(routing_key)
        self.published.append((routing_key, payload))


@pytest.fixture
def clock() -> VirtualClock:
    return VirtualClock(START_MS)


@pytest.fixture
def engine(tmp_path):
    local_engine = get_local_engine(tmp_path / "inspection.db")
    init_local_db(local_engine)
    yield local_engine
    local_engine.dispose()


@pytest.fixture
def store(engine, clock) -> EvidenceStore:
    return EvidenceStore(engine, clock)


@pytest.fixture
def remote_engine(tmp_path):
    engine = get_local_engine(tmp_path / "remote.db")
    init_remote_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def document_store(remote_engine) -> PostgresDocumentStore:
    return PostgresDocumentStore(remote_engine)


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def device(tmp_path) -> FakeCaptureDevice:
    device_dir = tmp_path / "device"
    device_dir.mkdir()
    return FakeCaptureDevice(device_dir)


@pytest.fixture
def recording_clock() -> VirtualClock:
    return VirtualClock(0)


@pytest.fixture
def session(device, recording_clock) -> RecordingSession:
    return RecordingSession(device, recording_clock)


@pytest.fixture
def capture_handler(store, session, device, tmp_path, clock) -> CaptureHandler:
    return CaptureHandler(
        store, session, device, LocalFileMover(), tmp_path / "media", clock=clock
    )


@pytest.fixture
def sync_handler(store, document_store, storage, clock) -> SyncHandler:
    return SyncHandler(store, document_store, storage, clock=clock)


@pytest.fixture
def transcription_service() -> FakeTranscriptionService:
    return FakeTranscriptionService(
        RawTranscript(
            text="roof shingles missing water stain in attic",
            segments=[
                RawSegment(start=0.0, end=2.0, text="roof shingles missing"),
                RawSegment(
                    start=9.0, end=11.0, text="water stain in attic", confidence=0.95
                ),
            ],
            time_unit_ms=1000.0,
        )
    )


@pytest.fixture
def caption_service() -> FakeCaptionService:
    return FakeCaptionService()


@pytest.fixture
def cache() -> FakeCache:
    return FakeCache()


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def caption_pipeline(caption_service, sleeps) -> CaptionBatchPipeline:
    return CaptionBatchPipeline(caption_service, batch_size=3, sleep=sleeps.append)


@pytest.fixture
def transcription_stage(storage, transcription_service, cache) -> TranscriptionStage:
    return TranscriptionStage(storage, transcription_service, cache)


@pytest.fixture
def analysis_handler(store, transcription_stage, caption_pipeline) -> AnalysisHandler:
    return AnalysisHandler(store, transcription_stage, caption_pipeline)


@pytest.fixture
def details() -> InspectionDetails:
    return InspectionDetails(
        client="Acme Insurance", address="12 Elm Street", claim_number="CLM-001"
    )


@pytest.fixture
def make_inspection(store, details):
    def _make(inspection_id: str = "insp-1", **overrides):
        fields = {
            "id": inspection_id,
            "client": details.client,
            "address": details.address,
            "claim_number": details.claim_number,
            "inspection_date": "2024-05-01",
        }
        fields.update(overrides)
        return store.create_inspection(NewInspection(**fields))

    return _make


@pytest.fixture
def publisher() -> FakePublisher:
    return FakePublisher()


@pytest.fixture
def client(store, publisher) -> TestClient:
    app = FastAPI()
    app.state.store = store
    app.state.publisher = publisher
    app.include_router(inspections_router)
    return TestClient(app)
