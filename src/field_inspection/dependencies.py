"""Dependency injection configuration for the field inspection services."""

from pathlib import Path

import assemblyai as aai
import pika
import redis
from google import genai
from minio import Minio

from field_inspection.config import AppConfig, load_config
from field_inspection.database import (
    get_local_engine,
    get_remote_engine,
    init_local_db,
    init_remote_db,
)
from field_inspection.domain.caption_pipeline import CaptionBatchPipeline
from field_inspection.domain.clock import Clock, MonotonicClock
from field_inspection.domain.recording_session import RecordingSession, Ticker
from field_inspection.domain.transcription_stage import TranscriptionStage
from field_inspection.handlers import AnalysisHandler, CaptureHandler, SyncHandler
from field_inspection.infrastructure import (
    AssemblyAITranscriber,
    GeminiCaptionService,
    LocalFileMover,
    MinioStorageClient,
    PostgresDocumentStore,
    RabbitMQBroker,
    RedisTranscriptCache,
)
from field_inspection.infrastructure.interfaces import CaptureDevice, TranscriptCache
from field_inspection.logging import setup_logging
from field_inspection.repositories import EvidenceStore
from field_inspection.worker import AnalysisWorker, SyncWorker

logger = setup_logging()

PACKAGE_DIR = Path(__file__).parent


def build_store(config: AppConfig, clock: Clock | None = None) -> EvidenceStore:
    """Opens the on-device store, creating its tables on first use."""
    config.local_store.database_path.parent.mkdir(parents=True, exist_ok=True)
    engine = get_local_engine(config.local_store.database_path)
    init_local_db(engine)
    logger.info(
        "Local store initialized",
        extra={"database_path": str(config.local_store.database_path)},
    )
    return EvidenceStore(engine, clock)


def build_storage(config: AppConfig) -> MinioStorageClient:
    minio_client = Minio(
        endpoint=config.minio.endpoint,
        access_key=config.minio.user,
        secret_key=config.minio.password,
        secure=config.minio.secure,
    )
    storage = MinioStorageClient(
        minio_client, config.minio.bucket_name, config.minio.base_url
    )
    storage.ensure_bucket_exists()
    return storage


def build_document_store(config: AppConfig) -> PostgresDocumentStore:
    engine = get_remote_engine(config.postgres.url)
    init_remote_db(engine)
    logger.info(
        "Remote document store initialized", extra={"host": config.postgres.host}
    )
    return PostgresDocumentStore(engine)


def build_cache(config: AppConfig) -> TranscriptCache:
    redis_client = redis.Redis(host=config.redis.host, decode_responses=True)
    if not redis_client.ping():
        logger.error("Redis connection failed", extra={"host": config.redis.host})
        raise ConnectionError("Redis connection failed")
    return RedisTranscriptCache(redis_client, config.redis.cache_ttl_seconds)


def build_broker(config: AppConfig) -> RabbitMQBroker:
    credentials = pika.PlainCredentials(config.rabbitmq.user, config.rabbitmq.password)
    parameters = pika.ConnectionParameters(
        host=config.rabbitmq.host,
        credentials=credentials,
        heartbeat=0,
    )
    connection = pika.BlockingConnection(parameters)
    broker = RabbitMQBroker(connection.channel(), config.rabbitmq)
    broker.setup()
    return broker


def build_analysis_handler(
    config: AppConfig, store: EvidenceStore, storage: MinioStorageClient
) -> AnalysisHandler:
    aai.settings.api_key = config.assemblyai.api_key
    aai_config = aai.TranscriptionConfig(
        speaker_labels=config.assemblyai.speaker_labels
    )
    transcriber = AssemblyAITranscriber(aai.Transcriber(config=aai_config))

    system_prompt_path = PACKAGE_DIR / config.gemini.system_prompt_path
    caption_service = GeminiCaptionService(
        genai.Client(api_key=config.gemini.api_key),
        config.gemini.model_name,
        system_prompt_path.read_text(encoding="utf-8"),
        max_output_tokens=config.gemini.max_output_tokens,
        temperature=config.gemini.temperature,
    )

    return AnalysisHandler(
        store,
        TranscriptionStage(storage, transcriber, build_cache(config)),
        CaptionBatchPipeline(
            caption_service,
            batch_size=config.caption.batch_size,
            cooldown_seconds=config.caption.cooldown_seconds,
        ),
        window_ms=config.caption.batch_window_ms,
        lookup_window_ms=config.caption.lookup_window_ms,
    )


def build_sync_handler(
    config: AppConfig, store: EvidenceStore, storage: MinioStorageClient
) -> SyncHandler:
    return SyncHandler(
        store,
        build_document_store(config),
        storage,
        max_attempts=config.sync.max_attempts,
        backoff_base_ms=config.sync.backoff_base_ms,
        backoff_cap_ms=config.sync.backoff_cap_ms,
        batch_limit=config.sync.batch_limit,
    )


def build_capture_handler(
    config: AppConfig, store: EvidenceStore, device: CaptureDevice
) -> CaptureHandler:
    """Wires a capture flow around a platform-specific capture device."""
    session = RecordingSession(device, MonotonicClock())
    return CaptureHandler(
        store,
        session,
        device,
        LocalFileMover(),
        config.local_store.media_dir,
        ticker=Ticker(session, config.recording.tick_interval_seconds),
    )


def get_analysis_worker(config: AppConfig | None = None) -> AnalysisWorker:
    """Returns a worker consuming analysis requests."""
    config = config or load_config()
    store = build_store(config)
    storage = build_storage(config)
    return AnalysisWorker(
        build_broker(config),
        build_analysis_handler(config, store, storage),
        config.rabbitmq,
    )


def get_sync_worker(config: AppConfig | None = None) -> SyncWorker:
    """Returns a worker draining the outbox."""
    config = config or load_config()
    store = build_store(config)
    return SyncWorker(
        build_sync_handler(config, store, build_storage(config)),
        config.sync.poll_interval_seconds,
    )
