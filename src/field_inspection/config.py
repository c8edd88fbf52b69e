"""Application configuration loaded from environment variables."""

import os
from pathlib import Path

from pydantic import BaseModel, computed_field


class LocalStoreConfig(BaseModel, frozen=True):
    """On-device evidence store configuration."""

    database_path: Path = Path("inspection.db")
    media_dir: Path = Path("media")


class PostgresConfig(BaseModel, frozen=True):
    """Remote document store (PostgreSQL) connection configuration."""

    host: str
    port: str
    user: str
    password: str
    database: str

    @computed_field
    @property
    def url(self) -> str:
        """Returns the full PostgreSQL connection URL."""
        return (
            f"postgresql+psycopg://{self.user}:{self.password}"
            f"@{self.host}:{self.port}/{self.database}"
        )


class MinioConfig(BaseModel, frozen=True):
    """MinIO connection configuration."""

    endpoint: str
    user: str
    password: str
    bucket_name: str = "inspection-files"
    secure: bool = False

    @computed_field
    @property
    def base_url(self) -> str:
        """Returns the URL prefix under which uploaded objects are addressed."""
        scheme = "https" if self.secure else "http"
        return f"{scheme}://{self.endpoint}/{self.bucket_name}"


class RedisConfig(BaseModel, frozen=True):
    """Redis connection configuration."""

    host: str
    cache_ttl_seconds: int = 86400  # 24 hours default


class AssemblyAIConfig(BaseModel, frozen=True):
    """AssemblyAI API configuration."""

    api_key: str
    speaker_labels: bool = True


class GeminiConfig(BaseModel, frozen=True):
    """Gemini caption model configuration."""

    api_key: str
    model_name: str = "gemini-2.5-flash-lite"
    system_prompt_path: Path = Path("prompts/caption_system.txt")
    max_output_tokens: int = 150
    temperature: float = 0.3


class QueueConfig(BaseModel, frozen=True):
    """RabbitMQ queue configuration."""

    name: str = "inspection_analysis_queue"
    queue_type: str = "quorum"
    max_delivery_count: int = 3
    expected_routing_key: str = "inspection.analysis.requested"
    success_routing_key: str = "inspection.analysis.completed"
    failure_routing_key: str = "inspection.analysis.failed"
    dlq_name: str = "dlq_inspection_analysis"
    dlq_exchange_name: str = "dead_letter_exchange"
    dlq_routing_key: str = "inspection.analysis.dead"


class RabbitMQConfig(BaseModel, frozen=True):
    """RabbitMQ connection configuration."""

    host: str
    user: str
    password: str
    exchange_name: str = "events"
    queue_config: QueueConfig = QueueConfig()


class CaptionConfig(BaseModel, frozen=True):
    """Caption batch and context window policy."""

    batch_size: int = 3
    cooldown_seconds: float = 1.0
    batch_window_ms: int = 3000
    lookup_window_ms: int = 5000


class SyncConfig(BaseModel, frozen=True):
    """Outbox delivery policy."""

    poll_interval_seconds: float = 5.0
    batch_limit: int = 50
    max_attempts: int = 5
    backoff_base_ms: int = 2000
    backoff_cap_ms: int = 300_000


class RecordingConfig(BaseModel, frozen=True):
    """Recording session policy."""

    tick_interval_seconds: float = 1.0


class AppConfig(BaseModel, frozen=True):
    """Root application configuration."""

    local_store: LocalStoreConfig
    postgres: PostgresConfig
    minio: MinioConfig
    redis: RedisConfig
    assemblyai: AssemblyAIConfig
    gemini: GeminiConfig
    rabbitmq: RabbitMQConfig
    caption: CaptionConfig = CaptionConfig()
    sync: SyncConfig = SyncConfig()
    recording: RecordingConfig = RecordingConfig()


def load_config() -> AppConfig:
    """Loads configuration from environment variables."""
    return AppConfig(
        local_store=LocalStoreConfig(
            database_path=Path(os.getenv("LOCAL_DB_PATH", "inspection.db")),
            media_dir=Path(os.getenv("LOCAL_MEDIA_DIR", "media")),
        ),
        postgres=PostgresConfig(
            host=os.getenv("POSTGRES_HOST", "postgres"),
            port=os.getenv("POSTGRES_PORT", "5432"),
            user=os.getenv("POSTGRES_USER", ""),
            password=os.getenv("POSTGRES_PASSWORD", ""),
            database=os.getenv("POSTGRES_DB", "inspections"),
        ),
        minio=MinioConfig(
            endpoint=os.getenv("MINIO_ENDPOINT", "minio:9000"),
            user=os.getenv("MINIO_USER", ""),
            password=os.getenv("MINIO_PASSWORD", ""),
            secure=os.getenv("MINIO_SECURE", "false").lower() == "true",
        ),
        redis=RedisConfig(
            host=os.getenv("REDIS_HOST", "redis"),
            cache_ttl_seconds=int(os.getenv("REDIS_CACHE_TTL_SECONDS", "86400")),
        ),
        assemblyai=AssemblyAIConfig(
            api_key=os.getenv("ASSEMBLYAI_API_KEY", ""),
        ),
        gemini=GeminiConfig(
            api_key=os.getenv("GEMINI_API_KEY", ""),
        ),
        rabbitmq=RabbitMQConfig(
            host=os.getenv("RABBITMQ_HOST", "rabbitmq"),
            user=os.getenv("RABBITMQ_USER", ""),
            password=os.getenv("RABBITMQ_PASSWORD", ""),
        ),
        caption=CaptionConfig(
            batch_size=int(os.getenv("CAPTION_BATCH_SIZE", "3")),
            cooldown_seconds=float(os.getenv("CAPTION_COOLDOWN_SECONDS", "1.0")),
        ),
        sync=SyncConfig(
            poll_interval_seconds=float(os.getenv("SYNC_POLL_INTERVAL_SECONDS", "5.0")),
            max_attempts=int(os.getenv("SYNC_MAX_ATTEMPTS", "5")),
        ),
        recording=RecordingConfig(
            tick_interval_seconds=float(
                os.getenv("RECORDING_TICK_INTERVAL_SECONDS", "1.0")
            ),
        ),
    )
