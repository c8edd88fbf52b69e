from enum import Enum
from typing import Optional

from sqlalchemy import BigInteger, Column, ForeignKey, String
from sqlmodel import Field, SQLModel


class InspectionStatus(str, Enum):
    DRAFT = "DRAFT"
    PROCESSING = "PROCESSING"
    READY = "READY"
    ERROR = "ERROR"


class OutboxKind(str, Enum):
    INSPECTION_UPSERT = "inspection_upsert"
    PHOTO_UPSERT = "photo_upsert"
    AUDIO_UPLOAD = "audio_upload"
    PHOTO_UPLOAD = "photo_upload"
    INSPECTION_DELETE = "inspection_delete"


class OutboxStatus(str, Enum):
    PENDING = "PENDING"
    DEAD = "DEAD"


class Inspection(SQLModel, table=True):
    __tablename__ = "inspections"

    id: str = Field(primary_key=True, max_length=64)
    client: str = Field(max_length=255)
    address: str = Field(max_length=512)
    claim_number: str = Field(max_length=128)
    inspection_date: str = Field(max_length=32)
    audio_uri: Optional[str] = None
    remote_audio_url: Optional[str] = None
    status: str = Field(default=InspectionStatus.DRAFT.value, max_length=16)
    created_at: int = Field(sa_type=BigInteger, index=True)
    updated_at: int = Field(sa_type=BigInteger)


class Photo(SQLModel, table=True):
    __tablename__ = "photos"

    id: str = Field(primary_key=True, max_length=64)
    inspection_id: str = Field(
        sa_column=Column(
            String(64),
            ForeignKey("inspections.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    photo_uri: str
    remote_url: Optional[str] = None
    timestamp: int = Field(sa_type=BigInteger)
    audio_timestamp: int = Field(sa_type=BigInteger, index=True)
    caption: Optional[str] = None
    created_at: int = Field(sa_type=BigInteger)


class OutboxEvent(SQLModel, table=True):
    __tablename__ = "outbox_events"

    id: Optional[int] = Field(default=None, primary_key=True)
    kind: str = Field(max_length=32)
    entity_id: str = Field(max_length=64, index=True)
    status: str = Field(default=OutboxStatus.PENDING.value, max_length=16, index=True)
    attempts: int = 0
    revision: int = 0
    next_attempt_at: int = Field(sa_type=BigInteger, index=True)
    last_error: Optional[str] = None
    created_at: int = Field(sa_type=BigInteger)
