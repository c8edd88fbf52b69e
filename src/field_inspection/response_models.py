from pydantic import BaseModel

from field_inspection.db_models import Inspection, InspectionStatus, Photo


class InspectionSummary(BaseModel):
    """Inspection fields shown in listings."""

    id: str
    client: str
    address: str
    claim_number: str
    inspection_date: str
    status: InspectionStatus
    has_audio: bool
    created_at: int
    updated_at: int

    @classmethod
    def from_record(cls, inspection: Inspection) -> "InspectionSummary":
        return cls(
            id=inspection.id,
            client=inspection.client,
            address=inspection.address,
            claim_number=inspection.claim_number,
            inspection_date=inspection.inspection_date,
            status=inspection.status,
            has_audio=inspection.audio_uri is not None,
            created_at=inspection.created_at,
            updated_at=inspection.updated_at,
        )


class PhotoResponse(BaseModel):
    id: str
    photo_uri: str
    remote_url: str | None
    timestamp: int
    audio_timestamp: int
    caption: str | None

    @classmethod
    def from_record(cls, photo: Photo) -> "PhotoResponse":
        return cls(
            id=photo.id,
            photo_uri=photo.photo_uri,
            remote_url=photo.remote_url,
            timestamp=photo.timestamp,
            audio_timestamp=photo.audio_timestamp,
            caption=photo.caption,
        )


class InspectionDetailResponse(InspectionSummary):
    """Full inspection including its photos in recording order."""

    remote_audio_url: str | None
    photos: list[PhotoResponse]


class AnalysisRequestResponse(BaseModel):
    message: str
    inspection_id: str
    photo_id: str | None = None
