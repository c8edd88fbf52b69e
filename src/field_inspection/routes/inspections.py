"""Inspection-related API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request

from field_inspection.config import QueueConfig
from field_inspection.domain.models import AnalysisMessage
from field_inspection.exceptions import (
    EventPublishError,
    InspectionNotFoundError,
    PhotoNotFoundError,
)
from field_inspection.infrastructure.interfaces import MessagePublisher
from field_inspection.logging import setup_logging
from field_inspection.repositories import EvidenceStore
from field_inspection.response_models import (
    AnalysisRequestResponse,
    InspectionDetailResponse,
    InspectionSummary,
    PhotoResponse,
)

logger = setup_logging()

router = APIRouter(tags=["inspections"])

ANALYSIS_REQUESTED_ROUTING_KEY = QueueConfig().expected_routing_key


def get_store(request: Request) -> EvidenceStore:
    return request.app.state.store


def get_publisher(request: Request) -> MessagePublisher:
    return request.app.state.publisher


StoreDep = Annotated[EvidenceStore, Depends(get_store)]
PublisherDep = Annotated[MessagePublisher, Depends(get_publisher)]


@router.get("/inspections", response_model=list[InspectionSummary])
def list_inspections(store: StoreDep):
    """Returns all inspections, most recent first."""
    try:
        return [InspectionSummary.from_record(i) for i in store.list_inspections()]
    except Exception:
        logger.exception("Error listing inspections")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/inspections/{inspection_id}", response_model=InspectionDetailResponse)
def get_inspection(inspection_id: str, store: StoreDep):
    """Returns an inspection with its photos ordered by audio timestamp."""
    try:
        inspection = store.get_inspection(inspection_id)
        photos = store.list_photos(inspection_id)
    except InspectionNotFoundError:
        raise HTTPException(status_code=404, detail="Inspection not found")
    except Exception:
        logger.exception(
            "Error getting inspection", extra={"inspection_id": inspection_id}
        )
        raise HTTPException(status_code=500, detail="Internal server error")

    summary = InspectionSummary.from_record(inspection)
    return InspectionDetailResponse(
        **summary.model_dump(),
        remote_audio_url=inspection.remote_audio_url,
        photos=[PhotoResponse.from_record(photo) for photo in photos],
    )


@router.post(
    "/inspections/{inspection_id}/analysis",
    response_model=AnalysisRequestResponse,
    status_code=202,
)
def request_analysis(inspection_id: str, store: StoreDep, publisher: PublisherDep):
    """Queues the full analysis of an inspection."""
    try:
        store.get_inspection(inspection_id)
    except InspectionNotFoundError:
        raise HTTPException(status_code=404, detail="Inspection not found")

    _publish(publisher, AnalysisMessage(inspection_id=inspection_id))
    return AnalysisRequestResponse(
        message="Analysis requested", inspection_id=inspection_id
    )


@router.post(
    "/photos/{photo_id}/caption",
    response_model=AnalysisRequestResponse,
    status_code=202,
)
def request_caption_retry(photo_id: str, store: StoreDep, publisher: PublisherDep):
    """Queues caption regeneration for a single photo."""
    try:
        photo = store.get_photo(photo_id)
    except PhotoNotFoundError:
        raise HTTPException(status_code=404, detail="Photo not found")

    message = AnalysisMessage(inspection_id=photo.inspection_id, photo_id=photo_id)
    _publish(publisher, message)
    return AnalysisRequestResponse(
        message="Caption retry requested",
        inspection_id=photo.inspection_id,
        photo_id=photo_id,
    )


def _publish(publisher: MessagePublisher, message: AnalysisMessage) -> None:
    try:
        publisher.publish(
            routing_key=ANALYSIS_REQUESTED_ROUTING_KEY,
            payload=message.model_dump(),
        )
    except EventPublishError:
        raise HTTPException(status_code=500, detail="Event publish failed")
