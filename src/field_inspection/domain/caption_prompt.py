"""Prompt construction for photo captions."""

from field_inspection.domain.models import CaptionRequest

NO_CONTEXT_PLACEHOLDER = "No audio context available"
MAX_CAPTION_CHARS = 100


def format_timestamp(timestamp_ms: int) -> str:
    """Formats recording milliseconds as m:ss."""
    total_seconds = timestamp_ms // 1000
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes}:{seconds:02d}"


def build_prompt(request: CaptionRequest) -> str:
    details = request.inspection
    audio_context = request.audio_context or NO_CONTEXT_PLACEHOLDER

    lines = [
        "Inspection Details:",
        f"- Client: {details.client}",
        f"- Address: {details.address}",
        f"- Claim Number: {details.claim_number}",
        "",
        "Photo Context:",
        f"- Timestamp: {format_timestamp(request.photo_timestamp_ms)}",
        f'- Audio Context: "{audio_context}"',
        "",
        "Generate a professional, concise caption "
        f"(max {MAX_CAPTION_CHARS} characters) for this inspection photo. "
        "The caption should:",
        "1. Be relevant to the audio context at this timestamp",
        "2. Be professional and inspection-focused",
        "3. Include relevant details about what was being inspected",
        "4. Be clear and descriptive",
        "",
        "Caption:",
    ]
    return "\n".join(lines)
