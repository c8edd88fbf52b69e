"""Selects the transcript text spoken around a photo."""

from field_inspection.domain.models import TranscriptSegment

BATCH_WINDOW_MS = 3000
LOOKUP_WINDOW_MS = 5000


def context_for(
    segments: list[TranscriptSegment],
    timestamp_ms: int,
    window_ms: int = LOOKUP_WINDOW_MS,
) -> str:
    """
    Joins the text of every segment that starts or ends near a timestamp.

    A segment qualifies when its start or its end lies within window_ms of
    timestamp_ms, boundaries included. Returns an empty string when nothing
    qualifies.
    """
    relevant = [
        segment
        for segment in sorted(segments, key=lambda s: (s.start_ms, s.end_ms))
        if abs(segment.start_ms - timestamp_ms) <= window_ms
        or abs(segment.end_ms - timestamp_ms) <= window_ms
    ]
    return " ".join(
        segment.text.strip() for segment in relevant if segment.text.strip()
    ).strip()


def segment_at(
    segments: list[TranscriptSegment], timestamp_ms: int
) -> TranscriptSegment | None:
    """Returns the first segment spanning timestamp_ms, if any."""
    for segment in segments:
        if segment.start_ms <= timestamp_ms <= segment.end_ms:
            return segment
    return None
