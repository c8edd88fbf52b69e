"""Redis-backed transcript cache."""

import redis
from pydantic import ValidationError

from field_inspection.domain.models import TranscriptionResult
from field_inspection.exceptions import CacheServiceError
from field_inspection.infrastructure.interfaces import TranscriptCache
from field_inspection.logging import setup_logging

logger = setup_logging()

KEY_PREFIX = "transcript"


def transcript_key(inspection_id: str) -> str:
    return f"{KEY_PREFIX}:{inspection_id}"


class RedisTranscriptCache(TranscriptCache):
    """
    Stores transcripts as JSON under `transcript:{inspection_id}` with a TTL.

    Entries written by an older schema, or truncated, are evicted on read so
    the next analysis run transcribes again and rewrites them.
    """

    def __init__(self, client: redis.Redis, ttl_seconds: int):
        self._client = client
        self._ttl_seconds = ttl_seconds

    def get(self, inspection_id: str) -> TranscriptionResult | None:
        key = transcript_key(inspection_id)
        try:
            payload = self._client.get(key)
            if not payload:
                return None
            try:
                transcript = TranscriptionResult.model_validate_json(payload)
            except ValidationError:
                logger.warning(
                    "Evicting undecodable transcript",
                    extra={"inspection_id": inspection_id, "key": key},
                )
                self._client.delete(key)
                return None
        except redis.RedisError as e:
            logger.exception("Transcript cache read failed", extra={"key": key})
            raise CacheServiceError(key, "get", cause=e) from e

        logger.info(
            "Transcript cache hit",
            extra={
                "inspection_id": inspection_id,
                "segments": len(transcript.segments),
            },
        )
        return transcript

    def put(self, inspection_id: str, transcript: TranscriptionResult) -> None:
        key = transcript_key(inspection_id)
        try:
            self._client.set(key, transcript.model_dump_json(), ex=self._ttl_seconds)
        except redis.RedisError as e:
            logger.exception("Transcript cache write failed", extra={"key": key})
            raise CacheServiceError(key, "set", cause=e) from e

        logger.info(
            "Transcript cached",
            extra={"inspection_id": inspection_id, "ttl": self._ttl_seconds},
        )
