"""Abstract interface for the per-inspection transcript cache."""

from abc import ABC, abstractmethod

from field_inspection.domain.models import TranscriptionResult


class TranscriptCache(ABC):
    """Holds the normalized transcript of each analyzed inspection."""

    @abstractmethod
    def get(self, inspection_id: str) -> TranscriptionResult | None:
        """
        Returns the cached transcript, or None on a miss.

        An entry that no longer decodes counts as a miss.

        Raises:
            CacheServiceError: If the cache backend is unreachable.
        """

    @abstractmethod
    def put(self, inspection_id: str, transcript: TranscriptionResult) -> None:
        """
        Caches an inspection's transcript.

        Raises:
            CacheServiceError: If the cache backend is unreachable.
        """
