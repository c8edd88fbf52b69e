"""Abstract interface for caption generation."""

from abc import ABC, abstractmethod


class CaptionService(ABC):
    """Abstract base class for language model backends."""

    @abstractmethod
    def generate_caption(self, prompt: str) -> str:
        """
        Generates a caption from a structured prompt.

        Args:
            prompt: The fully built caption prompt.

        Returns:
            Non-empty caption text.

        Raises:
            LLMServiceError: If the call fails or returns no usable text.
        """
        pass
