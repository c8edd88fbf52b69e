"""Gemini caption service implementation."""

from google import genai

from field_inspection.exceptions import LLMServiceError
from field_inspection.infrastructure.interfaces import CaptionService
from field_inspection.logging import setup_logging

logger = setup_logging()


class GeminiCaptionService(CaptionService):
    """Caption service implementation using Google Gemini."""

    def __init__(
        self,
        client: genai.Client,
        model_name: str,
        system_prompt: str,
        max_output_tokens: int = 150,
        temperature: float = 0.3,
    ):
        self._client = client
        self._model_name = model_name
        self._system_prompt = system_prompt
        self._max_output_tokens = max_output_tokens
        self._temperature = temperature

    def generate_caption(self, prompt: str) -> str:
        """
        Generates a photo caption using Gemini.

        Args:
            prompt: The caption prompt with inspection and audio context.

        Returns:
            The trimmed caption text.

        Raises:
            LLMServiceError: If the Gemini API call fails or returns no text.
        """
        try:
            response = self._client.models.generate_content(
                model=self._model_name,
                contents=prompt,
                config={
                    "system_instruction": self._system_prompt,
                    "max_output_tokens": self._max_output_tokens,
                    "temperature": self._temperature,
                },
            )
        except Exception as e:
            logger.exception("Gemini API call failed")
            raise LLMServiceError(f"Gemini caption request failed: {e}", cause=e) from e

        caption = (response.text or "").strip()
        if not caption:
            logger.error("Gemini returned empty response")
            raise LLMServiceError("Gemini returned empty response")

        logger.info("Caption generated", extra={"length": len(caption)})
        return caption
