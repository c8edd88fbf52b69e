"""Rate-limited caption generation for a batch of photos."""

import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor

from field_inspection.domain.caption_prompt import build_prompt
from field_inspection.domain.models import FAILED_CAPTION, CaptionRequest, CaptionResult
from field_inspection.exceptions import CaptionGenerationError, LLMServiceError
from field_inspection.infrastructure.interfaces.caption_service import CaptionService
from field_inspection.logging import setup_logging

logger = setup_logging()

GENERATED_CAPTION_CONFIDENCE = 0.9


class CaptionBatchPipeline:
    """
    Generates one caption per request in fixed-size concurrent waves.

    At most batch_size requests are in flight at once. Each wave settles
    completely, failures included, and the pipeline then waits
    cooldown_seconds before issuing the next one. A failed request yields a
    sentinel result in its slot; results are index-aligned with requests.
    """

    def __init__(
        self,
        caption_service: CaptionService,
        batch_size: int = 3,
        cooldown_seconds: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self._caption_service = caption_service
        self._batch_size = batch_size
        self._cooldown_seconds = cooldown_seconds
        self._sleep = sleep

    def generate(self, request: CaptionRequest) -> CaptionResult:
        """
        Generates a caption for a single photo.

        Raises:
            CaptionGenerationError: If the caption service fails.
        """
        prompt = build_prompt(request)
        try:
            caption = self._caption_service.generate_caption(prompt)
        except LLMServiceError as e:
            raise CaptionGenerationError(request.photo_id, e) from e

        return CaptionResult(
            photo_id=request.photo_id,
            caption=caption,
            confidence=GENERATED_CAPTION_CONFIDENCE,
            audio_context=request.audio_context,
            timestamp=request.photo_timestamp_ms,
        )

    def generate_batch(self, requests: list[CaptionRequest]) -> list[CaptionResult]:
        results: list[CaptionResult] = []
        if not requests:
            return results

        with ThreadPoolExecutor(
            max_workers=self._batch_size, thread_name_prefix="caption"
        ) as executor:
            for start in range(0, len(requests), self._batch_size):
                batch = requests[start : start + self._batch_size]
                futures = [executor.submit(self.generate, r) for r in batch]

                for request, future in zip(batch, futures):
                    try:
                        results.append(future.result())
                    except Exception:
                        logger.exception(
                            "Failed to generate caption for batch item",
                            extra={"photo_id": request.photo_id},
                        )
                        results.append(self._sentinel(request))

                if start + self._batch_size < len(requests):
                    self._sleep(self._cooldown_seconds)

        logger.info(
            "Caption batch finished",
            extra={
                "requested": len(requests),
                "failed": sum(1 for r in results if r.failed),
            },
        )
        return results

    @staticmethod
    def _sentinel(request: CaptionRequest) -> CaptionResult:
        return CaptionResult(
            photo_id=request.photo_id,
            caption=FAILED_CAPTION,
            confidence=0.0,
            audio_context=request.audio_context,
            timestamp=request.photo_timestamp_ms,
            failed=True,
        )
