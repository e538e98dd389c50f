import asyncio

import numpy as np

from servision.orchestrator.contracts import (
    DEFAULT_RECOGNITION_CONFIG, RecognitionConfig, RecognitionOutcome,
)
from servision.orchestrator.errors import RecognitionError
from servision.orchestrator.preprocess import condition_for_ocr, decode_image


class TextRecognizer:
    """Runs a TextRecognitionService off the caller's thread.

    Each call completes exactly once with a RecognitionOutcome; failures are
    returned in `outcome.error`, never raised, and never retried here.
    """

    def __init__(self, service, status_store, config: RecognitionConfig = DEFAULT_RECOGNITION_CONFIG):
        self.service = service
        self.status = status_store
        self.config = config

    async def recognize(self, image) -> RecognitionOutcome:
        if not isinstance(image, np.ndarray) or image.size == 0:
            return RecognitionOutcome(error=RecognitionError.invalid_image("empty or unsupported image"))
        try:
            raw_lines = await asyncio.to_thread(self.service.recognize_lines, image, self.config)
        except RecognitionError as e:
            self.status.log(f"recognizer: {e}")
            return RecognitionOutcome(error=e)
        except Exception as e:
            self.status.log(f"recognizer: service error {type(e).__name__}: {e}")
            return RecognitionOutcome(error=RecognitionError.service_failure(f"{type(e).__name__}: {e}"))

        lines = [line for line in (raw_lines or []) if line and line.strip()]
        self.status.log(f"recognizer: {len(lines)} line(s)")
        return RecognitionOutcome(lines=lines)

    async def recognize_image(self, raw) -> RecognitionOutcome:
        """Decode + precondition a raw capture, then recognize it."""
        if isinstance(raw, (bytes, bytearray)):
            image = decode_image(bytes(raw))
        else:
            image = raw
        if not isinstance(image, np.ndarray) or image.size == 0:
            self.status.log("recognizer: invalid image")
            return RecognitionOutcome(error=RecognitionError.invalid_image("undecodable image"))
        conditioned = await asyncio.to_thread(condition_for_ocr, image, self.status)
        return await self.recognize(conditioned)
