"""Mock OCR: returns scripted lines, ignores the image."""
from servision.adapters.ocr.base import TextRecognitionService
from servision.orchestrator.contracts import RecognitionConfig
from servision.orchestrator.errors import RecognitionError


class MockOcr(TextRecognitionService):
    def __init__(self, status_store, lines: list[str] | None = None, error: Exception | None = None):
        self.status = status_store
        self.lines = list(lines or [])
        self.error = error
        self.calls: list[RecognitionConfig] = []

    def recognize_lines(self, image, config: RecognitionConfig) -> list[str]:
        self.calls.append(config)
        if image is None:
            raise RecognitionError.invalid_image("no image")
        if self.error is not None:
            self.status.log(f"mock_ocr: raising {type(self.error).__name__}")
            raise self.error
        self.status.log(f"mock_ocr: {len(self.lines)} line(s)")
        return list(self.lines)
