import asyncio

import numpy as np

from servision.adapters.ocr.mock_ocr import MockOcr
from servision.orchestrator.contracts import DEFAULT_RECOGNITION_CONFIG, AccuracyMode, RecognitionConfig
from servision.orchestrator.errors import RecognitionError, RecognitionErrorKind, ERR_SERVICE_FAILURE
from servision.orchestrator.recognizer import TextRecognizer


class RecordingOcr(MockOcr):
    def __init__(self, status_store, lines=None):
        super().__init__(status_store, lines=lines)
        self.images = []

    def recognize_lines(self, image, config):
        self.images.append(image)
        return super().recognize_lines(image, config)


def test_lines_keep_service_order_and_drop_blanks(status, label_image):
    ocr = MockOcr(status, lines=["Serial DMPX1234ABCD", "", "   ", "Model A1893"])
    outcome = asyncio.run(TextRecognizer(ocr, status).recognize(label_image))
    assert outcome.ok
    assert outcome.lines == ["Serial DMPX1234ABCD", "Model A1893"]
    assert outcome.text == "Serial DMPX1234ABCD\nModel A1893"


def test_no_text_is_success_with_empty_lines(status, label_image):
    outcome = asyncio.run(TextRecognizer(MockOcr(status), status).recognize(label_image))
    assert outcome.ok
    assert outcome.lines == []
    assert outcome.text == ""


def test_unexpected_exception_becomes_service_failure(status, label_image):
    ocr = MockOcr(status, error=OSError("engine crashed"))
    outcome = asyncio.run(TextRecognizer(ocr, status).recognize(label_image))
    assert not outcome.ok
    assert outcome.error.kind is RecognitionErrorKind.SERVICE_FAILURE
    assert outcome.error.code == ERR_SERVICE_FAILURE
    assert "engine crashed" in outcome.error.detail


def test_recognition_error_passes_through(status, label_image):
    err = RecognitionError.service_failure("quota exceeded")
    outcome = asyncio.run(TextRecognizer(MockOcr(status, error=err), status).recognize(label_image))
    assert outcome.error is err


def test_single_call_no_retry(status, label_image):
    ocr = MockOcr(status, error=RuntimeError("boom"))
    asyncio.run(TextRecognizer(ocr, status).recognize(label_image))
    assert len(ocr.calls) == 1


def test_invalid_images(status):
    ocr = MockOcr(status, lines=["x"])
    recognizer = TextRecognizer(ocr, status)
    for image in (None, np.zeros((0, 0), dtype=np.uint8), "not an image"):
        outcome = asyncio.run(recognizer.recognize(image))
        assert outcome.error.kind is RecognitionErrorKind.INVALID_IMAGE
    assert ocr.calls == []


def test_undecodable_bytes_are_invalid_image(status):
    outcome = asyncio.run(TextRecognizer(MockOcr(status), status).recognize_image(b"hello"))
    assert outcome.error.kind is RecognitionErrorKind.INVALID_IMAGE


def test_recognize_image_conditions_before_service(status, label_png):
    ocr = RecordingOcr(status, lines=["Model A1893"])
    outcome = asyncio.run(TextRecognizer(ocr, status).recognize_image(label_png))
    assert outcome.lines == ["Model A1893"]
    assert ocr.images[0].ndim == 2
    assert ocr.images[0].dtype == np.uint8


def test_config_reaches_service(status, label_image):
    ocr = MockOcr(status)
    config = RecognitionConfig(accuracy_mode=AccuracyMode.FAST)
    asyncio.run(TextRecognizer(ocr, status, config).recognize(label_image))
    assert ocr.calls == [config]


def test_default_config():
    assert DEFAULT_RECOGNITION_CONFIG.accuracy_mode is AccuracyMode.ACCURATE
    assert DEFAULT_RECOGNITION_CONFIG.language_correction is False
    assert DEFAULT_RECOGNITION_CONFIG.languages == ("en-US",)
    assert DEFAULT_RECOGNITION_CONFIG.minimum_text_height == 0.01
    assert DEFAULT_RECOGNITION_CONFIG.vocabulary_hints == ("Model", "Serial", "iPad", "EMC")
