"""
Shared fixtures: status store, mock adapters, and an API client wired to mock adapters.
Adapter env vars are set before servision.services.api is imported.
"""
import base64
import os

import cv2
import numpy as np
import pytest

os.environ["OCR_ADAPTER"] = "mock"
os.environ["CAMERA_ADAPTER"] = "mock"
os.environ.pop("MOCK_SCAN_VALUE", None)
os.environ.pop("MOCK_OCR_TEXT", None)

from servision.adapters.camera.mock_camera import MockFrameSource
from servision.services.status_store import StatusStore


@pytest.fixture
def status() -> StatusStore:
    return StatusStore()


@pytest.fixture
def source(status) -> MockFrameSource:
    return MockFrameSource(status)


@pytest.fixture
def label_image() -> np.ndarray:
    """Dark text-like strokes on a light background, BGR."""
    img = np.full((120, 320, 3), 200, dtype=np.uint8)
    cv2.putText(img, "Model A1893", (10, 50), cv2.FONT_HERSHEY_SIMPLEX, 1.0, (40, 40, 40), 2)
    cv2.putText(img, "Serial DMPX1234AB", (10, 100), cv2.FONT_HERSHEY_SIMPLEX, 0.9, (40, 40, 40), 2)
    return img


@pytest.fixture
def label_png(label_image) -> bytes:
    ok, buf = cv2.imencode(".png", label_image)
    assert ok
    return bytes(buf)


@pytest.fixture
def label_b64(label_png) -> str:
    return base64.b64encode(label_png).decode("ascii")


@pytest.fixture
def api():
    from servision.services import api as api_module
    api_module.status.clear()
    api_module.status.set_busy(False)
    yield api_module
    api_module.status.clear()
    api_module.status.set_busy(False)


@pytest.fixture
def client(api):
    from fastapi.testclient import TestClient
    return TestClient(app=api.app, base_url="http://test")
