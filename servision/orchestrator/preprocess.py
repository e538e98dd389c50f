"""
OCR preprocessing for small, low-contrast etched/printed label text.

Pipeline (fixed order, each stage consumes the previous output):
  1. color_controls   grayscale + contrast gain + brightness offset
  2. noise_reduction  edge-preserving smoothing to suppress sensor grain
  3. unsharp_mask     restore character edges softened by step 2

Works on float32 images in [0, 1]; returns a new uint8 single-channel image.
The caller's array is never written to.
"""
from dataclasses import dataclass
from typing import Callable

import cv2
import numpy as np

from servision.orchestrator.errors import PreprocessingError


@dataclass(frozen=True)
class PreprocessSettings:
    contrast: float = 1.5
    brightness: float = 0.05
    noise_level: float = 0.02
    sharpness: float = 0.4
    unsharp_radius: float = 2.5
    unsharp_intensity: float = 0.75


DEFAULT_PREPROCESS = PreprocessSettings()


# ── Image helpers ───────────────────────────────────────────────────────────

def decode_image(image_bytes: bytes):
    """Decode JPEG/PNG bytes to a BGR array, or None if undecodable."""
    if not image_bytes:
        return None
    arr = np.frombuffer(image_bytes, dtype=np.uint8)
    return cv2.imdecode(arr, cv2.IMREAD_COLOR)


def _to_unit_gray(image: np.ndarray) -> np.ndarray:
    if image.ndim == 3 and image.shape[2] == 4:
        gray = cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    elif image.ndim == 3 and image.shape[2] == 1:
        gray = image[:, :, 0]
    elif image.ndim == 3:
        gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    elif image.ndim == 2:
        gray = image
    else:
        raise ValueError(f"unsupported image shape {image.shape}")
    scale = 65535.0 if gray.dtype == np.uint16 else 255.0
    # astype always copies, so the caller's buffer stays untouched
    return gray.astype(np.float32) / scale


# ── Stages ──────────────────────────────────────────────────────────────────

def _color_controls(img: np.ndarray, s: PreprocessSettings) -> np.ndarray:
    out = (img - 0.5) * s.contrast + 0.5 + s.brightness
    return np.clip(out, 0.0, 1.0)


def _noise_reduction(img: np.ndarray, s: PreprocessSettings) -> np.ndarray:
    # Only differences around the noise level get smoothed, stroke edges survive
    smoothed = cv2.bilateralFilter(img, d=5, sigmaColor=s.noise_level * 2.0, sigmaSpace=3.0)
    detail = smoothed - cv2.GaussianBlur(smoothed, (0, 0), sigmaX=1.0)
    return np.clip(smoothed + s.sharpness * detail, 0.0, 1.0)


def _unsharp_mask(img: np.ndarray, s: PreprocessSettings) -> np.ndarray:
    blurred = cv2.GaussianBlur(img, (0, 0), sigmaX=s.unsharp_radius)
    out = cv2.addWeighted(img, 1.0 + s.unsharp_intensity, blurred, -s.unsharp_intensity, 0)
    return np.clip(out, 0.0, 1.0)


STAGES: tuple[tuple[str, Callable[[np.ndarray, PreprocessSettings], np.ndarray]], ...] = (
    ("color_controls", _color_controls),
    ("noise_reduction", _noise_reduction),
    ("unsharp_mask", _unsharp_mask),
)


# ── Pipeline ────────────────────────────────────────────────────────────────

def preprocess(image, settings: PreprocessSettings = DEFAULT_PREPROCESS) -> np.ndarray:
    """Return a conditioned copy of `image` (bytes or ndarray).

    Raises PreprocessingError naming the first stage that could not run.
    """
    if isinstance(image, (bytes, bytearray)):
        image = decode_image(bytes(image))
        if image is None:
            raise PreprocessingError("decode", "undecodable image bytes")
    if not isinstance(image, np.ndarray) or image.size == 0:
        raise PreprocessingError("decode", "empty or unsupported image")

    try:
        out = _to_unit_gray(image)
    except (cv2.error, ValueError) as e:
        raise PreprocessingError("color_controls", str(e)) from e

    for name, stage in STAGES:
        try:
            out = stage(out, settings)
        except (cv2.error, ValueError) as e:
            raise PreprocessingError(name, str(e)) from e

    return (out * 255.0 + 0.5).astype(np.uint8)


def condition_for_ocr(image: np.ndarray, status_store, settings: PreprocessSettings = DEFAULT_PREPROCESS) -> np.ndarray:
    """Preprocess, falling back to the unprocessed image if any stage fails."""
    try:
        return preprocess(image, settings)
    except PreprocessingError as e:
        status_store.log(f"preprocess: {e}, using original image")
        return image
