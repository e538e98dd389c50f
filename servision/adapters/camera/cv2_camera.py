"""
OpenCV webcam scanner: frames from cv2.VideoCapture, symbols decoded with zxing-cpp.
CAMERA_INDEX env var (default 0) selects the webcam device.
"""
import os
import threading
import time

import cv2
import zxingcpp

from servision.adapters.camera.base import FrameSource
from servision.orchestrator.contracts import DecodeEvent, Symbology

_TO_ZXING = {
    Symbology.QR: zxingcpp.BarcodeFormat.QRCode,
    Symbology.EAN8: zxingcpp.BarcodeFormat.EAN8,
    Symbology.EAN13: zxingcpp.BarcodeFormat.EAN13,
    Symbology.CODE128: zxingcpp.BarcodeFormat.Code128,
    Symbology.CODE39: zxingcpp.BarcodeFormat.Code39,
    Symbology.CODE93: zxingcpp.BarcodeFormat.Code93,
    Symbology.UPCE: zxingcpp.BarcodeFormat.UPCE,
    Symbology.PDF417: zxingcpp.BarcodeFormat.PDF417,
    Symbology.DATA_MATRIX: zxingcpp.BarcodeFormat.DataMatrix,
    Symbology.AZTEC: zxingcpp.BarcodeFormat.Aztec,
    Symbology.UPCA: zxingcpp.BarcodeFormat.UPCA,
    Symbology.ITF: zxingcpp.BarcodeFormat.ITF,
    Symbology.CODABAR: zxingcpp.BarcodeFormat.Codabar,
}
_FROM_ZXING = {fmt.name: sym for sym, fmt in _TO_ZXING.items()}


def zxing_formats(symbologies) -> list:
    """zxing formats for the given symbologies, in a stable order."""
    return [_TO_ZXING[sym] for sym in sorted({Symbology(s) for s in symbologies}, key=lambda s: s.value)]


def symbology_of(fmt) -> Symbology | None:
    return _FROM_ZXING.get(getattr(fmt, "name", str(fmt)))


class CV2ScannerSource(FrameSource):
    def __init__(self, status_store, index: int | None = None, frame_interval_s: float = 0.05):
        super().__init__()
        self.status = status_store
        self._index = index if index is not None else int(os.getenv("CAMERA_INDEX", "0"))
        self._frame_interval_s = frame_interval_s
        self._cap = None
        self._formats = None
        self._on_decode = None
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def _open(self) -> bool:
        if self._cap is None or not self._cap.isOpened():
            self._cap = cv2.VideoCapture(self._index)
            if not self._cap.isOpened():
                self.status.log(f"cv2_camera: failed to open device {self._index}")
                self._cap = None
                return False
        return True

    def _streaming(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def is_available(self) -> bool:
        """Probe the device; it is closed again unless a scan loop owns it."""
        if self._streaming():
            return True
        ok = self._open()
        self._close_capture()
        return ok

    def configure(self, symbologies: frozenset, on_decode) -> None:
        if not symbologies:
            raise ValueError("cv2_camera: no symbologies requested")
        self._formats = zxing_formats(symbologies)
        self._on_decode = on_decode

    def start(self) -> None:
        if self._on_decode is None:
            raise RuntimeError("cv2_camera: start() before configure()")
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=2.0)
        if not self._open():
            raise RuntimeError(f"cv2_camera: device {self._index} not available")
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="cv2-scanner", daemon=True)
        self._thread.start()
        self.status.log(f"cv2_camera: scanning on device {self._index}")

    def stop(self) -> None:
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=2.0)
        # the loop closes the device itself on exit
        if not self._streaming():
            self._close_capture()

    def _loop(self):
        try:
            while not self._stop.is_set():
                ret, frame = self._cap.read()
                if not ret or frame is None:
                    time.sleep(self._frame_interval_s)
                    continue
                try:
                    gray = cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
                    results = zxingcpp.read_barcodes(gray, formats=self._formats)
                except (cv2.error, RuntimeError, ValueError) as e:
                    self.status.log(f"cv2_camera: decode error: {e}")
                    continue
                for r in results:
                    if self._stop.is_set():
                        break
                    if not getattr(r, "valid", True) or not r.text:
                        continue
                    self._on_decode(DecodeEvent(value=r.text, symbology=symbology_of(r.format)))
                time.sleep(self._frame_interval_s)
        finally:
            self._close_capture()
            self.status.log("cv2_camera: stopped")

    def _close_capture(self):
        cap, self._cap = self._cap, None
        if cap is not None and cap.isOpened():
            cap.release()
