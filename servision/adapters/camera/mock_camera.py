"""Mock frame source: scripted availability, failures and decode events for testing."""
import threading

from servision.adapters.camera.base import FrameSource
from servision.orchestrator.contracts import DecodeEvent, Symbology


class MockFrameSource(FrameSource):
    def __init__(self, status_store, available: bool = True, fail_on: str | None = None,
                 auto_emit: str | None = None, auto_emit_delay_s: float = 0.2):
        super().__init__()
        self.status = status_store
        self.available = available
        self.fail_on = fail_on            # "configure" | "start" | None
        self.auto_emit = auto_emit        # value emitted on a timer after start()
        self.auto_emit_delay_s = auto_emit_delay_s
        self.symbologies: frozenset = frozenset()
        self.running = False
        self.start_calls = 0
        self.stop_calls = 0
        self._on_decode = None
        self._timer: threading.Timer | None = None

    def is_available(self) -> bool:
        return self.available

    def configure(self, symbologies: frozenset, on_decode) -> None:
        if self.fail_on == "configure":
            raise RuntimeError("mock_camera: output wiring failed")
        self.symbologies = frozenset(symbologies)
        self._on_decode = on_decode
        self.status.log(f"mock_camera: configured {len(self.symbologies)} symbologies")

    def start(self) -> None:
        self.start_calls += 1
        if self.fail_on == "start":
            raise RuntimeError("mock_camera: stream failed to start")
        self.running = True
        self.status.log("mock_camera: streaming")
        if self.auto_emit:
            self._timer = threading.Timer(self.auto_emit_delay_s, self.emit, args=(self.auto_emit, Symbology.QR))
            self._timer.daemon = True
            self._timer.start()

    def stop(self) -> None:
        self.stop_calls += 1
        self.running = False
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self.status.log("mock_camera: stopped")

    def emit(self, value: str, symbology: Symbology | None = Symbology.QR) -> None:
        """Deliver a decode event, even after stop(), like an in-flight frame would."""
        if self._on_decode is None:
            return
        self._on_decode(DecodeEvent(value=value, symbology=symbology))
