"""
Single-shot capture session over a FrameSource.

    idle -> configuring -> running -> detected
                  |           |
                  v           v
                failed     stopped   (dismiss() from any non-terminal state)

At most one outcome is ever delivered. The result future is resolved once, by
the thread that tears the session down (start() when dismissed mid-configure).
"""
import asyncio
import threading
from concurrent import futures
from enum import Enum
from typing import Optional

from servision.orchestrator.contracts import (
    DEFAULT_SYMBOLOGIES, CaptureConfig, DecodeEvent, ScanFailure, ScanOutcome, ScanSuccess,
)
from servision.orchestrator.errors import CaptureError, CaptureErrorKind


class SessionState(str, Enum):
    IDLE = "idle"
    CONFIGURING = "configuring"
    RUNNING = "running"
    DETECTED = "detected"
    STOPPED = "stopped"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (SessionState.DETECTED, SessionState.STOPPED, SessionState.FAILED)


class CaptureSession:
    def __init__(self, frame_source, status_store, symbologies=DEFAULT_SYMBOLOGIES):
        self.source = frame_source
        self.status = status_store
        self.symbologies = frozenset(symbologies)
        self.state = SessionState.IDLE
        self.ignored_events = 0
        self.error: CaptureError | None = None
        self._lock = threading.RLock()
        self._result: futures.Future = futures.Future()
        self._claimed = False
        self._streaming = False

    # ── Transitions ───────────────────────────────────────────────────

    def _transition(self, new: SessionState):
        self.status.log(f"capture: {self.state.value} -> {new.value}")
        self.state = new

    def _release_claim(self):
        if self._claimed:
            self.source.release(self)
            self._claimed = False

    def _stop_source(self):
        if self._streaming:
            self._streaming = False
            try:
                self.source.stop()
            except Exception as e:
                self.status.log(f"capture: stop failed {type(e).__name__}: {e}")

    def _fail(self, error: CaptureError):
        """Caller holds the lock and the session is configuring."""
        self.error = error
        self._transition(SessionState.FAILED)
        self.status.log(f"capture: {error}")

    def start(self) -> SessionState:
        with self._lock:
            if self.state is not SessionState.IDLE:
                raise RuntimeError(f"capture session already used (state={self.state.value})")
            self._transition(SessionState.CONFIGURING)
            if not self.source.claim(self):
                self._fail(CaptureError.camera_unavailable("in use"))
                self._result.set_result(ScanFailure(self.error))
                return self.state
            self._claimed = True

        # device calls run outside the lock; decode callbacks arriving now are ignored
        error = None
        try:
            if not self.source.is_available():
                error = CaptureError.camera_unavailable("no capture device")
            else:
                self.source.configure(self.symbologies, self._on_decode)
                self.source.start()
        except Exception as e:
            error = CaptureError.device_error(f"{type(e).__name__}: {e}")

        with self._lock:
            dismissed = self.state is not SessionState.CONFIGURING
            if not dismissed and error is None:
                self._streaming = True
                self._transition(SessionState.RUNNING)
                return self.state
            if not dismissed:
                self._fail(error)

        # failed, or dismissed while configuring: teardown happens here, not in dismiss()
        if error is None or error.kind is CaptureErrorKind.DEVICE_ERROR:
            self._streaming = True
            self._stop_source()
        with self._lock:
            self._release_claim()
        self._result.set_result(None if dismissed else ScanFailure(error))
        return self.state

    def _on_decode(self, event: DecodeEvent):
        with self._lock:
            if self.state is not SessionState.RUNNING or not event.value:
                self.ignored_events += 1
                return
            self._transition(SessionState.DETECTED)
        self._stop_source()
        with self._lock:
            self._release_claim()
        self.status.log(f"capture: decoded {event.symbology.value if event.symbology else '?'} value")
        self._result.set_result(ScanSuccess(decoded=event.value, symbology=event.symbology))

    def dismiss(self) -> bool:
        """Stop the session without an outcome. Returns False if it had already ended."""
        with self._lock:
            if self.state.terminal:
                return False
            configuring = self.state is SessionState.CONFIGURING
            self._transition(SessionState.STOPPED)
        if configuring:
            # start() still holds the device; it stops and releases on return
            return True
        self._stop_source()
        with self._lock:
            self._release_claim()
        self._result.set_result(None)
        return True

    # ── Waiting ───────────────────────────────────────────────────────

    def done(self) -> bool:
        return self._result.done()

    def wait(self, timeout: float | None = None) -> Optional[ScanOutcome]:
        try:
            return self._result.result(timeout)
        except futures.TimeoutError as e:
            raise TimeoutError(f"no outcome within {timeout}s") from e

    async def outcome(self) -> Optional[ScanOutcome]:
        return await asyncio.shield(asyncio.wrap_future(self._result))

    async def run(self, timeout_s: float | None = None) -> Optional[ScanOutcome]:
        try:
            await asyncio.to_thread(self.start)
            if timeout_s is None:
                return await self.outcome()
            return await asyncio.wait_for(self.outcome(), timeout_s)
        except asyncio.TimeoutError:
            self.status.log(f"capture: timed out after {timeout_s}s")
            self.dismiss()
            return await self.outcome()
        except asyncio.CancelledError:
            self.dismiss()
            raise


async def run_capture_session(frame_source, status_store,
                              config: CaptureConfig = CaptureConfig()) -> Optional[ScanOutcome]:
    """Run one session to completion: ScanSuccess, ScanFailure, or None when dismissed."""
    session = CaptureSession(frame_source, status_store, config.symbologies)
    return await session.run(config.timeout_s)
