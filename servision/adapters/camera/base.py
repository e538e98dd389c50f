import threading
from abc import ABC, abstractmethod
from typing import Callable

from servision.orchestrator.contracts import DecodeEvent

DecodeCallback = Callable[[DecodeEvent], None]


class FrameSource(ABC):
    """Symbol-scanning sensor: streams decoded values between start() and stop().

    One physical sensor is owned by at most one capture session at a time;
    sessions claim() the source before configuring it and release() it when
    they reach a terminal state.
    """

    def __init__(self):
        self._owner = None
        self._owner_lock = threading.Lock()

    @abstractmethod
    def is_available(self) -> bool:
        """True if a sensor device exists and can be opened."""
        ...

    @abstractmethod
    def configure(self, symbologies: frozenset, on_decode: DecodeCallback) -> None:
        """Wire the symbology filter and decode callback. Raises on device errors."""
        ...

    @abstractmethod
    def start(self) -> None:
        ...

    @abstractmethod
    def stop(self) -> None:
        """Stop streaming. Must be safe to call from inside the decode callback."""
        ...

    def claim(self, owner) -> bool:
        with self._owner_lock:
            if self._owner is not None and self._owner is not owner:
                return False
            self._owner = owner
            return True

    def release(self, owner) -> None:
        with self._owner_lock:
            if self._owner is owner:
                self._owner = None

    @property
    def owned(self) -> bool:
        return self._owner is not None
