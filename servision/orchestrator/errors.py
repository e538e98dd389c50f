from enum import Enum
from typing import Optional

# Wire error codes returned by the API
ERR_BUSY = "BUSY"
ERR_INVALID_IMAGE = "INVALID_IMAGE"
ERR_SERVICE_FAILURE = "SERVICE_FAILURE"
ERR_CAMERA_UNAVAILABLE = "CAMERA_UNAVAILABLE"
ERR_DEVICE_ERROR = "DEVICE_ERROR"
ERR_DISMISSED = "DISMISSED"
ERR_BAD_REQUEST = "BAD_REQUEST"
ERR_UNKNOWN = "UNKNOWN"


class PreprocessingError(Exception):
    """A preprocessing stage could not run. Callers fall back to the raw image."""

    def __init__(self, stage: str, detail: str = ""):
        self.stage = stage
        self.detail = detail
        super().__init__(f"preprocessing stage '{stage}' unavailable: {detail}" if detail else stage)


class RecognitionErrorKind(str, Enum):
    INVALID_IMAGE = "invalid_image"
    SERVICE_FAILURE = "service_failure"

    @property
    def code(self) -> str:
        return ERR_INVALID_IMAGE if self is RecognitionErrorKind.INVALID_IMAGE else ERR_SERVICE_FAILURE


class RecognitionError(Exception):
    def __init__(self, kind: RecognitionErrorKind, detail: Optional[str] = None):
        self.kind = kind
        self.detail = detail
        super().__init__(f"{kind.value}: {detail}" if detail else kind.value)

    @classmethod
    def invalid_image(cls, detail: Optional[str] = None) -> "RecognitionError":
        return cls(RecognitionErrorKind.INVALID_IMAGE, detail)

    @classmethod
    def service_failure(cls, detail: str) -> "RecognitionError":
        return cls(RecognitionErrorKind.SERVICE_FAILURE, detail)

    @property
    def code(self) -> str:
        return self.kind.code


class CaptureErrorKind(str, Enum):
    CAMERA_UNAVAILABLE = "camera_unavailable"
    DEVICE_ERROR = "device_error"

    @property
    def code(self) -> str:
        return ERR_CAMERA_UNAVAILABLE if self is CaptureErrorKind.CAMERA_UNAVAILABLE else ERR_DEVICE_ERROR


class CaptureError(Exception):
    def __init__(self, kind: CaptureErrorKind, detail: Optional[str] = None):
        self.kind = kind
        self.detail = detail
        super().__init__(f"{kind.value}: {detail}" if detail else kind.value)

    @classmethod
    def camera_unavailable(cls, detail: Optional[str] = None) -> "CaptureError":
        return cls(CaptureErrorKind.CAMERA_UNAVAILABLE, detail)

    @classmethod
    def device_error(cls, detail: str) -> "CaptureError":
        return cls(CaptureErrorKind.DEVICE_ERROR, detail)

    @property
    def code(self) -> str:
        return self.kind.code
