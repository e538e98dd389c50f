from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from servision.orchestrator.errors import CaptureError, RecognitionError


class Symbology(str, Enum):
    QR = "qr"
    EAN8 = "ean8"
    EAN13 = "ean13"
    CODE128 = "code128"
    CODE39 = "code39"
    CODE93 = "code93"
    UPCE = "upce"
    PDF417 = "pdf417"
    DATA_MATRIX = "datamatrix"
    AZTEC = "aztec"
    # opt-in extras, not part of the default filter
    UPCA = "upca"
    ITF = "itf"
    CODABAR = "codabar"


# Linear + 2D codes found on asset labels
DEFAULT_SYMBOLOGIES = frozenset({
    Symbology.QR, Symbology.EAN8, Symbology.EAN13,
    Symbology.CODE128, Symbology.CODE39, Symbology.CODE93,
    Symbology.UPCE, Symbology.PDF417, Symbology.DATA_MATRIX, Symbology.AZTEC,
})


class AccuracyMode(str, Enum):
    ACCURATE = "accurate"
    FAST = "fast"


@dataclass(frozen=True)
class RecognitionConfig:
    accuracy_mode: AccuracyMode = AccuracyMode.ACCURATE
    language_correction: bool = False       # labels are codes, autocorrect corrupts serials
    languages: tuple[str, ...] = ("en-US",)
    minimum_text_height: float = 0.01       # fraction of image height
    vocabulary_hints: tuple[str, ...] = ("Model", "Serial", "iPad", "EMC")


DEFAULT_RECOGNITION_CONFIG = RecognitionConfig()


@dataclass(frozen=True)
class CaptureConfig:
    symbologies: frozenset = DEFAULT_SYMBOLOGIES
    timeout_s: Optional[float] = None       # None: wait until dismissed


@dataclass(frozen=True)
class ExtractedFields:
    model: Optional[str] = None
    serial: Optional[str] = None
    # name of the rule that produced each value, e.g. "serial_shape"
    model_rule: Optional[str] = None
    serial_rule: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self.model is None and self.serial is None

    def merged_over(self, model: Optional[str], serial: Optional[str]) -> tuple[Optional[str], Optional[str]]:
        """Apply onto previously held values: found fields replace, missing fields keep."""
        return (
            self.model if self.model is not None else model,
            self.serial if self.serial is not None else serial,
        )


@dataclass(frozen=True)
class RecognitionOutcome:
    lines: list[str] = field(default_factory=list)
    error: Optional[RecognitionError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


@dataclass(frozen=True)
class DecodeEvent:
    value: str
    symbology: Optional[Symbology] = None


@dataclass(frozen=True)
class ScanSuccess:
    decoded: str
    symbology: Optional[Symbology] = None
    ok: bool = field(default=True, init=False)


@dataclass(frozen=True)
class ScanFailure:
    error: CaptureError
    ok: bool = field(default=False, init=False)


ScanOutcome = Union[ScanSuccess, ScanFailure]
