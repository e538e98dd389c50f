from pydantic import BaseModel
from typing import Optional

from servision.orchestrator.contracts import Symbology


class FieldsOut(BaseModel):
    model: Optional[str] = None
    serial: Optional[str] = None
    model_rule: Optional[str] = None
    serial_rule: Optional[str] = None


class FormOut(BaseModel):
    asset_id: Optional[str] = None
    model: Optional[str] = None
    serial: Optional[str] = None
    scanned_text: Optional[str] = None


class InferFieldsRequest(BaseModel):
    text: str


class RecognizeRequest(BaseModel):
    image: str  # base64 JPEG/PNG


class RecognizeResponse(BaseModel):
    ok: bool
    lines: list[str] = []
    text: str = ""
    fields: Optional[FieldsOut] = None
    form: Optional[FormOut] = None
    error_code: Optional[str] = None
    error: Optional[str] = None


class ScanRequest(BaseModel):
    timeout_s: Optional[float] = None          # default: SCAN_TIMEOUT_S
    symbologies: Optional[list[Symbology]] = None


class ScanResponse(BaseModel):
    ok: bool
    decoded: Optional[str] = None
    symbology: Optional[Symbology] = None
    state: Optional[str] = None
    form: Optional[FormOut] = None
    error_code: Optional[str] = None
    error: Optional[str] = None


class FormUpdateRequest(BaseModel):
    # human corrections; omitted fields are left unchanged
    asset_id: Optional[str] = None
    model: Optional[str] = None
    serial: Optional[str] = None


class StatusResponse(BaseModel):
    busy: bool
    scan_state: Optional[str] = None
    last_error: Optional[str] = None
    form: FormOut
    serial_rule: Optional[str] = None
    logs: list[str]
