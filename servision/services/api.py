import base64
import binascii
import os
from fastapi import FastAPI
from dotenv import load_dotenv
from servision.services.models import (
    FieldsOut, FormOut, InferFieldsRequest,
    RecognizeRequest, RecognizeResponse,
    ScanRequest, ScanResponse,
    FormUpdateRequest, StatusResponse,
)
from servision.services.status_store import StatusStore
from servision.orchestrator.contracts import DEFAULT_SYMBOLOGIES, ExtractedFields
from servision.orchestrator.fields import infer_fields
from servision.orchestrator.recognizer import TextRecognizer
from servision.orchestrator.state_machine import CaptureSession
from servision.orchestrator import errors

load_dotenv(dotenv_path="servision/.env", override=False)

app = FastAPI(title="servision label capture")

status = StatusStore()

SCAN_TIMEOUT_S = float(os.getenv("SCAN_TIMEOUT_S", "30"))

# OCR adapter: controlled by OCR_ADAPTER env var
# Values: tesseract | claude | mock  (default: tesseract)
_ocr_adapter = os.getenv("OCR_ADAPTER", "tesseract").lower()

if _ocr_adapter == "claude":
    from servision.adapters.ocr.claude_ocr import ClaudeOcr
    ocr = ClaudeOcr(status)
    if not ocr._ready:
        status.log("ocr: ClaudeOcr not ready, falling back to tesseract")
        from servision.adapters.ocr.tesseract_ocr import TesseractOcr
        ocr = TesseractOcr(status)

elif _ocr_adapter == "mock":
    from servision.adapters.ocr.mock_ocr import MockOcr
    _mock_text = os.getenv("MOCK_OCR_TEXT", "").replace("\\n", "\n")
    ocr = MockOcr(status, lines=_mock_text.split("\n") if _mock_text else [])

else:
    from servision.adapters.ocr.tesseract_ocr import TesseractOcr
    ocr = TesseractOcr(status)

status.log(f"ocr adapter: {type(ocr).__name__}")

# Camera adapter: CAMERA_ADAPTER env var, cv2 | mock (default: cv2)
_camera_adapter = os.getenv("CAMERA_ADAPTER", "cv2").lower()

if _camera_adapter == "mock":
    from servision.adapters.camera.mock_camera import MockFrameSource
    camera = MockFrameSource(status, auto_emit=os.getenv("MOCK_SCAN_VALUE") or None)
else:
    from servision.adapters.camera.cv2_camera import CV2ScannerSource
    camera = CV2ScannerSource(status)

status.log(f"camera adapter: {type(camera).__name__}")

recognizer = TextRecognizer(ocr, status)

active_session: CaptureSession | None = None


def _form() -> FormOut:
    return FormOut(asset_id=status.asset_id, model=status.model, serial=status.serial,
                   scanned_text=status.scanned_text)


def _fields_out(fields: ExtractedFields) -> FieldsOut:
    return FieldsOut(model=fields.model, serial=fields.serial,
                     model_rule=fields.model_rule, serial_rule=fields.serial_rule)


@app.get("/status", response_model=StatusResponse)
def get_status():
    return StatusResponse(
        busy=status.busy,
        scan_state=status.scan_state,
        last_error=status.last_error,
        form=_form(),
        serial_rule=status.serial_rule,
        logs=status.logs,
    )


@app.get("/health")
def health():
    """Report selected adapters and whether a capture device is present."""
    checks = {
        "api": True,
        "ocr_adapter": type(ocr).__name__,
        "camera_adapter": type(camera).__name__,
    }
    if active_session is not None:
        checks["camera_available"] = True   # owned by the running session
    else:
        try:
            checks["camera_available"] = bool(camera.is_available())
        except Exception as e:
            checks["camera_available"] = False
            checks["camera_error"] = str(e)
    checks["all_ok"] = checks["api"]
    return checks


@app.post("/infer_fields", response_model=FieldsOut)
def infer(req: InferFieldsRequest):
    return _fields_out(infer_fields(req.text))


@app.post("/recognize", response_model=RecognizeResponse)
async def recognize(req: RecognizeRequest):
    try:
        image_bytes = base64.b64decode(req.image, validate=True)
    except (binascii.Error, ValueError) as e:
        status.log(f"RECOGNIZE decode error: {e}")
        return RecognizeResponse(ok=False, error_code=errors.ERR_BAD_REQUEST, error="base64 decode failed")

    if status.busy:
        status.log("RECOGNIZE rejected: busy")
        return RecognizeResponse(ok=False, error_code=errors.ERR_BUSY)

    status.set_busy(True)
    try:
        status.log(f"RECOGNIZE received {len(image_bytes)} bytes")
        result = await recognizer.recognize_image(image_bytes)
    finally:
        status.set_busy(False)

    if not result.ok:
        status.last_error = result.error.code
        return RecognizeResponse(ok=False, error_code=result.error.code, error=str(result.error),
                                 form=_form())

    fields = infer_fields(result.text)
    status.apply_fields(result.text, fields)
    status.log(f"RECOGNIZE fields model={fields.model_rule or '-'} serial={fields.serial_rule or '-'}")
    return RecognizeResponse(ok=True, lines=result.lines, text=result.text,
                             fields=_fields_out(fields), form=_form())


@app.post("/scan", response_model=ScanResponse)
async def scan(req: ScanRequest):
    """Run one capture session; the decoded value becomes the asset id."""
    global active_session
    if req.timeout_s is not None and req.timeout_s <= 0:
        return ScanResponse(ok=False, error_code=errors.ERR_BAD_REQUEST, error="timeout_s must be positive")
    if status.busy:
        status.log("SCAN rejected: busy")
        return ScanResponse(ok=False, error_code=errors.ERR_BUSY)

    symbologies = frozenset(req.symbologies) if req.symbologies else DEFAULT_SYMBOLOGIES
    timeout_s = req.timeout_s if req.timeout_s is not None else SCAN_TIMEOUT_S

    status.set_busy(True)
    session = CaptureSession(camera, status, symbologies)
    active_session = session
    try:
        outcome = await session.run(timeout_s)
    finally:
        active_session = None
        status.set_busy(False)

    status.scan_state = session.state.value
    if outcome is None:
        status.log("SCAN ended without a detection")
        return ScanResponse(ok=False, state=session.state.value, error_code=errors.ERR_DISMISSED,
                            form=_form())
    if not outcome.ok:
        status.last_error = outcome.error.code
        return ScanResponse(ok=False, state=session.state.value, error_code=outcome.error.code,
                            error=str(outcome.error), form=_form())

    status.apply_scan(outcome)
    return ScanResponse(ok=True, decoded=outcome.decoded, symbology=outcome.symbology,
                        state=session.state.value, form=_form())


@app.post("/scan/dismiss")
def scan_dismiss():
    session = active_session
    if session is None or not session.dismiss():
        return {"ok": False, "error": "no active scan"}
    status.log("SCAN dismissed")
    return {"ok": True}


@app.post("/form")
def update_form(req: FormUpdateRequest):
    """Human corrections to the captured fields."""
    for name in ("asset_id", "model", "serial"):
        value = getattr(req, name)
        if value is not None:
            setattr(status, name, value.strip() or None)
    if req.serial is not None:
        status.serial_rule = None
    status.log("FORM updated")
    return {"ok": True, "form": _form()}


@app.post("/clear")
def clear():
    if status.busy:
        return {"ok": False, "error_code": errors.ERR_BUSY}
    status.clear()
    status.log("FORM cleared")
    return {"ok": True}
