"""
Read a label photo from disk and print the recognized lines and fields.

Usage:
  python servision/scripts/read_label.py label.jpg [--ocr tesseract|claude|mock]

OCR adapter defaults to OCR_ADAPTER (servision/.env or env), else tesseract.
"""
import asyncio
import os
import sys
from pathlib import Path

ROOT = Path(__file__).parents[2]
sys.path.insert(0, str(ROOT))

from dotenv import load_dotenv

from servision.orchestrator.fields import infer_fields
from servision.orchestrator.recognizer import TextRecognizer
from servision.services.status_store import StatusStore

load_dotenv(dotenv_path=ROOT / "servision" / ".env", override=False)


def make_ocr(name: str, status):
    if name == "claude":
        from servision.adapters.ocr.claude_ocr import ClaudeOcr
        return ClaudeOcr(status)
    if name == "mock":
        from servision.adapters.ocr.mock_ocr import MockOcr
        return MockOcr(status, lines=os.getenv("MOCK_OCR_TEXT", "").replace("\\n", "\n").splitlines())
    from servision.adapters.ocr.tesseract_ocr import TesseractOcr
    return TesseractOcr(status)


def main(argv: list[str]) -> int:
    if not argv or argv[0] in ("-h", "--help"):
        print(__doc__)
        return 2
    path = Path(argv[0])
    ocr_name = os.getenv("OCR_ADAPTER", "tesseract").lower()
    if "--ocr" in argv[1:]:
        ocr_name = argv[argv.index("--ocr") + 1]
    if not path.exists():
        print(f"[ERROR] {path} not found")
        return 1

    status = StatusStore()
    recognizer = TextRecognizer(make_ocr(ocr_name, status), status)
    outcome = asyncio.run(recognizer.recognize_image(path.read_bytes()))

    for entry in status.logs:
        print(f"  . {entry}")
    if not outcome.ok:
        print(f"[ERROR] {outcome.error.code}: {outcome.error}")
        return 1

    print("\n--- Lines ---")
    for line in outcome.lines or ["(No text detected)"]:
        print(f"  {line}")

    fields = infer_fields(outcome.text)
    print("\n--- Fields ---")
    print(f"  model:  {fields.model or '-'}  ({fields.model_rule or 'no match'})")
    print(f"  serial: {fields.serial or '-'}  ({fields.serial_rule or 'no match'})")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
