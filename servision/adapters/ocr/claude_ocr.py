"""
Claude label transcription (zero-shot OCR).

Sends the conditioned label image to Claude and asks for a verbatim,
line-by-line transcription. Requires ANTHROPIC_API_KEY in environment
(servision/.env or system env). CLAUDE_OCR_MODEL overrides the model.
"""
import base64
import os

import anthropic
import cv2

from servision.adapters.ocr.base import TextRecognitionService
from servision.orchestrator.contracts import AccuracyMode, RecognitionConfig
from servision.orchestrator.errors import RecognitionError

CLAUDE_OCR_MODEL = os.getenv("CLAUDE_OCR_MODEL", "claude-haiku-4-5-20251001")
NO_TEXT = "<none>"


def build_prompt(config: RecognitionConfig) -> str:
    lines = [
        "You are an OCR engine reading a photographed equipment label "
        "(etched or printed metal/plastic).",
        "Transcribe every line of text you can see, top to bottom, one line per output line.",
        f"Ignore text smaller than {config.minimum_text_height:.0%} of the image height.",
        f"Expected language(s): {', '.join(config.languages)}.",
    ]
    if not config.language_correction:
        lines.append(
            "Copy characters exactly as printed. Do NOT correct spelling, do NOT "
            "expand abbreviations; model and serial codes must stay verbatim."
        )
    if config.accuracy_mode is AccuracyMode.ACCURATE:
        lines.append("Small text matters: do not skip faint or tiny characters.")
    if config.vocabulary_hints:
        lines.append(f"Words likely to appear: {', '.join(config.vocabulary_hints)}.")
    lines.append(f"Reply with the transcription only. If there is no text, reply with exactly {NO_TEXT}")
    return "\n".join(lines)


class ClaudeOcr(TextRecognitionService):
    def __init__(self, status_store):
        self.status = status_store
        self._client = None
        self._ready = False
        api_key = os.getenv("ANTHROPIC_API_KEY")
        if not api_key:
            self.status.log("claude_ocr: ANTHROPIC_API_KEY not set")
            return
        self._client = anthropic.Anthropic(api_key=api_key)
        self._ready = True
        self.status.log(f"claude_ocr: ready ({CLAUDE_OCR_MODEL})")

    def recognize_lines(self, image, config: RecognitionConfig) -> list[str]:
        if not self._ready or self._client is None:
            raise RecognitionError.service_failure("claude_ocr not configured")

        ok, buf = cv2.imencode(".png", image)
        if not ok:
            raise RecognitionError.invalid_image("png encode failed")
        b64 = base64.standard_b64encode(bytes(buf)).decode("utf-8")

        try:
            message = self._client.messages.create(
                model=CLAUDE_OCR_MODEL,
                max_tokens=1024,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {
                                "type": "image",
                                "source": {
                                    "type": "base64",
                                    "media_type": "image/png",
                                    "data": b64,
                                },
                            },
                            {"type": "text", "text": build_prompt(config)},
                        ],
                    }
                ],
            )
        except anthropic.APIError as e:
            self.status.log(f"claude_ocr: API error: {e}")
            raise RecognitionError.service_failure(str(e)) from e

        raw = "".join(block.text for block in message.content if block.type == "text")
        return self._parse_lines(raw)

    def _parse_lines(self, raw: str) -> list[str]:
        if raw.strip() == NO_TEXT:
            self.status.log("claude_ocr: no text")
            return []
        lines = [line.strip() for line in raw.splitlines() if line.strip()]
        self.status.log(f"claude_ocr: {len(lines)} line(s)")
        return lines
