"""
Local Tesseract OCR adapter (pytesseract).

Maps RecognitionConfig onto tesseract options:
  accuracy_mode        accurate -> LSTM + sparse-text layout (psm 11)
                       fast     -> LSTM + single-block layout (psm 6)
  language_correction  off -> system/frequency dictionaries disabled
  languages            BCP-47 locale -> traineddata name (en-US -> eng)
  minimum_text_height  words shorter than this fraction of the image are dropped
  vocabulary_hints     written to a temporary --user-words file

TESSERACT_CMD env var points at a tesseract binary outside PATH.
"""
import os
import tempfile

import pytesseract

from servision.adapters.ocr.base import TextRecognitionService
from servision.orchestrator.contracts import AccuracyMode, RecognitionConfig
from servision.orchestrator.errors import RecognitionError

_LOCALE_TO_TESS = {
    "en": "eng", "de": "deu", "fr": "fra", "es": "spa", "it": "ita",
    "pt": "por", "nl": "nld", "ja": "jpn", "ko": "kor",
    "zh-hans": "chi_sim", "zh-hant": "chi_tra",
}

_PSM = {AccuracyMode.ACCURATE: 11, AccuracyMode.FAST: 6}


def tesseract_lang(languages) -> str:
    codes = []
    for locale in languages:
        key = locale.lower()
        code = _LOCALE_TO_TESS.get(key) or _LOCALE_TO_TESS.get(key.split("-")[0])
        if code is None and len(key) == 3:
            code = key   # already a traineddata name
        if code and code not in codes:
            codes.append(code)
    return "+".join(codes) or "eng"


def build_tesseract_config(config: RecognitionConfig, user_words_path: str | None = None) -> str:
    parts = ["--oem 1", f"--psm {_PSM[config.accuracy_mode]}"]
    if user_words_path:
        parts.append(f"--user-words {user_words_path}")
    if not config.language_correction:
        parts += ["-c load_system_dawg=0", "-c load_freq_dawg=0"]
    return " ".join(parts)


def group_words_into_lines(data: dict, min_height_px: float) -> list[str]:
    """Join word boxes from image_to_data into lines, keeping engine order."""
    lines: dict[tuple, list[str]] = {}
    for i, word in enumerate(data.get("text", [])):
        word = (word or "").strip()
        if not word:
            continue
        if float(data["height"][i]) < min_height_px:
            continue
        key = (data["page_num"][i], data["block_num"][i], data["par_num"][i], data["line_num"][i])
        lines.setdefault(key, []).append(word)
    return [" ".join(words) for words in lines.values()]


class TesseractOcr(TextRecognitionService):
    def __init__(self, status_store, timeout_s: float = 30.0):
        self.status = status_store
        self.timeout_s = timeout_s
        cmd = os.getenv("TESSERACT_CMD")
        if cmd:
            pytesseract.pytesseract.tesseract_cmd = cmd
            self.status.log(f"tesseract_ocr: using {cmd}")

    def recognize_lines(self, image, config: RecognitionConfig) -> list[str]:
        if image is None or getattr(image, "size", 0) == 0:
            raise RecognitionError.invalid_image("empty image")

        words_path = self._write_user_words(config.vocabulary_hints)
        try:
            data = pytesseract.image_to_data(
                image,
                lang=tesseract_lang(config.languages),
                config=build_tesseract_config(config, words_path),
                output_type=pytesseract.Output.DICT,
                timeout=self.timeout_s,
            )
        except pytesseract.TesseractNotFoundError as e:
            self.status.log("tesseract_ocr: tesseract binary not found")
            raise RecognitionError.service_failure(f"tesseract not installed: {e}") from e
        except (pytesseract.TesseractError, RuntimeError) as e:
            self.status.log(f"tesseract_ocr: engine error: {e}")
            raise RecognitionError.service_failure(str(e)) from e
        finally:
            if words_path:
                os.unlink(words_path)

        min_px = config.minimum_text_height * image.shape[0]
        lines = group_words_into_lines(data, min_px)
        self.status.log(f"tesseract_ocr: {len(lines)} line(s)")
        return lines

    def _write_user_words(self, hints) -> str | None:
        if not hints:
            return None
        with tempfile.NamedTemporaryFile("w", suffix=".user-words", delete=False, encoding="utf-8") as f:
            f.write("\n".join(hints) + "\n")
            return f.name
