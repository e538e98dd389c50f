"""
Model / serial inference from recognized label text.

Each field has an ordered rule list. The first rule that yields a non-empty
capture wins and later rules are not consulted, so a shape-based fallback can
never replace a keyword-anchored value. Within a rule the earliest match by
text position wins.

  model:  model_keyword  "Model: AB-123" / "Model A1234"
          model_shape    "Model A1234" (letter + four digits)
  serial: serial_keyword "Serial: XR7Y2K9P1Q"
          serial_shape   any standalone 10-12 char alphanumeric token

The shape fallback for serials can pick up unrelated printed codes (firmware
strings, regulatory IDs). Callers can check `serial_rule` to flag it.
"""
import re
from dataclasses import dataclass
from typing import Optional, Sequence

from servision.orchestrator.contracts import ExtractedFields

_FLAGS = re.IGNORECASE | re.MULTILINE

# Recognition engines swap these for a plain hyphen
_DASHES = str.maketrans({
    "‐": "-",  # hyphen
    "‑": "-",  # non-breaking hyphen
    "‒": "-",  # figure dash
    "–": "-",  # en dash
    "—": "-",  # em dash
    "―": "-",  # horizontal bar
    "−": "-",  # minus sign
})


@dataclass(frozen=True)
class FieldRule:
    name: str
    pattern: re.Pattern

    def match(self, text: str) -> Optional[str]:
        m = self.pattern.search(text)
        if m is None:
            return None
        value = (m.group(1) if m.re.groups else m.group(0)).strip()
        return value or None


MODEL_RULES: tuple[FieldRule, ...] = (
    FieldRule("model_keyword", re.compile(r"\bmodel\b\s*[:\-]?\s*([A-Z0-9,\-]+)", _FLAGS)),
    FieldRule("model_shape",   re.compile(r"\bmodel\b\s*([A-Z]\d{4})\b", _FLAGS)),
)

SERIAL_RULES: tuple[FieldRule, ...] = (
    FieldRule("serial_keyword", re.compile(r"\bserial\b\s*[:\-]?\s*([A-Z0-9]+)", _FLAGS)),
    FieldRule("serial_shape",   re.compile(r"\b([A-Z0-9]{10,12})\b", _FLAGS)),
)


def normalize_text(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n").translate(_DASHES)


def first_match(rules: Sequence[FieldRule], text: str) -> tuple[Optional[str], Optional[str]]:
    """Return (value, rule_name) from the first rule that matches, else (None, None)."""
    for rule in rules:
        value = rule.match(text)
        if value is not None:
            return value, rule.name
    return None, None


def infer_fields(joined_text: str) -> ExtractedFields:
    text = normalize_text(joined_text or "")
    model, model_rule = first_match(MODEL_RULES, text)
    serial, serial_rule = first_match(SERIAL_RULES, text)
    return ExtractedFields(model=model, serial=serial, model_rule=model_rule, serial_rule=serial_rule)
