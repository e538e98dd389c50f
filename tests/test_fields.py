"""Field inference: rule order, fallback, normalization, merge."""
import pytest

from servision.orchestrator.contracts import ExtractedFields
from servision.orchestrator.fields import (
    MODEL_RULES, SERIAL_RULES, first_match, infer_fields, normalize_text,
)


def test_model_keyword_with_colon():
    fields = infer_fields("Designed by Apple in California\nModel: AB-123\nAssembled in China")
    assert fields.model == "AB-123"
    assert fields.model_rule == "model_keyword"


def test_model_letter_and_four_digits():
    fields = infer_fields("iPad\nModel A1234\nEMC 3010")
    assert fields.model == "A1234"
    # the keyword rule already covers this form, ahead of the shape rule
    assert fields.model_rule == "model_keyword"


def test_model_shape_rule_on_its_own():
    shape = MODEL_RULES[1]
    assert shape.name == "model_shape"
    assert shape.match("iPad\nModel A1234\nEMC 3010") == "A1234"
    assert shape.match("model a2602") == "a2602"
    assert shape.match("Model: AB-123") is None
    assert shape.match("Model A12345") is None
    assert first_match(MODEL_RULES[1:], "Model A1893") == ("A1893", "model_shape")


def test_keyword_serial_beats_incidental_token():
    text = "FCC ID BCGA1234XY\nSerial: XR7Y2K9P1Q"
    fields = infer_fields(text)
    assert fields.serial == "XR7Y2K9P1Q"
    assert fields.serial_rule == "serial_keyword"


def test_keyword_serial_beats_earlier_shape_match():
    fields = infer_fields("ZZ99887766AA\nModel A1893 Serial DMPX1234ABCD")
    assert fields.serial == "DMPX1234ABCD"


def test_bare_token_falls_back_when_no_keyword():
    fields = infer_fields("Made in China\nC02XK0ABJHD")
    assert fields.serial == "C02XK0ABJHD"
    assert fields.serial_rule == "serial_shape"
    assert fields.model is None


@pytest.mark.parametrize("token", ["ABCDE12345", "ABCDE123456", "ABCDE1234567"])
def test_shape_accepts_10_to_12_chars(token):
    assert infer_fields(f"id {token}").serial == token


@pytest.mark.parametrize("token", ["ABCDE1234", "ABCDE12345678"])
def test_shape_rejects_other_lengths(token):
    assert infer_fields(f"id {token}").serial is None


def test_empty_text_yields_no_fields():
    fields = infer_fields("")
    assert fields == ExtractedFields()
    assert fields.is_empty


def test_none_text_is_treated_as_empty():
    assert infer_fields(None).is_empty


def test_keyword_is_case_insensitive_and_capture_keeps_case():
    fields = infer_fields("MODEL: ab-12\nserial xr7y2k9p1q")
    assert fields.model == "ab-12"
    assert fields.serial == "xr7y2k9p1q"


def test_dash_variants_normalize():
    assert infer_fields("Model — AB–123").model == "AB-123"
    assert normalize_text("a−b‐c") == "a-b-c"


def test_carriage_returns_normalize():
    assert normalize_text("Model A1893\r\nSerial X\rEMC") == "Model A1893\nSerial X\nEMC"
    assert infer_fields("Model A1893\r\nSerial DMPX1234ABCD").serial == "DMPX1234ABCD"


def test_first_match_by_position_within_rule():
    fields = infer_fields("Serial: FIRST1\nSerial: SECOND2")
    assert fields.serial == "FIRST1"


def test_infer_is_pure():
    text = "Model: A2602\nSerial: F9FXK2ABCD12"
    assert infer_fields(text) == infer_fields(text)


def test_rule_order_is_keyword_then_shape():
    assert [r.name for r in MODEL_RULES] == ["model_keyword", "model_shape"]
    assert [r.name for r in SERIAL_RULES] == ["serial_keyword", "serial_shape"]


def test_first_match_without_hits():
    assert first_match(SERIAL_RULES, "short words only") == (None, None)


def test_merged_over_keeps_previous_for_absent_fields():
    fields = infer_fields("Serial: XR7Y2K9P1Q")
    assert fields.merged_over("A1893", "OLDSERIAL1") == ("A1893", "XR7Y2K9P1Q")
    assert ExtractedFields().merged_over("A1893", None) == ("A1893", None)
