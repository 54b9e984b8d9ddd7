import pytest

from brain_db.modules.extraction.parsing import extract_json, parse_price_response, to_number


def test_plain_and_fenced_json():
    assert extract_json('{"a": 1}') == {"a": 1}
    assert extract_json('Hier das Ergebnis:\n```json\n{"a": 2}\n```\nFertig.') == {"a": 2}


def test_json_embedded_in_prose():
    assert extract_json('Die Antwort lautet {"name": "Knauf"} laut Quelle.') == {"name": "Knauf"}
    assert extract_json('Retailers: [{"name": "Bauhaus"}] end') == [{"name": "Bauhaus"}]


def test_truncated_json_is_repaired():
    truncated = '{"product_name": {"value": "Platte", "confidence": 0.9}, "datasheet_url": {"value": "https://example.com/da'
    parsed = extract_json(truncated)
    assert parsed["product_name"]["value"] == "Platte"


def test_dangling_key_is_dropped():
    parsed = extract_json('{"a": "x", "b"')
    assert parsed == {"a": "x"}


def test_unparseable_raises_value_error():
    with pytest.raises(ValueError):
        extract_json("no json here")
    with pytest.raises(ValueError):
        extract_json("   ")


@pytest.mark.parametrize("raw, expected", [
    ("1.234,56 €", 1234.56),
    ("12,5", 12.5),
    ("1,234.56", 1234.56),
    (42, 42.0),
    ("", None),
    (None, None),
    ("auf Anfrage", None),
    ("29,99 €/m²", 29.99),
    ("49.90 EUR", 49.9),
    ("ab 12,00", None),
])
def test_to_number(raw, expected):
    assert to_number(raw) == expected


def test_price_response():
    parsed = parse_price_response('```json\n{"haendler_preis": "19,99", "haendler_einheit": "m²"}\n```')
    assert parsed == {"haendler_preis": 19.99, "haendler_einheit": "m²", "haendler_preis_pro_einheit": 19.99}


def test_price_response_without_price():
    assert parse_price_response("Kein Preis gefunden") is None
    assert parse_price_response('{"price_notes": "nichts"}') is None
    assert parse_price_response('{"haendler_preis": null}')["haendler_preis"] is None


def test_price_response_with_unit_suffix():
    parsed = parse_price_response('{"haendler_preis": "29,99 €/m²", "haendler_preis_pro_einheit": "49.90 EUR"}')
    assert parsed["haendler_preis"] == 29.99
    assert parsed["haendler_preis_pro_einheit"] == 49.9
    assert parsed["haendler_einheit"] == "Stück"
