import pytest

from brain_db.modules.extraction.fusion import (
    fields_needing_review, fuse_ai_data, fuse_web_and_ai, overall_confidence
)


def field(value, confidence):
    return {"value": value, "confidence": confidence, "reasoning": "seen"}


def test_higher_confidence_wins():
    fused = fuse_ai_data({"product_name": field("A", 0.9)}, {"product_name": field("B", 0.3)})
    assert fused["product_name"]["value"] == "A"
    assert fused["product_name"]["source"] == "openai"

    fused = fuse_ai_data({"product_name": field("A", 0.2)}, {"product_name": field("B", 0.8)})
    assert fused["product_name"]["value"] == "B"
    assert fused["product_name"]["source"] == "perplexity"


def test_tie_goes_to_primary():
    fused = fuse_web_and_ai({"price": field("10", 0.7)}, {"price": field("12", 0.7)})
    assert fused["price"]["value"] == "10"
    assert fused["price"]["source"] == "web"


def test_empty_value_loses_regardless_of_confidence():
    fused = fuse_ai_data({"color": field("", 1.0)}, {"color": field("rot", 0.1)})
    assert fused["color"]["value"] == "rot"
    assert fused["color"]["source"] == "perplexity"


def test_fields_empty_on_both_sides_are_dropped():
    fused = fuse_ai_data({"color": field("", 0.0)}, {"color": field("  ", 0.0), "unit": field("m²", 0.6)})
    assert "color" not in fused
    assert list(fused) == ["unit"]


def test_plain_values_count_as_medium_confidence():
    fused = fuse_web_and_ai({"series": "Classic"}, {"series": field("Modern", 0.6)})
    assert fused["series"]["value"] == "Modern"
    fused = fuse_web_and_ai({"series": "Classic"}, {"series": field("Modern", 0.4)})
    assert fused["series"]["value"] == "Classic"
    assert fused["series"]["confidence"] == 0.5


def test_key_order_primary_first():
    fused = fuse_ai_data({"b": field("1", 0.5), "a": field("2", 0.5)}, {"c": field("3", 0.5), "a": field("4", 0.9)})
    assert list(fused) == ["b", "a", "c"]


def test_missing_side_is_treated_as_empty():
    fused = fuse_ai_data(None, {"price": field("9,99", 0.8)})
    assert fused["price"]["source"] == "perplexity"


def test_review_and_overall_confidence():
    fused = fuse_web_and_ai({"a": field("x", 0.9), "b": field("y", 0.5)}, {})
    assert fields_needing_review(fused) == ["b"]
    assert overall_confidence(fused) == pytest.approx(0.7)
    assert overall_confidence({}) == 0.0
