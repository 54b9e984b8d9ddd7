"""Field-by-field merge of two extraction results by confidence."""
from typing import Any, Dict, List, Optional

from brain_db.modules.extraction.fields import DEFAULT_CONFIDENCE

REVIEW_THRESHOLD = 0.7

FieldMap = Dict[str, Any]


def field_value(field: Any) -> Any:
    if field is None:
        return ""
    if isinstance(field, dict):
        value = field.get("value")
        return "" if value is None else value
    return field


def field_confidence(field: Any) -> float:
    if field is None:
        return 0.0
    if isinstance(field, dict):
        confidence = field.get("confidence")
        if confidence is None:
            return DEFAULT_CONFIDENCE
        try:
            return float(confidence)
        except (TypeError, ValueError):
            return DEFAULT_CONFIDENCE
    return DEFAULT_CONFIDENCE


def field_reasoning(field: Any) -> str:
    if isinstance(field, dict):
        return field.get("reasoning") or ""
    return ""


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, dict)):
        return not value
    return False


def _pick(field: Any, source: str) -> Dict[str, Any]:
    return {
        "value": field_value(field),
        "confidence": field_confidence(field),
        "reasoning": field_reasoning(field),
        "source": source,
    }


def fuse_with_confidence(
    primary: Optional[FieldMap],
    secondary: Optional[FieldMap],
    primary_source: str,
    secondary_source: str,
) -> Dict[str, Dict[str, Any]]:
    """Keep the higher-confidence non-empty value per field.

    Keys are visited in the primary map's order, followed by keys only the
    secondary map has. Ties go to the primary side. Fields empty on both sides
    are left out of the result.
    """
    primary = primary or {}
    secondary = secondary or {}
    keys = list(primary)
    keys.extend(k for k in secondary if k not in primary)

    fused: Dict[str, Dict[str, Any]] = {}
    for key in keys:
        first, second = primary.get(key), secondary.get(key)
        first_empty = is_empty(field_value(first))
        second_empty = is_empty(field_value(second))
        if first_empty and second_empty:
            continue
        if not first_empty and (second_empty or field_confidence(first) >= field_confidence(second)):
            fused[key] = _pick(first, primary_source)
        else:
            fused[key] = _pick(second, secondary_source)
    return fused


def fuse_ai_data(openai_data: Optional[FieldMap], perplexity_data: Optional[FieldMap]) -> Dict[str, Dict[str, Any]]:
    # Screenshot analysis wins ties
    return fuse_with_confidence(openai_data, perplexity_data, "openai", "perplexity")


def fuse_web_and_ai(web_data: Optional[FieldMap], ai_data: Optional[FieldMap]) -> Dict[str, Dict[str, Any]]:
    return fuse_with_confidence(web_data, ai_data, "web", "ai")


def fields_needing_review(fused: Dict[str, Dict[str, Any]], threshold: float = REVIEW_THRESHOLD) -> List[str]:
    return [name for name, field in fused.items() if field_confidence(field) < threshold]


def overall_confidence(fused: Dict[str, Dict[str, Any]]) -> float:
    if not fused:
        return 0.0
    return sum(field_confidence(field) for field in fused.values()) / len(fused)
