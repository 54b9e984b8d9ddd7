"""Product field catalogue shared by the analyzers, the scraper and fusion."""
from typing import Any, Dict, Optional

# Bare values and answers without a usable confidence
DEFAULT_CONFIDENCE = 0.5

PRODUCT_FIELDS = (
    # Product
    "product_name",
    "manufacturer",
    "series",
    "product_code",
    "application_area",
    "description",
    "specifications",
    # URLs
    "manufacturer_url",
    "manufacturer_product_url",
    # Retailer
    "retailer_name",
    "retailer_url",
    "product_page_url",
    # Pricing
    "price",
    "unit",
    "price_per_unit",
    "availability",
    # Specifications
    "dimensions",
    "color",
    "main_material",
    "surface",
    "weight_per_unit",
    "fire_resistance",
    "thermal_conductivity",
    "u_value",
    "sound_insulation",
    "water_resistance",
    "vapor_diffusion",
    "installation_type",
    "maintenance",
    "environment_cert",
    # Documents
    "datasheet_url",
    "technical_sheet_url",
    "additional_documents_url",
    "catalog_url",
    # Experience
    "project",
    "sample_ordered",
    "sample_stored_in",
    "rating",
    "notes",
)


def field_data(value: Any, confidence: float, source: str, reasoning: str = "") -> Dict[str, Any]:
    return {"value": value, "confidence": confidence, "reasoning": reasoning, "source": source}


def empty_field(source: str, reasoning: str = "") -> Dict[str, Any]:
    return field_data("", 0.0, source, reasoning)


def empty_result(source: str, reasoning: str = "") -> Dict[str, Dict[str, Any]]:
    return {name: empty_field(source, reasoning) for name in PRODUCT_FIELDS}


def clamp_confidence(confidence: Any, default: float = DEFAULT_CONFIDENCE) -> float:
    """Confidence within 0..1; missing or non-numeric values get the default."""
    if confidence is None or isinstance(confidence, bool):
        return default
    try:
        return max(0.0, min(1.0, float(confidence)))
    except (TypeError, ValueError):
        return default


def normalize_field(raw: Any, source: str) -> Dict[str, Any]:
    """One model answer entry as field data; plain values get the default confidence."""
    if isinstance(raw, dict):
        return field_data(
            raw.get("value") if raw.get("value") is not None else "",
            clamp_confidence(raw.get("confidence")),
            source,
            raw.get("reasoning") or "",
        )
    if raw is None:
        return empty_field(source)
    return field_data(raw, DEFAULT_CONFIDENCE, source)


def normalize_field_map(parsed: Any, source: str, reasoning: Optional[str] = None) -> Dict[str, Dict[str, Any]]:
    """Known product fields first (empty when missing), then any extra keys the model returned."""
    result = empty_result(source, reasoning or "")
    if not isinstance(parsed, dict):
        return result
    for name, raw in parsed.items():
        if isinstance(name, str) and name:
            result[name] = normalize_field(raw, source)
    return result
