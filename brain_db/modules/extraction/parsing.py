"""Pull JSON out of chat-model answers and turn price strings into numbers."""
import json
import logging
import re
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

_FENCED_JSON = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")
_OPEN_FENCE = re.compile(r"^```(?:json)?\s*")
_TRAILING_FENCE = re.compile(r"\s*```[\s\S]*$")
_ARRAY_SPAN = re.compile(r"\[[\s\S]*\]")
_OBJECT_SPAN = re.compile(r"\{[\s\S]*\}")
_TRAILING_URL = re.compile(r"https?://[^\"]*$")
_PRICE_NOISE = re.compile(r"[€\s]")
_LEADING_NUMBER = re.compile(r"^[-+]?\d+(?:\.\d+)?")


def _candidate(text: str) -> str:
    content = text.strip()
    fenced = _FENCED_JSON.search(content)
    if fenced:
        return fenced.group(1).strip()
    if content.startswith("```"):
        return _TRAILING_FENCE.sub("", _OPEN_FENCE.sub("", content))
    if content[:1] in ("{", "["):
        return content
    # Whichever of array or object starts first
    spans = [m for m in (_ARRAY_SPAN.search(content), _OBJECT_SPAN.search(content)) if m]
    if spans:
        return min(spans, key=lambda m: m.start()).group(0)
    return content


def _close_brackets(content: str) -> str:
    """Append the closers for any brackets still open outside strings."""
    stack = []
    in_string = False
    escaped = False
    for char in content:
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char in "{[":
            stack.append("}" if char == "{" else "]")
        elif char in "}]" and stack:
            stack.pop()
    return content + "".join(reversed(stack))


def _repair(content: str) -> str:
    """Cut a truncated trailing URL or string, then close what is still open."""
    fixed = _TRAILING_URL.sub("", content)
    if fixed.count('"') % 2:
        fixed = fixed[:fixed.rfind('"')]
    fixed = fixed.rstrip().rstrip(",:").rstrip()
    # Drop a dangling key without a value
    if fixed.endswith('"') and fixed.count('"') % 2 == 0:
        key_start = fixed.rfind('"', 0, len(fixed) - 1)
        before = fixed[:key_start].rstrip()
        innermost_object = _close_brackets(before)[len(before):].startswith("}")
        if innermost_object and (before.endswith(",") or before.endswith("{")):
            fixed = before.rstrip(",")
    return _close_brackets(fixed)


def extract_json(text: Optional[str]) -> Any:
    """Parse JSON from a model answer that may wrap it in prose or code fences.

    Raises ValueError when neither the cleaned text nor its repaired form parses.
    """
    if not text or not text.strip():
        raise ValueError("Empty response")
    content = _candidate(text)
    try:
        return json.loads(content)
    except json.JSONDecodeError as original:
        logger.debug("Initial JSON parse failed, trying repair")
        try:
            return json.loads(_repair(content))
        except json.JSONDecodeError:
            raise ValueError(f"Could not parse JSON from response: {original}") from original


def to_number(value: Any) -> Optional[float]:
    """Leading number of a price string ('1.234,56 €', '49.90 EUR') as float; None when there is none."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    text = _PRICE_NOISE.sub("", str(value))
    if "," in text and "." in text:
        # German thousands separator with decimal comma
        if text.rfind(",") > text.rfind("."):
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", "")
    else:
        text = text.replace(",", ".")
    match = _LEADING_NUMBER.match(text)
    return float(match.group(0)) if match else None


def parse_price_response(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """Price fields from a price-extraction answer, or None when no price was given."""
    try:
        parsed = extract_json(text)
    except ValueError:
        logger.warning("No JSON found in price response")
        return None
    if not isinstance(parsed, dict) or "haendler_preis" not in parsed:
        return None
    price = to_number(parsed.get("haendler_preis"))
    per_unit = parsed.get("haendler_preis_pro_einheit")
    return {
        "haendler_preis": price,
        "haendler_einheit": parsed.get("haendler_einheit") or "Stück",
        "haendler_preis_pro_einheit": to_number(per_unit) if per_unit not in (None, "") else price,
    }
