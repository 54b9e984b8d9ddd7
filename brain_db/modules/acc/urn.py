"""URN helpers for the Model Derivative API.

ACC hands out URNs in its own region namespace (``wipemea``); the viewer and
Model Derivative endpoints want the ``wipprod`` form, URL-safe base64 encoded.
"""
import base64
import re

_VALID_PATTERNS = (
    re.compile(r"^urn:adsk\.wipprod:fs\.file:vf\..*\?version=\d+$"),
    re.compile(r"^urn:adsk\.wipprod:fs\.file:vf\..*$"),
)
_BASE64_URL_SAFE = re.compile(r"^[A-Za-z0-9_-]+$")


def convert_region(urn: str) -> str:
    return urn.replace("wipemea", "wipprod")


def encode_urn(urn: str) -> str:
    """URL-safe base64 without padding."""
    return base64.urlsafe_b64encode(urn.encode("utf-8")).decode("ascii").rstrip("=")


def decode_urn(encoded: str) -> str:
    padded = encoded + "=" * (-len(encoded) % 4)
    return base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8")


def is_encoded(urn: str) -> bool:
    return bool(_BASE64_URL_SAFE.match(urn))


def process_derivative_urn(acc_urn: str) -> str:
    """Region-convert an ACC URN and encode it for Model Derivative calls."""
    return encode_urn(convert_region(acc_urn.strip()))


def validate_urn(urn: str) -> bool:
    return any(p.match(urn) for p in _VALID_PATTERNS)


def clean_urn(urn: str) -> str:
    """URN without its query string."""
    return urn.split("?", 1)[0]


def lineage_urn(item_id: str) -> str:
    if item_id.startswith("urn:"):
        return item_id
    return f"urn:adsk.wipprod:dm.lineage:{item_id}"
