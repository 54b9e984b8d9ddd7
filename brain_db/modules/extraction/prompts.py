"""German prompt templates for screenshot, URL, price and column extraction."""
from typing import Any, Iterable, Optional

from brain_db.modules.extraction.fields import PRODUCT_FIELDS

SCREENSHOT_SYSTEM_PROMPT = (
    "Du bist ein Experte für Baumaterialien und Produktdaten-Extraktion. "
    "Analysiere das Screenshot und extrahiere alle verfügbaren Produktinformationen."
)

COLUMNS = ("produkt", "parameter", "dokumente", "haendler", "erfahrung")

_SOURCE_FOCUS = {
    "manufacturer": (
        "Hersteller-Website",
        "Dies ist eine offizielle Hersteller-Website. Fokussiere dich auf:\n"
        "- Produktdetails und technische Spezifikationen\n"
        "- Produktbeschreibungen und Features\n"
        "- Herstellerinformationen\n"
        "- Preise sind möglicherweise nicht verfügbar oder nur als Richtwerte",
    ),
    "reseller": (
        "Händler-Website",
        "Dies ist eine Händler-Website. Fokussiere dich auf:\n"
        "- Preise und Verfügbarkeit\n"
        "- Händlerinformationen\n"
        "- Produktdetails\n"
        "- Lieferbedingungen",
    ),
}

_FIELD_FORMAT = """JSON-Format für jedes Feld:
{
  "value": "extrahierter Wert",
  "confidence": 0.0-1.0,
  "reasoning": "Begründung für die Extraktion"
}"""

_RULES = """Wichtige Hinweise:
- Gib nur gültiges JSON zurück
- Verwende confidence-Werte zwischen 0.0 und 1.0
- Bei unsicheren Werten verwende niedrige confidence-Werte
- Bei fehlenden Informationen verwende leere Strings und confidence 0.0
- Bei numerischen Werten (Preis, Gewicht, etc.) extrahiere nur die Zahl ohne Einheiten"""


def _field_list(fields: Iterable[str] = PRODUCT_FIELDS) -> str:
    return "\n".join(f"- {name}" for name in fields)


def _intro(subject: str, url: str, source_type: Optional[str]) -> str:
    label, focus = _SOURCE_FOCUS.get(source_type or "", ("Webseite", ""))
    intro = f"Analysiere {subject} der folgenden {label}: {url}"
    if focus:
        intro += f"\n\n{focus}"
    return intro


def build_screenshot_prompt(url: str, source_type: Optional[str] = None) -> str:
    return f"""{_intro("das Screenshot", url, source_type)}

Extrahiere die folgenden Produktinformationen und gib sie als JSON-Objekt mit diesen Schlüsseln zurück:
{_field_list()}

{_FIELD_FORMAT}

{_RULES}"""


def build_url_prompt(url: str, source_type: Optional[str] = None) -> str:
    return f"""{_intro("die Inhalte", url, source_type)}

Extrahiere die folgenden Produktinformationen und gib sie als JSON-Objekt mit diesen Schlüsseln zurück:
{_field_list()}

{_FIELD_FORMAT}

{_RULES}
- Analysiere den gesamten Inhalt der Webseite, nicht nur den sichtbaren Text

Antworte ausschließlich mit gültigem JSON."""


def build_column_prompt(url: str, column: str) -> str:
    """Prompt for one product column; answer keys carry the column prefix."""
    name = column.upper()
    extra = ""
    if column == "dokumente":
        extra = (
            "\n- Suche aktiv nach Download-Links, PDFs, Datenblättern und technischen Merkblättern"
            "\n- Verwende bei gefundenen Dokumenten die vollständige URL"
        )
    elif column == "haendler":
        extra = (
            "\n- Suche nach alternativen Händlern, die das gleiche Produkt anbieten"
            "\n- Prüfe Preise und Verfügbarkeit bei verschiedenen Händlern"
        )
    return f"""Du bist ein Experte für Produktdatenextraktion aus Webseiten.

WEBSEITE: {url}

AUFGABE: Extrahiere {name}-Informationen und gib sie als JSON zurück.
Alle Schlüssel beginnen mit "{column}_" (z.B. "{column}_beschreibung").

{_FIELD_FORMAT}

{_RULES}{extra}

Antworte ausschließlich mit gültigem JSON."""


def build_price_prompt(
    url: str,
    product_name: Optional[str] = None,
    manufacturer: Optional[str] = None,
    current_price: Any = None,
    current_unit: Optional[str] = None,
) -> str:
    current = f"\n- Aktueller Preis in DB: {current_price} {current_unit or '€'}" if current_price else ""
    return f"""Du bist ein Experte für die Extraktion von Produktpreisen aus Webseiten.

AUFGABE:
Analysiere die folgende Webseite und extrahiere den aktuellen Preis für das Produkt.

PRODUKT-INFORMATIONEN:
- Produktname: {product_name or 'Unbekannt'}
- Hersteller: {manufacturer or 'Unbekannt'}
- URL: {url}{current}

AUSGABE-FORMAT:
Antworte NUR mit einem JSON-Objekt in folgendem Format:
{{
  "haendler_preis": "1234.56",
  "haendler_einheit": "Stück",
  "haendler_preis_pro_einheit": "1234.56",
  "price_confidence": "high|medium|low",
  "price_notes": "Kurze Notizen zum Preis (optional)"
}}

WICHTIG:
- Gib Preise als Zahlen ohne Währungssymbol an
- Verwende Punkt als Dezimaltrennzeichen (1234.56)
- Falls kein Preis gefunden wird, setze haendler_preis auf null
- Falls mehrere Preise vorhanden sind, wähle den relevantesten aus"""


def build_manufacturer_prompt(product_name: str, retailer_name: str) -> str:
    return f"""Given the product "{product_name}" from the retailer "{retailer_name}", find the official manufacturer.
Provide the manufacturer's name, their main homepage URL, and, if possible, the specific product page URL on the manufacturer's site.

Respond in the following JSON format ONLY:
{{
  "name": "Manufacturer Name",
  "website": "https://manufacturer-homepage.com",
  "product_url": "https://manufacturer-homepage.com/product-series/product-name",
  "confidence": 0.85,
  "reasoning": "Briefly explain how you identified the manufacturer."
}}"""


def build_retailers_prompt(product_name: str, manufacturer_name: str, country: str) -> str:
    return f"""Find up to 5 online retailers for the product "{product_name}" from manufacturer "{manufacturer_name}" in the country "{country}".
For each retailer, provide their name, the direct URL to the product page, and the price if available.

Respond in the following JSON format ONLY, with an array of retailers:
{{
  "retailers": [
    {{"name": "Retailer Name 1", "url": "https://retailer1.com/product-page", "price": "€199.99"}}
  ]
}}"""
