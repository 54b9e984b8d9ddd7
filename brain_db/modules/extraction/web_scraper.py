"""Selector-based product data extraction from raw HTML."""
import logging
import re
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import urljoin, urlparse

import httpx
from bs4 import BeautifulSoup

from brain_db.core.http import raise_for_upstream
from brain_db.modules.extraction.fields import empty_field, empty_result, field_data

logger = logging.getLogger(__name__)

SOURCE = "web"
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

PRODUCT_NAME_SELECTORS = (
    "h1.product-title",
    "h1.product-name",
    ".product-name h1",
    'h1[data-testid="product-title"]',
    ".product-title",
    ".product-name",
    "h1",
    ".title",
)
MANUFACTURER_SELECTORS = (
    ".manufacturer",
    ".brand",
    ".producer",
    '[itemprop="brand"]',
    '[class*="manufacturer"]',
    '[class*="brand"]',
    'meta[property="og:site_name"]',
    'meta[name="author"]',
)
PRODUCT_CODE_SELECTORS = (
    ".product-code",
    ".sku",
    ".artikelnummer",
    ".product-id",
    '[itemprop="sku"]',
    '[class*="sku"]',
)
DESCRIPTION_SELECTORS = (
    ".product-description",
    ".description",
    ".product-details",
    ".product-info",
    '[itemprop="description"]',
    'meta[name="description"]',
    'meta[property="og:description"]',
)
PRICE_SELECTORS = (
    '[itemprop="price"]',
    ".price",
    ".product-price",
    ".cost",
    ".preis",
    '[class*="price"]',
    "[data-price]",
)
RETAILER_SELECTORS = (
    ".retailer-name",
    ".shop-name",
    ".store-name",
    'meta[property="og:site_name"]',
)

_PRICE_PATTERN = re.compile(r"(\d{1,3}(?:[.\s]\d{3})*(?:,\d{1,2})|\d+(?:[.,]\d{1,2})?)")
_UNIT_PATTERN = re.compile(r"(?:/|pro|je)\s*(m²|m2|m³|m3|lfm|m|kg|l|Stück|Stk\.?)", re.I)
_DOCUMENT_KEYWORDS = {
    "datasheet_url": ("datenblatt", "datasheet", "data sheet"),
    "technical_sheet_url": ("technisches merkblatt", "technical", "merkblatt"),
    "catalog_url": ("katalog", "catalog", "catalogue", "broschüre", "brochure"),
}


def _text_or_content(element) -> str:
    if element.name == "meta":
        return (element.get("content") or "").strip()
    text = element.get_text(" ", strip=True)
    return text or (element.get("content") or "").strip()


def first_match(soup: BeautifulSoup, selectors: Sequence[str], max_length: int) -> Optional[Dict[str, str]]:
    """Text of the first selector that yields a non-empty value shorter than max_length."""
    for selector in selectors:
        element = soup.select_one(selector)
        if element is None:
            continue
        text = _text_or_content(element)
        if text and len(text) < max_length:
            return {"value": text, "selector": selector}
    return None


def parse_price_text(text: str) -> Optional[str]:
    match = _PRICE_PATTERN.search(text)
    if not match:
        return None
    price = match.group(1).replace(" ", "")
    if "," in price:
        price = price.replace(".", "").replace(",", ".")
    return price


class WebScraper:
    def __init__(self, http: httpx.AsyncClient, timeout: float = 10.0):
        self.http = http
        self.timeout = timeout

    async def fetch(self, url: str) -> str:
        response = await self.http.get(
            url, headers={"User-Agent": USER_AGENT}, timeout=self.timeout, follow_redirects=True
        )
        raise_for_upstream(response, "Web", f"Fetch {url}")
        return response.text

    async def extract_from_url(self, url: str, source_type: Optional[str] = None) -> Dict[str, Any]:
        logger.info(f"Scraping {url} (source type {source_type or 'unknown'})")
        html = await self.fetch(url)
        return self.extract_from_html(html, url, source_type)

    def extract_from_html(self, html: str, url: str, source_type: Optional[str] = None) -> Dict[str, Any]:
        soup = BeautifulSoup(html, "html.parser")
        manufacturer_page = source_type == "manufacturer"
        reseller_page = source_type == "reseller"

        data = empty_result(SOURCE)
        data["product_name"] = self._field(
            soup, PRODUCT_NAME_SELECTORS, 200, 0.9 if manufacturer_page else 0.8, "Product name"
        )
        data["manufacturer"] = self._field(
            soup, MANUFACTURER_SELECTORS, 100, 0.95 if manufacturer_page else 0.7, "Manufacturer"
        )
        data["product_code"] = self._field(soup, PRODUCT_CODE_SELECTORS, 50, 0.8, "Product code")
        data["description"] = self._field(soup, DESCRIPTION_SELECTORS, 2000, 0.8, "Description")
        data["price"], data["unit"] = self._price(soup, 0.6 if manufacturer_page else 0.85)
        if reseller_page:
            data["retailer_name"] = self._field(soup, RETAILER_SELECTORS, 100, 0.9, "Retailer name")
            data["product_page_url"] = field_data(url, 0.9, SOURCE, "Scraped page URL")
        if manufacturer_page:
            host = urlparse(url)
            data["manufacturer_url"] = field_data(f"{host.scheme}://{host.netloc}", 0.9, SOURCE, "Page origin")
            data["manufacturer_product_url"] = field_data(url, 0.9, SOURCE, "Scraped page URL")

        documents = self._documents(soup, url)
        for name, link in documents["by_field"].items():
            data[name] = field_data(link, 0.7, SOURCE, "Matched document link text")

        return {
            "data": data,
            "images": self._images(soup, url),
            "documents": documents["all"],
            "confidence_scores": {name: field["confidence"] for name, field in data.items()},
        }

    def _field(self, soup: BeautifulSoup, selectors: Sequence[str], max_length: int, confidence: float, label: str):
        found = first_match(soup, selectors, max_length)
        if not found:
            return empty_field(SOURCE, f"{label} not found in any expected selectors")
        return field_data(found["value"], confidence, SOURCE, f"Found using selector: {found['selector']}")

    def _price(self, soup: BeautifulSoup, confidence: float):
        for selector in PRICE_SELECTORS:
            element = soup.select_one(selector)
            if element is None:
                continue
            raw = element.get("content") or element.get("data-price") or element.get_text(" ", strip=True)
            price = parse_price_text(raw)
            if price:
                reasoning = f"Found using selector: {selector}"
                unit_match = _UNIT_PATTERN.search(element.parent.get_text(" ", strip=True) if element.parent else raw)
                unit = (
                    field_data(unit_match.group(1), confidence - 0.1, SOURCE, reasoning)
                    if unit_match else empty_field(SOURCE, "Unit not found next to price")
                )
                return field_data(price, confidence, SOURCE, reasoning), unit
        return empty_field(SOURCE, "Price not found in any expected selectors"), empty_field(SOURCE)

    def _images(self, soup: BeautifulSoup, base_url: str, limit: int = 10) -> List[str]:
        images: List[str] = []
        og_image = soup.find("meta", property="og:image")
        if og_image and og_image.get("content"):
            images.append(urljoin(base_url, og_image["content"]))
        for img in soup.find_all("img"):
            src = img.get("data-src") or img.get("src")
            if not src or src.startswith("data:"):
                continue
            absolute = urljoin(base_url, src)
            if absolute not in images:
                images.append(absolute)
            if len(images) >= limit:
                break
        return images

    def _documents(self, soup: BeautifulSoup, base_url: str) -> Dict[str, Any]:
        found: List[Dict[str, str]] = []
        by_field: Dict[str, str] = {}
        for link in soup.find_all("a", href=True):
            href = urljoin(base_url, link["href"])
            text = link.get_text(" ", strip=True)
            if not href.lower().split("?", 1)[0].endswith(".pdf"):
                continue
            found.append({"url": href, "label": text})
            lowered = f"{text} {href}".lower()
            for name, keywords in _DOCUMENT_KEYWORDS.items():
                if name not in by_field and any(k in lowered for k in keywords):
                    by_field[name] = href
        others = [d["url"] for d in found if d["url"] not in by_field.values()]
        if others:
            by_field.setdefault("additional_documents_url", others[0])
        return {"all": found, "by_field": by_field}
