"""Orchestration of screenshot analysis, URL research, scraping and fusion."""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from fastapi import HTTPException

from brain_db.modules.extraction import fusion
from brain_db.modules.extraction.fields import clamp_confidence
from brain_db.modules.extraction.openai_analyzer import OpenAIAnalyzer
from brain_db.modules.extraction.perplexity_analyzer import PerplexityAnalyzer
from brain_db.modules.extraction.prompts import COLUMNS, build_column_prompt
from brain_db.modules.extraction.web_scraper import WebScraper

logger = logging.getLogger(__name__)


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def validate_url(url: Optional[str]) -> str:
    if not url or not url.strip():
        raise HTTPException(status_code=400, detail="URL is required")
    parsed = urlparse(url.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise HTTPException(status_code=400, detail="Invalid URL format")
    return url.strip()


def _text(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def manufacturer_info(answer: Dict[str, Any]) -> Dict[str, Any]:
    """A manufacturer answer with string fields and a clamped confidence (0 when unusable)."""
    return {
        "name": _text(answer.get("name")),
        "website": _text(answer.get("website")),
        "product_url": _text(answer.get("product_url")),
        "confidence": clamp_confidence(answer.get("confidence"), default=0.0),
        "reasoning": _text(answer.get("reasoning")) or "",
    }


class ExtractionService:
    def __init__(
        self,
        openai: Optional[OpenAIAnalyzer],
        perplexity: Optional[PerplexityAnalyzer],
        scraper: WebScraper,
    ):
        self.openai = openai
        self.perplexity = perplexity
        self.scraper = scraper

    def _require_openai(self) -> OpenAIAnalyzer:
        if self.openai is None:
            raise HTTPException(status_code=503, detail="OpenAI API key not configured. Set OPENAI_API_KEY.")
        return self.openai

    def _require_perplexity(self) -> PerplexityAnalyzer:
        if self.perplexity is None:
            raise HTTPException(status_code=503, detail="Perplexity API key not configured. Set PERPLEXITY_API_KEY.")
        return self.perplexity

    async def analyze_screenshot(
        self, url: str, screenshot_base64: str, source_type: Optional[str] = None, prompt: Optional[str] = None
    ) -> Dict[str, Any]:
        analyzer = self._require_openai()
        data = await analyzer.analyze_screenshot(screenshot_base64, url, prompt=prompt, source_type=source_type)
        return {"data": data, "sources": [], "timestamp": utc_timestamp()}

    async def analyze_url(
        self,
        url: str,
        source_type: Optional[str] = None,
        prompt: Optional[str] = None,
        search_queries: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        analyzer = self._require_perplexity()
        try:
            result = await analyzer.analyze_url(url, prompt=prompt, search_queries=search_queries or (), source_type=source_type)
        except ValueError as e:
            logger.error(f"Perplexity answer for {url} was not valid JSON: {e}")
            raise HTTPException(status_code=502, detail=f"Failed to parse Perplexity response as JSON: {e}")
        return {"data": result["data"], "sources": result["sources"], "timestamp": utc_timestamp()}

    async def combined_analysis(
        self, url: str, screenshot_base64: str, source_type: Optional[str] = None
    ) -> Dict[str, Any]:
        """Screenshot and URL analysis side by side; a failed side counts as empty."""
        openai = self._require_openai()
        perplexity = self._require_perplexity()

        logger.info(f"Starting parallel AI analysis for {url}")
        openai_result, perplexity_result = await asyncio.gather(
            openai.analyze_screenshot(screenshot_base64, url, source_type=source_type),
            perplexity.analyze_url(url, source_type=source_type),
            return_exceptions=True,
        )

        if isinstance(openai_result, BaseException):
            logger.error(f"OpenAI analysis failed: {openai_result}")
            openai_data: Dict[str, Any] = {}
        else:
            openai_data = openai_result

        sources: List[Any] = []
        if isinstance(perplexity_result, BaseException):
            logger.error(f"Perplexity analysis failed: {perplexity_result}")
            perplexity_data: Dict[str, Any] = {}
        else:
            perplexity_data = perplexity_result["data"]
            sources = perplexity_result["sources"]

        fused = fusion.fuse_ai_data(openai_data, perplexity_data)
        logger.info(f"Fused {len(fused)} fields for {url}")
        return {
            "openai": openai_data,
            "perplexity": perplexity_data,
            "fused": fused,
            "sources": sources,
            "timestamp": utc_timestamp(),
        }

    def fuse(self, web_data: Dict[str, Any], ai_data: Dict[str, Any]) -> Dict[str, Any]:
        results = fusion.fuse_web_and_ai(web_data, ai_data)
        return {
            "results": results,
            "fields_needing_review": fusion.fields_needing_review(results),
            "overall_confidence": fusion.overall_confidence(results),
            "timestamp": utc_timestamp(),
        }

    async def scrape(self, url: str, source_type: Optional[str] = None) -> Dict[str, Any]:
        result = await self.scraper.extract_from_url(validate_url(url), source_type)
        return {**result, "timestamp": utc_timestamp()}

    async def column_analysis(self, url: str, column: str) -> Dict[str, Any]:
        """Perplexity extraction limited to one product column (keys prefixed with the column)."""
        if column not in COLUMNS:
            raise HTTPException(status_code=400, detail=f"Unknown column '{column}'. Expected one of: {', '.join(COLUMNS)}")
        analyzer = self._require_perplexity()
        try:
            result = await analyzer.analyze_raw(url, build_column_prompt(url, column))
        except ValueError as e:
            raise HTTPException(status_code=502, detail=f"Failed to parse Perplexity response as JSON: {e}")
        data = result["data"]
        if isinstance(data, dict):
            prefix = f"{column}_"
            data = {k: v for k, v in data.items() if k.startswith(prefix)}
        return {"column": column, "data": data, "sources": result["sources"], "timestamp": utc_timestamp()}

    async def find_manufacturer(self, product_name: str, retailer_name: str) -> Dict[str, Any]:
        analyzer = self._require_perplexity()
        try:
            answer = await analyzer.find_manufacturer(product_name, retailer_name)
        except ValueError as e:
            raise HTTPException(status_code=502, detail=f"Failed to parse Perplexity response as JSON: {e}")
        return manufacturer_info(answer)

    async def find_retailers(self, product_name: str, manufacturer_name: str, country: str) -> List[Dict[str, Any]]:
        analyzer = self._require_perplexity()
        try:
            retailers = await analyzer.find_retailers(product_name, manufacturer_name, country)
        except ValueError as e:
            raise HTTPException(status_code=502, detail=f"Failed to parse Perplexity response as JSON: {e}")
        return [
            {"name": str(r["name"]), "url": str(r["url"]), "price": r.get("price")}
            for r in retailers
            if isinstance(r, dict) and r.get("name") and r.get("url")
        ]
