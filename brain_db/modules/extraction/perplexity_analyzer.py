"""URL research through the Perplexity chat completions API."""
import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from brain_db.config import settings
from brain_db.core.http import raise_for_upstream
from brain_db.modules.extraction.fields import normalize_field_map
from brain_db.modules.extraction.parsing import extract_json
from brain_db.modules.extraction.prompts import (
    build_manufacturer_prompt, build_retailers_prompt, build_url_prompt
)

logger = logging.getLogger(__name__)

SERVICE = "Perplexity"
SOURCE = "perplexity"


class PerplexityAnalyzer:
    def __init__(
        self,
        http: httpx.AsyncClient,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
    ):
        self.http = http
        self.api_key = api_key if api_key is not None else settings.perplexity_api_key
        self.model = model or settings.perplexity_model
        self.base_url = (base_url or settings.perplexity_base_url).rstrip("/")

    async def complete(self, url: Optional[str], prompt: str, search_queries: Sequence[str] = ()) -> Dict[str, Any]:
        """Raw chat completion; returns the answer text and its citations."""
        system = f"URL: {url}" if url else "Produktrecherche"
        if search_queries:
            system += f"\nZusätzliche Suchbegriffe: {', '.join(search_queries)}"
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            "temperature": 0.1,
            "max_tokens": 4000,
        }
        logger.info(f"Perplexity request for {url or 'search'} (prompt {len(prompt)} chars)")
        response = await self.http.post(
            f"{self.base_url}/chat/completions",
            json=payload,
            headers={"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"},
        )
        raise_for_upstream(response, SERVICE, "Chat completion")
        data = response.json()
        return {
            "content": data["choices"][0]["message"]["content"],
            "citations": data.get("citations") or [],
        }

    async def analyze_url(
        self,
        url: str,
        prompt: Optional[str] = None,
        search_queries: Sequence[str] = (),
        source_type: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Field map for a product page plus the sources Perplexity cited."""
        answer = await self.complete(url, prompt or build_url_prompt(url, source_type), search_queries)
        parsed = extract_json(answer["content"])
        return {
            "data": normalize_field_map(parsed, SOURCE),
            "search_queries": list(search_queries),
            "sources": answer["citations"],
        }

    async def analyze_raw(self, url: str, prompt: str) -> Dict[str, Any]:
        """Parsed JSON answer without field normalization (column and retailer prompts)."""
        answer = await self.complete(url, prompt)
        return {"data": extract_json(answer["content"]), "sources": answer["citations"], "raw": answer["content"]}

    async def find_manufacturer(self, product_name: str, retailer_name: str) -> Dict[str, Any]:
        answer = await self.complete(None, build_manufacturer_prompt(product_name, retailer_name))
        info = extract_json(answer["content"])
        if not isinstance(info, dict):
            raise ValueError("Manufacturer answer is not a JSON object")
        return info

    async def find_retailers(self, product_name: str, manufacturer_name: str, country: str) -> List[Dict[str, Any]]:
        answer = await self.complete(None, build_retailers_prompt(product_name, manufacturer_name, country))
        parsed = extract_json(answer["content"])
        if isinstance(parsed, list):
            return parsed
        return parsed.get("retailers") or [] if isinstance(parsed, dict) else []

    async def extract_price(self, url: str, prompt: str) -> Dict[str, Any]:
        """Answer text for a price prompt; parsing is left to the caller."""
        return await self.complete(url, prompt)
