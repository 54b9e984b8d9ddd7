"""Screenshot analysis with an OpenAI vision model."""
import logging
from typing import Any, Dict, Optional

from openai import AsyncOpenAI

from brain_db.config import settings
from brain_db.modules.extraction.fields import empty_result, normalize_field_map
from brain_db.modules.extraction.parsing import extract_json
from brain_db.modules.extraction.prompts import SCREENSHOT_SYSTEM_PROMPT, build_screenshot_prompt

logger = logging.getLogger(__name__)

SOURCE = "openai"

_client: Optional[AsyncOpenAI] = None


def get_openai_client() -> AsyncOpenAI:
    global _client
    if _client is None:
        _client = AsyncOpenAI(api_key=settings.openai_api_key, timeout=settings.http_timeout_seconds * 4)
    return _client


class OpenAIAnalyzer:
    def __init__(self, client: AsyncOpenAI, model: Optional[str] = None):
        self.client = client
        self.model = model or settings.openai_model

    async def analyze_screenshot(
        self,
        screenshot_base64: str,
        url: str,
        prompt: Optional[str] = None,
        source_type: Optional[str] = None,
    ) -> Dict[str, Dict[str, Any]]:
        """Field map extracted from a page screenshot.

        Failures are reported inside the result: every field comes back empty
        with the error text as its reasoning.
        """
        prompt = prompt or build_screenshot_prompt(url, source_type)
        logger.info(f"OpenAI screenshot analysis for {url} (model {self.model})")
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SCREENSHOT_SYSTEM_PROMPT},
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": prompt},
                            {
                                "type": "image_url",
                                "image_url": {"url": f"data:image/png;base64,{screenshot_base64}"},
                            },
                        ],
                    },
                ],
                response_format={"type": "json_object"},
                temperature=0.1,
            )
            content = response.choices[0].message.content
            return normalize_field_map(extract_json(content), SOURCE)
        except Exception as e:
            logger.error(f"OpenAI analysis failed for {url}: {e}")
            return empty_result(SOURCE, f"Error: {e}")
