"""Perplexity provider (시장 조사용, 출처 인용 포함)."""

import logging
from typing import Optional

import httpx

from app.config import get_settings
from app.exceptions import ProviderFailure

from .base import BaseProvider, ProviderResponse

logger = logging.getLogger(__name__)

PERPLEXITY_URL = "https://api.perplexity.ai/chat/completions"

RESEARCH_SYSTEM_PROMPT = (
    "You are a market research analyst providing factual, sourced information about "
    "software development pricing and business ROI. Always cite sources and provide "
    "specific numbers when available."
)


class PerplexityProvider(BaseProvider):
    """Perplexity sonar 프로바이더."""

    name = "perplexity"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        settings = get_settings()
        super().__init__(model or settings.perplexity_model)
        self.api_key = settings.perplexity_api_key if api_key is None else api_key
        self._http_client = http_client

    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def generate_content(self, prompt: str, operation: str) -> ProviderResponse:
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": RESEARCH_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": 0.2,
            "max_tokens": 4000,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            if self._http_client is not None:
                response = await self._http_client.post(PERPLEXITY_URL, json=payload, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=None) as client:
                    response = await client.post(PERPLEXITY_URL, json=payload, headers=headers)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise ProviderFailure(self.name, f"{type(e).__name__}: {e}")
        except ValueError as e:
            raise ProviderFailure(self.name, f"잘못된 응답 형식: {e}")

        choices = data.get("choices") or []
        content = choices[0].get("message", {}).get("content", "") if choices else ""
        if not content:
            raise ProviderFailure(self.name, "Perplexity returned empty content.")

        # 인용 출처가 있으면 본문 끝에 붙임
        citations = data.get("citations") or []
        if citations:
            content += "\n\n## Sources\n" + "\n".join(f"- {url}" for url in citations)

        usage = data.get("usage") or {}
        return ProviderResponse(
            text=content,
            input_tokens=usage.get("prompt_tokens"),
            output_tokens=usage.get("completion_tokens"),
        )
