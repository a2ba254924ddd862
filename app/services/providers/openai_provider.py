"""OpenAI chat completions provider."""

import logging
from typing import Optional

from openai import AsyncOpenAI, OpenAIError

from app.config import get_settings
from app.exceptions import ProviderFailure

from .base import BaseProvider, ProviderResponse

logger = logging.getLogger(__name__)


class OpenAIProvider(BaseProvider):
    """OpenAI GPT 프로바이더."""

    name = "openai"

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        settings = get_settings()
        super().__init__(model or settings.openai_model)
        self.api_key = settings.openai_api_key if api_key is None else api_key
        self._client: Optional[AsyncOpenAI] = None

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    async def generate_content(self, prompt: str, operation: str) -> ProviderResponse:
        client = self._get_client()
        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=0.3,
            )
        except OpenAIError as e:
            raise ProviderFailure(self.name, f"{type(e).__name__}: {e}")

        content = response.choices[0].message.content if response.choices else None
        if content is None:
            raise ProviderFailure(self.name, "OpenAI returned empty content.")

        usage = getattr(response, "usage", None)
        return ProviderResponse(
            text=content,
            input_tokens=getattr(usage, "prompt_tokens", None),
            output_tokens=getattr(usage, "completion_tokens", None),
        )
