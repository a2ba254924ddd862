"""Google Gemini provider (google-genai SDK)."""

import logging
from typing import Optional

from google import genai
from google.genai import errors as genai_errors

from app.config import get_settings
from app.exceptions import ProviderFailure

from .base import BaseProvider, ProviderResponse

logger = logging.getLogger(__name__)


class GeminiProvider(BaseProvider):
    """Gemini 프로바이더. 추출/초안 작업의 저비용 1순위."""

    name = "gemini"

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        settings = get_settings()
        super().__init__(model or settings.gemini_model)
        self.api_key = settings.gemini_api_key if api_key is None else api_key
        self._client: Optional[genai.Client] = None

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _get_client(self) -> genai.Client:
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def generate_content(self, prompt: str, operation: str) -> ProviderResponse:
        client = self._get_client()
        try:
            response = await client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
            )
        except genai_errors.APIError as e:
            raise ProviderFailure(self.name, f"{type(e).__name__}: {e}")

        text = getattr(response, "text", None)
        if not text:
            raise ProviderFailure(self.name, "Gemini returned empty content.")

        usage = getattr(response, "usage_metadata", None)
        return ProviderResponse(
            text=text,
            input_tokens=getattr(usage, "prompt_token_count", None),
            output_tokens=getattr(usage, "candidates_token_count", None),
        )
