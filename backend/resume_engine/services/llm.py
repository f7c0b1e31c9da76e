"""
Language model client used by structuring and application generation.

The pipeline treats the model as an opaque text -> text function; callers are
responsible for parsing the JSON it returns.
"""
import logging
from functools import lru_cache
from typing import Optional

from google import genai

from ..config import get_settings

logger = logging.getLogger(__name__)


class LLMNotConfiguredError(ValueError):
    pass


class TextModel:
    """Interface: one prompt in, raw text out."""

    async def generate(self, prompt: str) -> str:
        raise NotImplementedError


class GeminiTextModel(TextModel):
    """Gemini via the google-genai SDK (async client)."""

    def __init__(
        self,
        api_key: str,
        model: str,
        temperature: float = 0.1,
        max_output_tokens: int = 8192,
    ):
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self._client: Optional[genai.Client] = None

    def _get_client(self) -> genai.Client:
        """Get the Gemini client, initializing lazily if needed."""
        if self._client is None:
            if not self.api_key:
                raise LLMNotConfiguredError("Gemini API not configured. Please set GEMINI_API_KEY.")
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def generate(self, prompt: str) -> str:
        client = self._get_client()
        response = await client.aio.models.generate_content(
            model=self.model,
            contents=prompt,
            config=genai.types.GenerateContentConfig(
                temperature=self.temperature,
                max_output_tokens=self.max_output_tokens,
                response_mime_type="application/json",
            ),
        )
        text = response.text
        if not text:
            raise ValueError("Empty response from Gemini")
        return text


@lru_cache()
def get_text_model() -> TextModel:
    settings = get_settings()
    if not settings.gemini_api_key:
        logger.warning("GEMINI_API_KEY not set - resume structuring will fail until configured")
    return GeminiTextModel(
        api_key=settings.gemini_api_key,
        model=settings.gemini_model,
        temperature=settings.gemini_temperature,
        max_output_tokens=settings.gemini_max_output_tokens,
    )
