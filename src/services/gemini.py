from __future__ import annotations

from typing import Any, Optional

from google import genai

from utils import config
from utils.logger import get_logger

_logger = get_logger(__name__)

PROMPT_TEMPLATE = (
    "Generate a short, compelling sales description for a product called "
    "'{product_name}'. Focus on its key benefits for a customer in a retail "
    "store. Keep it under 50 words and use a friendly, inviting tone."
)

UNAVAILABLE_TEXT = "AI service is not available."
FAILED_TEXT = "Failed to generate description."
NOT_CONFIGURED_ERROR = "API key is not configured. AI features are disabled."
GENERATION_ERROR = "Could not generate AI description. Please try again later."


class DescriptionGenerator:
    """Wrapper around one Gemini text-generation call per product blurb.

    Never raises to callers. Failures come back as a fixed string, with the
    reason kept in ``error`` until the next attempt.
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str = config.DEFAULT_GEMINI_MODEL,
        client: Optional[Any] = None,
    ) -> None:
        """
        Args:
            api_key: Gemini credential. Without one the generator is disabled
                for the lifetime of the object.
            model: Model identifier sent with every request.
            client: Pre-built client exposing ``aio.models.generate_content``;
                a ``genai.Client`` is created when omitted.
        """
        self.model = model
        self.error: Optional[str] = None
        self._client: Optional[Any] = None

        if not api_key:
            _logger.error("API_KEY environment variable not set.")
            self.error = NOT_CONFIGURED_ERROR
            return
        self._client = client or genai.Client(api_key=api_key)

    @classmethod
    def from_config(cls) -> DescriptionGenerator:
        return cls(config.api_key(), config.gemini_model())

    @property
    def available(self) -> bool:
        return self._client is not None

    @staticmethod
    def build_prompt(product_name: str) -> str:
        return PROMPT_TEMPLATE.format(product_name=product_name)

    async def generate_description(self, product_name: str) -> str:
        if self._client is None:
            return UNAVAILABLE_TEXT
        self.error = None

        try:
            response = await self._client.aio.models.generate_content(
                model=self.model,
                contents=self.build_prompt(product_name),
            )
            return response.text or ""
        except Exception as e:  # provider and transport errors alike
            _logger.error(f"Error generating content: {e}")
            self.error = GENERATION_ERROR
            return FAILED_TEXT
