"""
Text-Generation Collaborator

The suggestion agent only needs one capability: send a prompt, get text
back. TextGenerator is that capability. GeminiTextGenerator is the
production implementation; tests plug in a fake.

IMPORTANT: Replies are untrusted. Nothing here interprets or validates
them; that is the suggestion agent's job. Failures are logged and
re-raised unchanged (no retries).
"""

from abc import ABC, abstractmethod
from typing import Optional

import google.generativeai as genai
import structlog

from src.config import GeminiSettings, get_settings


logger = structlog.get_logger(__name__)


class TextGenerator(ABC):
    """Abstract interface for the text-generation collaborator."""

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """
        Send a prompt and return the raw response text.

        Raises whatever the underlying service raises.
        """
        pass


class GeminiTextGenerator(TextGenerator):
    """TextGenerator backed by Google Gemini."""

    def __init__(self, settings: Optional[GeminiSettings] = None):
        self._settings = settings or get_settings().gemini
        self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        self._model = genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
            }
        )

    @property
    def model_name(self) -> str:
        return self._settings.model_name

    async def generate(self, prompt: str) -> str:
        try:
            response = await self._model.generate_content_async(prompt)
            return response.text
        except Exception as e:
            logger.error(
                "gemini_request_failed",
                model=self._settings.model_name,
                error=str(e),
            )
            raise
