# src/threadcore/providers/gemini_provider.py
"""
Google Gemini provider using the ``google-genai`` SDK.

Conversation history is kept in threadcore's own ``HistoryEntry`` form and
converted to ``types.Content`` on every call, so the cached session format
never depends on the SDK's internal chat object.
"""

import json
import logging
from typing import Any, AsyncIterator, Dict, List, Optional

from google import genai
from google.genai import types
from google.genai.errors import APIError

from ..exceptions import ConfigError, ProviderError
from ..models import HistoryEntry
from .base import BaseProvider, GenerationSettings

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.0-flash-001"


class GeminiProvider(BaseProvider):
    """
    threadcore provider for the Google Gemini API.

    A single ``genai.Client`` is created at construction and reused for all
    requests.
    """
    _client: Optional[genai.Client] = None

    def __init__(self, config: Dict[str, Any], client: Optional[genai.Client] = None):
        """
        Initializes the GeminiProvider.

        Args:
            config: Dictionary with:
                    'api_key' (optional): Google AI API key.
                    'default_model' (optional): Model used for every call.
                    'log_raw_payloads' (optional): Log request contents at DEBUG.
            client: Pre-built SDK client, mainly for tests.

        Raises:
            ConfigError: If the SDK client cannot be created.
        """
        self.default_model = config.get("default_model") or DEFAULT_MODEL
        self.log_raw_payloads_enabled = bool(config.get("log_raw_payloads", False))

        if client is not None:
            self._client = client
            return

        api_key = config.get("api_key")
        if not api_key:
            logger.warning("Gemini API key not found. Set GEMINI_API_KEY or gemini.api_key.")
        try:
            self._client = genai.Client(api_key=api_key)
            logger.info(f"Google Gen AI client initialized (model: {self.default_model}).")
        except Exception as e:
            logger.error(f"Failed to initialize Google Gen AI client: {e}", exc_info=True)
            raise ConfigError(f"Google Gen AI configuration failed: {e}")

    def get_name(self) -> str:
        """Returns the provider name: 'gemini'."""
        return "gemini"

    @staticmethod
    def _to_genai_contents(contents: List[HistoryEntry]) -> List[types.Content]:
        """Converts threadcore history entries to Gemini ``Content`` objects."""
        return [
            types.Content(role=entry.role, parts=[types.Part(text=part.text) for part in entry.parts])
            for entry in contents
        ]

    def _build_config(
        self, settings: GenerationSettings, system_instruction: Optional[str]
    ) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            temperature=settings.temperature,
            max_output_tokens=settings.max_output_tokens,
            system_instruction=system_instruction,
        )

    def _log_request(self, contents: List[HistoryEntry], settings: GenerationSettings, stream: bool) -> None:
        if self.log_raw_payloads_enabled and logger.isEnabledFor(logging.DEBUG):
            log_data = {
                "model": self.default_model,
                "contents": [entry.model_dump() for entry in contents],
                "stream": stream,
                "temperature": settings.temperature,
                "max_output_tokens": settings.max_output_tokens,
            }
            logger.debug(f"RAW LLM REQUEST ({self.get_name()}): {json.dumps(log_data, indent=2)}")

    async def generate(
        self,
        contents: List[HistoryEntry],
        settings: GenerationSettings,
        system_instruction: Optional[str] = None,
    ) -> str:
        """Sends a non-streaming request to the Gemini API and returns the text."""
        if not self._client:
            raise ProviderError(self.get_name(), "Gemini client not initialized.")
        if not contents:
            raise ProviderError(self.get_name(), "No valid messages to send.")

        self._log_request(contents, settings, stream=False)
        try:
            response = await self._client.aio.models.generate_content(
                model=self.default_model,
                contents=self._to_genai_contents(contents),
                config=self._build_config(settings, system_instruction),
            )
        except APIError as e:
            logger.error(f"Google AI API error: {e}", exc_info=True)
            raise ProviderError(self.get_name(), f"Google AI API Error: {e}")
        except Exception as e:
            logger.error(f"Unexpected error during Gemini call: {e}", exc_info=True)
            raise ProviderError(self.get_name(), f"An unexpected error occurred: {e}")

        text = response.text
        if not text:
            raise ProviderError(self.get_name(), "Gemini returned an empty response.")
        return text

    async def stream(
        self,
        contents: List[HistoryEntry],
        settings: GenerationSettings,
        system_instruction: Optional[str] = None,
    ) -> AsyncIterator[str]:
        """Streams a response from the Gemini API chunk by chunk."""
        if not self._client:
            raise ProviderError(self.get_name(), "Gemini client not initialized.")
        if not contents:
            raise ProviderError(self.get_name(), "No valid messages to send.")

        self._log_request(contents, settings, stream=True)
        try:
            response = await self._client.aio.models.generate_content_stream(
                model=self.default_model,
                contents=self._to_genai_contents(contents),
                config=self._build_config(settings, system_instruction),
            )
            async for chunk in response:
                if chunk.text:
                    yield chunk.text
        except APIError as e:
            logger.error(f"Google AI API error while streaming: {e}", exc_info=True)
            raise ProviderError(self.get_name(), f"Google AI API Error: {e}")
        except Exception as e:
            logger.error(f"Unexpected error during Gemini stream: {e}", exc_info=True)
            raise ProviderError(self.get_name(), f"An unexpected error occurred: {e}")

    async def close(self) -> None:
        """The google-genai library does not require explicit client closing."""
        logger.debug("GeminiProvider closed (no explicit client cleanup needed).")
        self._client = None
