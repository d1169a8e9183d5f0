# src/threadcore/providers/base.py
"""
Abstract Base Class for LLM providers.

This module defines the narrow interface the session manager and the
response generator need from an LLM backend: a single completion over an
ordered history, a streamed completion, and teardown. Providers raise
:class:`~threadcore.exceptions.ProviderError` on any failure; turning
failures into structured results is the response generator's job.
"""

import abc
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, List, Optional

from ..models import HistoryEntry


@dataclass(frozen=True)
class GenerationSettings:
    """Sampling settings for one call. Fixed per call type, not caller-tunable."""

    temperature: float
    max_output_tokens: int


class BaseProvider(abc.ABC):
    """
    Abstract Base Class for LLM provider integrations.

    Implementations hold a process-wide client handle and no per-request
    mutable state, so one instance serves all concurrent requests.
    """

    @abc.abstractmethod
    def __init__(self, config: Dict[str, Any]):
        """
        Initialize the provider with its specific configuration.

        Args:
            config: Provider-specific settings (api key, default model, ...).
        """
        pass

    @abc.abstractmethod
    def get_name(self) -> str:
        """Return the provider's identifier, e.g. "gemini"."""
        pass

    @abc.abstractmethod
    async def generate(
        self,
        contents: List[HistoryEntry],
        settings: GenerationSettings,
        system_instruction: Optional[str] = None,
    ) -> str:
        """
        Produce one completion for an ordered conversation.

        Args:
            contents: Full history ending with the new user turn, in LLM
                vocabulary ("user" / "model").
            settings: Sampling settings for this call type.
            system_instruction: Optional instruction steering the model.

        Returns:
            The generated text.

        Raises:
            ProviderError: On API, network, quota or malformed-response errors.
        """
        pass

    @abc.abstractmethod
    def stream(
        self,
        contents: List[HistoryEntry],
        settings: GenerationSettings,
        system_instruction: Optional[str] = None,
    ) -> AsyncIterator[str]:
        """
        Produce a completion as an async iterator of text chunks.

        Raises:
            ProviderError: On failure, either when iteration starts or mid-stream.
        """
        pass

    async def close(self) -> None:
        """Release client resources. Default: nothing to release."""
        return None
