# src/threadcore/providers/__init__.py
"""
LLM provider package for threadcore.
"""

from .base import BaseProvider, GenerationSettings
from .gemini_provider import GeminiProvider

__all__ = ["BaseProvider", "GenerationSettings", "GeminiProvider"]
