# src/threadcore/generation/__init__.py
"""
Response generation package for threadcore.
"""

from .fallback import DegradedResponsePolicy
from .generator import CHAT_SETTINGS, TITLE_SETTINGS, ResponseGenerator

__all__ = [
    "CHAT_SETTINGS",
    "DegradedResponsePolicy",
    "ResponseGenerator",
    "TITLE_SETTINGS",
]
