# src/threadcore/sessions/__init__.py
"""
Session management module for threadcore.

Components:
    - SessionManager: cache-backed session lookup, creation and refresh
    - SessionHandle: live conversation state for one thread
    - ThreadLockRegistry: per-thread advisory locks
"""

from .handle import SessionHandle
from .locks import ThreadLockRegistry
from .manager import SessionManager

__all__ = [
    "SessionHandle",
    "SessionManager",
    "ThreadLockRegistry",
]
