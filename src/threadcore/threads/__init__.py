# src/threadcore/threads/__init__.py
"""
Durable thread store package for threadcore.
"""

from .base import BaseThreadStore
from .sqlite_store import SqliteThreadStore

__all__ = ["BaseThreadStore", "SqliteThreadStore"]
