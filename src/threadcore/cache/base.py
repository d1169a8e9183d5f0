# src/threadcore/cache/base.py
"""
Abstract Base Class for session cache backends.

This module defines the interface every session cache implementation must
adhere to. Implementations store :class:`SerializedSession` values keyed
by thread id, expire them after a TTL, and must never let a backend
failure escape ``get``/``put``/``delete``: a failed read is a miss and a
failed write is silently dropped (after logging).
"""

import abc
from typing import Optional

from pydantic import ValidationError

from ..exceptions import SessionSerializationError
from ..models import SerializedSession
from .health import HealthCheckResult


class BaseSessionCache(abc.ABC):
    """
    Abstract Base Class for per-thread conversation state caches.

    Attributes:
        key_prefix: Namespace prepended to every thread id.
        default_ttl_seconds: Expiry applied when ``put`` is called without
            an explicit TTL.
    """

    key_prefix: str
    default_ttl_seconds: int

    def key_for(self, thread_id: str) -> str:
        """Return the namespaced cache key for a thread."""
        return f"{self.key_prefix}{thread_id}"

    @staticmethod
    def decode_session(thread_id: str, payload: str | bytes) -> SerializedSession:
        """
        Decode a stored payload.

        Raises:
            SessionSerializationError: If the payload is not a valid session.
        """
        try:
            return SerializedSession.from_json(payload)
        except ValidationError as e:
            raise SessionSerializationError(thread_id, f"Corrupt session payload: {e}") from e

    @abc.abstractmethod
    async def initialize(self) -> None:
        """
        Set up the backend (open connections, probe connectivity).

        Connectivity failures are logged, not raised, so that the
        application can start with a cold or missing cache.
        """
        pass

    @abc.abstractmethod
    async def put(self, thread_id: str, session: SerializedSession, ttl_seconds: Optional[int] = None) -> bool:
        """
        Serialize and store a session, overwriting any previous value.

        The expiry is reset to ``ttl_seconds`` (or the default TTL) on every
        write. Last writer wins.

        Args:
            thread_id: Identifier of the thread.
            session: The session to store.
            ttl_seconds: Expiry override.

        Returns:
            True if the write reached the backend, False if it was dropped.
        """
        pass

    @abc.abstractmethod
    async def get(self, thread_id: str) -> Optional[SerializedSession]:
        """
        Retrieve a session.

        Returns:
            The session, or None when the key is missing, expired,
            undecodable, or the backend is unavailable.
        """
        pass

    @abc.abstractmethod
    async def delete(self, thread_id: str) -> bool:
        """
        Remove a session entry.

        Returns:
            True if an entry was removed, False otherwise (including failures).
        """
        pass

    @abc.abstractmethod
    async def ping(self) -> HealthCheckResult:
        """Probe backend liveness. Never raises."""
        pass

    @abc.abstractmethod
    async def close(self) -> None:
        """Release backend resources. Safe to call more than once."""
        pass
