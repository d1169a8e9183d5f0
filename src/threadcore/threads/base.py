# src/threadcore/threads/base.py
"""
Abstract Base Class for the durable thread store.

The thread store is the source of truth for conversations: it owns Thread
and Message records and survives cache loss. The session layer only reads
history from it (to rehydrate sessions) and appends messages to it.
"""

import abc
from typing import List, Optional

from ..models import ConversationTurn, Message, Role, Thread


class BaseThreadStore(abc.ABC):
    """
    Abstract Base Class for thread and message persistence.

    Messages are immutable and append-only; their order is the order in
    which they were appended.
    """

    @abc.abstractmethod
    async def initialize(self) -> None:
        """Set up connections and schema."""
        pass

    @abc.abstractmethod
    async def create_thread(self, user_id: str, title: str = "") -> Thread:
        """Create an empty thread owned by ``user_id``."""
        pass

    @abc.abstractmethod
    async def get_thread(self, thread_id: str, user_id: Optional[str] = None) -> Optional[Thread]:
        """
        Retrieve a thread with its messages in creation order.

        Args:
            thread_id: Identifier of the thread.
            user_id: When given, only a thread owned by this user is returned.

        Returns:
            The thread, or None if it does not exist (or is not owned).
        """
        pass

    @abc.abstractmethod
    async def list_threads(self, user_id: str) -> List[Thread]:
        """List a user's threads, most recently updated first, with messages."""
        pass

    @abc.abstractmethod
    async def update_thread_title(self, thread_id: str, title: str, user_id: Optional[str] = None) -> Thread:
        """
        Rename a thread.

        Raises:
            ThreadNotFoundError: If the thread does not exist or is not owned.
        """
        pass

    @abc.abstractmethod
    async def delete_thread(self, thread_id: str, user_id: Optional[str] = None) -> bool:
        """
        Delete a thread and its messages.

        Returns:
            True if a thread was deleted, False if none matched.
        """
        pass

    @abc.abstractmethod
    async def append_message(self, thread_id: str, role: Role, content: str) -> Message:
        """
        Append a message and bump the thread's ``updated_at``.

        Raises:
            ThreadNotFoundError: If the thread does not exist.
        """
        pass

    @abc.abstractmethod
    async def load_thread_history(self, thread_id: str) -> List[ConversationTurn]:
        """Ordered conversation turns of a thread (empty if it has none)."""
        pass

    @abc.abstractmethod
    async def close(self) -> None:
        """Release resources. Safe to call more than once."""
        pass
