# src/threadcore/threads/sqlite_store.py
"""
SQLite storage for Thread and Message records using aiosqlite.

This module implements the BaseThreadStore interface with two tables, one
for threads and one for their messages. Deleting a thread cascades to its
messages.
"""

import logging
import os
import pathlib
from datetime import datetime, timezone
from typing import Any, List, Optional

import aiosqlite

from ..exceptions import ThreadNotFoundError, ThreadStoreError
from ..models import ConversationTurn, Message, Role, Thread
from .base import BaseThreadStore

logger = logging.getLogger(__name__)

DEFAULT_THREADS_TABLE = "threads"
DEFAULT_MESSAGES_TABLE = "messages"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SqliteThreadStore(BaseThreadStore):
    """
    Persists threads and messages in a single SQLite database file.

    Messages are returned ordered by creation time, ties broken by
    insertion order.
    """
    _db_path: str
    _conn: Optional[aiosqlite.Connection] = None

    def __init__(
        self,
        path: str,
        threads_table_name: str = DEFAULT_THREADS_TABLE,
        messages_table_name: str = DEFAULT_MESSAGES_TABLE,
    ) -> None:
        """
        Args:
            path: Database file path (``~`` is expanded) or ``":memory:"``.
            threads_table_name: Name of the threads table.
            messages_table_name: Name of the messages table.
        """
        self._db_path = path if path == ":memory:" else os.path.expanduser(path)
        self._threads_table = threads_table_name
        self._messages_table = messages_table_name

    def _require_conn(self) -> aiosqlite.Connection:
        if not self._conn:
            raise ThreadStoreError("Database connection not initialized.")
        return self._conn

    async def initialize(self) -> None:
        """
        Open the database and create tables if they don't exist.

        Raises:
            ThreadStoreError: If the database cannot be initialized.
        """
        if self._conn:
            return
        try:
            if self._db_path != ":memory:":
                pathlib.Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
            self._conn = await aiosqlite.connect(self._db_path)
            self._conn.row_factory = aiosqlite.Row
            await self._conn.execute("PRAGMA foreign_keys = ON;")

            await self._conn.execute(f"""
                CREATE TABLE IF NOT EXISTS {self._threads_table} (
                    id TEXT PRIMARY KEY, user_id TEXT NOT NULL, title TEXT NOT NULL,
                    created_at TEXT NOT NULL, updated_at TEXT NOT NULL
                )
            """)
            await self._conn.execute(f"""
                CREATE TABLE IF NOT EXISTS {self._messages_table} (
                    id TEXT PRIMARY KEY, thread_id TEXT NOT NULL, role TEXT NOT NULL,
                    content TEXT NOT NULL, created_at TEXT NOT NULL,
                    FOREIGN KEY (thread_id) REFERENCES {self._threads_table}(id) ON DELETE CASCADE
                )
            """)
            await self._conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{self._threads_table}_user_updated "
                f"ON {self._threads_table} (user_id, updated_at);"
            )
            await self._conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{self._messages_table}_thread_created "
                f"ON {self._messages_table} (thread_id, created_at);"
            )
            await self._conn.commit()
            logger.info(f"SQLite thread store initialized at: {self._db_path}")
        except aiosqlite.Error as e:
            logger.error(f"Failed to initialize SQLite thread store at {self._db_path}: {e}")
            await self.close()
            raise ThreadStoreError(f"Could not initialize SQLite database: {e}")

    async def _fetch_messages(self, thread_id: str) -> List[Message]:
        conn = self._require_conn()
        async with conn.execute(
            f"SELECT * FROM {self._messages_table} WHERE thread_id = ? ORDER BY created_at, rowid",
            (thread_id,),
        ) as cursor:
            rows = await cursor.fetchall()
        return [
            Message(
                id=row["id"],
                thread_id=row["thread_id"],
                role=Role(row["role"]),
                content=row["content"],
                created_at=row["created_at"],
            )
            for row in rows
        ]

    async def _row_to_thread(self, row: Any) -> Thread:
        return Thread(
            id=row["id"],
            user_id=row["user_id"],
            title=row["title"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
            messages=await self._fetch_messages(row["id"]),
        )

    async def create_thread(self, user_id: str, title: str = "") -> Thread:
        conn = self._require_conn()
        thread = Thread(user_id=user_id, title=title)
        try:
            await conn.execute(
                f"INSERT INTO {self._threads_table} (id, user_id, title, created_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?)",
                (thread.id, user_id, title, thread.created_at.isoformat(), thread.updated_at.isoformat()),
            )
            await conn.commit()
        except aiosqlite.Error as e:
            logger.error(f"aiosqlite error creating thread for user '{user_id}': {e}")
            raise ThreadStoreError(f"Database error creating thread: {e}")
        logger.debug(f"Thread '{thread.id}' created for user '{user_id}'.")
        return thread

    async def get_thread(self, thread_id: str, user_id: Optional[str] = None) -> Optional[Thread]:
        conn = self._require_conn()
        query = f"SELECT * FROM {self._threads_table} WHERE id = ?"
        params: tuple = (thread_id,)
        if user_id is not None:
            query += " AND user_id = ?"
            params = (thread_id, user_id)
        try:
            async with conn.execute(query, params) as cursor:
                row = await cursor.fetchone()
            if row is None:
                return None
            return await self._row_to_thread(row)
        except aiosqlite.Error as e:
            logger.error(f"aiosqlite error retrieving thread '{thread_id}': {e}")
            raise ThreadStoreError(f"Database error retrieving thread '{thread_id}': {e}")

    async def list_threads(self, user_id: str) -> List[Thread]:
        conn = self._require_conn()
        try:
            async with conn.execute(
                f"SELECT * FROM {self._threads_table} WHERE user_id = ? ORDER BY updated_at DESC, rowid DESC",
                (user_id,),
            ) as cursor:
                rows = await cursor.fetchall()
            return [await self._row_to_thread(row) for row in rows]
        except aiosqlite.Error as e:
            logger.error(f"aiosqlite error listing threads for user '{user_id}': {e}")
            raise ThreadStoreError(f"Database error listing threads: {e}")

    async def update_thread_title(self, thread_id: str, title: str, user_id: Optional[str] = None) -> Thread:
        conn = self._require_conn()
        query = f"UPDATE {self._threads_table} SET title = ?, updated_at = ? WHERE id = ?"
        params: tuple = (title, _utcnow().isoformat(), thread_id)
        if user_id is not None:
            query += " AND user_id = ?"
            params = (*params, user_id)
        try:
            cursor = await conn.execute(query, params)
            await conn.commit()
        except aiosqlite.Error as e:
            logger.error(f"aiosqlite error renaming thread '{thread_id}': {e}")
            raise ThreadStoreError(f"Database error renaming thread '{thread_id}': {e}")
        if cursor.rowcount == 0:
            raise ThreadNotFoundError(thread_id)
        thread = await self.get_thread(thread_id)
        if thread is None:
            raise ThreadNotFoundError(thread_id)
        return thread

    async def delete_thread(self, thread_id: str, user_id: Optional[str] = None) -> bool:
        conn = self._require_conn()
        query = f"DELETE FROM {self._threads_table} WHERE id = ?"
        params: tuple = (thread_id,)
        if user_id is not None:
            query += " AND user_id = ?"
            params = (thread_id, user_id)
        try:
            cursor = await conn.execute(query, params)
            await conn.commit()
        except aiosqlite.Error as e:
            logger.error(f"aiosqlite error deleting thread '{thread_id}': {e}")
            raise ThreadStoreError(f"Database error deleting thread '{thread_id}': {e}")
        deleted = cursor.rowcount > 0
        if deleted:
            logger.info(f"Thread '{thread_id}' deleted.")
        return deleted

    async def append_message(self, thread_id: str, role: Role, content: str) -> Message:
        conn = self._require_conn()
        message = Message(thread_id=thread_id, role=Role(role), content=content)
        try:
            async with conn.execute(f"SELECT 1 FROM {self._threads_table} WHERE id = ?", (thread_id,)) as cursor:
                if await cursor.fetchone() is None:
                    raise ThreadNotFoundError(thread_id)
            await conn.execute(
                f"INSERT INTO {self._messages_table} (id, thread_id, role, content, created_at) "
                "VALUES (?, ?, ?, ?, ?)",
                (message.id, thread_id, message.role.value, content, message.created_at.isoformat()),
            )
            await conn.execute(
                f"UPDATE {self._threads_table} SET updated_at = ? WHERE id = ?",
                (message.created_at.isoformat(), thread_id),
            )
            await conn.commit()
        except aiosqlite.Error as e:
            logger.error(f"aiosqlite error appending message to thread '{thread_id}': {e}")
            try:
                await conn.rollback()
            except aiosqlite.Error as rb_e:
                logger.error(f"Rollback failed: {rb_e}")
            raise ThreadStoreError(f"Database error appending message to thread '{thread_id}': {e}")
        return message

    async def load_thread_history(self, thread_id: str) -> List[ConversationTurn]:
        try:
            return [message.to_turn() for message in await self._fetch_messages(thread_id)]
        except aiosqlite.Error as e:
            logger.error(f"aiosqlite error loading history for thread '{thread_id}': {e}")
            raise ThreadStoreError(f"Database error loading history for thread '{thread_id}': {e}")

    async def close(self) -> None:
        if self._conn:
            try:
                await self._conn.close()
                logger.info("SQLite thread store connection closed.")
            except aiosqlite.Error as e:
                logger.error(f"Error closing SQLite connection: {e}")
            finally:
                self._conn = None
