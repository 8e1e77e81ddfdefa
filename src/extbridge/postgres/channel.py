import logging
from typing import Any, Dict, List, Optional

import asyncpg

from extbridge.config import ConnectionSettings
from extbridge.messages import QueryMessage, build_query_message
from extbridge.response import QueryResponse

logger = logging.getLogger(__name__)


class AsyncpgChannel:
    """Channel backed by a single open asyncpg connection."""

    def __init__(self, conn: Any, *, owns_connection: bool = False) -> None:
        """Wrap an open connection; close it on ``close()`` only when owned."""
        self._conn = conn
        self._owns_connection = owns_connection
        self._outstanding: Dict[int, QueryMessage] = {}

    @property
    def outstanding_messages(self) -> int:
        """Return the number of messages created but not yet released."""
        return len(self._outstanding)

    def create_query_message(self, sql: str) -> QueryMessage:
        """Frame SQL text as a simple-query message."""
        message = build_query_message(sql)
        self._outstanding[id(message)] = message
        return message

    async def execute_message(self, message: QueryMessage) -> QueryResponse:
        """Run the framed statement and return rows, column names and command status.

        Columns come from the prepared statement, so they are known even when
        no rows match.
        """
        statement = await self._conn.prepare(message.sql)
        columns: List[str] = [attr.name for attr in statement.get_attributes()]
        records = await statement.fetch()
        rows: List[Dict[str, Any]] = [dict(record) for record in records]
        return QueryResponse(rows=rows, columns=columns, status=statement.get_statusmsg())

    def release_message(self, message: QueryMessage) -> None:
        """Forget a message created by this channel."""
        if self._outstanding.pop(id(message), None) is None:
            logger.warning("Release of unknown or already released query message")

    async def cancel(self) -> None:
        """Reset the connection after an abandoned statement."""
        is_closed = getattr(self._conn, "is_closed", None)
        if callable(is_closed) and is_closed():
            return
        await self._conn.reset()

    async def close(self) -> None:
        """Close the underlying connection when this channel opened it."""
        if self._owns_connection:
            await self._conn.close()

    async def __aenter__(self) -> "AsyncpgChannel":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


async def open_channel(
    settings: Optional[ConnectionSettings] = None, *, ssl: Any = None
) -> AsyncpgChannel:
    """Connect with asyncpg and return a channel that owns the connection.

    ``ssl`` is passed to ``asyncpg.connect`` unchanged; when omitted the
    configured ``sslmode`` is used.
    """
    settings = settings or ConnectionSettings.from_env()
    conn = await asyncpg.connect(
        host=settings.host,
        port=settings.port,
        database=settings.db_name,
        user=settings.user,
        password=settings.password,
        ssl=ssl if ssl is not None else settings.sslmode,
    )
    logger.info("Opened extension bridge channel to %s:%s", settings.host, settings.port)
    return AsyncpgChannel(conn, owns_connection=True)
