from typing import Protocol, runtime_checkable

from extbridge.messages import QueryMessage
from extbridge.response import QueryResponse


@runtime_checkable
class Channel(Protocol):
    """Protocol for an established, authenticated connection to the server.

    A channel serves one call chain at a time; callers must not share it
    across concurrent tasks.
    """

    def create_query_message(self, sql: str) -> QueryMessage:
        """Frame SQL text into a message ready for transmission."""
        ...

    async def execute_message(self, message: QueryMessage) -> QueryResponse:
        """Send a message and return the decoded response."""
        ...

    def release_message(self, message: QueryMessage) -> None:
        """Release a message previously returned by ``create_query_message``."""
        ...
