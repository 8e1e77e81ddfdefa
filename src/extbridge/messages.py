"""PostgreSQL simple-query message framing."""

import struct
from dataclasses import dataclass

from extbridge.errors import MessageConstructionError

QUERY_MESSAGE_TYPE = b"Q"

# Int32 length prefix limits a single frame to 2**31 - 1 bytes.
MAX_FRAME_LENGTH = 2**31 - 1


@dataclass(frozen=True)
class QueryMessage:
    """A SQL statement framed as a simple-query ('Q') protocol message."""

    sql: str
    payload: bytes

    @property
    def length(self) -> int:
        """Return the frame length as encoded in the header (excludes the type byte)."""
        return len(self.payload) - 1


def build_query_message(sql: str) -> QueryMessage:
    """Frame ``sql`` as ``'Q' + int32 length + text + NUL``.

    Raises:
        MessageConstructionError: If the text is empty, contains a NUL byte,
            cannot be encoded, or is too large to frame.
    """
    if not isinstance(sql, str) or not sql.strip():
        raise MessageConstructionError("Cannot build a query message from empty SQL text.")
    if "\x00" in sql:
        raise MessageConstructionError("SQL text contains a NUL byte and cannot be framed.")
    try:
        body = sql.encode("utf-8") + b"\x00"
    except UnicodeEncodeError as exc:
        raise MessageConstructionError(f"SQL text is not valid UTF-8: {exc}") from exc

    length = len(body) + 4
    if length > MAX_FRAME_LENGTH:
        raise MessageConstructionError(f"SQL text is too large to frame ({length} bytes).")

    return QueryMessage(sql=sql, payload=QUERY_MESSAGE_TYPE + struct.pack("!i", length) + body)
