"""Load a backup manifest into a server-side table.

The manifest is a text file of ``filename,checksum`` lines. Each entry is
inserted with its own statement, in file order. The first failed insert
stops the load and leaves already inserted rows in place; callers that need
all-or-nothing semantics must wrap the load in their own transaction.
"""

import logging
import re
from dataclasses import dataclass
from typing import Iterator, Optional, TextIO

from extbridge.channel import Channel
from extbridge.config import BridgeSettings, resolve_settings
from extbridge.errors import (
    ExecutionError,
    FileOpenError,
    InsertError,
    ManifestLineTooLongError,
    MessageConstructionError,
    TableCreationError,
    TableDropError,
)
from extbridge.escaping import escape_literal
from extbridge.executor import execute_query
from extbridge.response import QueryResponse

logger = logging.getLogger(__name__)

_LINE_TERMINATORS = "\r\n"
_CHECKSUM_END_RE = re.compile(r"[\r\n]")


@dataclass(frozen=True)
class ManifestEntry:
    """One ``filename,checksum`` record read from the manifest."""

    filename: str
    checksum: str
    line_number: int


def parse_manifest_line(line: str, line_number: int = 0) -> Optional[ManifestEntry]:
    """Parse one manifest line, returning None for lines that should be skipped.

    Empty fields between commas collapse; tokens after the second are
    ignored. The checksum is cut at its first CR or LF.
    """
    tokens = [token for token in line.split(",") if token]
    if len(tokens) < 2:
        return None

    filename = tokens[0]
    checksum = _CHECKSUM_END_RE.split(tokens[1], maxsplit=1)[0]
    if not checksum or any(ch in filename for ch in _LINE_TERMINATORS):
        return None
    return ManifestEntry(filename=filename, checksum=checksum, line_number=line_number)


def _open_manifest(file_path: str) -> TextIO:
    # Lines end at LF only; a CR inside a line is data, handled by the checksum cut.
    try:
        return open(file_path, "r", encoding="utf-8", newline="\n")
    except OSError as exc:
        logger.error("Failed to open backup manifest file: %s", file_path)
        raise FileOpenError(
            file_path, f"Failed to open backup manifest file {file_path}: {exc}"
        ) from exc


def _iter_entries(manifest: TextIO, max_line_bytes: int) -> Iterator[ManifestEntry]:
    for line_number, line in enumerate(manifest, start=1):
        content = line.rstrip(_LINE_TERMINATORS)
        length = len(content.encode("utf-8"))
        if length > max_line_bytes:
            logger.error(
                "Manifest line %d is %d bytes, exceeding limit of %d",
                line_number,
                length,
                max_line_bytes,
            )
            raise ManifestLineTooLongError(line_number, length, max_line_bytes)

        entry = parse_manifest_line(line, line_number)
        if entry is None:
            logger.debug("Skipping malformed manifest line %d", line_number)
            continue
        yield entry


def iter_manifest_entries(file_path: str, *, max_line_bytes: int) -> Iterator[ManifestEntry]:
    """Yield entries from the manifest at ``file_path``, skipping malformed lines.

    Nothing is sent to the server, so this is usable for dry runs. The file
    is opened on first iteration and closed when the generator finishes or
    is closed.

    Raises:
        FileOpenError: The manifest could not be opened.
        ManifestLineTooLongError: A line (without its terminator) is longer
            than ``max_line_bytes`` once encoded as UTF-8.
    """
    with _open_manifest(file_path) as manifest:
        yield from _iter_entries(manifest, max_line_bytes)


def build_create_table_sql(table: str) -> str:
    """Return the idempotent DDL for the manifest table."""
    return f"CREATE TABLE IF NOT EXISTS {table} (filename TEXT, checksum TEXT);"


def build_insert_sql(table: str, entry: ManifestEntry) -> str:
    """Return the INSERT for ``entry`` with both values escaped as SQL literals."""
    return (
        f"INSERT INTO {table} (filename, checksum) "
        f"VALUES ('{escape_literal(entry.filename)}', '{escape_literal(entry.checksum)}');"
    )


def build_drop_table_sql(table: str, if_exists: bool = False) -> str:
    """Return the DDL that removes the manifest table."""
    if if_exists:
        return f"DROP TABLE IF EXISTS {table};"
    return f"DROP TABLE {table};"


async def load_manifest(
    channel: Channel, file_path: str, *, settings: Optional[BridgeSettings] = None
) -> int:
    """Create the manifest table if needed and insert every entry from ``file_path``.

    Returns:
        The number of rows inserted.

    Raises:
        TableCreationError: The CREATE TABLE statement failed; the file is not opened.
        FileOpenError: The manifest could not be opened.
        ManifestLineTooLongError: A line exceeded the configured bound.
        InsertError: An insert failed; rows before it remain in the table.
    """
    settings = resolve_settings(settings)
    table = settings.manifest_table
    timeout = settings.query_timeout_seconds

    try:
        await execute_query(channel, build_create_table_sql(table), timeout_seconds=timeout)
    except (MessageConstructionError, ExecutionError) as exc:
        logger.error("Failed to create %s table", table)
        raise TableCreationError(f"Failed to create {table} table: {exc}") from exc

    inserted = 0
    with _open_manifest(file_path) as manifest:
        for entry in _iter_entries(manifest, settings.max_manifest_line_bytes):
            try:
                await execute_query(
                    channel, build_insert_sql(table, entry), timeout_seconds=timeout
                )
            except (MessageConstructionError, ExecutionError) as exc:
                logger.error(
                    "Failed to insert into %s: %s, %s", table, entry.filename, entry.checksum
                )
                raise InsertError(entry.line_number, entry.filename, entry.checksum) from exc
            inserted += 1

    logger.info("Loaded %d manifest entries from %s into %s", inserted, file_path, table)
    return inserted


async def drop_manifest_table(
    channel: Channel, *, settings: Optional[BridgeSettings] = None
) -> QueryResponse:
    """Drop the manifest table.

    Without ``settings.drop_if_exists`` a missing table is reported as a
    failure rather than ignored.
    """
    settings = resolve_settings(settings)
    table = settings.manifest_table
    sql = build_drop_table_sql(table, if_exists=settings.drop_if_exists)
    try:
        return await execute_query(channel, sql, timeout_seconds=settings.query_timeout_seconds)
    except (MessageConstructionError, ExecutionError) as exc:
        logger.error("Failed to drop %s table", table)
        raise TableDropError(f"Failed to drop {table} table: {exc}") from exc
