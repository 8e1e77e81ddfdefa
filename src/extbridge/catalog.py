"""Named queries against the backup extension's SQL functions.

Each operation is a template keyed by name. ``run_operation`` renders the
template for the configured extension, enforces the statement length bound
and hands the SQL to :func:`extbridge.executor.execute_query`.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

from extbridge.channel import Channel
from extbridge.config import BridgeSettings, resolve_settings
from extbridge.errors import QueryTooLongError, UnknownOperationError
from extbridge.escaping import escape_literal
from extbridge.executor import execute_query
from extbridge.response import QueryResponse

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogOperation:
    """A fixed SQL template exposed as a named operation."""

    name: str
    template: str
    takes_path: bool = False
    description: str = ""


_OPERATIONS = (
    CatalogOperation(
        name="is_installed",
        template="SELECT * FROM pg_available_extensions WHERE name = '{ext}';",
        description="Check whether the extension is available on the server.",
    ),
    CatalogOperation(
        name="version",
        template="SELECT {ext}_version();",
        description="Return the installed extension version.",
    ),
    CatalogOperation(
        name="switch_wal",
        template="SELECT {ext}_switch_wal();",
        description="Force a WAL segment switch.",
    ),
    CatalogOperation(
        name="checkpoint",
        template="SELECT {ext}_checkpoint();",
        description="Request a checkpoint.",
    ),
    CatalogOperation(
        name="privilege",
        template="SELECT rolsuper FROM pg_roles WHERE rolname = current_user;",
        description="Report whether the current role is a superuser.",
    ),
    CatalogOperation(
        name="get_file",
        template="SELECT {ext}_get_file('{path}');",
        takes_path=True,
        description="Fetch a single file from the server data directory.",
    ),
    CatalogOperation(
        name="get_files",
        template="SELECT {ext}_get_files('{path}');",
        takes_path=True,
        description="List or fetch files under a server directory.",
    ),
)

CATALOG: Mapping[str, CatalogOperation] = MappingProxyType({op.name: op for op in _OPERATIONS})


def get_operation(name: str) -> CatalogOperation:
    """Return the registered operation or raise UnknownOperationError."""
    try:
        return CATALOG[name]
    except KeyError:
        allowed = ", ".join(sorted(CATALOG))
        raise UnknownOperationError(
            f"Unknown extension operation '{name}'. Allowed values: {allowed}"
        ) from None


def render_query(
    name: str, path: Optional[str] = None, *, settings: Optional[BridgeSettings] = None
) -> str:
    """Render the SQL for ``name`` without sending it.

    Paths are embedded verbatim unless ``settings.escape_paths`` is set.

    Raises:
        UnknownOperationError: ``name`` is not in the catalog.
        ValueError: ``path`` is missing for a path operation or given to one
            that takes none.
        QueryTooLongError: The statement exceeds ``settings.max_query_length``.
    """
    settings = resolve_settings(settings)
    operation = get_operation(name)

    if operation.takes_path:
        if path is None:
            raise ValueError(f"Operation '{name}' requires a path.")
        if settings.escape_paths:
            path = escape_literal(path)
        sql = operation.template.format(ext=settings.extension_name, path=path)
    else:
        if path is not None:
            raise ValueError(f"Operation '{name}' does not accept a path.")
        sql = operation.template.format(ext=settings.extension_name)

    length = len(sql.encode("utf-8"))
    if length > settings.max_query_length:
        logger.error(
            "Query for %s is %d bytes, exceeding limit of %d",
            name,
            length,
            settings.max_query_length,
        )
        raise QueryTooLongError(name, length, settings.max_query_length)
    return sql


async def run_operation(
    channel: Channel,
    name: str,
    path: Optional[str] = None,
    *,
    settings: Optional[BridgeSettings] = None,
) -> QueryResponse:
    """Render a catalog operation and execute it on ``channel``."""
    settings = resolve_settings(settings)
    sql = render_query(name, path, settings=settings)
    logger.debug("Running extension operation %s", name)
    return await execute_query(channel, sql, timeout_seconds=settings.query_timeout_seconds)


async def is_installed(
    channel: Channel, *, settings: Optional[BridgeSettings] = None
) -> QueryResponse:
    """Query pg_available_extensions for the extension."""
    return await run_operation(channel, "is_installed", settings=settings)


async def version(channel: Channel, *, settings: Optional[BridgeSettings] = None) -> QueryResponse:
    """Return the extension version response."""
    return await run_operation(channel, "version", settings=settings)


async def switch_wal(
    channel: Channel, *, settings: Optional[BridgeSettings] = None
) -> QueryResponse:
    """Ask the server to switch to a new WAL segment."""
    return await run_operation(channel, "switch_wal", settings=settings)


async def checkpoint(
    channel: Channel, *, settings: Optional[BridgeSettings] = None
) -> QueryResponse:
    """Ask the server to run a checkpoint."""
    return await run_operation(channel, "checkpoint", settings=settings)


async def privilege(
    channel: Channel, *, settings: Optional[BridgeSettings] = None
) -> QueryResponse:
    """Return whether the connected role is a superuser."""
    return await run_operation(channel, "privilege", settings=settings)


async def get_file(
    channel: Channel, file_path: str, *, settings: Optional[BridgeSettings] = None
) -> QueryResponse:
    """Fetch one file through the extension."""
    return await run_operation(channel, "get_file", file_path, settings=settings)


async def get_files(
    channel: Channel, file_path: str, *, settings: Optional[BridgeSettings] = None
) -> QueryResponse:
    """Fetch files under a directory through the extension."""
    return await run_operation(channel, "get_files", file_path, settings=settings)
