"""Client-side bridge to a PostgreSQL backup extension.

The package exposes the fixed query catalog, the manifest loader and the
query executor they share. Channels are supplied by the caller.
"""

from extbridge.catalog import (
    CATALOG,
    CatalogOperation,
    checkpoint,
    get_file,
    get_files,
    is_installed,
    privilege,
    render_query,
    run_operation,
    switch_wal,
    version,
)
from extbridge.channel import Channel
from extbridge.config import BridgeSettings, ConnectionSettings
from extbridge.errors import (
    ExecutionError,
    ExtensionBridgeError,
    FileOpenError,
    InsertError,
    ManifestLineTooLongError,
    MessageConstructionError,
    QueryTimeoutError,
    QueryTooLongError,
    TableCreationError,
    TableDropError,
    UnknownOperationError,
)
from extbridge.executor import execute_query
from extbridge.manifest import ManifestEntry, drop_manifest_table, load_manifest
from extbridge.messages import QueryMessage, build_query_message
from extbridge.response import QueryResponse

__all__ = [
    "CATALOG",
    "BridgeSettings",
    "CatalogOperation",
    "Channel",
    "ConnectionSettings",
    "ExecutionError",
    "ExtensionBridgeError",
    "FileOpenError",
    "InsertError",
    "ManifestEntry",
    "ManifestLineTooLongError",
    "MessageConstructionError",
    "QueryMessage",
    "QueryResponse",
    "QueryTimeoutError",
    "QueryTooLongError",
    "TableCreationError",
    "TableDropError",
    "UnknownOperationError",
    "build_query_message",
    "checkpoint",
    "drop_manifest_table",
    "execute_query",
    "get_file",
    "get_files",
    "is_installed",
    "load_manifest",
    "privilege",
    "render_query",
    "run_operation",
    "switch_wal",
    "version",
]
