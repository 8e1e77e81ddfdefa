"""Typed failures raised by the extension bridge."""

from __future__ import annotations

from typing import Optional


class ExtensionBridgeError(RuntimeError):
    """Base error for all extension bridge failures."""

    reason_code = "extension_bridge_error"

    def __init__(self, message: str, *, reason_code: Optional[str] = None) -> None:
        """Initialize with a bounded reason code for logs and callers."""
        super().__init__(message)
        if reason_code is not None:
            self.reason_code = reason_code


class MessageConstructionError(ExtensionBridgeError):
    """Raised when SQL text cannot be framed into a query message."""

    reason_code = "message_construction_failed"


class ExecutionError(ExtensionBridgeError):
    """Raised when a query message could not be executed or produced no response."""

    reason_code = "execution_failed"


class QueryTimeoutError(ExecutionError, TimeoutError):
    """Raised when query execution exceeds its configured timeout."""

    reason_code = "execution_timeout"

    def __init__(self, operation_name: str, timeout_seconds: Optional[float]) -> None:
        """Initialize timeout details with operation context."""
        self.operation_name = operation_name
        self.timeout_seconds = timeout_seconds
        timeout_display = "unknown"
        if isinstance(timeout_seconds, (int, float)):
            timeout_display = f"{float(timeout_seconds):g}"
        super().__init__(f"{operation_name} timed out after {timeout_display}s.")


class QueryTooLongError(ExtensionBridgeError, ValueError):
    """Raised when a rendered statement exceeds the configured length bound."""

    reason_code = "query_too_long"

    def __init__(self, operation_name: str, length: int, max_length: int) -> None:
        """Capture the offending length so the caller can log it."""
        self.operation_name = operation_name
        self.length = length
        self.max_length = max_length
        super().__init__(
            f"Query for '{operation_name}' is {length} bytes; limit is {max_length} bytes."
        )


class UnknownOperationError(ExtensionBridgeError, KeyError):
    """Raised when a catalog operation name is not registered."""

    reason_code = "unknown_operation"

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class FileOpenError(ExtensionBridgeError):
    """Raised when the manifest file cannot be opened for reading."""

    reason_code = "manifest_open_failed"

    def __init__(self, file_path: str, message: str) -> None:
        """Initialize with the path that failed to open."""
        self.file_path = file_path
        super().__init__(message)


class ManifestLineTooLongError(ExtensionBridgeError, ValueError):
    """Raised when a manifest line exceeds the accepted length."""

    reason_code = "manifest_line_too_long"

    def __init__(self, line_number: int, length: int, max_length: int) -> None:
        """Capture the line position and sizes of the oversized line."""
        self.line_number = line_number
        self.length = length
        self.max_length = max_length
        super().__init__(
            f"Manifest line {line_number} is {length} bytes; limit is {max_length} bytes."
        )


class TableCreationError(ExtensionBridgeError):
    """Raised when the manifest table could not be created."""

    reason_code = "manifest_table_create_failed"


class TableDropError(ExtensionBridgeError):
    """Raised when the manifest table could not be dropped."""

    reason_code = "manifest_table_drop_failed"


class InsertError(ExtensionBridgeError):
    """Raised when a manifest entry insert fails; earlier rows are left in place."""

    reason_code = "manifest_insert_failed"

    def __init__(self, line_number: int, filename: str, checksum: str) -> None:
        """Initialize with the manifest entry that failed to insert."""
        self.line_number = line_number
        self.filename = filename
        self.checksum = checksum
        super().__init__(
            f"Failed to insert manifest line {line_number}: {filename}, {checksum}"
        )
