from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class QueryResponse:
    """Decoded server response, passed through to the caller without validation."""

    rows: List[Dict[str, Any]] = field(default_factory=list)
    columns: List[str] = field(default_factory=list)
    status: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        """Return True when the response carries no rows."""
        return not self.rows

    def first_row(self) -> Optional[Dict[str, Any]]:
        """Return the first row, or None for an empty response."""
        return self.rows[0] if self.rows else None

    def first_value(self) -> Any:
        """Return the first column of the first row, or None."""
        row = self.first_row()
        if not row:
            return None
        return next(iter(row.values()))
