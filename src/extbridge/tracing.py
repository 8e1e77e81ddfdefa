import hashlib
import logging
import os
from typing import Awaitable, Optional, TypeVar

T = TypeVar("T")
logger = logging.getLogger(__name__)

TRACE_ENV_VAR = "EXT_BRIDGE_TRACE_QUERIES"


def trace_enabled() -> bool:
    """Return True when query tracing is enabled or an OTLP exporter is configured."""
    raw = os.getenv(TRACE_ENV_VAR)
    if raw is not None:
        lowered = raw.strip().lower()
        if lowered in ("true", "1", "yes", "on"):
            return True
        if lowered in ("false", "0", "no", "off", ""):
            return False
        logger.warning("Invalid %s value '%s'; query tracing disabled.", TRACE_ENV_VAR, raw)
        return False
    return bool(os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT"))


def _hash_sql(sql: str) -> str:
    return hashlib.sha256(sql.encode("utf-8")).hexdigest()


async def trace_query_operation(
    name: str,
    sql: Optional[str],
    operation: Awaitable[T],
) -> T:
    """Await ``operation`` inside an OTEL span when tracing is enabled."""
    if not trace_enabled():
        return await operation

    from opentelemetry import trace

    tracer = trace.get_tracer("extbridge")
    with tracer.start_as_current_span(name) as span:
        span.set_attribute("db.system", "postgresql")
        if sql:
            span.set_attribute("db.statement_hash", _hash_sql(sql))
        try:
            result = await operation
            span.set_attribute("db.status", "ok")
            return result
        except Exception:
            span.set_attribute("db.status", "error")
            raise
