import pytest

from extbridge import tracing
from extbridge.executor import execute_query
from tests._support.fake_channel import FakeChannel


def test_trace_enabled_defaults_off():
    """Tracing is off without an explicit flag or exporter."""
    assert tracing.trace_enabled() is False


def test_trace_enabled_follows_otlp_endpoint(monkeypatch):
    """A configured OTLP exporter turns tracing on."""
    monkeypatch.setenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://collector:4317")
    assert tracing.trace_enabled() is True


def test_trace_enabled_explicit_override(monkeypatch):
    """The explicit flag wins over exporter configuration."""
    monkeypatch.setenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://collector:4317")
    monkeypatch.setenv("EXT_BRIDGE_TRACE_QUERIES", "false")
    assert tracing.trace_enabled() is False


def test_trace_enabled_invalid_value_disables(monkeypatch, caplog):
    """Invalid flag values disable tracing with a warning."""
    monkeypatch.setenv("EXT_BRIDGE_TRACE_QUERIES", "sometimes")
    assert tracing.trace_enabled() is False
    assert "EXT_BRIDGE_TRACE_QUERIES" in caplog.text


@pytest.mark.asyncio
async def test_traced_execution_records_statement_hash(monkeypatch):
    """Spans carry the statement hash and status, never the raw SQL."""
    pytest.importorskip("opentelemetry")

    recorded = {}

    class _Span:
        def set_attribute(self, key, value):
            recorded[key] = value

        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return False

    class _Tracer:
        def start_as_current_span(self, name):
            recorded["span_name"] = name
            return _Span()

    from opentelemetry import trace

    monkeypatch.setenv("EXT_BRIDGE_TRACE_QUERIES", "true")
    monkeypatch.setattr(trace, "get_tracer", lambda name: _Tracer())

    await execute_query(FakeChannel(), "SELECT 1;")

    assert recorded["span_name"] == "extbridge.query.execute"
    assert recorded["db.system"] == "postgresql"
    assert recorded["db.statement_hash"] == tracing._hash_sql("SELECT 1;")
    assert recorded["db.status"] == "ok"
    assert "SELECT 1;" not in recorded.values()
