"""Unit test environment helpers."""

import os

import pytest


@pytest.fixture(autouse=True)
def _isolated_bridge_env(monkeypatch):
    """Clear bridge and tracing env vars so defaults apply unless a test sets them."""
    for name in list(os.environ):
        if name.startswith("EXT_BRIDGE_") or name.startswith("DB_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.delenv("OTEL_EXPORTER_OTLP_ENDPOINT", raising=False)
    yield
