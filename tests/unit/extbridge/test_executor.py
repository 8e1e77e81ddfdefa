"""Tests for execute_query resource handling and failure mapping."""

import pytest

from extbridge.errors import ExecutionError, MessageConstructionError, QueryTimeoutError
from extbridge.executor import execute_query
from extbridge.response import QueryResponse
from tests._support.fake_channel import FakeChannel


@pytest.mark.asyncio
async def test_execute_query_returns_response_and_releases_message():
    """Success path should hand back the response and release the message once."""
    channel = FakeChannel()

    response = await execute_query(channel, "SELECT 1;")

    assert isinstance(response, QueryResponse)
    assert response.first_value() == "ok"
    assert channel.statements == ["SELECT 1;"]
    assert channel.created == 1
    assert channel.released == 1


@pytest.mark.asyncio
async def test_execute_query_wraps_construction_failure():
    """Framing failure should raise MessageConstructionError and send nothing."""
    channel = FakeChannel(fail_create_on=lambda sql: True)

    with pytest.raises(MessageConstructionError):
        await execute_query(channel, "SELECT 1;")

    assert channel.attempted == []
    assert channel.created == 0
    assert channel.released == 0


@pytest.mark.asyncio
async def test_execute_query_rejects_empty_sql_before_sending():
    """Empty SQL cannot be framed."""
    channel = FakeChannel()

    with pytest.raises(MessageConstructionError):
        await execute_query(channel, "")

    assert channel.attempted == []
    assert channel.created == channel.released == 0


@pytest.mark.asyncio
async def test_execute_query_none_message_is_construction_failure():
    """A channel returning no message should fail as construction error."""

    class _NoMessageChannel(FakeChannel):
        def create_query_message(self, sql):
            return None

    channel = _NoMessageChannel()

    with pytest.raises(MessageConstructionError):
        await execute_query(channel, "SELECT 1;")

    assert channel.attempted == []
    assert channel.released == 0


@pytest.mark.asyncio
async def test_execute_query_transport_failure_releases_message():
    """Transport errors should surface as ExecutionError after releasing the message."""
    channel = FakeChannel(fail_on=lambda sql: True)

    with pytest.raises(ExecutionError) as exc_info:
        await execute_query(channel, "SELECT 1;")

    assert isinstance(exc_info.value.__cause__, ConnectionResetError)
    assert exc_info.value.reason_code == "execution_failed"
    assert channel.created == 1
    assert channel.released == 1


@pytest.mark.asyncio
async def test_execute_query_missing_response_is_execution_error():
    """No response object should be treated as failure."""
    channel = FakeChannel(none_response_on=lambda sql: True)

    with pytest.raises(ExecutionError, match="no response"):
        await execute_query(channel, "SELECT 1;")

    assert channel.created == 1
    assert channel.released == 1


@pytest.mark.asyncio
async def test_execute_query_timeout_cancels_and_releases():
    """Timeouts should cancel the channel, release the message and raise a typed error."""
    channel = FakeChannel(delay_seconds=0.5)

    with pytest.raises(QueryTimeoutError) as exc_info:
        await execute_query(channel, "SELECT pg_sleep(1);", timeout_seconds=0.01)

    err = exc_info.value
    assert isinstance(err, ExecutionError)
    assert isinstance(err, TimeoutError)
    assert err.timeout_seconds == 0.01
    assert channel.cancel_calls == 1
    assert channel.created == 1
    assert channel.released == 1
    assert channel.statements == []


@pytest.mark.asyncio
async def test_execute_query_without_timeout_waits_for_response():
    """A zero timeout disables the deadline."""
    channel = FakeChannel(delay_seconds=0.01)

    response = await execute_query(channel, "SELECT 1;", timeout_seconds=0)

    assert response.rows == [{"result": "ok"}]


@pytest.mark.asyncio
async def test_execute_query_releases_on_every_path():
    """Across success and both failure modes, releases must equal constructions."""
    channel = FakeChannel(
        fail_on=lambda sql: "fail" in sql,
        fail_create_on=lambda sql: "noframe" in sql,
    )

    await execute_query(channel, "SELECT 'ok';")
    with pytest.raises(ExecutionError):
        await execute_query(channel, "SELECT 'fail';")
    with pytest.raises(MessageConstructionError):
        await execute_query(channel, "SELECT 'noframe';")
    await execute_query(channel, "SELECT 'ok again';")

    assert channel.created == 3
    assert channel.released == channel.created
