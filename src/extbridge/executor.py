"""Single entry point for sending a SQL statement over a channel."""

import asyncio
import inspect
import logging
from typing import Optional

from extbridge.channel import Channel
from extbridge.errors import ExecutionError, MessageConstructionError, QueryTimeoutError
from extbridge.messages import QueryMessage
from extbridge.response import QueryResponse
from extbridge.tracing import trace_query_operation

logger = logging.getLogger(__name__)

OPERATION_NAME = "extbridge.query.execute"


async def _cancel_channel(channel: Channel) -> None:
    cancel = getattr(channel, "cancel", None)
    if cancel is None:
        return
    try:
        result = cancel()
        if inspect.isawaitable(result):
            await result
    except Exception as cancel_exc:
        logger.warning("Channel cancellation after timeout failed: %s", cancel_exc)


async def _execute_message(
    channel: Channel, message: QueryMessage, timeout_seconds: Optional[float]
) -> Optional[QueryResponse]:
    if not timeout_seconds or timeout_seconds <= 0:
        return await channel.execute_message(message)
    try:
        return await asyncio.wait_for(channel.execute_message(message), timeout=timeout_seconds)
    except asyncio.TimeoutError as exc:
        await _cancel_channel(channel)
        raise QueryTimeoutError(OPERATION_NAME, timeout_seconds) from exc


async def execute_query(
    channel: Channel, sql: str, *, timeout_seconds: Optional[float] = None
) -> QueryResponse:
    """Frame ``sql``, send it on ``channel`` and return the decoded response.

    The statement is sent as-is; escaping is the caller's job. The framed
    message is released on every path once it has been constructed.

    Raises:
        MessageConstructionError: The channel could not frame the text.
        ExecutionError: Transmission or decoding failed, or no response arrived.
        QueryTimeoutError: ``timeout_seconds`` elapsed before a response arrived.
    """
    try:
        message = channel.create_query_message(sql)
    except MessageConstructionError:
        logger.info("Failed to create query message")
        raise
    except Exception as exc:
        logger.info("Failed to create query message: %s", exc)
        raise MessageConstructionError(f"Failed to create query message: {exc}") from exc

    if message is None:
        logger.info("Failed to create query message")
        raise MessageConstructionError("Channel produced no query message.")

    try:
        response = await trace_query_operation(
            OPERATION_NAME, sql, _execute_message(channel, message, timeout_seconds)
        )
    except ExecutionError:
        logger.info("Failed to execute query")
        raise
    except Exception as exc:
        logger.info("Failed to execute query: %s", exc)
        raise ExecutionError(f"Failed to execute query: {exc}") from exc
    finally:
        channel.release_message(message)

    if response is None:
        logger.info("Failed to execute query: no response")
        raise ExecutionError("Query execution produced no response.")

    return response
