"""Unit tests for correlation ID helpers."""

from __future__ import annotations

import asyncio

import pytest

from socket_connector.correlation import (
    generate_correlation_id,
    get_correlation_id,
    new_request_context,
)


def test_generate_correlation_id_is_unique_hex():
    first = generate_correlation_id()
    second = generate_correlation_id()

    assert first != second
    assert len(first) == 32
    int(first, 16)


def test_new_request_context_does_not_leak():
    ctx, cid = new_request_context()

    assert ctx.run(get_correlation_id) == cid
    assert get_correlation_id() != cid


def test_new_request_context_with_explicit_id():
    ctx, cid = new_request_context("req-42")

    assert cid == "req-42"
    assert ctx.run(get_correlation_id) == "req-42"


@pytest.mark.asyncio
async def test_request_context_follows_loop_callbacks():
    ctx, cid = new_request_context()
    loop = asyncio.get_running_loop()
    seen: asyncio.Future[str | None] = loop.create_future()

    loop.call_soon(lambda: seen.set_result(get_correlation_id()), context=ctx)

    assert await seen == cid
