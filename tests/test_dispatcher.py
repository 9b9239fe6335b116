"""Tests for MessageDispatcher routing by id."""

from __future__ import annotations

import asyncio
import json
import logging
from unittest.mock import MagicMock

import pytest

from golos_client.dispatcher import MessageDispatcher
from golos_client.errors import GolosProtocolError


def _frame(**message) -> str:
    return json.dumps(message)


@pytest.fixture
def dispatcher() -> MessageDispatcher:
    return MessageDispatcher()


class TestPendingCalls:
    """Tests for one-shot call settlement."""

    @pytest.mark.asyncio
    async def test_replies_in_any_order(self, dispatcher: MessageDispatcher):
        """Test each call resolves with its own reply regardless of order."""
        loop = asyncio.get_running_loop()
        futures = {}
        for request_id in (0, 1, 2):
            futures[request_id] = loop.create_future()
            dispatcher.register_call(
                request_id,
                "database_api",
                {"method": "get_block", "params": [request_id]},
                futures[request_id],
            )

        for request_id in (2, 0, 1):
            dispatcher.dispatch(_frame(id=request_id, result=f"block-{request_id}"))

        assert {k: f.result() for k, f in futures.items()} == {
            0: "block-0",
            1: "block-1",
            2: "block-2",
        }
        assert dict(dispatcher.pending) == {}

    @pytest.mark.asyncio
    async def test_error_rejects_only_matching_call(
        self, dispatcher: MessageDispatcher
    ):
        """Test an error frame rejects its call with the full payload attached."""
        loop = asyncio.get_running_loop()
        failing = loop.create_future()
        other = loop.create_future()
        dispatcher.register_call(7, "database_api", {"method": "get_block"}, failing)
        dispatcher.register_call(8, "database_api", {"method": "get_block"}, other)

        message = {"id": 7, "error": {"message": "x"}}
        dispatcher.dispatch(json.dumps(message))

        with pytest.raises(GolosProtocolError) as exc_info:
            failing.result()
        assert exc_info.value.payload == message
        assert str(exc_info.value).startswith("x (see err.payload")
        assert not other.done()
        assert 8 in dispatcher.pending
        assert 7 not in dispatcher.pending

    @pytest.mark.asyncio
    async def test_error_without_message_uses_fallback(
        self, dispatcher: MessageDispatcher
    ):
        """Test an error payload lacking a message gets a generic text."""
        future = asyncio.get_running_loop().create_future()
        dispatcher.register_call(1, "database_api", {"method": "get_block"}, future)

        dispatcher.dispatch(_frame(id=1, error={"code": -32000}))

        with pytest.raises(GolosProtocolError, match="Failed to complete operation"):
            future.result()

    @pytest.mark.asyncio
    async def test_error_exposes_node_fields(self, dispatcher: MessageDispatcher):
        """Test code and data of a node error are reachable on the exception."""
        future = asyncio.get_running_loop().create_future()
        dispatcher.register_call(2, "network_broadcast_api", {"method": "x"}, future)
        data = {"name": "assert_exception", "message": "Assert Exception"}

        dispatcher.dispatch(
            _frame(id=2, error={"code": 1, "message": "missing auth", "data": data})
        )

        error = future.exception()
        assert isinstance(error, GolosProtocolError)
        assert error.code == 1
        assert error.data == data

    @pytest.mark.asyncio
    async def test_abandoned_future_is_skipped(self, dispatcher: MessageDispatcher):
        """Test a reply for a cancelled caller is dropped quietly."""
        future = asyncio.get_running_loop().create_future()
        dispatcher.register_call(4, "database_api", {"method": "get_block"}, future)
        future.cancel()

        dispatcher.dispatch(_frame(id=4, result=1))

        assert 4 not in dispatcher.pending

    @pytest.mark.asyncio
    async def test_duplicate_id_rejected(self, dispatcher: MessageDispatcher):
        """Test ids stay unique among outstanding entries."""
        loop = asyncio.get_running_loop()
        dispatcher.register_call(1, "database_api", {"method": "a"}, loop.create_future())
        with pytest.raises(ValueError, match="already outstanding"):
            dispatcher.register_call(
                1, "database_api", {"method": "b"}, loop.create_future()
            )

    @pytest.mark.asyncio
    async def test_slow_reply_logged(
        self, dispatcher: MessageDispatcher, caplog: pytest.LogCaptureFixture
    ):
        """Test replies slower than expected are logged, not failed."""
        dispatcher.expected_response_ms = -1
        future = asyncio.get_running_loop().create_future()
        dispatcher.register_call(1, "database_api", {"method": "get_config"}, future)

        with caplog.at_level(logging.WARNING, logger="golos_client.dispatcher"):
            dispatcher.dispatch(_frame(id=1, result={}))

        assert future.result() == {}
        assert "Slow reply for database_api.get_config" in caplog.text


class TestSubscriptions:
    """Tests for push delivery to subscriptions."""

    def test_push_keeps_entry(self, dispatcher: MessageDispatcher):
        """Test every push reaches the callback and the entry survives."""
        callback = MagicMock()
        dispatcher.register_subscription(
            3, "database_api", {"method": "set_block_applied_callback"}, callback
        )

        dispatcher.dispatch(_frame(id=3, result={"n": 1}))
        dispatcher.dispatch(_frame(id=3, result={"n": 2}))

        assert [c.args for c in callback.call_args_list] == [
            (None, {"n": 1}),
            (None, {"n": 2}),
        ]
        assert 3 in dispatcher.subscriptions

    def test_error_not_delivered_to_subscription(
        self, dispatcher: MessageDispatcher
    ):
        """Test error frames never reach a subscription callback."""
        callback = MagicMock()
        dispatcher.register_subscription(
            3, "database_api", {"method": "set_block_applied_callback"}, callback
        )

        dispatcher.dispatch(_frame(id=3, error={"message": "nope"}))

        callback.assert_not_called()
        assert 3 in dispatcher.subscriptions

    def test_callback_error_is_contained(self, dispatcher: MessageDispatcher):
        """Test a raising callback does not break dispatch."""
        callback = MagicMock(side_effect=RuntimeError("boom"))
        dispatcher.register_subscription(
            2, "private_message", {"method": "set_callback"}, callback
        )

        dispatcher.dispatch(_frame(id=2, result=[]))
        dispatcher.dispatch(_frame(id=2, result=[]))

        assert callback.call_count == 2

    def test_overwrite_subscription(self, dispatcher: MessageDispatcher):
        """Test registering the same id again replaces the callback."""
        old = MagicMock()
        new = MagicMock()
        data = {"method": "set_pending_transaction_callback"}
        dispatcher.register_subscription(5, "database_api", data, old)
        dispatcher.register_subscription(5, "database_api", data, new)

        dispatcher.dispatch(_frame(id=5, result="trx"))

        old.assert_not_called()
        new.assert_called_once_with(None, "trx")

    def test_clear_subscriptions(self, dispatcher: MessageDispatcher):
        """Test cleared subscriptions receive nothing further."""
        callback = MagicMock()
        dispatcher.register_subscription(
            1, "database_api", {"method": "set_block_applied_callback"}, callback
        )
        dispatcher.clear_subscriptions()

        dispatcher.dispatch(_frame(id=1, result={}))

        callback.assert_not_called()


class TestUnknownMessages:
    """Tests for frames that match nothing."""

    def test_unknown_id_dropped(
        self, dispatcher: MessageDispatcher, caplog: pytest.LogCaptureFixture
    ):
        """Test an unknown id is logged and dropped."""
        with caplog.at_level(logging.WARNING, logger="golos_client.dispatcher"):
            dispatcher.dispatch(_frame(id=99, result=1))
        assert "unknown request 99" in caplog.text

    def test_invalid_json_dropped(
        self, dispatcher: MessageDispatcher, caplog: pytest.LogCaptureFixture
    ):
        """Test undecodable frames are non-fatal."""
        with caplog.at_level(logging.WARNING, logger="golos_client.dispatcher"):
            dispatcher.dispatch("not valid json {")
        assert "undecodable" in caplog.text

    def test_missing_id_dropped(
        self, dispatcher: MessageDispatcher, caplog: pytest.LogCaptureFixture
    ):
        """Test frames without a numeric id are dropped."""
        with caplog.at_level(logging.WARNING, logger="golos_client.dispatcher"):
            dispatcher.dispatch(_frame(id=[1], result=1))
        assert "without numeric id" in caplog.text

    def test_tables_are_read_only(self, dispatcher: MessageDispatcher):
        """Test callers cannot mutate the id tables."""
        with pytest.raises(TypeError):
            dispatcher.pending[1] = None  # type: ignore[index]
