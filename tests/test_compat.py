"""Tests for the callback adapter."""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

import pytest

from golos_client.compat import nodeify


class TestNodeify:
    """Tests for nodeify()."""

    @pytest.mark.asyncio
    async def test_success(self):
        """Test the callback receives (None, result) once."""
        callback = MagicMock()

        async def work():
            return 42

        future = nodeify(work(), callback)
        assert await future == 42
        await asyncio.sleep(0)

        callback.assert_called_once_with(None, 42)

    @pytest.mark.asyncio
    async def test_error(self):
        """Test the callback receives (error, None) and the future fails too."""
        callback = MagicMock()
        error = RuntimeError("nope")

        async def work():
            raise error

        future = nodeify(work(), callback)
        with pytest.raises(RuntimeError):
            await future
        await asyncio.sleep(0)

        callback.assert_called_once_with(error, None)

    @pytest.mark.asyncio
    async def test_cancelled(self):
        """Test cancellation is reported as CancelledError."""
        callback = MagicMock()

        future = nodeify(asyncio.Event().wait(), callback)
        await asyncio.sleep(0)
        future.cancel()
        with pytest.raises(asyncio.CancelledError):
            await future
        await asyncio.sleep(0)

        error, result = callback.call_args.args
        assert isinstance(error, asyncio.CancelledError)
        assert result is None

    @pytest.mark.asyncio
    async def test_without_callback(self):
        """Test no callback leaves a plain future."""
        future = nodeify(asyncio.sleep(0, result="done"))
        assert await future == "done"

    @pytest.mark.asyncio
    async def test_callback_error_logged(self, caplog: pytest.LogCaptureFixture):
        """Test a raising callback does not affect the future."""
        callback = MagicMock(side_effect=RuntimeError("boom"))

        future = nodeify(asyncio.sleep(0, result=1), callback)
        assert await future == 1
        await asyncio.sleep(0)

        assert "Callback error" in caplog.text
