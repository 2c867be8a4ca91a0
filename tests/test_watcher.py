"""Tests for the watcher event loop."""

import asyncio
from unittest.mock import patch

import pytest

from autotiling.client import (
    SUBSCRIBE_COMMAND,
    TOGGLE_COMMAND,
    SubscriptionError,
    TransportReadError,
    WmConnectionError,
)
from autotiling.frames import BinaryFrame, ControlFrame
from autotiling.watcher import LoopState, TilingWatcher

HALF = '{"data":{"managedWindow":{"tilingSize":0.5}}}'
ABOVE = '{"data":{"managedWindow":{"tilingSize":0.501}}}'
NO_SIZE = '{"data":{"managedWindow":{}}}'


async def drive(client, **kwargs) -> TilingWatcher:
    watcher = TilingWatcher(client, **kwargs)
    await asyncio.wait_for(watcher.run(), timeout=2.0)
    return watcher


class TestScenarios:
    """End-to-end behaviour over a scripted connection."""

    @pytest.mark.asyncio
    async def test_half_dispatches_toggle(self, fake_client_factory):
        client = fake_client_factory([HALF, fake_client_factory.END])
        watcher = await drive(client)

        assert client.sent == [SUBSCRIBE_COMMAND, TOGGLE_COMMAND]
        assert client.toggle_sizes == [0.5]
        assert watcher.toggles_sent == 1

    @pytest.mark.asyncio
    async def test_above_half_does_not_dispatch(self, fake_client_factory):
        client = fake_client_factory([ABOVE, fake_client_factory.END])
        watcher = await drive(client)

        assert client.sent == [SUBSCRIBE_COMMAND]
        assert watcher.toggles_sent == 0

    @pytest.mark.asyncio
    async def test_missing_size_keeps_listening(self, fake_client_factory):
        client = fake_client_factory([NO_SIZE, HALF, fake_client_factory.END])
        watcher = await drive(client)

        assert client.sent == [SUBSCRIBE_COMMAND, TOGGLE_COMMAND]
        assert watcher.frames_seen == 2

    @pytest.mark.asyncio
    async def test_malformed_keeps_listening(self, fake_client_factory):
        """A non-JSON frame is skipped and the next frame is still read."""
        client = fake_client_factory(["not json", HALF, fake_client_factory.END])
        watcher = await drive(client)

        assert client.sent == [SUBSCRIBE_COMMAND, TOGGLE_COMMAND]
        assert client.receive_calls == 3
        assert watcher.state is LoopState.TERMINATED

    @pytest.mark.asyncio
    async def test_peer_close_right_after_connect(self, fake_client_factory):
        client = fake_client_factory([fake_client_factory.END])

        with patch("autotiling.watcher.console.disconnected") as mock_disconnected:
            watcher = await drive(client)

        mock_disconnected.assert_called_once_with()
        assert watcher.state is LoopState.TERMINATED
        assert client.sent == [SUBSCRIBE_COMMAND]
        assert client.receive_calls == 1

    @pytest.mark.asyncio
    async def test_repeated_qualifying_frames_toggle_each_time(self, fake_client_factory):
        """No debouncing: two qualifying frames send two toggles."""
        client = fake_client_factory([HALF, HALF, fake_client_factory.END])
        watcher = await drive(client)

        assert client.sent == [SUBSCRIBE_COMMAND, TOGGLE_COMMAND, TOGGLE_COMMAND]
        assert watcher.toggles_sent == 2


class TestNonTextFrames:
    @pytest.mark.asyncio
    async def test_binary_and_control_frames_ignored(self, fake_client_factory):
        client = fake_client_factory(
            [
                BinaryFrame(HALF.encode()),
                ControlFrame("ping"),
                fake_client_factory.END,
            ]
        )
        watcher = await drive(client)

        assert client.sent == [SUBSCRIBE_COMMAND]
        assert watcher.frames_seen == 0


class TestTermination:
    @pytest.mark.asyncio
    async def test_read_error_terminates(self, fake_client_factory):
        client = fake_client_factory([TransportReadError("reset by peer"), HALF])

        with (
            patch("autotiling.watcher.console.websocket_error") as mock_error,
            patch("autotiling.watcher.console.disconnected") as mock_disconnected,
        ):
            watcher = await drive(client)

        mock_error.assert_called_once_with("reset by peer")
        mock_disconnected.assert_called_once_with()
        assert watcher.state is LoopState.TERMINATED
        # The frame after the error is never read
        assert client.receive_calls == 1
        assert client.sent == [SUBSCRIBE_COMMAND]

    @pytest.mark.asyncio
    async def test_toggle_send_failure_terminates(self, fake_client_factory):
        client = fake_client_factory([HALF, HALF], fail_toggle_after=0)

        with patch("autotiling.watcher.console.websocket_error") as mock_error:
            watcher = await drive(client)

        mock_error.assert_called_once()
        assert watcher.toggles_sent == 0
        assert client.receive_calls == 1
        assert watcher.state is LoopState.TERMINATED

    @pytest.mark.asyncio
    async def test_connection_closed_on_exit(self, fake_client_factory):
        client = fake_client_factory([fake_client_factory.END])
        await drive(client)
        assert client.closed

    @pytest.mark.asyncio
    async def test_stop_ends_blocked_receive(self, fake_client_factory):
        """stop() closes the connection and run() returns normally."""
        client = fake_client_factory([HALF])
        watcher = TilingWatcher(client)
        task = asyncio.create_task(watcher.run())

        # Wait until the loop is blocked waiting on the second frame
        while client.receive_calls < 2:
            await asyncio.sleep(0.01)
        assert watcher.state is LoopState.LISTENING

        await watcher.stop()
        await asyncio.wait_for(task, timeout=2.0)

        assert watcher.state is LoopState.TERMINATED
        assert watcher.toggles_sent == 1


class TestStartupFailures:
    @pytest.mark.asyncio
    async def test_connect_failure_propagates(self, fake_client_factory):
        client = fake_client_factory(fail_connect=True)
        watcher = TilingWatcher(client)

        with patch("autotiling.watcher.console.disconnected") as mock_disconnected:
            with pytest.raises(WmConnectionError):
                await watcher.run()

        mock_disconnected.assert_not_called()
        assert watcher.state is LoopState.TERMINATED
        assert client.sent == []

    @pytest.mark.asyncio
    async def test_subscribe_failure_propagates(self, fake_client_factory):
        client = fake_client_factory([HALF], fail_subscribe=True)
        watcher = TilingWatcher(client)

        with patch("autotiling.watcher.console.disconnected") as mock_disconnected:
            with pytest.raises(SubscriptionError):
                await watcher.run()

        mock_disconnected.assert_called_once_with()
        assert watcher.state is LoopState.TERMINATED
        assert client.receive_calls == 0
        assert client.closed


class TestHandleText:
    @pytest.mark.asyncio
    async def test_parse_error_reported_as_tiling_error(self, fake_client_factory):
        client = fake_client_factory()
        watcher = TilingWatcher(client)

        with patch("autotiling.watcher.console.tiling_error") as mock_tiling_error:
            assert await watcher.handle_text("not json") is True

        mock_tiling_error.assert_called_once()
        assert client.sent == []

    @pytest.mark.asyncio
    async def test_exclusive_threshold(self, fake_client_factory):
        client = fake_client_factory()
        watcher = TilingWatcher(client, inclusive=False)

        assert await watcher.handle_text(HALF) is True
        assert client.sent == []

    @pytest.mark.asyncio
    async def test_custom_threshold(self, fake_client_factory):
        client = fake_client_factory()
        watcher = TilingWatcher(client, threshold=0.6)

        assert await watcher.handle_text(ABOVE) is True
        assert client.sent == [TOGGLE_COMMAND]
        assert client.toggle_sizes == [0.501]


class TestOversizedPayloads:
    """Payloads that stress the JSON decoder are skipped, not fatal."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            '{"data":{"managedWindow":{"tilingSize":1' + "0" * 400 + "}}}",
            '{"data":{"managedWindow":{"tilingSize":' + "9" * 5000 + "}}}",
            "[" * 100_000,
        ],
        ids=["huge-int", "past-digit-limit", "deep-nesting"],
    )
    async def test_loop_continues_after_payload(self, fake_client_factory, payload):
        client = fake_client_factory([payload, HALF, fake_client_factory.END])
        watcher = await drive(client)

        assert client.sent == [SUBSCRIBE_COMMAND, TOGGLE_COMMAND]
        assert watcher.frames_seen == 2
        assert watcher.state is LoopState.TERMINATED
