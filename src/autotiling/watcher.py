# src/autotiling/watcher.py
"""Event loop: listen for window_managed notifications and toggle tiling.

One connection, one task, frames handled strictly in order. The loop ends
when the stream ends, a read fails, or a toggle can't be sent. It never
reconnects.
"""

from __future__ import annotations

import asyncio
import signal
from enum import Enum
from typing import TYPE_CHECKING

import structlog

from autotiling import logging as console
from autotiling.client import TransportReadError, WmClient, WmSendError
from autotiling.frames import classify
from autotiling.notification import DEFAULT_THRESHOLD, NotificationParseError, evaluate

if TYPE_CHECKING:
    from autotiling.config import Config

log = structlog.get_logger()


class LoopState(Enum):
    CONNECTING = "connecting"
    SUBSCRIBING = "subscribing"
    LISTENING = "listening"
    TERMINATED = "terminated"


class TilingWatcher:
    """Drives a WmClient through connect, subscribe and listen.

    Connect and subscribe errors propagate out of run(). Everything after
    that ends the loop quietly apart from the log lines.
    """

    def __init__(
        self,
        client: WmClient,
        threshold: float = DEFAULT_THRESHOLD,
        inclusive: bool = True,
    ):
        self.client = client
        self.threshold = threshold
        self.inclusive = inclusive
        self.state = LoopState.CONNECTING
        self.frames_seen = 0
        self.toggles_sent = 0

    async def run(self) -> None:
        """Run until the connection ends.

        Raises:
            WmConnectionError: If the websocket can't be opened
            SubscriptionError: If the subscribe frame can't be sent
        """
        self.state = LoopState.CONNECTING
        try:
            await self.client.connect()
        except ConnectionError:
            self.state = LoopState.TERMINATED
            raise
        log.info("watcher_connected", uri=self.client.uri)

        try:
            self.state = LoopState.SUBSCRIBING
            await self.client.subscribe()
            log.info("watcher_subscribed")

            self.state = LoopState.LISTENING
            await self._listen()
        finally:
            self.state = LoopState.TERMINATED
            await self.client.close()
            console.disconnected()
            log.info(
                "watcher_disconnected",
                frames_seen=self.frames_seen,
                toggles_sent=self.toggles_sent,
            )

    async def stop(self) -> None:
        """Close the connection; run() then exits through the stream-ended path."""
        await self.client.close()

    async def _listen(self) -> None:
        while True:
            try:
                frame = await self.client.receive()
            except TransportReadError as e:
                console.websocket_error(str(e))
                log.error("websocket_read_failed", error=str(e))
                return

            if frame is None:
                console.stream_ended()
                log.info("websocket_stream_ended")
                return

            text = classify(frame)
            if text is None:
                continue
            self.frames_seen += 1

            if not await self.handle_text(text):
                return

    async def handle_text(self, text: str) -> bool:
        """Evaluate one text payload and toggle if it qualifies.

        Returns:
            False if the toggle command couldn't be sent and the loop must end
        """
        try:
            decision = evaluate(text, self.threshold, self.inclusive)
        except NotificationParseError as e:
            console.tiling_error(str(e))
            log.debug("notification_skipped", error=str(e))
            return True

        if not decision:
            return True

        try:
            await self.client.send_toggle(decision.tiling_size)
        except WmSendError as e:
            console.websocket_error(str(e))
            log.error("toggle_send_failed", error=str(e), tiling_size=decision.tiling_size)
            return False

        self.toggles_sent += 1
        log.info("tiling_toggled", tiling_size=decision.tiling_size)
        return True


async def run_watcher(config: Config) -> TilingWatcher:
    """Build a watcher from config and run it until the connection ends.

    SIGINT/SIGTERM close the connection where the platform supports
    signal handlers.
    """
    watcher = TilingWatcher(
        WmClient(uri=config.connection.uri),
        threshold=config.tiling.threshold,
        inclusive=config.tiling.inclusive,
    )

    loop = asyncio.get_running_loop()

    def _handle_signal(sig: signal.Signals) -> None:
        console.signal_received(sig.name)
        log.info("signal_received", signal=sig.name)
        loop.create_task(watcher.stop())

    installed = []
    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, _handle_signal, sig)
            installed.append(sig)
        except (NotImplementedError, RuntimeError):
            # Windows event loops have no signal handler support
            log.debug("signal_handler_unsupported", signal=sig.name)

    try:
        await watcher.run()
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)
    return watcher
