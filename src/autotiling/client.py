# src/autotiling/client.py

"""WebSocket client for the window manager's IPC endpoint."""

from __future__ import annotations

import asyncio

import websockets
from websockets.exceptions import (
    ConnectionClosed,
    ConnectionClosedOK,
    InvalidHandshake,
    InvalidURI,
)
from websockets.protocol import State

from autotiling import logging as log
from autotiling.frames import InboundFrame, frame_from_message

DEFAULT_URI = "ws://localhost:6123"
SUBSCRIBE_COMMAND = "sub -e window_managed"
TOGGLE_COMMAND = "command toggle-tiling-direction"


class WmConnectionError(ConnectionError):
    """Could not open the websocket."""


class WmSendError(ConnectionError):
    """An outbound frame could not be sent."""


class SubscriptionError(WmSendError):
    """The subscribe frame could not be sent."""


class CommandSendError(WmSendError):
    """The toggle command could not be sent."""


class TransportReadError(ConnectionError):
    """The connection failed while waiting for the next frame."""


class WmClient:
    """Single websocket connection to the window manager.

    Simple and stateless: connects or throws, never reconnects.
    """

    def __init__(
        self,
        uri: str = DEFAULT_URI,
        subscribe_command: str = SUBSCRIBE_COMMAND,
        toggle_command: str = TOGGLE_COMMAND,
    ):
        self.uri = uri
        self.subscribe_command = subscribe_command
        self.toggle_command = toggle_command
        self._ws: websockets.ClientConnection | None = None

    @property
    def connected(self) -> bool:
        """Whether the websocket is open."""
        return self._ws is not None and self._ws.state is State.OPEN

    async def connect(self) -> None:
        """Open the websocket.

        Raises:
            WmConnectionError: If the endpoint refuses, the handshake fails,
                or the URI is invalid
        """
        log.connecting(self.uri)
        try:
            self._ws = await websockets.connect(self.uri)
        except (OSError, InvalidHandshake, InvalidURI, asyncio.TimeoutError) as e:
            raise WmConnectionError(f"Could not connect to {self.uri}: {e}") from e
        log.connected(self.uri)

    async def _send(self, text: str) -> None:
        if self._ws is None:
            raise ConnectionError("Not connected")
        await self._ws.send(text)

    async def subscribe(self) -> None:
        """Ask for window_managed notifications.

        There is no acknowledgement frame; a completed send is success.

        Raises:
            SubscriptionError: If the frame could not be sent
        """
        try:
            await self._send(self.subscribe_command)
        except (ConnectionClosed, ConnectionError, OSError) as e:
            raise SubscriptionError(f"Subscribe failed: {e}") from e
        log.subscribed()

    async def send_toggle(self, tiling_size: float | None = None) -> None:
        """Send the toggle-tiling-direction command.

        Args:
            tiling_size: Triggering size, used only for the log line

        Raises:
            CommandSendError: If the frame could not be sent
        """
        try:
            await self._send(self.toggle_command)
        except (ConnectionClosed, ConnectionError, OSError) as e:
            raise CommandSendError(f"Send failed: {e}") from e
        log.toggled(tiling_size)

    async def receive(self) -> InboundFrame | None:
        """Wait for the next frame. Blocks indefinitely.

        Returns:
            The frame, or None once the peer has closed the stream cleanly

        Raises:
            TransportReadError: If the connection fails
        """
        if self._ws is None:
            raise TransportReadError("Not connected")
        try:
            message = await self._ws.recv()
        except ConnectionClosedOK:
            return None
        except (ConnectionClosed, OSError) as e:
            raise TransportReadError(str(e) or e.__class__.__name__) from e
        return frame_from_message(message)

    async def close(self) -> None:
        """Close the websocket. Safe to call more than once."""
        if self._ws is not None:
            await self._ws.close()
