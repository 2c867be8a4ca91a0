"""Shared test fixtures for autotiling."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from autotiling import logging as log
from autotiling.client import (
    SUBSCRIBE_COMMAND,
    TOGGLE_COMMAND,
    CommandSendError,
    SubscriptionError,
    WmConnectionError,
)
from autotiling.frames import TextFrame

_END = object()


class FakeWmClient:
    """In-memory stand-in for WmClient.

    Script entries are frames, raw strings (wrapped as text frames),
    exceptions (raised from receive()), or END (clean stream end). Once the
    script runs out, receive() blocks until close() is called.
    """

    END = _END

    def __init__(
        self,
        script: list[Any] | None = None,
        *,
        uri: str = "ws://fake:6123",
        fail_connect: bool = False,
        fail_subscribe: bool = False,
        fail_toggle_after: int | None = None,
    ) -> None:
        self.uri = uri
        self.fail_connect = fail_connect
        self.fail_subscribe = fail_subscribe
        self.fail_toggle_after = fail_toggle_after
        self._incoming: asyncio.Queue[Any] = asyncio.Queue()
        for item in script or []:
            self.push(item)
        self.sent: list[str] = []
        self.toggle_sizes: list[float | None] = []
        self.connect_calls = 0
        self.receive_calls = 0
        self.close_calls = 0
        self.closed = False

    @property
    def connected(self) -> bool:
        return self.connect_calls > 0 and not self.closed

    def push(self, item: Any) -> None:
        if isinstance(item, str):
            item = TextFrame(item)
        self._incoming.put_nowait(item)

    async def connect(self) -> None:
        self.connect_calls += 1
        if self.fail_connect:
            raise WmConnectionError(f"Could not connect to {self.uri}: refused")

    async def subscribe(self) -> None:
        if self.fail_subscribe:
            raise SubscriptionError("Subscribe failed: broken pipe")
        self.sent.append(SUBSCRIBE_COMMAND)

    async def send_toggle(self, tiling_size: float | None = None) -> None:
        toggles = self.sent.count(TOGGLE_COMMAND)
        if self.fail_toggle_after is not None and toggles >= self.fail_toggle_after:
            raise CommandSendError("Send failed: connection closed")
        self.sent.append(TOGGLE_COMMAND)
        self.toggle_sizes.append(tiling_size)

    async def receive(self):
        self.receive_calls += 1
        item = await self._incoming.get()
        if item is _END:
            return None
        if isinstance(item, BaseException):
            raise item
        return item

    async def close(self) -> None:
        self.close_calls += 1
        if not self.closed:
            self.closed = True
            self._incoming.put_nowait(_END)


@pytest.fixture
def fake_client_factory():
    """Build FakeWmClient instances."""
    return FakeWmClient


@pytest.fixture(autouse=True)
def quiet_console():
    """Keep verbosity at its default between tests."""
    log.set_verbose(False)
    yield
    log.set_verbose(False)
