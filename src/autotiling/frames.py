# src/autotiling/frames.py
"""Inbound websocket frames and text extraction.

Only text frames carry notifications. Everything else is skipped without
logging or counting.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Union


@dataclass(frozen=True)
class TextFrame:
    """UTF-8 text frame."""

    text: str


@dataclass(frozen=True)
class BinaryFrame:
    """Binary frame."""

    data: bytes


@dataclass(frozen=True)
class ControlFrame:
    """Ping, pong or close frame."""

    kind: Literal["ping", "pong", "close"]
    data: bytes = b""


@dataclass(frozen=True)
class OtherFrame:
    """Anything the transport hands us that isn't text or binary."""

    payload: Any = None


InboundFrame = Union[TextFrame, BinaryFrame, ControlFrame, OtherFrame]


def frame_from_message(message: Any) -> InboundFrame:
    """Wrap a message yielded by the websocket library.

    websockets yields ``str`` for text frames and ``bytes`` for binary frames;
    control frames are handled inside the library and never reach us.
    """
    if isinstance(message, str):
        return TextFrame(message)
    if isinstance(message, (bytes, bytearray, memoryview)):
        return BinaryFrame(bytes(message))
    return OtherFrame(message)


def classify(frame: InboundFrame) -> str | None:
    """Return the text payload of a text frame, None for every other frame."""
    if isinstance(frame, TextFrame):
        return frame.text
    return None
