# src/autotiling/notification.py
"""Window-managed notification payloads and the toggle threshold.

Notifications look like::

    {"data": {"managedWindow": {"tilingSize": 0.5}}}

Every level is optional. Most traffic on the event stream carries no
tiling size at all, so "absent" is an ordinary outcome, not an error.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

DEFAULT_THRESHOLD = 0.5


class NotificationParseError(ValueError):
    """Payload is not JSON, or a level has the wrong type."""


@dataclass(frozen=True)
class ManagedWindow:
    tiling_size: float | None = None


@dataclass(frozen=True)
class NotificationData:
    managed_window: ManagedWindow | None = None


@dataclass(frozen=True)
class NotificationDocument:
    """Parsed notification. Any level may be None."""

    data: NotificationData | None = None

    @property
    def tiling_size(self) -> float | None:
        """Walk data -> managedWindow -> tilingSize, None at the first gap."""
        if self.data is None:
            return None
        if self.data.managed_window is None:
            return None
        return self.data.managed_window.tiling_size

    @classmethod
    def from_json(cls, text: str) -> NotificationDocument:
        """Parse a notification payload.

        Raises:
            NotificationParseError: If text isn't JSON or a level is mistyped
        """
        try:
            # Integers parse straight to float: huge literals become inf, not errors
            raw = json.loads(text, parse_int=float)
        except (ValueError, TypeError, RecursionError) as e:
            raise NotificationParseError(f"Invalid JSON: {e}") from e

        root = _as_object(raw, "root")
        data = _as_object(root.get("data"), "data")
        if data is None:
            return cls()

        window = _as_object(data.get("managedWindow"), "data.managedWindow")
        if window is None:
            return cls(data=NotificationData())

        size = window.get("tilingSize")
        # bool is an int subclass; JSON true/false is not a size
        if size is not None and (isinstance(size, bool) or not isinstance(size, (int, float))):
            raise NotificationParseError(
                f"data.managedWindow.tilingSize: expected number, got {type(size).__name__}"
            )

        return cls(
            data=NotificationData(
                managed_window=ManagedWindow(tiling_size=None if size is None else float(size))
            )
        )


def _as_object(value: Any, path: str) -> dict[str, Any] | None:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise NotificationParseError(f"{path}: expected object, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class ToggleDecision:
    """Whether to toggle, plus the size that drove the decision."""

    toggle: bool
    tiling_size: float | None = None

    def __bool__(self) -> bool:
        return self.toggle


def should_toggle(
    tiling_size: float, threshold: float = DEFAULT_THRESHOLD, inclusive: bool = True
) -> bool:
    """Compare a tiling size against the threshold."""
    if inclusive:
        return tiling_size <= threshold
    return tiling_size < threshold


def evaluate(
    text: str,
    threshold: float = DEFAULT_THRESHOLD,
    inclusive: bool = True,
) -> ToggleDecision:
    """Decide whether a notification payload should trigger a toggle.

    Stateless: identical payloads always yield identical decisions.

    Args:
        text: Raw text frame payload
        threshold: Tiling size at or below which the direction is toggled
        inclusive: Compare with <= (default) instead of <

    Returns:
        ToggleDecision; falsy when tilingSize is absent or above threshold

    Raises:
        NotificationParseError: If the payload is malformed
    """
    size = NotificationDocument.from_json(text).tiling_size
    if size is None:
        return ToggleDecision(toggle=False)
    return ToggleDecision(toggle=should_toggle(size, threshold, inclusive), tiling_size=size)
