"""Centralized console logging with Rich formatting.

This module provides:
1. Icon vocabulary (Icon class namespace)
2. Level-based styling
3. Core log functions (log, debug, info, warn, error)
4. Domain helpers for the watcher lifecycle (connecting, toggled, etc.)
5. Structlog configuration (configure, get_structlog)

Lifecycle chatter only reaches the console in verbose mode. Errors always
do. JSON file output via structlog is separate (machine-parseable, no colors).
"""

from __future__ import annotations

import logging
import logging.handlers
from datetime import datetime
from typing import TYPE_CHECKING

import structlog
from rich.console import Console
from rich.errors import MarkupError
from rich.markup import escape

if TYPE_CHECKING:
    from autotiling.config import Config

# Rich console for colorful human-readable output
_console = Console(highlight=False, stderr=True)

# Set by configure() or set_verbose()
_verbose = False


# ─────────────────────────────────────────────────────────────────────────────
# Icons
# ─────────────────────────────────────────────────────────────────────────────


class Icon:
    """Icon vocabulary for console output."""

    OK = "[bold green]✓[/]"
    FAIL = "[bold red]✗[/]"
    WAIT = "⏳"
    SIGNAL = "⚡"
    TOGGLE = "[cyan]⇄[/]"
    CONNECTED = "[green]⬤[/]"
    DISCONNECTED = "[red]⬤[/]"


# ─────────────────────────────────────────────────────────────────────────────
# Level Styles
# ─────────────────────────────────────────────────────────────────────────────

_LEVEL_STYLES = {
    "debug": "[dim]\\[dbg][/] ",
    "info": "[bright_blue]\\[info][/]",
    "warn": "[yellow]\\[warn][/]",
    "error": "[bold red]\\[err][/] ",
}

# Levels printed even when not verbose
_ALWAYS_SHOWN = {"warn", "error"}


# ─────────────────────────────────────────────────────────────────────────────
# Core Functions
# ─────────────────────────────────────────────────────────────────────────────


def set_verbose(verbose: bool) -> None:
    """Toggle console output of debug/info lines."""
    global _verbose
    _verbose = verbose


def is_verbose() -> bool:
    return _verbose


def log(level: str, msg: str, icon: str = "") -> None:
    """Print a log message with timestamp and level.

    Never raises: a broken console must not take the watcher down.

    Args:
        level: Log level (debug, info, warn, error)
        msg: Message to print (can include Rich markup)
        icon: Optional icon to show after level (e.g., Icon.OK)
    """
    if level not in _ALWAYS_SHOWN and not _verbose:
        return
    ts = datetime.now().strftime("%H:%M:%S")
    lvl = _LEVEL_STYLES.get(level, f"[{level}]")
    icon_part = f" {icon}" if icon else ""
    try:
        _console.print(f"[dim]{ts}[/] {lvl}{icon_part} {msg}")
    except (OSError, ValueError, MarkupError):
        pass


def debug(msg: str, icon: str = "") -> None:
    """Log a debug message."""
    log("debug", msg, icon)


def info(msg: str, icon: str = "") -> None:
    """Log an info message."""
    log("info", msg, icon)


def warn(msg: str, icon: str = "") -> None:
    """Log a warning message."""
    log("warn", msg, icon)


def error(msg: str, icon: str = "") -> None:
    """Log an error message."""
    log("error", msg, icon)


# ─────────────────────────────────────────────────────────────────────────────
# Domain Helpers
# ─────────────────────────────────────────────────────────────────────────────


def connecting(uri: str) -> None:
    """Log connection attempt."""
    info(f"Attempting to connect to [cyan]{escape(uri)}[/]", Icon.WAIT)


def connected(uri: str) -> None:
    """Log connection established."""
    info(f"Successfully connected to [cyan]{escape(uri)}[/]", Icon.CONNECTED)


def subscribed() -> None:
    """Log subscription frame sent."""
    info("Subscribed to [bold]window_managed[/] events", Icon.OK)


def toggled(tiling_size: float | None = None) -> None:
    """Log toggle command sent, with the size that triggered it."""
    context = f" [dim](tilingSize {tiling_size:g})[/]" if tiling_size is not None else ""
    info(f"Toggled [bold]tiling direction[/]{context}", Icon.TOGGLE)


def tiling_error(msg: str) -> None:
    """Log a notification that couldn't be evaluated (routine, debug only)."""
    debug(f"Skipped notification: {escape(msg)}")


def websocket_error(msg: str) -> None:
    """Log a transport failure that ends the watcher."""
    error(f"Error while listening to WM events: {escape(msg)}", Icon.FAIL)


def stream_ended() -> None:
    """Log peer closing the stream."""
    info("[dim]Stream closed by window manager[/]")


def disconnected() -> None:
    """Log connection closed."""
    info("WebSocket connection closed.", Icon.DISCONNECTED)


def signal_received(name: str) -> None:
    """Log signal received."""
    info(f"Received [bold]{name}[/]", Icon.SIGNAL)


def startup_failed(msg: str) -> None:
    """Log connect/subscribe failure."""
    error(f"Startup failed: {escape(msg)}", Icon.FAIL)


def version_info(name: str, version: str) -> None:
    """Log version info."""
    info(f"[bold cyan]{name}[/] v{version}")


def config_summary(uri: str, threshold: float, inclusive: bool) -> None:
    """Log effective settings."""
    op = "≤" if inclusive else "<"
    info(
        f"Config: uri=[cyan]{escape(uri)}[/], "
        f"toggle when tilingSize {op} [cyan]{threshold:g}[/]"
    )


# ─────────────────────────────────────────────────────────────────────────────
# Structlog Configuration
# ─────────────────────────────────────────────────────────────────────────────


def _add_source(source: str) -> structlog.types.Processor:
    """Create a processor that adds a source field to log events."""

    def processor(
        logger: structlog.types.WrappedLogger,
        method_name: str,
        event_dict: structlog.types.EventDict,
    ) -> structlog.types.EventDict:
        event_dict["source"] = source
        return event_dict

    return processor


def configure(config: Config) -> None:
    """Configure structlog for JSON Lines file output.

    Console output is handled by the Rich helpers above; structlog only
    writes to the rotating log file.

    Args:
        config: Application config with paths and logging settings
    """
    set_verbose(config.logging.verbose)

    config.state_dir.mkdir(parents=True, exist_ok=True)

    file_handler = logging.handlers.RotatingFileHandler(
        config.log_path,
        maxBytes=config.logging.log_max_bytes,
        backupCount=config.logging.log_backup_count,
        encoding="utf-8",
    )
    level = logging.DEBUG if config.logging.verbose else logging.INFO
    file_handler.setLevel(level)

    stdlib_root = logging.getLogger()
    stdlib_root.setLevel(level)
    stdlib_root.handlers.clear()

    file_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.processors.JSONRenderer(),
            foreign_pre_chain=[
                structlog.contextvars.merge_contextvars,
                structlog.processors.TimeStamper(fmt="iso", utc=False, key="ts"),
                structlog.processors.add_log_level,
                _add_source("watcher"),
                structlog.processors.format_exc_info,
            ],
        )
    )
    stdlib_root.addHandler(file_handler)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.processors.TimeStamper(fmt="iso", utc=False, key="ts"),
            structlog.processors.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_structlog() -> structlog.stdlib.BoundLogger:
    """Get a structlog logger instance.

    Returns a logger for structured JSON file output. For human-readable
    console output, use the domain helpers instead.
    """
    return structlog.get_logger()
