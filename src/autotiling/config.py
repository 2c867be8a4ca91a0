"""Configuration system for autotiling."""

from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path

import tomlkit

from autotiling.client import DEFAULT_URI
from autotiling.notification import DEFAULT_THRESHOLD


@dataclass
class ConnectionConfig:
    """Window manager IPC endpoint."""

    uri: str = DEFAULT_URI


@dataclass
class TilingConfig:
    """Toggle condition."""

    threshold: float = DEFAULT_THRESHOLD  # Toggle when tilingSize is at or below this
    inclusive: bool = True  # False compares with < instead of <=


@dataclass
class LoggingConfig:
    """Console verbosity and log file rotation."""

    verbose: bool = False  # Print lifecycle and skipped-notification lines
    log_max_bytes: int = 1024 * 1024  # Max log file size (1MB)
    log_backup_count: int = 2  # Number of backup log files to keep


def _dataclass_to_table(obj: object) -> tomlkit.items.Table:
    """Convert a dataclass instance to a tomlkit Table recursively."""
    table = tomlkit.table()
    for f in fields(obj):  # type: ignore[arg-type]
        value = getattr(obj, f.name)
        if is_dataclass(value) and not isinstance(value, type):
            table.add(f.name, _dataclass_to_table(value))
        else:
            table.add(f.name, value)
    return table


@dataclass
class Config:
    """Main configuration container."""

    connection: ConnectionConfig = field(default_factory=ConnectionConfig)
    tiling: TilingConfig = field(default_factory=TilingConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def config_dir(self) -> Path:
        """Configuration directory."""
        return Path.home() / ".config" / "autotiling"

    @property
    def config_path(self) -> Path:
        """Path to config file."""
        return self.config_dir / "config.toml"

    @property
    def state_dir(self) -> Path:
        """State directory for logs."""
        return Path.home() / ".local" / "state" / "autotiling"

    @property
    def log_path(self) -> Path:
        """Watcher log path."""
        return self.state_dir / "autotiling.log"

    def save(self, path: Path | None = None) -> None:
        """Save config to TOML file."""
        path = path or self.config_path
        path.parent.mkdir(parents=True, exist_ok=True)

        doc = tomlkit.document()
        for name in ("connection", "tiling", "logging"):
            doc.add(name, _dataclass_to_table(getattr(self, name)))
            doc.add(tomlkit.nl())

        path.write_text(tomlkit.dumps(doc))

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        """Load config from TOML file, returning defaults for missing values.

        Raises:
            ValueError: If the file can't be parsed or a value is out of range
        """
        defaults = cls()
        path = path or defaults.config_path
        if not path.exists():
            return defaults

        try:
            with open(path) as f:
                data = tomlkit.load(f)
        except tomlkit.exceptions.TOMLKitError as e:
            raise ValueError(f"Failed to parse config file {path}: {e}") from e

        return cls(
            connection=_load_connection_config(data.get("connection", {})),
            tiling=_load_tiling_config(data.get("tiling", {})),
            logging=_load_logging_config(data.get("logging", {})),
        )


def validate_uri(uri: str) -> str:
    """Return uri unchanged if it is a ws:// or wss:// URI."""
    if not isinstance(uri, str) or not uri.startswith(("ws://", "wss://")):
        raise ValueError(f"uri must start with ws:// or wss://, got {uri!r}")
    return uri


def validate_threshold(threshold: float) -> float:
    """Return threshold as float if it lies within 0..1."""
    if isinstance(threshold, bool) or not isinstance(threshold, (int, float)):
        raise ValueError(f"threshold must be a number, got {threshold!r}")
    if not 0.0 <= threshold <= 1.0:
        raise ValueError(f"threshold must be between 0 and 1, got {threshold}")
    return float(threshold)


def _load_connection_config(data: dict) -> ConnectionConfig:
    """Load connection config from TOML data."""
    d = ConnectionConfig()
    return ConnectionConfig(uri=validate_uri(data.get("uri", d.uri)))


def _load_tiling_config(data: dict) -> TilingConfig:
    """Load tiling config from TOML data."""
    d = TilingConfig()
    inclusive = data.get("inclusive", d.inclusive)
    if not isinstance(inclusive, bool):
        raise ValueError(f"inclusive must be true or false, got {inclusive!r}")
    return TilingConfig(
        threshold=validate_threshold(data.get("threshold", d.threshold)),
        inclusive=inclusive,
    )


def _load_logging_config(data: dict) -> LoggingConfig:
    """Load logging config from TOML data."""
    d = LoggingConfig()
    log_max_bytes = data.get("log_max_bytes", d.log_max_bytes)
    log_backup_count = data.get("log_backup_count", d.log_backup_count)
    verbose = data.get("verbose", d.verbose)

    if not isinstance(verbose, bool):
        raise ValueError(f"verbose must be true or false, got {verbose!r}")
    for name, value in (("log_max_bytes", log_max_bytes), ("log_backup_count", log_backup_count)):
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"{name} must be an integer, got {value!r}")
    if log_max_bytes < 1:
        raise ValueError(f"log_max_bytes must be >= 1, got {log_max_bytes}")
    if log_backup_count < 0:
        raise ValueError(f"log_backup_count must be >= 0, got {log_backup_count}")

    return LoggingConfig(
        verbose=verbose,
        log_max_bytes=log_max_bytes,
        log_backup_count=log_backup_count,
    )
