"""CLI commands for autotiling."""

from pathlib import Path

import click


@click.group()
@click.version_option()
def main() -> None:
    """Flip the tiling direction when a window gets too narrow."""
    pass


@main.command()
@click.option("--uri", default=None, help="Window manager IPC endpoint (ws://...)")
@click.option("--threshold", type=float, default=None, help="Toggle at or below this tilingSize")
@click.option("--exclusive", is_flag=True, help="Toggle only strictly below the threshold")
@click.option("--verbose", "-v", is_flag=True, help="Print lifecycle and skipped notifications")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default ~/.config/autotiling/config.toml)",
)
def run(
    uri: str | None,
    threshold: float | None,
    exclusive: bool,
    verbose: bool,
    config_path: Path | None,
) -> None:
    """Listen for window events until the connection closes."""
    import asyncio
    from importlib.metadata import PackageNotFoundError, version

    from autotiling import logging as log
    from autotiling.client import SubscriptionError, WmConnectionError
    from autotiling.config import Config, validate_threshold, validate_uri
    from autotiling.watcher import run_watcher

    try:
        cfg = Config.load(config_path)
        if uri is not None:
            cfg.connection.uri = validate_uri(uri)
        if threshold is not None:
            cfg.tiling.threshold = validate_threshold(threshold)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    if exclusive:
        cfg.tiling.inclusive = False
    if verbose:
        cfg.logging.verbose = True

    log.configure(cfg)
    try:
        log.version_info("autotiling", version("autotiling"))
    except PackageNotFoundError:
        pass
    log.config_summary(cfg.connection.uri, cfg.tiling.threshold, cfg.tiling.inclusive)

    try:
        asyncio.run(run_watcher(cfg))
    except (WmConnectionError, SubscriptionError) as e:
        log.startup_failed(str(e))
        log.get_structlog().error("startup_failed", error=str(e))
        raise SystemExit(1)


@main.command()
@click.argument("payload")
@click.option("--threshold", type=float, default=None, help="Toggle at or below this tilingSize")
@click.option("--exclusive", is_flag=True, help="Toggle only strictly below the threshold")
def check(payload: str, threshold: float | None, exclusive: bool) -> None:
    """Evaluate a notification PAYLOAD without connecting."""
    from autotiling.config import Config, validate_threshold
    from autotiling.notification import NotificationParseError, evaluate

    try:
        cfg = Config.load()
        limit = validate_threshold(threshold) if threshold is not None else cfg.tiling.threshold
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    inclusive = cfg.tiling.inclusive and not exclusive

    try:
        decision = evaluate(payload, limit, inclusive)
    except NotificationParseError as e:
        click.echo(f"Invalid notification: {e}", err=True)
        raise SystemExit(2)

    if decision.tiling_size is None:
        click.echo("No tilingSize: no decision")
    elif decision:
        click.echo(f"tilingSize {decision.tiling_size:g}: toggle")
    else:
        click.echo(f"tilingSize {decision.tiling_size:g}: keep")


@main.group()
def config() -> None:
    """Manage configuration."""
    pass


@config.command("show")
def config_show() -> None:
    """Display current configuration."""
    from autotiling.config import Config

    try:
        cfg = Config.load()
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    click.echo(f"Config file: {cfg.config_path}")
    click.echo(f"Exists: {cfg.config_path.exists()}")
    click.echo()
    click.echo("[connection]")
    click.echo(f"  uri = {cfg.connection.uri}")
    click.echo()
    click.echo("[tiling]")
    click.echo(f"  threshold = {cfg.tiling.threshold}")
    click.echo(f"  inclusive = {str(cfg.tiling.inclusive).lower()}")
    click.echo()
    click.echo("[logging]")
    click.echo(f"  verbose = {str(cfg.logging.verbose).lower()}")
    click.echo(f"  log_max_bytes = {cfg.logging.log_max_bytes}")
    click.echo(f"  log_backup_count = {cfg.logging.log_backup_count}")


@config.command("reset")
@click.confirmation_option(prompt="Reset config to defaults?")
def config_reset() -> None:
    """Reset configuration to defaults."""
    from autotiling.config import Config

    cfg = Config()
    cfg.save()
    click.echo(f"Config reset to defaults at {cfg.config_path}")
