"""SpiderMonkey CLI - spidermonkey command.

Builds the index for one directory tree, then serves /search over HTTP while
rescanning in the background.
"""

import asyncio
from pathlib import Path
from typing import Any

import click

from spidermonkey import __version__
from spidermonkey.config.loader import load_config
from spidermonkey.config.models import SpiderMonkeyConfig
from spidermonkey.core.errors import SpiderMonkeyError
from spidermonkey.core.logging import configure_logging
from spidermonkey.core.progress import get_console, pluralize, status, task

_BANNER_WIDTH = 64


def _build_overrides(
    directory: Path | None, endpoint: str | None, interval: str | None
) -> dict[str, dict[str, Any]]:
    """Turn CLI flags into config section overrides."""
    overrides: dict[str, dict[str, Any]] = {}
    if directory is not None:
        overrides.setdefault("scan", {})["scan_directory"] = str(directory)
    if interval is not None:
        overrides.setdefault("scan", {})["rescan_interval"] = interval
    if endpoint is not None:
        overrides["server"] = {"endpoint": endpoint}
    return overrides


def _print_banner(config: SpiderMonkeyConfig) -> None:
    """Print the ready banner with endpoint info using Rich."""
    console = get_console()
    rule_line = "─" * _BANNER_WIDTH
    base_url = f"http://{config.server.host}:{config.server.port}"

    console.print()
    console.print(rule_line, style="dim cyan", highlight=False)
    console.print(
        f"SpiderMonkey v{__version__} · Ready".center(_BANNER_WIDTH),
        style="bold cyan",
        highlight=False,
    )
    console.print(rule_line, style="dim cyan", highlight=False)
    console.print()

    console.print(f"  Search:          {base_url}/search?text=", style="green", highlight=False)
    console.print(f"  Health Check:    {base_url}/health", highlight=False)
    console.print(f"  Status:          {base_url}/status", highlight=False)
    console.print(f"  Directory:       {config.scan.scan_directory}", style="dim", highlight=False)
    console.print(
        f"  Rescan Interval: {config.scan.rescan_interval:g}s", style="dim", highlight=False
    )
    console.print()


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="spidermonkey")
@click.option(
    "-d",
    "--directory",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory to index and serve",
)
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="YAML configuration file",
)
@click.option("-e", "--endpoint", help="Bind address as HOST:PORT (default: 127.0.0.1:3000)")
@click.option("--interval", help="Time between rescans, e.g. 30s, 5m, 1h 30m")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def cli(
    directory: Path | None,
    config_path: Path | None,
    endpoint: str | None,
    interval: str | None,
    verbose: bool,
) -> None:
    """SpiderMonkey - line-level full-text search over a directory tree.

    Exactly one of --directory or --config is required. --endpoint and
    --interval override values from the config file.
    """
    if (directory is None) == (config_path is None):
        raise click.UsageError("Exactly one of --directory/-d or --config/-c is required.")

    configure_logging(level="DEBUG" if verbose else "INFO")

    try:
        config = load_config(config_path, **_build_overrides(directory, endpoint, interval))
    except SpiderMonkeyError as e:
        raise click.ClickException(e.message) from e

    logging_config = config.logging
    if verbose:
        logging_config = logging_config.model_copy(update={"level": "DEBUG"})
    configure_logging(config=logging_config)

    from spidermonkey.daemon.lifecycle import run_server
    from spidermonkey.index.ops import IndexSynchronizer

    synchronizer = IndexSynchronizer.from_config(config)
    try:
        with task("Building index"):
            stats = synchronizer.build_full()
    except SpiderMonkeyError as e:
        raise click.ClickException(e.message) from e

    files = pluralize(stats.files_added, "file")
    summary = f"Indexed {files}, {pluralize(stats.lines_indexed, 'line')}"
    if stats.files_failed:
        summary += f" ({stats.files_failed} unreadable)"
    status(summary, style="info")

    try:
        asyncio.run(run_server(synchronizer, config, on_ready=lambda: _print_banner(config)))
    except KeyboardInterrupt:
        click.echo("\nStopped")
    except OSError as e:
        raise click.ClickException(f"Failed to serve on {config.server.endpoint}: {e}") from e


if __name__ == "__main__":
    cli()
