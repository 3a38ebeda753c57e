"""Server lifecycle management."""

from __future__ import annotations

import asyncio
import signal
import socket
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
import uvicorn

from spidermonkey.daemon.indexer import RescanScheduler
from spidermonkey.index.search import SearchCoordinator

if TYPE_CHECKING:
    from spidermonkey.config.models import SpiderMonkeyConfig
    from spidermonkey.index.ops import IndexSynchronizer

logger = structlog.get_logger()

_STARTUP_POLL_SEC = 0.05


@dataclass
class ServerController:
    """
    Orchestrates server components.

    Components:
    - IndexSynchronizer: Owns the index, line cache and fingerprints
    - SearchCoordinator: Query execution for /search
    - RescanScheduler: Periodic pre-scan + resync loop
    """

    synchronizer: IndexSynchronizer
    config: SpiderMonkeyConfig

    scheduler: RescanScheduler = field(init=False)
    searcher: SearchCoordinator = field(init=False)

    def __post_init__(self) -> None:
        """Initialize components."""
        self.scheduler = RescanScheduler(
            synchronizer=self.synchronizer,
            interval_seconds=self.config.scan.rescan_interval,
            pre_scan_commands=list(self.config.scan.pre_scan_commands),
        )
        self.searcher = SearchCoordinator(
            self.synchronizer,
            max_results=self.config.search.max_results,
        )

    @property
    def scan_root(self) -> Path:
        return self.synchronizer.root

    async def start(self) -> None:
        """Start all server components."""
        logger.info("server starting", scan_directory=str(self.scan_root))

        self.scheduler.start()

        base_url = f"http://{self.config.server.host}:{self.config.server.port}"
        logger.info("server started")
        logger.info("endpoint", name="search", url=f"{base_url}/search")
        logger.info("endpoint", name="health", url=f"{base_url}/health")
        logger.info("endpoint", name="status", url=f"{base_url}/status")

    async def stop(self) -> None:
        """Stop all server components gracefully."""
        logger.info("server stopping")

        # Stop with timeout to prevent hanging
        try:
            async with asyncio.timeout(self.config.server.stop_timeout_sec):
                await self.scheduler.stop()
        except TimeoutError:
            logger.warning(
                "server_stop_timeout",
                message=f"Shutdown timed out after {self.config.server.stop_timeout_sec}s",
            )

        logger.info("server stopped")


async def run_server(
    synchronizer: IndexSynchronizer,
    config: SpiderMonkeyConfig,
    on_ready: Callable[[], None] | None = None,
) -> None:
    """Serve until a shutdown signal. ``synchronizer`` must already be built.

    The socket is bound before anything else starts, so a busy port raises
    OSError here. The rescan loop starts and ``on_ready`` is called only once
    uvicorn has finished startup.
    """
    from spidermonkey.daemon.app import create_app

    controller = ServerController(synchronizer=synchronizer, config=config)
    app = create_app(controller)

    uvicorn_config = uvicorn.Config(
        app,
        host=config.server.host,
        port=config.server.port,
        log_level="warning",  # Use structlog instead
        ws="none",
    )
    server = uvicorn.Server(uvicorn_config)
    sock = _bind(config.server.host, config.server.port)

    # Setup signal handlers with force exit on second signal
    loop = asyncio.get_running_loop()
    shutdown_count = 0
    force_exit_task: asyncio.Task[None] | None = None

    async def force_exit_after_timeout() -> None:
        """Force exit if graceful shutdown takes too long."""
        await asyncio.sleep(config.server.force_exit_sec)
        logger.info("forcing_exit_after_timeout")
        server.force_exit = True

    def signal_handler() -> None:
        nonlocal shutdown_count, force_exit_task
        shutdown_count += 1
        logger.info("shutdown_signal_received", count=shutdown_count)
        server.should_exit = True
        if shutdown_count == 1:
            force_exit_task = loop.create_task(force_exit_after_timeout())
        else:
            # Second signal - force immediate exit
            server.force_exit = True
            if force_exit_task:
                force_exit_task.cancel()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler)

    serve_task = loop.create_task(server.serve(sockets=[sock]))
    try:
        if await _wait_until_started(server, serve_task):
            await controller.start()
            if on_ready is not None:
                on_ready()
        await serve_task
    finally:
        await controller.stop()
        if force_exit_task is not None:
            force_exit_task.cancel()
        sock.close()


async def _wait_until_started(server: uvicorn.Server, serve_task: asyncio.Task[None]) -> bool:
    """Wait for uvicorn to finish startup. False if serving ended first."""
    while not server.started:
        if serve_task.done():
            return False
        await asyncio.sleep(_STARTUP_POLL_SEC)
    return True


def _bind(host: str, port: int) -> socket.socket:
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    sock = socket.create_server((host, port), family=family)
    logger.debug("socket_bound", host=host, port=port)
    return sock
