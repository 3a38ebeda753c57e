"""HTTP routes for the SpiderMonkey server.

Provides the search endpoint plus health and status diagnostics.
"""

from __future__ import annotations

import importlib.metadata
import os
import sys
import time
from typing import TYPE_CHECKING, Any

from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

if TYPE_CHECKING:
    from spidermonkey.daemon.lifecycle import ServerController


def _get_version() -> str:
    """Get package version from installed metadata."""
    try:
        return importlib.metadata.version("spidermonkey")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _get_runtime_info() -> dict[str, Any]:
    """Get Python runtime information."""
    return {
        "python_version": sys.version.split()[0],
        "pid": os.getpid(),
    }


def create_routes(controller: ServerController) -> list[Route]:
    """Create HTTP routes bound to the server controller."""
    start_time = time.time()
    version = _get_version()

    async def search(request: Request) -> JSONResponse:
        """Full-text search over indexed lines.

        Query params:
            text: query in the Tantivy query language. Missing, empty or
                malformed queries return an empty result list.
        """
        text = request.query_params.get("text", "")
        response = await run_in_threadpool(controller.searcher.search, text)
        return JSONResponse(response.to_dict())

    async def health(request: Request) -> JSONResponse:
        """Health check endpoint.

        Returns a quick status suitable for liveness checks.
        For detailed diagnostics, use /status instead.
        """
        _ = request  # unused
        return JSONResponse(
            {
                "status": "healthy",
                "scan_directory": str(controller.scan_root),
                "version": version,
                "uptime_seconds": round(time.time() - start_time, 1),
            }
        )

    async def status(request: Request) -> JSONResponse:
        """Detailed status endpoint with index and scheduler diagnostics."""
        _ = request  # unused
        scheduler_status = controller.scheduler.status
        synchronizer = controller.synchronizer

        response: dict[str, Any] = {
            "scan_directory": str(controller.scan_root),
            "version": version,
            "uptime_seconds": round(time.time() - start_time, 1),
            "runtime": _get_runtime_info(),
            "scheduler": {
                "state": scheduler_status.state.value,
                "interval_seconds": controller.scheduler.interval_seconds,
                "cycles_completed": scheduler_status.cycles_completed,
                "cycles_skipped": scheduler_status.cycles_skipped,
                "last_error": scheduler_status.last_error,
            },
            "index": {
                "state": synchronizer.state.value,
                "generation": synchronizer.generation,
                "tracked_files": synchronizer.tracked_count,
                "documents": await run_in_threadpool(synchronizer.doc_count),
            },
        }

        # We check the type name to avoid serializing mock objects in tests
        stats = scheduler_status.last_stats
        if stats is not None and type(stats).__name__ == "IndexStats":
            response["last_index"] = stats.to_dict()

        return JSONResponse(response)

    return [
        Route("/search", search, methods=["GET"]),
        Route("/health", health, methods=["GET"]),
        Route("/status", status, methods=["GET"]),
    ]
