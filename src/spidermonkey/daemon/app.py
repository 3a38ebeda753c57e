"""Starlette application factory."""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware

from spidermonkey.daemon.middleware import REQUEST_ID_HEADER, RequestIdMiddleware
from spidermonkey.daemon.routes import create_routes

if TYPE_CHECKING:
    from spidermonkey.daemon.lifecycle import ServerController


def create_app(controller: ServerController) -> Starlette:
    """Create the Starlette application serving search and diagnostics."""
    app = Starlette(routes=create_routes(controller))

    # Outermost last: CORS answers preflight before request ids are minted
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )

    return app
