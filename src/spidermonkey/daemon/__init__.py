"""SpiderMonkey server - HTTP search API with periodic background rescans."""

from spidermonkey.daemon.app import create_app
from spidermonkey.daemon.indexer import RescanScheduler
from spidermonkey.daemon.lifecycle import ServerController, run_server

__all__ = [
    "RescanScheduler",
    "ServerController",
    "create_app",
    "run_server",
]
