"""Pre-scan commands run before each resync.

Each command line is split with shell quoting rules and executed directly
(no shell), in the scan directory, one after another. The first failure
stops the sequence.
"""

from __future__ import annotations

import asyncio
import shlex
import time
from collections.abc import Sequence
from pathlib import Path

import structlog

from spidermonkey.core.errors import PreScanError

logger = structlog.get_logger()

# Tail of stderr kept in error details
_STDERR_TAIL_CHARS = 2000


async def run_command(command: str, cwd: Path) -> None:
    """Run one command line to completion.

    Raises:
        PreScanError: If the line cannot be split, the executable cannot be
            started, or it exits non-zero.
    """
    try:
        argv = shlex.split(command)
    except ValueError as e:
        raise PreScanError.invalid_command(command, str(e)) from e
    if not argv:
        return

    start_time = time.perf_counter()
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=cwd,
        )
    except OSError as e:
        raise PreScanError.command_failed(command, f"failed to start: {e}") from e

    _stdout_bytes, stderr_bytes = await proc.communicate()
    returncode = proc.returncode if proc.returncode is not None else -1
    if returncode != 0:
        stderr = stderr_bytes.decode(errors="replace").strip()
        raise PreScanError.command_failed(
            command,
            stderr[-_STDERR_TAIL_CHARS:] or f"exited with status {returncode}",
            returncode=returncode,
        )

    logger.debug(
        "prescan_command_complete",
        command=command,
        duration_s=round(time.perf_counter() - start_time, 3),
    )


async def run_pre_scan_commands(commands: Sequence[str], cwd: Path) -> None:
    """Run every command in order, stopping at the first failure."""
    for command in commands:
        await run_command(command, cwd)
