"""Subprocess executor for the Remotion CLI."""

from __future__ import annotations

import asyncio
import logging
import os
import shlex
import time
from dataclasses import dataclass

from ..config import get_config
from ..errors import RenderError, SubprocessError

logger = logging.getLogger(__name__)

SIGTERM_GRACE_SECONDS = 5


@dataclass(frozen=True)
class SubprocessResult:
    """Immutable result of one Remotion CLI invocation."""

    stdout: str
    stderr: str
    returncode: int
    duration_seconds: float
    command: list[str]


def remotion_command() -> list[str]:
    """Base command from ``REMOTION_COMMAND`` (``npx remotion`` by default)."""
    parts = shlex.split(get_config().remotion_command)
    if not parts:
        raise RenderError("REMOTION_COMMAND is empty")
    return parts


async def run_remotion(
    *args: str,
    timeout: int | None = None,
    cwd: str | None = None,
) -> SubprocessResult:
    """Run ``remotion <args>`` inside the render project.

    Arguments go straight to ``asyncio.create_subprocess_exec`` (no shell).
    On timeout the process gets SIGTERM, then SIGKILL after a grace period.

    Args:
        *args: CLI arguments, e.g. ``"bundle", "index.ts", "--out-dir", "..."``.
        timeout: Max seconds to wait. Defaults to ``config.render_timeout``.
        cwd: Working directory. Defaults to the render project directory,
            where ``node_modules/remotion`` is installed.

    Raises:
        SubprocessError: on a non-zero exit code.
        RenderError: when the command cannot be started or times out.
    """
    cfg = get_config()
    if timeout is None:
        timeout = cfg.render_timeout
    if cwd is None:
        cwd = str(cfg.resolved_project_dir)

    cmd = [*remotion_command(), *args]
    logger.info("Running: %s (timeout=%ds)", " ".join(cmd[:4]), timeout)
    start = time.monotonic()

    # npx must not stop to ask before installing a missing package
    env = {**os.environ, "npm_config_yes": "true"}
    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=cwd,
            env=env,
        )
    except FileNotFoundError as exc:
        raise RenderError(f"Remotion command not found: {cmd[0]} (set REMOTION_COMMAND)") from exc

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError as exc:
        logger.warning("remotion %s timed out after %ds, sending SIGTERM", args[0] if args else "", timeout)
        proc.terminate()
        try:
            await asyncio.wait_for(proc.communicate(), timeout=SIGTERM_GRACE_SECONDS)
        except asyncio.TimeoutError:
            logger.warning("Remotion did not exit after SIGTERM, sending SIGKILL")
            proc.kill()
            await proc.communicate()
        step = args[0] if args else "command"
        raise RenderError(f"Render step '{step}' timed out after {timeout}s") from exc

    elapsed = time.monotonic() - start
    stdout = stdout_bytes.decode("utf-8", errors="replace")
    stderr = stderr_bytes.decode("utf-8", errors="replace")

    result = SubprocessResult(
        stdout=stdout,
        stderr=stderr,
        returncode=proc.returncode or 0,
        duration_seconds=round(elapsed, 2),
        command=cmd,
    )

    if result.returncode != 0:
        logger.error(
            "Remotion failed (exit %d): %s\nstderr: %s",
            result.returncode,
            " ".join(cmd[:4]),
            stderr[:500],
        )
        raise SubprocessError(cmd, result.returncode, stdout, stderr)

    logger.info("remotion %s completed in %.1fs", args[0] if args else "", elapsed)
    return result
