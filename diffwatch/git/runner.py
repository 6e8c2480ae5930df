"""Async git subprocess runner.

Spawns ``git -C <root> ...`` without a shell and decodes output leniently.
Spawn failures, timeouts and unexpected exit codes surface as
``GitCommandError`` so callers can choose their own fallback value.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Collection
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_GIT_TIMEOUT_SECONDS = 5.0


class GitCommandError(Exception):
    """A git invocation could not run or exited with an unexpected code."""

    def __init__(self, args: list[str], returncode: int | None, stderr: str = "") -> None:
        self.args_list = list(args)
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip() or (f"exit code {returncode}" if returncode is not None else "did not run")
        super().__init__(f"git {' '.join(args)}: {detail}")


@dataclass(frozen=True)
class GitResult:
    returncode: int
    stdout: str
    stderr: str


def _decode(data: bytes | None) -> str:
    if not data:
        return ""
    return data.decode("utf-8", errors="replace")


async def run_git(
    cwd: Path,
    args: list[str],
    *,
    timeout_seconds: float = DEFAULT_GIT_TIMEOUT_SECONDS,
    ok_returncodes: Collection[int] = (0,),
) -> GitResult:
    """Run ``git -C cwd *args`` and return its decoded output."""
    command = ["git", "-C", str(cwd), *args]
    try:
        proc = await asyncio.create_subprocess_exec(
            *command,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        raise GitCommandError(args, None, str(exc)) from exc

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout_seconds)
    except asyncio.TimeoutError as exc:
        proc.kill()
        await proc.wait()
        raise GitCommandError(args, None, f"timed out after {timeout_seconds:g}s") from exc
    except asyncio.CancelledError:
        if proc.returncode is None:
            proc.kill()
        raise

    result = GitResult(returncode=proc.returncode or 0, stdout=_decode(stdout), stderr=_decode(stderr))
    if result.returncode not in ok_returncodes:
        logger.debug("git %s exited %d: %s", " ".join(args), result.returncode, result.stderr.strip())
        raise GitCommandError(args, result.returncode, result.stderr)
    return result


__all__ = [
    "DEFAULT_GIT_TIMEOUT_SECONDS",
    "GitCommandError",
    "GitResult",
    "run_git",
]
