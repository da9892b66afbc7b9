"""Sandboxed execution of validated commands.

Commands run as a direct process invocation (never through a shell) with:
- A hard wall-clock timeout that kills the child
- A per-stream output cap; overflowing output kills the child and is truncated
- The inherited environment, with PATH extended by a few well-known
  user-local install locations so tools installed there stay reachable

Callers must pass the command name and arguments produced by
`validation.validate_command`; this module does not re-validate them.
"""
from __future__ import annotations

import asyncio
import glob
import logging
import os
import shlex
from pathlib import Path
from typing import Mapping, Optional, Sequence

from .errors import CommandTimeoutError, ExecutionError
from .types import ExecutionOutcome

logger = logging.getLogger(__name__)

# Default timeout in milliseconds
DEFAULT_TIMEOUT_MS = 30_000

# Maximum captured output per stream (1 MiB)
MAX_OUTPUT_BYTES = 1024 * 1024

TRUNCATION_NOTICE = "\n... (output truncated)"

_READ_CHUNK = 64 * 1024


def default_extra_path_dirs(home: Optional[str] = None) -> list[str]:
    """Return the directories appended to PATH for command lookup.

    Node version manager installs are expanded to the versions that exist.
    """
    if home is None:
        home = os.environ.get("HOME")

    dirs: list[str] = []
    if home:
        dirs.append(os.path.join(home, ".local", "bin"))
        dirs.extend(sorted(glob.glob(os.path.join(home, ".nvm", "versions", "node", "*", "bin"))))
    dirs.extend(["/usr/local/bin", "/usr/bin"])
    return dirs


def build_search_path(current: Optional[str], extra_dirs: Sequence[str]) -> str:
    """Append extra_dirs to a PATH value, keeping order and dropping duplicates."""
    entries = [entry for entry in (current or "").split(os.pathsep) if entry]
    for directory in extra_dirs:
        if directory and directory not in entries:
            entries.append(directory)
    return os.pathsep.join(entries)


def build_environment(
    extra_dirs: Sequence[str],
    base_env: Optional[Mapping[str, str]] = None,
) -> dict[str, str]:
    """Copy the environment with PATH augmented, never replaced."""
    env = dict(os.environ if base_env is None else base_env)
    env["PATH"] = build_search_path(env.get("PATH"), extra_dirs)
    return env


def _kill(process: asyncio.subprocess.Process) -> None:
    if process.returncode is None:
        try:
            process.kill()
        except ProcessLookupError:
            pass


async def _read_capped(
    stream: Optional[asyncio.StreamReader],
    limit: int,
    process: asyncio.subprocess.Process,
) -> tuple[bytes, bool]:
    """Read a stream up to limit bytes; kill the process on overflow."""
    if stream is None:
        return b"", False

    buffer = bytearray()
    while True:
        chunk = await stream.read(_READ_CHUNK)
        if not chunk:
            return bytes(buffer), False
        room = limit - len(buffer)
        if len(chunk) > room:
            buffer.extend(chunk[:room])
            logger.warning(f"Output exceeded {limit} bytes, killing process {process.pid}")
            _kill(process)
            return bytes(buffer), True
        buffer.extend(chunk)


async def _collect(
    process: asyncio.subprocess.Process,
    limit: int,
) -> tuple[bytes, bytes, bool, int]:
    (stdout, out_truncated), (stderr, err_truncated) = await asyncio.gather(
        _read_capped(process.stdout, limit, process),
        _read_capped(process.stderr, limit, process),
    )
    exit_code = await process.wait()
    return stdout, stderr, out_truncated or err_truncated, exit_code


def _decode(data: bytes, truncated: bool) -> str:
    text = data.decode("utf-8", errors="replace")
    return text + TRUNCATION_NOTICE if truncated else text


async def run_command(
    command: str,
    args: Sequence[str] = (),
    *,
    cwd: Optional[str | Path] = None,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
    max_output_bytes: int = MAX_OUTPUT_BYTES,
    extra_path_dirs: Optional[Sequence[str]] = None,
    command_line: Optional[str] = None,
) -> ExecutionOutcome:
    """Run a validated command and capture its output.

    Args:
        command: Program name (already allowlisted)
        args: Arguments (already checked for metacharacters)
        cwd: Working directory (defaults to the current directory)
        timeout_ms: Wall-clock limit in milliseconds
        max_output_bytes: Cap on captured bytes per stream
        extra_path_dirs: Directories appended to PATH (defaults to
            default_extra_path_dirs())
        command_line: Text reported in errors (defaults to the joined argv)

    Returns:
        ExecutionOutcome with decoded stdout/stderr

    Raises:
        CommandTimeoutError: If the process outlives timeout_ms
        ExecutionError: If the process cannot start or exits nonzero
    """
    argv = [command, *args]
    if command_line is None:
        command_line = shlex.join(argv)
    if extra_path_dirs is None:
        extra_path_dirs = default_extra_path_dirs()
    env = build_environment(extra_path_dirs)

    logger.info(f"Executing command: {argv}")

    try:
        process = await asyncio.create_subprocess_exec(
            *argv,
            cwd=cwd,
            env=env,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        raise ExecutionError(command_line, str(exc)) from exc

    try:
        stdout, stderr, truncated, exit_code = await asyncio.wait_for(
            _collect(process, max_output_bytes),
            timeout=timeout_ms / 1000,
        )
    except asyncio.TimeoutError:
        logger.warning(f"Command timed out after {timeout_ms} ms: {command_line}")
        raise CommandTimeoutError(command_line, timeout_ms) from None
    finally:
        # Timeout or cancellation of the awaiting task must not orphan the child
        if process.returncode is None:
            _kill(process)
            await process.wait()

    if exit_code != 0 and not truncated:
        detail = stderr.decode("utf-8", errors="replace").strip() or f"exit code {exit_code}"
        raise ExecutionError(command_line, detail, exit_code=exit_code)

    return ExecutionOutcome(
        stdout=_decode(stdout, truncated and len(stdout) >= max_output_bytes),
        stderr=_decode(stderr, truncated and len(stderr) >= max_output_bytes),
        exit_code=exit_code,
        truncated=truncated,
    )
