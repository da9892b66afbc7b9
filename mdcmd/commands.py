"""Expansion of `!command` markers.

A marker is a `!` at the start of the body or of any line; the rest of that
line is the command. Each command is validated, run in the sandbox, and its
sanitized output replaces the marker. Markers run one after another in
document order, and the first rejection or failure aborts the whole pass.
"""
from __future__ import annotations

import logging
import re
from typing import Optional

from .config import EngineConfig
from .errors import CommandNotAllowedError, DangerousArgumentError
from .executor import run_command
from .sanitize import sanitize_output
from .types import ExecutionOptions
from .validation import validate_command

logger = logging.getLogger(__name__)

COMMAND_PATTERN = re.compile(r"(^|\n)!(.+)")


async def run_marker(
    command_line: str,
    options: ExecutionOptions,
    config: EngineConfig,
) -> str:
    """Validate and run one marker's command line, returning sanitized output.

    Raises:
        DangerousArgumentError: If an argument carries a shell metacharacter
        CommandNotAllowedError: For any other validation rejection
        CommandTimeoutError: If the command outlives its timeout
        ExecutionError: If the command fails to start or exits nonzero
    """
    validation = validate_command(command_line, config.allowed_commands)
    if not validation.allowed:
        reason = validation.error or "rejected"
        if validation.offending_argument is not None:
            raise DangerousArgumentError(command_line, reason, validation.offending_argument)
        raise CommandNotAllowedError(command_line, reason)

    timeout_ms = options.timeout_ms if options.timeout_ms is not None else config.timeout_ms
    outcome = await run_command(
        validation.command,
        validation.args,
        cwd=options.cwd,
        timeout_ms=timeout_ms,
        max_output_bytes=config.max_output_bytes,
        extra_path_dirs=config.extra_path_dirs,
        command_line=command_line,
    )
    return sanitize_output(outcome.text)


async def execute_commands(
    body: str,
    options: Optional[ExecutionOptions] = None,
    *,
    config: Optional[EngineConfig] = None,
) -> str:
    """Replace every `!command` marker in body with the command's output.

    Args:
        body: Template text containing command markers
        options: Working directory and timeout for this call
        config: Allowlist and limits (defaults to EngineConfig())

    Returns:
        The body with each marker replaced by its sanitized output; a marker
        that began with a newline keeps that newline
    """
    if not body:
        return body
    options = options or ExecutionOptions()
    config = config or EngineConfig()

    pieces: list[str] = []
    cursor = 0
    for match in COMMAND_PATTERN.finditer(body):
        leading, command_line = match.group(1), match.group(2).strip()
        output = await run_marker(command_line, options, config)

        pieces.append(body[cursor:match.start()])
        pieces.append(leading + output)
        cursor = match.end()

    if not pieces:
        return body
    pieces.append(body[cursor:])
    return "".join(pieces)
