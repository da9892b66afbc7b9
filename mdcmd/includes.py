"""Recursive expansion of `@file` include markers.

A marker is `@` followed by a run of non-whitespace characters, either at the
start of a line or right after whitespace. Each marker is replaced with the
contents of the referenced file, whose own markers are expanded in turn, up to
a fixed nesting depth. Paths are resolved against a single base directory for
the whole tree and must stay inside it.
"""
from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path

from .errors import DepthExceededError, IncludeNotFoundError, PathTraversalError
from .paths import is_path_safe
from .types import IncludeContext

logger = logging.getLogger(__name__)

DEFAULT_MAX_INCLUDE_DEPTH = 3

INCLUDE_PATTERN = re.compile(r"(^|\s)@(\S+)", re.MULTILINE)


async def _read_include(path: Path, token: str) -> str:
    try:
        return await asyncio.to_thread(path.read_text, encoding="utf-8")
    except FileNotFoundError as exc:
        raise IncludeNotFoundError(token) from exc


async def _expand(body: str, context: IncludeContext, max_depth: int) -> str:
    pieces: list[str] = []
    cursor = 0

    for match in INCLUDE_PATTERN.finditer(body):
        leading, token = match.group(1), match.group(2)

        if context.depth >= max_depth:
            raise DepthExceededError(token, max_depth)

        if not is_path_safe(token, context.base_path):
            logger.warning(f"Rejected include outside {context.base_path}: {token}")
            raise PathTraversalError(token, str(context.base_path))

        logger.debug(f"Including '{token}' at depth {context.depth}")
        content = await _read_include(context.base_path / token, token)
        expanded = await _expand(content, context.child(), max_depth)

        pieces.append(body[cursor:match.start()])
        pieces.append(leading + expanded)
        cursor = match.end()

    if not pieces:
        return body
    pieces.append(body[cursor:])
    return "".join(pieces)


async def resolve_includes(
    body: str,
    base_path: str | Path,
    depth: int = 0,
    *,
    max_depth: int = DEFAULT_MAX_INCLUDE_DEPTH,
) -> str:
    """Expand every `@file` marker in body.

    Markers are resolved one at a time in document order. The result is
    assembled from the offsets of a single scan, so text pulled in by one
    include is never mistaken for a later marker in the parent.

    Args:
        body: Template text containing include markers
        base_path: Directory all include paths are resolved against
        depth: Nesting level of body (0 for the top-level template)
        max_depth: Level at which a further include is refused

    Returns:
        The body with all includes expanded

    Raises:
        DepthExceededError: If a marker appears at depth >= max_depth
        PathTraversalError: If a marker points outside base_path
        IncludeNotFoundError: If a referenced file does not exist
        OSError: For any other read failure
    """
    if not body:
        return body
    context = IncludeContext(base_path=Path(base_path), depth=depth)
    return await _expand(body, context, max_depth)
