"""Path containment check for include markers."""
from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def is_path_safe(file_path: str | Path, base_path: str | Path) -> bool:
    """Return True if file_path resolves to a location strictly inside base_path.

    Both paths are resolved to absolute form (symlinks included) before
    comparison. The base directory itself, anything reached through a parent
    segment, and absolute paths elsewhere on disk are all unsafe.
    """
    base = Path(base_path).resolve()
    target = (base / file_path).resolve()

    try:
        relative = target.relative_to(base)
    except ValueError:
        logger.debug(f"Path '{file_path}' escapes base directory {base}")
        return False

    if relative == Path(".") or relative.is_absolute():
        return False
    if relative.parts and relative.parts[0] == "..":
        return False
    return True
