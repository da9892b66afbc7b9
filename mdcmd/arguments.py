"""Argument placeholder substitution ($ARGUMENTS, $1..$9)."""
from __future__ import annotations

import re

from .types import ArgumentList

MAX_POSITIONAL = 9

# One pass over the body so substituted values are never rescanned.
PLACEHOLDER_PATTERN = re.compile(r"\$(ARGUMENTS|[1-9])")


def normalize_arguments(args: ArgumentList) -> list[str]:
    """Return args as a list; a bare string becomes a one-element list."""
    if args is None:
        return []
    if isinstance(args, str):
        return [args] if args else []
    return [str(arg) for arg in args]


def substitute_arguments(body: str, args: ArgumentList) -> str:
    """Replace argument placeholders in a template body.

    `$ARGUMENTS` becomes all arguments joined by a space. `$1` through `$9`
    become the matching positional argument, or an empty string when the
    caller supplied fewer arguments.
    """
    if not body:
        return body

    values = normalize_arguments(args)
    joined = " ".join(values)

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name == "ARGUMENTS":
            return joined
        index = int(name)
        return values[index - 1] if index <= len(values) else ""

    return PLACEHOLDER_PATTERN.sub(_replace, body)
