"""CLI configuration overrides (`--set KEY=VALUE`).

Overrides are applied once, when the engine is built at startup, and the
result is validated like any other EngineConfig.
"""
from __future__ import annotations

import json
from typing import Any, List

from pydantic import ValidationError

from .config import EngineConfig


def parse_set_override(override: str) -> tuple[str, Any]:
    """Split a --set KEY=VALUE override into key and value.

    The value is read as JSON when it parses (numbers, lists of program
    names) and kept as a plain string otherwise. Pydantic coerces the result
    to the field's type.

    Raises:
        ValueError: If override has no '=' or an empty key

    Examples:
        >>> parse_set_override("timeout_ms=5000")
        ('timeout_ms', 5000)
        >>> parse_set_override('allowed_commands=["echo", "ls"]')
        ('allowed_commands', ['echo', 'ls'])
    """
    key, sep, raw_value = override.partition("=")
    if not sep:
        raise ValueError(
            f"Invalid --set format: {override!r}. Expected KEY=VALUE "
            f"(e.g., --set timeout_ms=5000)"
        )
    key = key.strip()
    if not key:
        raise ValueError(f"Empty key in --set: {override!r}")

    raw_value = raw_value.strip()
    try:
        return key, json.loads(raw_value)
    except ValueError:
        return key, raw_value


def apply_cli_overrides(config: EngineConfig, *, set_overrides: List[str]) -> EngineConfig:
    """Return a new EngineConfig with --set overrides applied (last one wins).

    Raises:
        ValueError: If an override is malformed, names an unknown field, or
            produces an invalid configuration
    """
    if not set_overrides:
        return config

    data = config.model_dump(mode="python")
    for override in set_overrides:
        key, value = parse_set_override(override)
        if key not in EngineConfig.model_fields:
            known = ", ".join(sorted(EngineConfig.model_fields))
            raise ValueError(f"Unknown config key {key!r} in --set. Known keys: {known}")
        data[key] = value

    try:
        return EngineConfig.model_validate(data)
    except ValidationError as e:
        raise ValueError(
            f"Overrides resulted in invalid configuration: {e}\n"
            f"Applied overrides: {set_overrides}"
        ) from e
