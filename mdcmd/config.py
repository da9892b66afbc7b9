"""Engine configuration.

Limits and the command allowlist are fixed once an engine is built. They can
be read from an optional `mdcmd.toml` in the working directory:

```toml
[engine]
max_include_depth = 3
timeout_ms = 30000
max_output_bytes = 1048576
allowed_commands = ["echo", "ls", "git"]
```
"""
from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .executor import DEFAULT_TIMEOUT_MS, MAX_OUTPUT_BYTES, default_extra_path_dirs
from .includes import DEFAULT_MAX_INCLUDE_DEPTH
from .validation import DEFAULT_ALLOWED_COMMANDS

CONFIG_FILENAMES = ("mdcmd.toml",)


class EngineConfig(BaseModel):
    """Immutable limits and allowlist for one CommandEngine."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_include_depth: int = Field(
        default=DEFAULT_MAX_INCLUDE_DEPTH,
        ge=1,
        description="Include nesting level at which further @file markers are refused",
    )
    timeout_ms: int = Field(
        default=DEFAULT_TIMEOUT_MS,
        ge=1,
        description="Wall-clock timeout per !command in milliseconds",
    )
    max_output_bytes: int = Field(
        default=MAX_OUTPUT_BYTES,
        ge=1,
        description="Captured output cap per stream in bytes",
    )
    allowed_commands: frozenset[str] = Field(
        default=DEFAULT_ALLOWED_COMMANDS,
        description="Program names !command markers may run (exact match)",
    )
    extra_path_dirs: tuple[str, ...] = Field(
        default_factory=lambda: tuple(default_extra_path_dirs()),
        description="Directories appended to PATH when running commands",
    )

    @field_validator("allowed_commands")
    @classmethod
    def _no_paths_in_allowlist(cls, value: frozenset[str]) -> frozenset[str]:
        for name in value:
            if not name or "/" in name:
                raise ValueError(f"Allowlist entries must be bare program names: {name!r}")
        return value


def load_config(base_dir: Path, path: Optional[Path] = None) -> EngineConfig:
    """Load config from an explicit file or the first match in base_dir.

    Returns the default configuration when no file exists.
    """
    candidates = [path] if path is not None else [base_dir / name for name in CONFIG_FILENAMES]

    for candidate in candidates:
        if not candidate.exists():
            if path is not None:
                raise FileNotFoundError(f"Config file not found: {candidate}")
            continue
        with candidate.open("rb") as f:
            data = tomllib.load(f)
        return EngineConfig(**_parse_engine(data.get("engine", {})))

    return EngineConfig()


def _parse_engine(raw: Any) -> dict[str, Any]:
    if not isinstance(raw, dict):
        raise ValueError("Invalid [engine] section: expected a table")
    return dict(raw)
