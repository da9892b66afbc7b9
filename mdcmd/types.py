"""Data models shared across the expansion pipeline."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Sequence, Union

from pydantic import BaseModel, Field

# A caller may pass a single string where a list is expected.
ArgumentList = Union[str, Sequence[str], None]


@dataclass(frozen=True)
class ParsedTemplate:
    """A command template split into front matter and body.

    Created once per template load and never mutated afterwards.
    """

    metadata: dict[str, Any] = field(default_factory=dict)
    body: str = ""
    raw: str = ""

    @property
    def description(self) -> Optional[str]:
        value = self.metadata.get("description")
        return str(value) if value is not None else None

    @property
    def argument_hint(self) -> Optional[str]:
        value = self.metadata.get("argument-hint")
        return str(value) if value is not None else None


@dataclass(frozen=True)
class IncludeContext:
    """Position of one include expansion in the nesting tree."""

    base_path: Path
    depth: int = 0

    def child(self) -> IncludeContext:
        return IncludeContext(base_path=self.base_path, depth=self.depth + 1)


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one command line.

    `offending_argument` is only set when the command itself is allowed but
    one of its arguments carries a shell metacharacter.
    """

    allowed: bool
    command: str = ""
    args: tuple[str, ...] = ()
    error: Optional[str] = None
    offending_argument: Optional[str] = None


class ExecutionOutcome(BaseModel):
    """Captured output of one sandboxed command."""

    stdout: str
    stderr: str
    exit_code: int
    truncated: bool = False  # True if either stream hit the output cap

    @property
    def text(self) -> str:
        """Stdout, or stderr when the command wrote nothing to stdout."""
        return self.stdout or self.stderr or ""


class ExecutionOptions(BaseModel):
    """Per-call options for the command expansion pass.

    Unset fields fall back to the engine configuration.
    """

    cwd: Optional[Path] = Field(default=None, description="Working directory for commands")
    timeout_ms: Optional[int] = Field(
        default=None, ge=1, description="Wall-clock timeout per command in milliseconds"
    )


__all__ = [
    "ArgumentList",
    "ExecutionOptions",
    "ExecutionOutcome",
    "IncludeContext",
    "ParsedTemplate",
    "ValidationResult",
]
