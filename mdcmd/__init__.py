"""mdcmd: markdown command templates with sandboxed command execution.

A command template is markdown with optional YAML front matter. Its body may
contain argument placeholders ($ARGUMENTS, $1..$9), `@file` include markers
and `!command` execution markers. Commands never run through a shell: each
line is tokenized, checked against an allowlist, and executed directly with a
timeout and an output cap.

Main entry points:
- mdcmd CLI: expand command files and check command lines
- CommandEngine: programmatic API bound to one EngineConfig
"""
from __future__ import annotations

from .arguments import substitute_arguments
from .commands import execute_commands
from .config import EngineConfig, load_config
from .engine import CommandEngine
from .errors import (
    CommandNotAllowedError,
    CommandTimeoutError,
    DangerousArgumentError,
    DepthExceededError,
    ExecutionError,
    IncludeNotFoundError,
    ParseError,
    PathTraversalError,
    TemplateError,
)
from .includes import resolve_includes
from .paths import is_path_safe
from .sanitize import sanitize_output
from .template_file import load_template, parse_template
from .types import (
    ExecutionOptions,
    ExecutionOutcome,
    IncludeContext,
    ParsedTemplate,
    ValidationResult,
)
from .validation import is_command_allowed, validate_command

__all__ = [
    # Engine
    "CommandEngine",
    "EngineConfig",
    "load_config",
    # Pipeline stages
    "execute_commands",
    "is_command_allowed",
    "is_path_safe",
    "load_template",
    "parse_template",
    "resolve_includes",
    "sanitize_output",
    "substitute_arguments",
    "validate_command",
    # Types
    "ExecutionOptions",
    "ExecutionOutcome",
    "IncludeContext",
    "ParsedTemplate",
    "ValidationResult",
    # Errors
    "CommandNotAllowedError",
    "CommandTimeoutError",
    "DangerousArgumentError",
    "DepthExceededError",
    "ExecutionError",
    "IncludeNotFoundError",
    "ParseError",
    "PathTraversalError",
    "TemplateError",
    # Version
    "__version__",
]

__version__ = "0.1.0"
