"""Error types raised while expanding a command template.

Every error aborts the whole expansion. Each one carries the offending
token, path or command line both as attributes and in its message so a
rejection can be audited without re-running the template.
"""
from __future__ import annotations

from typing import Optional


class TemplateError(Exception):
    """Base class for all template expansion failures."""

    pass


class ParseError(TemplateError):
    """Raised when the front matter block cannot be parsed."""

    def __init__(self, detail: str):
        self.detail = detail
        self.message = f"Failed to parse command template: {detail}"
        super().__init__(self.message)


class DepthExceededError(TemplateError):
    """Raised when an include marker would nest past the depth limit."""

    def __init__(self, token: str, max_depth: int):
        self.token = token
        self.max_depth = max_depth
        self.message = f"Maximum include depth ({max_depth}) exceeded at '@{token}'"
        super().__init__(self.message)


class PathTraversalError(TemplateError):
    """Raised when an include marker points outside the base directory."""

    def __init__(self, path: str, base_path: str):
        self.path = path
        self.base_path = base_path
        self.message = f"Invalid file path (directory traversal detected): {path}"
        super().__init__(self.message)


class IncludeNotFoundError(TemplateError, FileNotFoundError):
    """Raised when an include marker names a file that does not exist."""

    def __init__(self, path: str):
        self.path = path
        self.message = f"File not found: {path}"
        TemplateError.__init__(self, self.message)


class CommandNotAllowedError(TemplateError):
    """Raised when a command line is rejected by the validator."""

    def __init__(self, command_line: str, reason: str):
        self.command_line = command_line
        self.reason = reason
        self.message = f"Command not allowed: {command_line} - {reason}"
        super().__init__(self.message)


class DangerousArgumentError(CommandNotAllowedError):
    """Raised when an allowlisted command carries a shell metacharacter."""

    def __init__(self, command_line: str, reason: str, argument: str):
        self.argument = argument
        super().__init__(command_line, reason)


class CommandTimeoutError(TemplateError, TimeoutError):
    """Raised when a command runs past its wall-clock timeout."""

    def __init__(self, command_line: str, timeout_ms: int):
        self.command_line = command_line
        self.timeout_ms = timeout_ms
        self.message = f"Command timeout after {timeout_ms} ms: {command_line}"
        TemplateError.__init__(self, self.message)


class ExecutionError(TemplateError):
    """Raised when a command fails to start or exits with a nonzero status."""

    def __init__(self, command_line: str, detail: str, exit_code: Optional[int] = None):
        self.command_line = command_line
        self.detail = detail
        self.exit_code = exit_code
        self.message = f"Command failed: {command_line} - {detail}"
        super().__init__(self.message)


__all__ = [
    "CommandNotAllowedError",
    "CommandTimeoutError",
    "DangerousArgumentError",
    "DepthExceededError",
    "ExecutionError",
    "IncludeNotFoundError",
    "ParseError",
    "PathTraversalError",
    "TemplateError",
]
