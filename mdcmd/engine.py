"""Template expansion pipeline.

CommandEngine binds the pipeline stages to one immutable EngineConfig:

    parse -> substitute arguments -> resolve @file includes -> run !commands

Every stage either returns the fully expanded text or raises; a failure in any
stage abandons the expansion, so callers never see partially expanded output.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from .arguments import substitute_arguments
from .commands import execute_commands
from .config import EngineConfig
from .includes import resolve_includes
from .template_file import TemplateParser
from .types import ArgumentList, ExecutionOptions, ParsedTemplate, ValidationResult
from .validation import validate_command

logger = logging.getLogger(__name__)


class CommandEngine:
    """Expands markdown command templates under a fixed configuration."""

    def __init__(self, config: Optional[EngineConfig] = None):
        self._config = config or EngineConfig()
        self._parser = TemplateParser()

    @property
    def config(self) -> EngineConfig:
        return self._config

    def parse(self, raw: str) -> ParsedTemplate:
        return self._parser.parse(raw)

    def substitute_arguments(self, body: str, args: ArgumentList) -> str:
        return substitute_arguments(body, args)

    async def resolve_includes(self, body: str, base_path: str | Path, depth: int = 0) -> str:
        return await resolve_includes(
            body,
            base_path,
            depth,
            max_depth=self._config.max_include_depth,
        )

    def validate_command(self, command_line: str) -> ValidationResult:
        return validate_command(command_line, self._config.allowed_commands)

    async def execute_commands(self, body: str, options: Optional[ExecutionOptions] = None) -> str:
        return await execute_commands(body, options, config=self._config)

    async def expand(
        self,
        raw: str,
        args: ArgumentList = None,
        *,
        base_path: str | Path,
        cwd: Optional[str | Path] = None,
        timeout_ms: Optional[int] = None,
    ) -> str:
        """Run the full pipeline over raw template text.

        Args:
            raw: Template text, optionally with YAML front matter
            args: Values for $ARGUMENTS and $1..$9
            base_path: Directory @file includes are resolved against
            cwd: Working directory for !commands (defaults to the current one)
            timeout_ms: Per-command timeout override

        Returns:
            The fully expanded body
        """
        template = self.parse(raw)
        body = self.substitute_arguments(template.body, args)
        body = await self.resolve_includes(body, base_path)
        options = ExecutionOptions(
            cwd=Path(cwd) if cwd is not None else None,
            timeout_ms=timeout_ms,
        )
        return await self.execute_commands(body, options)

    async def expand_file(
        self,
        path: str | Path,
        args: ArgumentList = None,
        *,
        base_path: Optional[str | Path] = None,
        cwd: Optional[str | Path] = None,
        timeout_ms: Optional[int] = None,
    ) -> str:
        """Load a template file and expand it.

        Includes resolve against base_path, defaulting to the file's directory.
        """
        path = Path(path)
        raw = path.read_text(encoding="utf-8")
        logger.debug(f"Expanding command file {path}")
        return await self.expand(
            raw,
            args,
            base_path=base_path if base_path is not None else path.parent,
            cwd=cwd,
            timeout_ms=timeout_ms,
        )
