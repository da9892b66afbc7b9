#!/usr/bin/env python
"""Expand markdown command templates and check command lines.

Usage:
    mdcmd expand <command.md> [ARGS...]
    mdcmd expand <command.md> --metadata
    mdcmd check "git status --short"

Template syntax:
    $ARGUMENTS, $1..$9   argument placeholders
    @path/to/file        include a file (relative to --base)
    !command args        run an allowlisted command, splice in its output
"""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from .config import EngineConfig, load_config
from .config_overrides import apply_cli_overrides
from .engine import CommandEngine
from .errors import TemplateError
from .template_file import load_template

logger = logging.getLogger(__name__)

stderr_console = Console(stderr=True, soft_wrap=True)


def _configure_logging(verbosity: int) -> None:
    if verbosity <= 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG
    package_logger = logging.getLogger("mdcmd")
    package_logger.setLevel(level)
    if not any(isinstance(h, RichHandler) for h in package_logger.handlers):
        handler = RichHandler(console=stderr_console, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        package_logger.addHandler(handler)


def _build_config(args: argparse.Namespace) -> EngineConfig:
    config_path = Path(args.config) if args.config else None
    config = load_config(Path.cwd(), config_path)
    config = apply_cli_overrides(config, set_overrides=args.set_overrides)
    logger.debug(f"Engine config: {config!r}")
    return config


def _cmd_expand(args: argparse.Namespace) -> int:
    if args.metadata:
        template = load_template(args.file)
        print(json.dumps(template.metadata, indent=2, default=str))
        return 0

    engine = CommandEngine(_build_config(args))
    result = asyncio.run(engine.expand_file(
        args.file,
        args.arguments,
        base_path=args.base,
        cwd=args.cwd,
        timeout_ms=args.timeout_ms,
    ))
    sys.stdout.write(result)
    if result and not result.endswith("\n"):
        sys.stdout.write("\n")
    return 0


def _cmd_check(args: argparse.Namespace) -> int:
    engine = CommandEngine(_build_config(args))
    result = engine.validate_command(args.command_line)
    if result.allowed:
        print(f"allowed: {' '.join([result.command, *result.args])}")
        return 0
    stderr_console.print(f"[red]rejected:[/red] {escape(result.error or '')}", highlight=False)
    return 1


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mdcmd",
        description=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Log progress to stderr (-v for commands, -vv for includes and validation)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Show full tracebacks on error",
    )
    parser.add_argument(
        "--config",
        metavar="FILE",
        help="Config file (default: ./mdcmd.toml if present)",
    )
    parser.add_argument(
        "--set", "-s",
        action="append",
        dest="set_overrides",
        default=[],
        metavar="KEY=VALUE",
        help="Override engine config (e.g., --set timeout_ms=5000, --set max_include_depth=2)",
    )

    subparsers = parser.add_subparsers(dest="action", required=True)

    expand = subparsers.add_parser("expand", help="Expand a command template file")
    expand.add_argument("file", help="Command template (.md)")
    expand.add_argument("arguments", nargs="*", help="Values for $ARGUMENTS and $1..$9")
    expand.add_argument("--base", help="Directory for @file includes (default: the file's directory)")
    expand.add_argument("--cwd", help="Working directory for !commands (default: current directory)")
    expand.add_argument("--timeout-ms", type=int, help="Per-command timeout in milliseconds")
    expand.add_argument(
        "--metadata",
        action="store_true",
        help="Print the front matter as JSON instead of expanding",
    )
    expand.set_defaults(handler=_cmd_expand)

    check = subparsers.add_parser("check", help="Validate a command line against the allowlist")
    check.add_argument("command_line", help="Command line as it would follow a ! marker")
    check.set_defaults(handler=_cmd_check)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the mdcmd CLI.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        return args.handler(args)
    except TemplateError as e:
        stderr_console.print(f"Error: {e}", markup=False, highlight=False)
        if args.debug:
            raise
        return 1
    except (OSError, ValueError) as e:
        stderr_console.print(f"Error: {e}", markup=False, highlight=False)
        if args.debug:
            raise
        return 1
    except KeyboardInterrupt:
        stderr_console.print("\nAborted by user", markup=False)
        return 1


if __name__ == "__main__":
    sys.exit(main())
