"""Command line validation for `!command` markers.

This module is the only gate between template text and process execution:
- A quote-aware tokenizer that never hands the line to a shell
- Rejection of shell operators (&&, ||, |, ;, redirection, subshells)
- Exact-match allowlisting of the command's base name
- Rejection of arguments carrying shell metacharacters

Everything here is pure; nothing touches the filesystem or spawns a process.
"""
from __future__ import annotations

import logging
import os
from typing import Iterable, List, NamedTuple, Optional

from .types import ValidationResult

logger = logging.getLogger(__name__)

DEFAULT_ALLOWED_COMMANDS = frozenset([
    "echo",
    "ls",
    "pwd",
    "date",
    "whoami",
    "git",
    "npm",
    "node",
    "cat",
    "grep",
    "find",
    "task-master",
])

# Characters an argument may not contain, even inside quotes
DANGEROUS_ARGUMENT_CHARACTERS = frozenset(";&|`$()<>{}[]\\")

# Longest first, so "&&" wins over "&"
SHELL_OPERATORS = (
    "<<<", "&&", "||", "|&", ";;", ">>", "<<", ">&", "<&", "&>", ">|", "<>",
    "|", "&", ";", "<", ">", "(", ")",
)

_OPERATOR_START = frozenset("|&;<>()")

OPERATORS_NOT_ALLOWED = "Shell operators (&&, ||, |, ;, etc.) are not allowed"


class Token(NamedTuple):
    """One lexical unit of a command line."""

    text: str
    is_operator: bool = False


class TokenizeError(ValueError):
    """Raised when a command line cannot be tokenized."""

    pass


def _match_operator(line: str, index: int) -> str:
    for operator in SHELL_OPERATORS:
        if line.startswith(operator, index):
            return operator
    return line[index]


def tokenize(line: str) -> List[Token]:
    """Split a command line into words and operator tokens.

    Quoting follows POSIX shell rules: single quotes are literal, double quotes
    honour backslash escapes of `"`, `\\`, `$` and backtick, and an unquoted
    backslash escapes the next character. Unquoted `|&;<>` always start an
    operator. Parentheses are operators at the start of a word and ordinary
    characters inside one, so `$(cmd)` stays part of its word.

    Raises:
        TokenizeError: On an unterminated quote or trailing backslash
    """
    tokens: List[Token] = []
    word: List[str] = []
    in_word = False
    i = 0
    length = len(line)

    def flush() -> None:
        nonlocal in_word
        if in_word:
            tokens.append(Token("".join(word)))
            word.clear()
            in_word = False

    while i < length:
        ch = line[i]

        if ch.isspace():
            flush()
            i += 1
        elif ch == "'":
            end = line.find("'", i + 1)
            if end == -1:
                raise TokenizeError("unterminated single quote")
            word.append(line[i + 1:end])
            in_word = True
            i = end + 1
        elif ch == '"':
            i += 1
            while True:
                if i >= length:
                    raise TokenizeError("unterminated double quote")
                ch = line[i]
                if ch == '"':
                    i += 1
                    break
                if ch == "\\" and i + 1 < length and line[i + 1] in '"\\$`':
                    word.append(line[i + 1])
                    i += 2
                    continue
                word.append(ch)
                i += 1
            in_word = True
        elif ch == "\\":
            if i + 1 >= length:
                raise TokenizeError("trailing backslash")
            word.append(line[i + 1])
            in_word = True
            i += 2
        elif ch in _OPERATOR_START and not (ch in "()" and in_word):
            flush()
            operator = _match_operator(line, i)
            tokens.append(Token(operator, is_operator=True))
            i += len(operator)
        else:
            word.append(ch)
            in_word = True
            i += 1

    flush()
    return tokens


def find_dangerous_argument(args: Iterable[str]) -> Optional[str]:
    """Return the first argument containing a shell metacharacter, if any."""
    for arg in args:
        if any(ch in DANGEROUS_ARGUMENT_CHARACTERS for ch in arg):
            return arg
    return None


def validate_command(
    command_line: str,
    allowed_commands: Iterable[str] = DEFAULT_ALLOWED_COMMANDS,
) -> ValidationResult:
    """Decide whether a command line may be executed.

    Args:
        command_line: Text following a `!` marker
        allowed_commands: Program names permitted to run (exact match)

    Returns:
        ValidationResult; `command` is the base name to execute and `args`
        the plain-string arguments when allowed
    """
    trimmed = command_line.strip()
    if not trimmed:
        return ValidationResult(allowed=False, error="Empty command")

    try:
        tokens = tokenize(trimmed)
    except TokenizeError as exc:
        return ValidationResult(allowed=False, error=f"Cannot parse command: {exc}")

    if any(token.is_operator for token in tokens):
        logger.warning(f"Rejected command with shell operators: {trimmed}")
        return ValidationResult(allowed=False, error=OPERATORS_NOT_ALLOWED)

    words = [token.text for token in tokens]
    if not words:
        return ValidationResult(allowed=False, error="No valid command found")

    # "/usr/bin/ls" and "ls" are judged (and executed) as the same program
    command = os.path.basename(words[0])
    args = tuple(words[1:])

    if command not in frozenset(allowed_commands):
        logger.warning(f"Rejected command not in allowlist: {command}")
        return ValidationResult(
            allowed=False,
            command=command,
            args=args,
            error=f"Command '{command}' is not in the allowlist",
        )

    dangerous = find_dangerous_argument(args)
    if dangerous is not None:
        logger.warning(f"Rejected dangerous argument for {command}: {dangerous}")
        return ValidationResult(
            allowed=False,
            command=command,
            args=args,
            error=f"Argument contains dangerous characters: {dangerous}",
            offending_argument=dangerous,
        )

    logger.debug(f"Command allowed: {command} {list(args)}")
    return ValidationResult(allowed=True, command=command, args=args)


def is_command_allowed(
    command_line: str,
    allowed_commands: Iterable[str] = DEFAULT_ALLOWED_COMMANDS,
) -> bool:
    """Return True if validate_command would allow command_line."""
    return validate_command(command_line, allowed_commands).allowed
