"""Control-character stripping for captured command output."""
from __future__ import annotations

# Tab, newline and carriage return survive; everything else below space goes
_KEPT_CONTROL_CODES = frozenset((9, 10, 13))
_DELETE = 127


def _is_printable(ch: str) -> bool:
    code = ord(ch)
    if code in _KEPT_CONTROL_CODES:
        return True
    return code >= 32 and code != _DELETE


def sanitize_output(output: str | None) -> str:
    """Remove control characters other than tab, newline and carriage return."""
    if not output:
        return ""
    return "".join(ch for ch in output if _is_printable(ch))
