"""Command template parsing (YAML front matter + markdown body).

Command files look like:

```markdown
---
description: Summarize recent work
argument-hint: <branch>
---
Recent commits on $1:
!git log --oneline -n 5 $1

Conventions: @docs/conventions.md
```

The front matter is optional. The body keeps its `$ARGUMENTS`, `@file` and
`!command` markers untouched; later pipeline stages expand them.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any

import frontmatter
import yaml

from .errors import ParseError
from .types import ParsedTemplate


# Only a leading `---` block counts as front matter; python-frontmatter would
# otherwise also sniff JSON (`{`) and TOML (`+++`) blocks out of plain bodies.
_yaml_handler = frontmatter.YAMLHandler()


def _extract_frontmatter_and_body(content: str) -> tuple[dict[str, Any], str]:
    """Split raw template text into a metadata dict and the body.

    Surrounding whitespace is stripped from the body. python-frontmatter
    ignores a YAML block that is not a mapping, so such templates come back
    with empty metadata.

    Raises:
        ParseError: If the front matter is not valid YAML
    """
    text = content.strip()
    if not _yaml_handler.detect(text):
        return {}, text

    try:
        post = frontmatter.loads(text, handler=_yaml_handler)
    except yaml.YAMLError as exc:
        raise ParseError(str(exc)) from exc

    return dict(post.metadata or {}), post.content or ""


class TemplateParser:
    """Parser for markdown command templates."""

    def parse(self, content: str) -> ParsedTemplate:
        """Parse raw template text.

        Args:
            content: Raw file content

        Returns:
            ParsedTemplate with metadata, body and the untouched raw text

        Raises:
            ParseError: If the front matter is malformed
        """
        metadata, body = _extract_frontmatter_and_body(content)
        return ParsedTemplate(metadata=metadata, body=body, raw=content)

    def load(self, path: str | Path) -> ParsedTemplate:
        """Load and parse a template file from disk."""
        content = Path(path).read_text(encoding="utf-8")
        return self.parse(content)


# Default parser instance
_default_parser = TemplateParser()


def parse_template(content: str) -> ParsedTemplate:
    """Parse a command template using the default TemplateParser.

    Raises:
        ParseError: If the front matter is malformed
    """
    return _default_parser.parse(content)


def load_template(path: str | Path) -> ParsedTemplate:
    """Load and parse a command template file from disk."""
    return _default_parser.load(path)
