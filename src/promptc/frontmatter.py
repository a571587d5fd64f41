"""YAML frontmatter parsing for compiled agent and skill files."""

from __future__ import annotations

import re
from typing import Any

import yaml


class FrontmatterError(Exception):
    """Raised when frontmatter is present but cannot be parsed."""


_CLOSING_RE = re.compile(r"\n---[ \t]*(?:\n|$)")


def has_frontmatter(content: str) -> bool:
    return content.startswith("---\n") or content.startswith("---\r\n")


def parse_frontmatter(content: str) -> tuple[dict[str, Any], str]:
    """Split *content* into ``(frontmatter, body)``.

    Content without a leading ``---`` block yields ``({}, content)``.  An
    unterminated block, invalid YAML, or YAML that is not a mapping raises
    :class:`FrontmatterError`.
    """
    if not has_frontmatter(content):
        return {}, content

    content = content.replace("\r\n", "\n")
    end_match = _CLOSING_RE.search(content, 3)
    if not end_match:
        raise FrontmatterError("Unterminated frontmatter block")

    raw = content[4 : end_match.start()]
    body = content[end_match.end():]

    try:
        data = yaml.safe_load(raw) if raw.strip() else {}
    except yaml.YAMLError as e:
        raise FrontmatterError(f"Invalid YAML frontmatter: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise FrontmatterError(
            f"Frontmatter must be a mapping, got {type(data).__name__}"
        )
    return data, body
