"""``@include(path)`` directive resolution.

A directive is replaced by the contents of the referenced file, itself
expanded recursively relative to its own directory.  Directives that cannot
be expanded (circular chain, unreadable target) are left in place and
reported as :class:`~promptc.models.IncludeIssue` entries.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from .models import IncludeIssue

logger = logging.getLogger(__name__)

INCLUDE_RE = re.compile(r"@include\(([^)]+)\)")


class IncludeError(Exception):
    """Raised in strict mode when one or more includes could not be expanded."""

    def __init__(self, source: Path, issues: list[IncludeIssue]) -> None:
        self.source = source
        self.issues = issues
        detail = ", ".join(f"{i.kind}: {i.directive}" for i in issues)
        super().__init__(f"{source}: {len(issues)} unresolved include(s) ({detail})")


def find_includes(content: str) -> list[str]:
    """Return the (trimmed) paths of every directive in *content*, in order."""
    return [m.group(1).strip() for m in INCLUDE_RE.finditer(content)]


def resolve_includes(
    content: str,
    base_dir: Path,
    *,
    origin: Path | None = None,
    chain: tuple[Path, ...] = (),
    issues: list[IncludeIssue] | None = None,
    dependencies: list[Path] | None = None,
) -> str:
    """Expand every ``@include`` directive in *content*.

    Parameters
    ----------
    content:
        Text to expand.
    base_dir:
        Directory relative include paths are resolved against.
    origin:
        File *content* was read from; used when reporting issues.
    chain:
        Resolved paths of the files currently being expanded.  A directive
        pointing at any of them is circular.
    issues:
        Collects a record for every directive left unexpanded.
    dependencies:
        Collects every file successfully included, first occurrence order.
    """
    base_dir = Path(base_dir)
    reported_from = origin if origin is not None else base_dir

    def _expand(match: re.Match[str]) -> str:
        directive = match.group(0)
        relative = match.group(1).strip()
        target = (base_dir / relative).resolve()

        if target in chain:
            logger.warning("Circular include detected: %s (in %s)", relative, reported_from)
            if issues is not None:
                issues.append(IncludeIssue(
                    kind="circular",
                    directive=directive,
                    target=target,
                    included_from=reported_from,
                ))
            return directive

        try:
            included = target.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.error("Error including %s (in %s): %s", relative, reported_from, exc)
            if issues is not None:
                issues.append(IncludeIssue(
                    kind="missing",
                    directive=directive,
                    target=target,
                    included_from=reported_from,
                    detail=str(exc),
                ))
            return directive

        logger.debug("Including %s into %s", target, reported_from)
        if dependencies is not None and target not in dependencies:
            dependencies.append(target)

        return resolve_includes(
            included,
            target.parent,
            origin=target,
            chain=(*chain, target),
            issues=issues,
            dependencies=dependencies,
        )

    return INCLUDE_RE.sub(_expand, content)


def resolve_file(
    path: Path,
    base_dir: Path | None = None,
) -> tuple[str, list[IncludeIssue], list[Path]]:
    """Read *path* and expand its includes.

    Returns ``(content, issues, dependencies)``.  Errors reading *path*
    itself propagate.
    """
    path = Path(path).resolve()
    content = path.read_text(encoding="utf-8")
    issues: list[IncludeIssue] = []
    dependencies: list[Path] = []
    expanded = resolve_includes(
        content,
        base_dir if base_dir is not None else path.parent,
        origin=path,
        chain=(path,),
        issues=issues,
        dependencies=dependencies,
    )
    return expanded, issues, dependencies


def collect_dependencies(path: Path) -> list[Path]:
    """Return every file transitively included by *path*."""
    _content, _issues, dependencies = resolve_file(path)
    return dependencies
