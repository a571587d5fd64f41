"""Lint -- structural checks on rendered agent and skill documents."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from .compiler import render
from .frontmatter import FrontmatterError, has_frontmatter, parse_frontmatter
from .includes import INCLUDE_RE
from .models import LintIssue, LintReport, Project, PromptSource
from .scanner import scan_sources

logger = logging.getLogger(__name__)

REQUIRED_KEYS: tuple[str, ...] = ("name", "description")
TOC_TITLES: set[str] = {"table of contents", "contents"}

_HEADING_RE = re.compile(r"^(#{1,6})[ \t]+(.+?)(?:[ \t]+#+)?[ \t]*$")
_FENCE_RE = re.compile(r"^[ \t]*(```|~~~)")
_ANCHOR_LINK_RE = re.compile(r"\]\(#([^)\s]+)\)")
_SLUG_DROP_RE = re.compile(r"[^\w\- ]", re.UNICODE)


# ---------------------------------------------------------------------------
# Heading helpers
# ---------------------------------------------------------------------------


def slugify(heading: str) -> str:
    """Return the GitHub-style anchor for *heading* (without dedup suffix)."""
    text = heading.strip().lower()
    text = _SLUG_DROP_RE.sub("", text)
    return text.replace(" ", "-")


def _body_start(lines: list[str]) -> int:
    """Index of the first line after a leading frontmatter block."""
    if not lines or lines[0].rstrip() != "---":
        return 0
    for idx in range(1, len(lines)):
        if lines[idx].rstrip() == "---":
            return idx + 1
    return 0


def iter_headings(content: str) -> list[tuple[int, str, int]]:
    """Return ``(level, text, line_number)`` for every ATX heading.

    Headings inside fenced code blocks and the frontmatter are ignored.
    Line numbers are 1-based.
    """
    lines = content.splitlines()
    headings: list[tuple[int, str, int]] = []
    fence: str | None = None
    for idx in range(_body_start(lines), len(lines)):
        line = lines[idx]
        fence_match = _FENCE_RE.match(line)
        if fence_match:
            marker = fence_match.group(1)
            if fence is None:
                fence = marker
            elif marker == fence:
                fence = None
            continue
        if fence is not None:
            continue
        match = _HEADING_RE.match(line)
        if match:
            headings.append((len(match.group(1)), match.group(2), idx + 1))
    return headings


def heading_anchors(content: str) -> set[str]:
    """All anchors a renderer would generate, with ``-1``, ``-2`` dedup suffixes."""
    seen: dict[str, int] = {}
    anchors: set[str] = set()
    for _level, text, _line in iter_headings(content):
        slug = slugify(text)
        if slug in seen:
            seen[slug] += 1
            anchors.add(f"{slug}-{seen[slug]}")
        else:
            seen[slug] = 0
            anchors.add(slug)
    return anchors


def find_toc_links(content: str) -> list[tuple[str, int]]:
    """Return ``(anchor, line_number)`` for each link in the table of contents.

    The table of contents is everything under a "Table of Contents" (or
    "Contents") heading up to the next heading of the same or higher level.
    """
    headings = iter_headings(content)
    lines = content.splitlines()
    links: list[tuple[str, int]] = []
    for pos, (level, text, line_no) in enumerate(headings):
        if text.strip().lower() not in TOC_TITLES:
            continue
        end = len(lines)
        for next_level, _text, next_line in headings[pos + 1:]:
            if next_level <= level:
                end = next_line - 1
                break
        for idx in range(line_no, end):
            for match in _ANCHOR_LINK_RE.finditer(lines[idx]):
                links.append((match.group(1), idx + 1))
    return links


def _line_of(content: str, offset: int) -> int:
    return content.count("\n", 0, offset) + 1


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


def check_toc(content: str, path: Path) -> list[LintIssue]:
    anchors = heading_anchors(content)
    return [
        LintIssue(
            rule="toc-anchor",
            severity="error",
            path=path,
            line=line,
            message=f"Table of contents links to #{anchor} but no heading has that anchor",
        )
        for anchor, line in find_toc_links(content)
        if anchor.lower() not in anchors
    ]


def check_includes(content: str, path: Path) -> list[LintIssue]:
    return [
        LintIssue(
            rule="unresolved-include",
            severity="error",
            path=path,
            line=_line_of(content, match.start()),
            message=f"Unresolved directive {match.group(0)}",
        )
        for match in INCLUDE_RE.finditer(content)
    ]


def check_frontmatter(content: str, path: Path, expected_name: str | None = None) -> list[LintIssue]:
    if not has_frontmatter(content):
        return [LintIssue(
            rule="frontmatter-missing",
            severity="error",
            path=path,
            line=1,
            message="Document does not start with a YAML frontmatter block",
        )]

    try:
        data, _body = parse_frontmatter(content)
    except FrontmatterError as exc:
        return [LintIssue(
            rule="frontmatter-invalid", severity="error", path=path, line=1, message=str(exc),
        )]

    issues: list[LintIssue] = []
    for key in REQUIRED_KEYS:
        value = data.get(key)
        if value is None or (isinstance(value, str) and not value.strip()):
            issues.append(LintIssue(
                rule="frontmatter-key",
                severity="error",
                path=path,
                line=1,
                message=f"Frontmatter is missing required key '{key}'",
            ))

    name = data.get("name")
    if expected_name and isinstance(name, str) and name.strip() and name.strip() != expected_name:
        issues.append(LintIssue(
            rule="name-mismatch",
            severity="warning",
            path=path,
            line=1,
            message=f"Frontmatter name '{name}' does not match '{expected_name}'",
        ))
    return issues


def lint_document(content: str, path: Path, *, expected_name: str | None = None) -> list[LintIssue]:
    """Run every per-document rule against a rendered agent or skill."""
    issues = check_frontmatter(content, path, expected_name)
    issues.extend(check_includes(content, path))
    issues.extend(check_toc(content, path))
    return issues


def lint_source(source: PromptSource, project: Project) -> tuple[list[LintIssue], list[Path]]:
    """Render *source* and lint the result.

    Returns ``(issues, dependencies)``.  Issues point at the source file.
    """
    result = render(source, project, strict=False)
    issues = lint_document(result.content, source.path, expected_name=source.name)
    return issues, result.dependencies


def _unreadable(path: Path, exc: Exception) -> LintIssue:
    return LintIssue(
        rule="unreadable",
        severity="error",
        path=path,
        message=f"Cannot read file: {exc}",
    )


def lint_project(project: Project) -> LintReport:
    """Lint every source and partial in *project*.

    Files that cannot be read or decoded are reported as ``unreadable``
    errors instead of aborting the run.
    """
    scan = scan_sources(project)
    report = LintReport()
    used: set[Path] = set()

    for source in scan.sources:
        try:
            issues, dependencies = lint_source(source, project)
        except (OSError, UnicodeDecodeError) as exc:
            report.issues.append(_unreadable(source.path, exc))
            continue
        report.issues.extend(issues)
        used.update(dependencies)
        logger.debug("Linted %s: %d issue(s)", source.path, len(issues))

    for partial in scan.partials:
        try:
            content = partial.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            report.issues.append(_unreadable(partial, exc))
            continue
        if partial not in used:
            report.issues.append(LintIssue(
                rule="orphan-partial",
                severity="warning",
                path=partial,
                message="Not included by any agent or skill",
            ))
        report.issues.extend(check_toc(content, partial))

    return report
