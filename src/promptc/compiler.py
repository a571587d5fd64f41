"""Compiler -- render agent and skill sources and write them to the output tree."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from .includes import IncludeError, resolve_file
from .models import CompileResult, Project, PromptSource, SourceStatus
from .scanner import agent_source, scan_sources, skill_source

logger = logging.getLogger(__name__)

Reporter = Callable[[str], None]


def _noop(_message: str) -> None:
    pass


def render(source: PromptSource, project: Project, *, strict: bool | None = None) -> CompileResult:
    """Expand *source* in memory without touching the output tree.

    Errors reading the source file itself propagate.  In strict mode any
    unexpanded include raises :class:`IncludeError`.
    """
    strict = project.config.strict if strict is None else strict
    base_dir = source.path.parent
    try:
        content, issues, dependencies = resolve_file(source.path, base_dir)
    except (OSError, UnicodeDecodeError) as exc:
        logger.error("Error compiling %s: %s", source.path.name, exc)
        raise

    if strict and issues:
        raise IncludeError(source.path, issues)

    return CompileResult(
        source=source,
        content=content,
        issues=issues,
        dependencies=dependencies,
    )


def write_result(result: CompileResult) -> CompileResult:
    """Write a rendered result to its output path, creating directories."""
    output = result.source.output
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(result.content, encoding="utf-8")
    result.written = True
    logger.info("Created %s", output)
    return result


def compile_source(source: PromptSource, project: Project, *, strict: bool | None = None) -> CompileResult:
    return write_result(render(source, project, strict=strict))


def compile_agent(path: Path, project: Project, *, strict: bool | None = None) -> CompileResult:
    """Compile a single agent source file into the agents output directory."""
    return compile_source(agent_source(path, project), project, strict=strict)


def compile_skill(skill_dir: Path, project: Project, *, strict: bool | None = None) -> CompileResult:
    """Compile the skill in *skill_dir* into ``<output>/skills/<name>/SKILL.md``."""
    return compile_source(skill_source(skill_dir, project), project, strict=strict)


def _compile_batch(
    sources: list[PromptSource],
    project: Project,
    label: str,
    empty_message: str,
    report: Reporter,
    strict: bool | None,
) -> list[CompileResult]:
    if not sources:
        report(empty_message)
        return []

    report(f"Compiling {len(sources)} {label}...")
    results: list[CompileResult] = []
    for source in sources:
        # First failure aborts the batch.
        results.append(compile_source(source, project, strict=strict))
        report(f"Created {results[-1].source.output}")
    return results


def compile_all_agents(
    project: Project,
    report: Reporter = _noop,
    *,
    strict: bool | None = None,
) -> list[CompileResult]:
    """Compile every agent source, in sorted order."""
    sources = scan_sources(project).agents
    return _compile_batch(
        sources, project, "agent source(s)",
        f"No {project.config.agent_suffix} files found in {project.agent_sources_dir}",
        report, strict,
    )


def compile_all_skills(
    project: Project,
    report: Reporter = _noop,
    *,
    strict: bool | None = None,
) -> list[CompileResult]:
    """Compile every skill source, in sorted order."""
    sources = scan_sources(project).skills
    return _compile_batch(
        sources, project, "skill(s)", "No skills found to compile", report, strict,
    )


def compile_everything(
    project: Project,
    report: Reporter = _noop,
    *,
    strict: bool | None = None,
) -> list[CompileResult]:
    """Compile all agents, then all skills."""
    results = compile_all_agents(project, report, strict=strict)
    results.extend(compile_all_skills(project, report, strict=strict))
    return results


def source_status(source: PromptSource, project: Project) -> SourceStatus:
    """Compare the output on disk with a fresh render of *source*."""
    result = render(source, project, strict=False)
    if not source.output.is_file():
        state = "missing"
    elif source.output.read_text(encoding="utf-8") != result.content:
        state = "stale"
    else:
        state = "up-to-date"
    return SourceStatus(source=source, state=state)


def project_status(project: Project) -> list[SourceStatus]:
    return [source_status(s, project) for s in scan_sources(project).sources]
