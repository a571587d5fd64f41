"""Source scanner -- walks the source directory and classifies prompt files."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from .models import Project, PromptSource

# Directories to skip unconditionally.
SKIP_DIRS: set[str] = {
    ".git", ".venv", "venv", "__pycache__", "node_modules",
    ".mypy_cache", ".pytest_cache", ".cache",
}

MARKDOWN_EXTENSIONS: set[str] = {".md", ".markdown"}


@dataclass
class ScanResult:
    """Collected information about a source directory."""

    root: Path
    agents: list[PromptSource] = field(default_factory=list)
    skills: list[PromptSource] = field(default_factory=list)
    partials: list[Path] = field(default_factory=list)   # absolute paths

    @property
    def sources(self) -> list[PromptSource]:
        return [*self.agents, *self.skills]


def agent_output_name(filename: str, suffix: str = ".src.md") -> str:
    """Map an agent source basename to its compiled basename.

    ``reviewer.src.md`` becomes ``reviewer.md``; a name without *suffix* is
    kept unchanged.
    """
    if suffix and filename.endswith(suffix):
        return filename[: -len(suffix)] + ".md"
    return filename


def agent_source(path: Path, project: Project) -> PromptSource:
    """Describe the agent compiled from *path*."""
    path = Path(path).resolve()
    out_name = agent_output_name(path.name, project.config.agent_suffix)
    return PromptSource(
        kind="agent",
        name=out_name[: -len(".md")] if out_name.endswith(".md") else out_name,
        path=path,
        output=project.agent_output_dir / out_name,
    )


def skill_source(skill_dir: Path, project: Project) -> PromptSource:
    """Describe the skill compiled from the directory *skill_dir*."""
    skill_dir = Path(skill_dir).resolve()
    return PromptSource(
        kind="skill",
        name=skill_dir.name,
        path=skill_dir / project.config.skill_entry,
        output=project.skill_output_dir / skill_dir.name / project.config.skill_output,
    )


def scan_sources(project: Project) -> ScanResult:
    """Return all agent sources, skill sources and partials of *project*.

    Agents are files directly inside the agents directory ending in the
    agent suffix.  Skills are sub-directories of the skills directory that
    contain the skill entry file.  Every other Markdown file under the
    source directory is a partial.
    """
    source_dir = project.source_dir.resolve()
    result = ScanResult(root=source_dir)

    agents_dir = project.agent_sources_dir
    if agents_dir.is_dir():
        for entry in sorted(agents_dir.iterdir()):
            if entry.is_file() and entry.name.endswith(project.config.agent_suffix):
                result.agents.append(agent_source(entry, project))

    skills_dir = project.skill_sources_dir
    if skills_dir.is_dir():
        for entry in sorted(skills_dir.iterdir()):
            if entry.is_dir() and (entry / project.config.skill_entry).is_file():
                result.skills.append(skill_source(entry, project))

    claimed = {s.path for s in result.sources}
    for dirpath, dirnames, filenames in os.walk(source_dir):
        # Prune excluded directories in-place so os.walk skips them.
        dirnames[:] = [d for d in dirnames if d not in SKIP_DIRS]
        for fname in filenames:
            if os.path.splitext(fname)[1].lower() not in MARKDOWN_EXTENSIONS:
                continue
            path = (Path(dirpath) / fname).resolve()
            if path not in claimed:
                result.partials.append(path)

    result.partials.sort()
    return result
