"""Pydantic models for promptc's compile pipeline."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------

class PromptSource(BaseModel):
    """A discovered agent or skill source file."""

    kind: str       # "agent" | "skill"
    name: str       # agent file stem or skill directory name
    path: Path      # absolute path of the source file
    output: Path    # absolute path the compiled file is written to


# ---------------------------------------------------------------------------
# Include resolution
# ---------------------------------------------------------------------------

class IncludeIssue(BaseModel):
    """An ``@include`` directive that could not be expanded."""

    kind: str  # "circular" | "missing"
    directive: str
    target: Path
    included_from: Path
    detail: str = ""


# ---------------------------------------------------------------------------
# Compilation output
# ---------------------------------------------------------------------------

class CompileResult(BaseModel):
    """Outcome of compiling a single source."""

    source: PromptSource
    content: str
    written: bool = False
    issues: list[IncludeIssue] = Field(default_factory=list)
    dependencies: list[Path] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.issues


class SourceStatus(BaseModel):
    """Whether the compiled output on disk matches a fresh render."""

    source: PromptSource
    state: str  # "up-to-date" | "stale" | "missing"


# ---------------------------------------------------------------------------
# Lint
# ---------------------------------------------------------------------------

class LintIssue(BaseModel):
    """A single finding reported by the linter."""

    rule: str
    severity: str  # "error" | "warning"
    path: Path
    message: str
    line: int | None = None


class LintReport(BaseModel):
    issues: list[LintIssue] = Field(default_factory=list)

    @property
    def errors(self) -> list[LintIssue]:
        return [i for i in self.issues if i.severity == "error"]

    @property
    def warnings(self) -> list[LintIssue]:
        return [i for i in self.issues if i.severity == "warning"]


# ---------------------------------------------------------------------------
# Project configuration
# ---------------------------------------------------------------------------

class PromptcConfig(BaseModel):
    """User configuration stored in ``.claude-src/config.toml``.

    CLI flags override these values for a single invocation.
    Precedence: CLI flag > config.toml > default.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    output_dir: str = ".claude"
    """Output directory, relative to the project root."""

    agents_dir: str = "agents"
    """Agent sources (inside the source dir) and compiled agents (inside the output dir)."""

    skills_dir: str = "skills"
    """Skill sources (inside the source dir) and compiled skills (inside the output dir)."""

    agent_suffix: str = ".src.md"
    """Suffix marking an agent source; replaced by ``.md`` on output."""

    skill_entry: str = "src.md"
    """Entry file inside each skill source directory."""

    skill_output: str = "SKILL.md"
    """File name of each compiled skill."""

    strict: bool = False
    """Fail compilation when an include cannot be expanded."""


class Project(BaseModel):
    """A located project: its root, source directory and effective config."""

    root: Path
    source_dir: Path
    config: PromptcConfig = Field(default_factory=PromptcConfig)

    @property
    def output_dir(self) -> Path:
        return self.root / self.config.output_dir

    @property
    def agent_sources_dir(self) -> Path:
        return self.source_dir / self.config.agents_dir

    @property
    def skill_sources_dir(self) -> Path:
        return self.source_dir / self.config.skills_dir

    @property
    def agent_output_dir(self) -> Path:
        return self.output_dir / self.config.agents_dir

    @property
    def skill_output_dir(self) -> Path:
        return self.output_dir / self.config.skills_dir
