"""promptc - compile agent and skill prompt sources."""

from .models import (  # noqa: F401 -- public re-exports
    CompileResult,
    IncludeIssue,
    LintIssue,
    LintReport,
    Project,
    PromptcConfig,
    PromptSource,
    SourceStatus,
)
from .compiler import (
    compile_agent,
    compile_all_agents,
    compile_all_skills,
    compile_everything,
    compile_skill,
)
from .includes import IncludeError, resolve_includes

__version__ = "0.1.0"

__all__ = [
    "compile_agent",
    "compile_all_agents",
    "compile_all_skills",
    "compile_everything",
    "compile_skill",
    "resolve_includes",
    "IncludeError",
    "CompileResult",
    "IncludeIssue",
    "LintIssue",
    "LintReport",
    "Project",
    "PromptcConfig",
    "PromptSource",
    "SourceStatus",
]
