"""CLI entry point for promptc -- compile agent and skill prompt sources."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .project import SOURCE_DIRNAME

app = typer.Typer(
    name="promptc",
    help="Compile agent and skill prompt sources with @include support.",
    add_completion=False,
)

hook_app = typer.Typer(help="Manage the git pre-commit hook.")
app.add_typer(hook_app, name="hook")

console = Console()
err_console = Console(stderr=True)

_STATE_STYLES = {"up-to-date": "green", "stale": "yellow", "missing": "red"}

# Raised when a source or partial cannot be read.
_READ_ERRORS = (OSError, UnicodeDecodeError)

_TRUE_VALUES = ("true", "1", "yes", "on")
_FALSE_VALUES = ("false", "0", "no", "off")


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_time=False, show_path=False)],
        force=True,
    )


def _source_dirname(ctx: typer.Context) -> str:
    obj = ctx.obj or {}
    return obj.get("source_dir", SOURCE_DIRNAME)


def _require_project(ctx: typer.Context, path: Path | None = None):
    """Locate the project or exit with an error."""
    from .project import load_project

    dirname = _source_dirname(ctx)
    start = Path(path).resolve() if path else Path.cwd()
    try:
        project = load_project(start, dirname)
    except ValueError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1)
    if project is None:
        console.print(
            f"[red]Error:[/red] No {dirname}/ directory found. "
            "Run [bold]promptc init[/bold] first."
        )
        raise typer.Exit(code=1)
    return project


def _relative(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return str(path)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging."),
    source_dir: str = typer.Option(SOURCE_DIRNAME, "--source-dir", help="Name of the source directory."),
) -> None:
    """Compile agent and skill prompt sources with @include support."""
    _configure_logging(verbose)
    ctx.obj = {"source_dir": source_dir}


@app.command()
def init(
    ctx: typer.Context,
    path: Optional[Path] = typer.Argument(None, help="Project path (default: current directory)."),
) -> None:
    """Scaffold a source directory with the bundled agents, skill and partials."""
    from .project import init_project

    target = Path(path).resolve() if path else Path.cwd()
    dirname = _source_dirname(ctx)

    try:
        source_dir = init_project(target, dirname)
    except FileExistsError:
        console.print(f"[yellow]Already initialised:[/yellow] {target / dirname}")
        raise typer.Exit(code=0)
    except ValueError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1)

    console.print(f"[green]Initialised[/green] {source_dir}")
    console.print("  Run [bold]promptc compile[/bold] to build the agents and skills.")


@app.command("compile")
def compile_cmd(
    ctx: typer.Context,
    source: Optional[Path] = typer.Argument(None, help="Agent source file or skill directory (default: everything)."),
    check: bool = typer.Option(False, "--check", help="Only verify that compiled outputs are up to date."),
    strict: Optional[bool] = typer.Option(None, "--strict/--no-strict", help="Fail on unresolved includes."),
    path: Optional[Path] = typer.Option(None, "--path", help="Project path."),
) -> None:
    """Compile one source, or every agent and skill when none is given."""
    from .compiler import compile_agent, compile_everything, compile_skill, project_status
    from .includes import IncludeError

    project = _require_project(ctx, path)

    if check:
        try:
            statuses = project_status(project)
        except _READ_ERRORS as exc:
            console.print(f"[red]Error:[/red] {escape(str(exc))}")
            raise typer.Exit(code=1)
        outdated = [s for s in statuses if s.state != "up-to-date"]
        for status in outdated:
            style = _STATE_STYLES[status.state]
            console.print(
                f"  [{style}]{status.state}[/{style}] "
                f"{_relative(status.source.output, project.root)}"
            )
        if outdated:
            console.print(f"[red]{len(outdated)} output(s) out of date.[/red] Run [bold]promptc compile[/bold].")
            raise typer.Exit(code=1)
        console.print(f"[green]All {len(statuses)} output(s) up to date.[/green]")
        return

    try:
        if source is not None:
            target = Path(source).resolve()
            if target.is_dir():
                result = compile_skill(target, project, strict=strict)
            else:
                result = compile_agent(target, project, strict=strict)
            results = [result]
            console.print(f"[green]Created[/green] {_relative(result.source.output, project.root)}")
        else:
            results = compile_everything(project, report=console.print, strict=strict)
    except IncludeError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1)
    except _READ_ERRORS as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1)

    unresolved = sum(len(r.issues) for r in results)
    if unresolved:
        console.print(f"[yellow]{unresolved} include(s) left unresolved.[/yellow]")
    elif results:
        console.print(f"[green]Compiled {len(results)} file(s).[/green]")


@app.command("list")
def list_cmd(
    ctx: typer.Context,
    path: Optional[Path] = typer.Option(None, "--path", help="Project path."),
) -> None:
    """List discovered agents, skills and partials."""
    from .includes import collect_dependencies
    from .scanner import scan_sources

    project = _require_project(ctx, path)
    scan = scan_sources(project)

    table = Table(title="Sources")
    table.add_column("Kind")
    table.add_column("Name", style="bold")
    table.add_column("Source")
    table.add_column("Output")
    table.add_column("Includes", justify="right")
    for src in scan.sources:
        try:
            include_count = str(len(collect_dependencies(src.path)))
        except _READ_ERRORS as exc:
            console.print(f"[red]Error:[/red] {escape(str(src.path))}: {escape(str(exc))}")
            raise typer.Exit(code=1)
        table.add_row(
            src.kind,
            src.name,
            _relative(src.path, project.root),
            _relative(src.output, project.root),
            include_count,
        )
    console.print(table)
    console.print(f"{len(scan.partials)} partial(s) in {_relative(scan.root, project.root)}")


@app.command()
def lint(
    ctx: typer.Context,
    path: Optional[Path] = typer.Option(None, "--path", help="Project path."),
) -> None:
    """Check rendered documents for broken TOCs, frontmatter and includes."""
    from .lint import lint_project

    project = _require_project(ctx, path)
    try:
        report = lint_project(project)
    except _READ_ERRORS as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1)

    for issue in report.issues:
        style = "red" if issue.severity == "error" else "yellow"
        location = _relative(issue.path, project.root)
        if issue.line is not None:
            location = f"{location}:{issue.line}"
        console.print(
            f"[{style}]{issue.severity}[/{style}] {escape(location)} "
            f"[dim]{issue.rule}[/dim] {escape(issue.message)}"
        )

    if report.errors:
        console.print(f"[red]{len(report.errors)} error(s)[/red], {len(report.warnings)} warning(s).")
        raise typer.Exit(code=1)
    console.print(f"[green]No errors[/green], {len(report.warnings)} warning(s).")


@app.command()
def status(
    ctx: typer.Context,
    path: Optional[Path] = typer.Option(None, "--path", help="Project path."),
) -> None:
    """Show whether each compiled output matches its sources."""
    from .compiler import project_status

    project = _require_project(ctx, path)
    try:
        statuses = project_status(project)
    except _READ_ERRORS as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1)
    if not statuses:
        console.print("[yellow]No agent or skill sources found.[/yellow]")
        return

    table = Table()
    table.add_column("Kind")
    table.add_column("Name", style="bold")
    table.add_column("Output")
    table.add_column("State")
    for item in statuses:
        style = _STATE_STYLES[item.state]
        table.add_row(
            item.source.kind,
            item.source.name,
            _relative(item.source.output, project.root),
            f"[{style}]{item.state}[/{style}]",
        )
    console.print(table)


@app.command()
def config(
    ctx: typer.Context,
    key: Optional[str] = typer.Argument(None, help="Config key to get or set."),
    value: Optional[str] = typer.Argument(None, help="New value (omit to read)."),
    path: Optional[Path] = typer.Option(None, "--path", help="Project path."),
) -> None:
    """View or modify config.toml settings."""
    from pydantic import ValidationError

    from .models import PromptcConfig
    from .project import save_config

    project = _require_project(ctx, path)
    cfg = project.config
    fields = PromptcConfig.model_fields

    if key is None:
        console.print("[bold]promptc config:[/bold]")
        for field_name in fields:
            console.print(f"  {field_name} = {getattr(cfg, field_name)!r}")
        return

    if key not in fields:
        console.print(
            f"[red]Error:[/red] Unknown config key [bold]{key}[/bold].\n"
            f"  Valid keys: {', '.join(fields)}"
        )
        raise typer.Exit(code=1)

    if value is None:
        console.print(f"{key} = {getattr(cfg, key)!r}")
        return

    # Set value -- coerce to the correct type.
    field_type = fields[key].annotation
    if field_type is bool:
        lowered = value.lower()
        if lowered not in _TRUE_VALUES and lowered not in _FALSE_VALUES:
            console.print(
                f"[red]Error:[/red] Cannot convert {value!r} to bool "
                f"(use one of: {', '.join(_TRUE_VALUES + _FALSE_VALUES)})"
            )
            raise typer.Exit(code=1)
        coerced: object = lowered in _TRUE_VALUES
    else:
        coerced = value

    try:
        setattr(cfg, key, coerced)
    except ValidationError:
        console.print(f"[red]Error:[/red] Cannot convert {value!r} to {field_type}")
        raise typer.Exit(code=1)

    save_config(project.source_dir, cfg)
    console.print(f"[green]Updated:[/green] {key} = {getattr(cfg, key)!r}")


# ---------------------------------------------------------------------------
# Hook subcommands
# ---------------------------------------------------------------------------


@hook_app.command("install")
def hook_install(
    ctx: typer.Context,
    path: Optional[Path] = typer.Argument(None, help="Project path (default: current directory)."),
) -> None:
    """Install a pre-commit hook that runs 'promptc compile --check'."""
    from .hooks import get_repo_root, install_hook

    project = _require_project(ctx, path)
    repo_root = get_repo_root(project.root) or project.root

    project_dir = _relative(project.root, repo_root)
    if install_hook(repo_root, project_dir, project.source_dir.name):
        console.print("[green]Pre-commit hook installed.[/green]")
        console.print("  Commits will be rejected while compiled prompts are stale.")
    else:
        console.print("[red]Error:[/red] Could not install hook (is this a git repo?).")
        raise typer.Exit(code=1)


@hook_app.command("uninstall")
def hook_uninstall(
    ctx: typer.Context,
    path: Optional[Path] = typer.Argument(None, help="Project path (default: current directory)."),
) -> None:
    """Remove the promptc pre-commit hook."""
    from .hooks import get_repo_root, uninstall_hook

    project = _require_project(ctx, path)
    repo_root = get_repo_root(project.root) or project.root

    if uninstall_hook(repo_root):
        console.print("[green]Pre-commit hook removed.[/green]")
    else:
        console.print("[yellow]No promptc hook found to remove.[/yellow]")


if __name__ == "__main__":
    app()
