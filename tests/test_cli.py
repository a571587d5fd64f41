"""CLI tests driven through typer's CliRunner."""

from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from promptc.cli import app

runner = CliRunner()


@pytest.fixture()
def initialised(tmp_path: Path) -> Path:
    result = runner.invoke(app, ["init", str(tmp_path)])
    assert result.exit_code == 0, result.output
    return tmp_path


def test_help_lists_commands():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for command in ("init", "compile", "lint", "status", "config", "hook"):
        assert command in result.output


def test_init_twice_is_not_an_error(initialised):
    result = runner.invoke(app, ["init", str(initialised)])
    assert result.exit_code == 0
    assert "Already initialised" in result.output


def test_commands_require_project(tmp_path):
    result = runner.invoke(app, ["--source-dir", "no-such-src", "compile", "--path", str(tmp_path)])
    assert result.exit_code == 1
    assert "Error:" in result.output


def test_compile_everything(initialised):
    result = runner.invoke(app, ["compile", "--path", str(initialised)])
    assert result.exit_code == 0, result.output
    assert (initialised / ".claude" / "agents" / "pattern-critic.md").is_file()
    assert (initialised / ".claude" / "agents" / "pattern-scout.md").is_file()
    assert (initialised / ".claude" / "skills" / "extract-standards" / "SKILL.md").is_file()
    assert "Compiled 3 file(s)." in result.output


def test_compile_single_agent_and_skill(initialised):
    agent = initialised / ".claude-src" / "agents" / "pattern-scout.src.md"
    result = runner.invoke(app, ["compile", str(agent), "--path", str(initialised)])
    assert result.exit_code == 0, result.output
    assert (initialised / ".claude" / "agents" / "pattern-scout.md").is_file()
    assert not (initialised / ".claude" / "agents" / "pattern-critic.md").exists()

    skill = initialised / ".claude-src" / "skills" / "extract-standards"
    result = runner.invoke(app, ["compile", str(skill), "--path", str(initialised)])
    assert result.exit_code == 0, result.output
    assert (initialised / ".claude" / "skills" / "extract-standards" / "SKILL.md").is_file()


def test_compile_missing_file(initialised):
    result = runner.invoke(app, ["compile", str(initialised / "ghost.src.md"), "--path", str(initialised)])
    assert result.exit_code == 1
    assert "Error:" in result.output


def test_compile_strict_fails_on_broken_include(initialised):
    broken = initialised / ".claude-src" / "agents" / "broken.src.md"
    broken.write_text("@include(../partials/none.md)\n", encoding="utf-8")
    result = runner.invoke(app, ["compile", "--strict", "--path", str(initialised)])
    assert result.exit_code == 1
    assert "Error:" in result.output

    result = runner.invoke(app, ["compile", "--path", str(initialised)])
    assert result.exit_code == 0
    assert "left unresolved" in result.output


def test_check_detects_stale_outputs(initialised):
    result = runner.invoke(app, ["compile", "--check", "--path", str(initialised)])
    assert result.exit_code == 1

    runner.invoke(app, ["compile", "--path", str(initialised)])
    result = runner.invoke(app, ["compile", "--check", "--path", str(initialised)])
    assert result.exit_code == 0, result.output
    assert "up to date" in result.output

    partial = initialised / ".claude-src" / "partials" / "investigation-commands.md"
    partial.write_text(partial.read_text(encoding="utf-8") + "\nOne more tip.\n", encoding="utf-8")
    result = runner.invoke(app, ["compile", "--check", "--path", str(initialised)])
    assert result.exit_code == 1
    assert "stale" in result.output


def test_lint_clean_templates(initialised):
    result = runner.invoke(app, ["lint", "--path", str(initialised)])
    assert result.exit_code == 0, result.output
    assert "No errors" in result.output


def test_lint_reports_errors(initialised):
    bad = initialised / ".claude-src" / "agents" / "bad.src.md"
    bad.write_text("# Bad\n", encoding="utf-8")
    result = runner.invoke(app, ["lint", "--path", str(initialised)])
    assert result.exit_code == 1
    assert "frontmatter-missing" in result.output


def test_list_and_status(initialised):
    result = runner.invoke(app, ["list", "--path", str(initialised)])
    assert result.exit_code == 0, result.output
    assert "3 partial(s)" in result.output

    result = runner.invoke(app, ["status", "--path", str(initialised)])
    assert result.exit_code == 0, result.output


def test_config_get_and_set(initialised):
    result = runner.invoke(app, ["config", "--path", str(initialised)])
    assert result.exit_code == 0
    assert "output_dir = '.claude'" in result.output

    result = runner.invoke(app, ["config", "strict", "yes", "--path", str(initialised)])
    assert result.exit_code == 0, result.output
    assert "strict = True" in result.output
    config_text = (initialised / ".claude-src" / "config.toml").read_text(encoding="utf-8")
    assert "strict = true" in config_text

    result = runner.invoke(app, ["config", "output_dir", "--path", str(initialised)])
    assert "output_dir = '.claude'" in result.output


def test_config_unknown_key(initialised):
    result = runner.invoke(app, ["config", "colour", "blue", "--path", str(initialised)])
    assert result.exit_code == 1
    assert "Unknown config key" in result.output


def test_hook_install_and_uninstall(initialised):
    (initialised / ".git" / "hooks").mkdir(parents=True)
    result = runner.invoke(app, ["hook", "install", str(initialised)])
    assert result.exit_code == 0, result.output
    assert (initialised / ".git" / "hooks" / "pre-commit").is_file()

    result = runner.invoke(app, ["hook", "uninstall", str(initialised)])
    assert result.exit_code == 0
    assert not (initialised / ".git" / "hooks" / "pre-commit").exists()


def test_config_rejects_unknown_bool(initialised):
    config_path = initialised / ".claude-src" / "config.toml"
    before = config_path.read_text(encoding="utf-8")
    result = runner.invoke(app, ["config", "strict", "maybe", "--path", str(initialised)])
    assert result.exit_code == 1
    assert "Cannot convert 'maybe' to bool" in result.output
    assert config_path.read_text(encoding="utf-8") == before


class TestUndecodableSource:
    @pytest.fixture()
    def project(self, initialised: Path) -> Path:
        (initialised / ".claude-src" / "agents" / "bin.src.md").write_bytes(b"\xff\xfe\x00bad")
        return initialised

    @pytest.mark.parametrize("args", [
        ["compile"],
        ["compile", "--check"],
        ["status"],
        ["list"],
    ])
    def test_reports_error_without_traceback(self, project, args):
        result = runner.invoke(app, [*args, "--path", str(project)])
        assert result.exit_code == 1
        assert "Error:" in result.output
        assert result.exception is None or isinstance(result.exception, SystemExit)

    def test_single_agent(self, project):
        agent = project / ".claude-src" / "agents" / "bin.src.md"
        result = runner.invoke(app, ["compile", str(agent), "--path", str(project)])
        assert result.exit_code == 1
        assert "Error:" in result.output
        assert result.exception is None or isinstance(result.exception, SystemExit)

    def test_lint_reports_unreadable(self, project):
        result = runner.invoke(app, ["lint", "--path", str(project)])
        assert result.exit_code == 1
        assert "unreadable" in result.output
        assert result.exception is None or isinstance(result.exception, SystemExit)


def test_hook_for_project_nested_in_repo(tmp_path, monkeypatch):
    (tmp_path / ".git" / "hooks").mkdir(parents=True)
    project = tmp_path / "sub"
    project.mkdir()
    assert runner.invoke(app, ["init", str(project)]).exit_code == 0
    assert runner.invoke(app, ["compile", "--path", str(project)]).exit_code == 0

    result = runner.invoke(app, ["hook", "install", str(project)])
    assert result.exit_code == 0, result.output
    hook = (tmp_path / ".git" / "hooks" / "pre-commit").read_text(encoding="utf-8")
    assert '[ -d "sub/.claude-src" ]' in hook
    assert 'cd "sub"' in hook
    assert '--source-dir ".claude-src"' in hook

    # The hook changes into the project before checking.
    monkeypatch.chdir(project)
    result = runner.invoke(app, ["--source-dir", ".claude-src", "compile", "--check"])
    assert result.exit_code == 0, result.output
