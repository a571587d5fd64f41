"""Git hook management for promptc.

Installs/uninstalls a pre-commit hook that runs ``promptc compile --check``
so commits are rejected while compiled agents or skills are out of date.
"""

from __future__ import annotations

import stat
import subprocess
import sys
from pathlib import Path

_SENTINEL_START = "# --- promptc hook start ---"
_SENTINEL_END = "# --- promptc hook end ---"

HOOK_NAME = "pre-commit"


def _hook_body(project_dir: str, source_dirname: str) -> str:
    # Hooks run from the repository root; the check must run from the
    # project root so the output directory resolves against it.
    return f"""\
{_SENTINEL_START}
if [ -d "{project_dir}/{source_dirname}" ]; then
    (cd "{project_dir}" && promptc --source-dir "{source_dirname}" compile --check) || {{
        echo "promptc: compiled prompts are out of date; run 'promptc compile'." >&2
        exit 1
    }}
fi
{_SENTINEL_END}
"""


def get_repo_root(start: Path) -> Path | None:
    """Return the git repository root, or ``None`` if *start* is not inside a repo.

    Falls back to the nearest ancestor holding a ``.git`` directory when the
    ``git`` executable is unavailable or does not recognise the repository.
    """
    start = Path(start).resolve()
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--show-toplevel"],
            cwd=start,
            capture_output=True,
            text=True,
        )
        if result.returncode == 0:
            return Path(result.stdout.strip())
    except OSError:
        pass
    for candidate in [start, *start.parents]:
        if (candidate / ".git").is_dir():
            return candidate
    return None


def install_hook(
    repo_root: Path,
    project_dir: str = ".",
    source_dirname: str = ".claude-src",
) -> bool:
    """Install the promptc section into ``.git/hooks/pre-commit``.

    *project_dir* is the project root relative to *repo_root*.  If the hook
    already exists the promptc section is appended (unless it is already
    present). Returns ``False`` when ``.git/hooks`` does not exist.
    """
    hook_path = repo_root / ".git" / "hooks" / HOOK_NAME
    if not hook_path.parent.is_dir():
        return False

    body = _hook_body(project_dir, source_dirname)
    if hook_path.exists():
        existing = hook_path.read_text(encoding="utf-8")
        if _SENTINEL_START in existing:
            # Already installed.
            return True
        new_content = existing.rstrip("\n") + "\n\n" + body
    else:
        new_content = "#!/bin/sh\n\n" + body

    hook_path.write_text(new_content, encoding="utf-8")

    # Make executable on non-Windows platforms.
    if sys.platform != "win32":
        hook_path.chmod(hook_path.stat().st_mode | stat.S_IEXEC)

    return True


def uninstall_hook(repo_root: Path) -> bool:
    """Remove the promptc section from the pre-commit hook.

    If the hook file is empty (or shebang-only) after removal, deletes it.
    Returns ``True`` if a promptc section was found and removed.
    """
    hook_path = repo_root / ".git" / "hooks" / HOOK_NAME
    if not hook_path.is_file():
        return False

    content = hook_path.read_text(encoding="utf-8")
    if _SENTINEL_START not in content:
        return False

    # Remove everything between (and including) the sentinel lines.
    new_lines: list[str] = []
    inside = False
    for line in content.splitlines(keepends=True):
        if line.strip() == _SENTINEL_START:
            inside = True
            continue
        if line.strip() == _SENTINEL_END:
            inside = False
            continue
        if not inside:
            new_lines.append(line)

    remaining = "".join(new_lines).strip()

    if not remaining or remaining == "#!/bin/sh":
        hook_path.unlink()
    else:
        hook_path.write_text(remaining + "\n", encoding="utf-8")

    return True
