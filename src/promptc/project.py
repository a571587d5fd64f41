"""Project discovery, scaffolding and ``config.toml`` persistence."""

from __future__ import annotations

import logging
import shutil
import tomllib
from pathlib import Path

import toml
from pydantic import ValidationError

from .models import Project, PromptcConfig

logger = logging.getLogger(__name__)

SOURCE_DIRNAME = ".claude-src"
CONFIG_FILENAME = "config.toml"
TEMPLATES_DIR = Path(__file__).parent / "templates"


def find_project_root(start: Path, source_dirname: str = SOURCE_DIRNAME) -> Path | None:
    """Walk up from *start* to the nearest directory containing *source_dirname*."""
    start = Path(start).resolve()
    for candidate in [start, *start.parents]:
        if (candidate / source_dirname).is_dir():
            return candidate
    return None


def load_config(source_dir: Path) -> PromptcConfig:
    """Read ``config.toml`` from *source_dir*; defaults when absent.

    Raises ``ValueError`` for malformed TOML or unknown/invalid keys.
    """
    path = Path(source_dir) / CONFIG_FILENAME
    if not path.is_file():
        return PromptcConfig()

    with path.open("rb") as fh:
        data = tomllib.load(fh)
    try:
        return PromptcConfig(**data)
    except ValidationError as exc:
        raise ValueError(f"Invalid {path}: {exc}") from exc


def save_config(source_dir: Path, config: PromptcConfig) -> Path:
    """Write *config* to ``config.toml`` in *source_dir*."""
    path = Path(source_dir) / CONFIG_FILENAME
    with path.open("w", encoding="utf-8") as fh:
        fh.write("# promptc configuration\n\n")
        toml.dump(config.model_dump(), fh)
    return path


def load_project(start: Path, source_dirname: str = SOURCE_DIRNAME) -> Project | None:
    """Locate the project containing *start* and load its configuration."""
    root = find_project_root(start, source_dirname)
    if root is None:
        return None
    source_dir = root / source_dirname
    return Project(root=root, source_dir=source_dir, config=load_config(source_dir))


def init_project(root: Path, source_dirname: str = SOURCE_DIRNAME) -> Path:
    """Scaffold a source directory in *root* from the bundled templates.

    Raises ``ValueError`` if *root* is not a directory and
    ``FileExistsError`` if the source directory already exists.
    """
    root = Path(root).resolve()
    if not root.is_dir():
        raise ValueError(f"{root} is not a directory")

    source_dir = root / source_dirname
    if source_dir.exists():
        raise FileExistsError(source_dir)

    shutil.copytree(
        TEMPLATES_DIR,
        source_dir,
        ignore=shutil.ignore_patterns("__pycache__", "*.pyc"),
    )
    save_config(source_dir, PromptcConfig())
    logger.info("Initialised %s", source_dir)
    return source_dir
