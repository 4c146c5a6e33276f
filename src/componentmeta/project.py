"""Project loading: build a checker, feed it the source tree and open a session."""
from __future__ import annotations

from pathlib import Path
from typing import Iterator, Optional

from .checker.base import CheckerRegistry, TypeChecker
from .checker.typescript import TypeScriptChecker
from .config import Settings
from .errors import ConfigurationError
from .logging import get_logger
from .session import MetaSession

logger = get_logger("project")

checkers = CheckerRegistry()
checkers.register("typescript", TypeScriptChecker)


def build_checker(settings: Settings, language: str = "typescript") -> TypeChecker:
    return checkers.create(language, component_wrappers=settings.component_wrappers)


def iter_source_files(settings: Settings) -> Iterator[Path]:
    root = settings.root_path
    suffixes = tuple(settings.extensions)
    skip = set(settings.skip_dirs)
    for path in sorted(root.rglob("*")):
        if not path.is_file() or not path.name.endswith(suffixes):
            continue
        if skip.intersection(path.relative_to(root).parts[:-1]):
            continue
        yield path


def load_project(checker: TypeChecker, settings: Settings) -> int:
    """Track every source file under ``root_path``; returns the number of files loaded."""
    if not settings.root_path.is_dir():
        raise ConfigurationError(f"Project root not found: {settings.root_path}")
    count = 0
    for path in iter_source_files(settings):
        checker.update_file(str(path), path.read_text(encoding="utf-8"))
        count += 1
    logger.info("Loaded %d source files from %s", count, settings.root_path)
    return count


def create_session(
    settings: Optional[Settings] = None,
    entry: Optional[Path | str] = None,
    checker: Optional[TypeChecker] = None,
) -> MetaSession:
    settings = settings or Settings()
    entry_file = settings.entry_path(entry)
    if not entry_file.is_file():
        raise ConfigurationError(f"Entry file not found: {entry_file}")
    if checker is None:
        checker = build_checker(settings)
        load_project(checker, settings)
    return MetaSession(checker, entry_file, settings)
