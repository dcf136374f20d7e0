"""File scanning utilities for project descriptors and sources."""

from __future__ import annotations

import logging
from fnmatch import fnmatch
from pathlib import Path
from typing import TYPE_CHECKING, cast

from gitignore_parser import parse_gitignore  # type: ignore[import-untyped]

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

logger = logging.getLogger(__name__)

DEFAULT_PROJECT_PATTERNS = ("*.csproj",)
BUILD_OUTPUT_DIRS = frozenset({"bin", "obj"})


def _should_include_file(
    path: Path,
    directory: Path,
    gitignore_matches: Callable[[str], bool] | None,
    patterns: Iterable[str],
) -> bool:
    """Check if a file should be included based on all filtering rules."""
    if not path.is_file() or path.is_symlink():
        return False

    if not _is_within_root(path, directory):
        return False

    try:
        rel_path = path.relative_to(directory)
    except ValueError:
        return False

    if any(part.lower() in BUILD_OUTPUT_DIRS for part in rel_path.parts[:-1]):
        return False

    if gitignore_matches is not None and gitignore_matches(str(path)):
        return False

    return any(fnmatch(path.name.lower(), pat.lower()) for pat in patterns)


def _is_within_root(path: Path, root: Path) -> bool:
    """Return True when the resolved path stays within the resolved root."""
    try:
        root_resolved = root.resolve()
        path_resolved = path.resolve()
    except OSError:
        return False

    try:
        path_resolved.relative_to(root_resolved)
    except ValueError:
        return False

    return True


def _iter_gitignore_files(root: Path) -> list[Path]:
    """Return sorted .gitignore files under root that stay inside it."""
    gitignore_paths = [root / ".gitignore"]
    gitignore_paths.extend(root.rglob(".gitignore"))
    unique_paths = {
        path
        for path in gitignore_paths
        if path.is_file() and not path.is_symlink() and _is_within_root(path, root)
    }
    return sorted(unique_paths, key=lambda p: p.relative_to(root).as_posix())


def _build_gitignore_matcher(root: Path) -> Callable[[str], bool] | None:
    gitignore_paths = _iter_gitignore_files(root)
    if not gitignore_paths:
        return None

    matchers: list[Callable[[str], bool]] = []
    for path in gitignore_paths:
        try:
            matchers.append(cast("Callable[[str], bool]", parse_gitignore(path)))
        except (OSError, UnicodeDecodeError) as exc:
            logger.debug("Skipping unreadable %s: %s", path, exc)

    def matches(path_str: str) -> bool:
        for matcher in matchers:
            try:
                if matcher(path_str):
                    return True
            except ValueError:
                continue
        return False

    return matches


def iter_files(
    directory: Path,
    patterns: Iterable[str],
    *,
    respect_gitignore: bool = True,
) -> list[Path]:
    """Return files under a directory matching any name pattern.

    Build output directories (``bin``, ``obj``), symlinks and anything
    escaping the directory are skipped. Results are sorted by relative path.
    """
    directory = Path(directory)
    if not directory.is_dir():
        return []

    patterns = tuple(patterns)
    gitignore_matches = _build_gitignore_matcher(directory) if respect_gitignore else None

    try:
        candidates = list(directory.rglob("*"))
    except OSError as exc:
        logger.warning("Failed to scan %s: %s", directory, exc)
        return []

    matched_files = [
        path
        for path in candidates
        if _should_include_file(path, directory, gitignore_matches, patterns)
    ]
    matched_files.sort(key=lambda p: p.relative_to(directory).as_posix())
    return matched_files


def find_project_files(
    root: Path | str,
    patterns: Iterable[str] = DEFAULT_PROJECT_PATTERNS,
) -> list[Path]:
    """Find project descriptor files under a root, respecting .gitignore.

    Args:
        root: Directory to search
        patterns: fnmatch patterns matched against file names
            (default ``("*.csproj",)``)

    Returns:
        Descriptor paths sorted lexicographically by relative path; empty
        when the root does not exist.
    """
    files = iter_files(Path(root), patterns)
    logger.debug("Discovered %d project file(s) under %s", len(files), root)
    return files


__all__ = [
    "BUILD_OUTPUT_DIRS",
    "DEFAULT_PROJECT_PATTERNS",
    "find_project_files",
    "iter_files",
]
