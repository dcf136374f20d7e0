"""Token-level namespace usage scanning of C# sources."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from scan.files import iter_files

logger = logging.getLogger(__name__)

SOURCE_PATTERNS = ("*.cs",)

_COMMENT_OR_STRING = re.compile(
    r'//[^\n]*|/\*.*?\*/|@"(?:[^"]|"")*"|"(?:\\.|[^"\\\n])*"|\'(?:\\.|[^\'\\\n])*\'',
    re.DOTALL,
)
_USING_DIRECTIVE = re.compile(
    r"^\s*(?:global\s+)?using\s+(?:static\s+)?(?:[A-Za-z_]\w*\s*=\s*)?"
    r"(?:global::)?([A-Za-z_][\w.]*)\s*;",
    re.MULTILINE,
)
_QUALIFIED_NAME = re.compile(r"(?<![\w.])[A-Za-z_]\w*(?:\s*\.\s*[A-Za-z_]\w*)+")


def _strip_comments_and_strings(source: str) -> str:
    return _COMMENT_OR_STRING.sub(" ", source)


def extract_namespaces(source: str) -> set[str]:
    """Return ``using`` targets and dotted qualified names found in a source."""
    code = _strip_comments_and_strings(source)
    tokens = {match.group(1) for match in _USING_DIRECTIVE.finditer(code)}
    tokens.update(
        re.sub(r"\s+", "", match.group(0)) for match in _QUALIFIED_NAME.finditer(code)
    )
    return tokens


def collect_used_namespaces(directory: Path | str) -> set[str]:
    """Collect namespace tokens from every C# file under a project directory.

    Files in ``bin``/``obj`` are skipped, as are files that cannot be read.
    """
    tokens: set[str] = set()
    for path in iter_files(Path(directory), SOURCE_PATTERNS, respect_gitignore=False):
        try:
            source = path.read_text(encoding="utf-8-sig", errors="replace")
        except OSError as exc:
            logger.debug("Skipping unreadable source %s: %s", path, exc)
            continue
        tokens.update(extract_namespaces(source))
    return tokens


def has_sources(directory: Path | str) -> bool:
    return bool(iter_files(Path(directory), SOURCE_PATTERNS, respect_gitignore=False))


__all__ = ["collect_used_namespaces", "extract_namespaces", "has_sources"]
