"""Glob matching for project names."""

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

MODULE_TOKEN = "{module}"


def glob_to_regex(glob: str) -> str:
    """Translate a name glob into an anchored regular expression.

    ``*`` matches zero or more characters and ``?`` exactly one; every other
    character is literal.
    """
    escaped = re.escape(glob)
    escaped = escaped.replace(r"\*", ".*").replace(r"\?", ".")
    return f"^{escaped}$"


def compile_glob(glob: str) -> re.Pattern[str] | None:
    """Compile a glob case-insensitively; None when it cannot be compiled."""
    try:
        return re.compile(glob_to_regex(glob), re.IGNORECASE | re.DOTALL)
    except (re.error, TypeError) as exc:
        logger.debug("Ignoring uncompilable glob %r: %s", glob, exc)
        return None


def matches_glob(name: str, glob: str) -> bool:
    """Return True when the whole name matches the glob, ignoring case."""
    compiled = compile_glob(glob)
    if compiled is None:
        return False
    return compiled.fullmatch(name) is not None


def matches_any(name: str, globs: list[str]) -> bool:
    return any(matches_glob(name, glob) for glob in globs)


def expand_module(glob: str, module_name: str) -> str:
    """Substitute the ``{module}`` token with the evaluating module's name."""
    return glob.replace(MODULE_TOKEN, module_name)


__all__ = [
    "MODULE_TOKEN",
    "compile_glob",
    "expand_module",
    "glob_to_regex",
    "matches_any",
    "matches_glob",
]
