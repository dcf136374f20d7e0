"""Project type classification and module name extraction."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from rules.config import SHARED_MODULE, UNKNOWN_MODULE, UNKNOWN_TYPE
from rules.patterns import compile_glob
from utils import normalize_path

if TYPE_CHECKING:
    from pathlib import Path

    from rules.config import GuardConfig, ProjectPattern

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _CompiledPattern:
    type_id: str
    glob: str
    regex: re.Pattern[str]


def _compile_patterns(patterns: list[ProjectPattern]) -> list[_CompiledPattern]:
    compiled: list[_CompiledPattern] = []
    for pattern in patterns:
        regex = compile_glob(pattern.pattern)
        if regex is None:
            continue
        compiled.append(_CompiledPattern(pattern.type, pattern.pattern, regex))
    return compiled


def _first_match(name: str, patterns: list[_CompiledPattern]) -> str | None:
    for pattern in patterns:
        if pattern.regex.fullmatch(name):
            return pattern.type_id
    return None


def _normalize_directory(directory: str | None) -> str | None:
    if directory is None or not directory.strip():
        return None
    return directory.strip().strip("/\\").replace("\\", "/")


class ProjectClassifier:
    """Assigns each project a type id and a module group name.

    Pattern sets are compiled once per instance; build a new classifier
    whenever the configuration is reloaded.
    """

    def __init__(self, config: GuardConfig) -> None:
        self._module_patterns = _compile_patterns(config.modules.patterns)
        self._shared_patterns = _compile_patterns(config.shared.patterns)
        self._shared_types = {p.type for p in config.shared.patterns}
        self._shared_directory = _normalize_directory(config.shared.working_directory)

        self._extractions: dict[str, str | None] = {}
        for pattern in config.modules.patterns:
            self._extractions.setdefault(pattern.type, pattern.module_extraction)

    def _in_shared_directory(self, descriptor_path: str | Path, root_path: str | Path) -> bool:
        shared_root = normalize_path(
            os.path.join(str(root_path).replace("\\", "/"), self._shared_directory or "")
        )
        prefix = shared_root.rstrip("/").lower() + "/"
        return normalize_path(descriptor_path).lower().startswith(prefix)

    def detect_type(
        self,
        name: str,
        descriptor_path: str | Path | None = None,
        root_path: str | Path | None = None,
    ) -> str:
        """Detect the project type; shared patterns take precedence.

        With a shared working directory and both paths, projects inside the
        directory are matched against shared patterns only and all others
        against module patterns only.
        """
        if (
            self._shared_directory is not None
            and descriptor_path is not None
            and root_path is not None
        ):
            if self._in_shared_directory(descriptor_path, root_path):
                candidates = self._shared_patterns
            else:
                candidates = self._module_patterns
            return _first_match(name, candidates) or UNKNOWN_TYPE

        return (
            _first_match(name, self._shared_patterns)
            or _first_match(name, self._module_patterns)
            or UNKNOWN_TYPE
        )

    def extract_module_name(self, name: str, type_id: str) -> str:
        if type_id == UNKNOWN_TYPE:
            return UNKNOWN_MODULE
        if type_id in self._shared_types:
            return SHARED_MODULE

        extraction = self._extractions.get(type_id)
        if extraction:
            try:
                match = re.search(extraction, name)
            except re.error as exc:
                logger.debug("Invalid moduleExtraction %r: %s", extraction, exc)
                match = None
            if match is not None and match.re.groups >= 1 and match.group(1):
                return match.group(1)

        # Falls back to the first dotted segment when extraction does not apply.
        first_dot = name.find(".")
        return name[:first_dot] if first_dot > 0 else name

    def classify(
        self,
        name: str,
        descriptor_path: str | Path | None = None,
        root_path: str | Path | None = None,
    ) -> tuple[str, str]:
        """Return ``(type_id, module_name)`` for a project."""
        type_id = self.detect_type(name, descriptor_path, root_path)
        return type_id, self.extract_module_name(name, type_id)


__all__ = ["ProjectClassifier"]
