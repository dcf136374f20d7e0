"""Configuration document discovery and loading.

A configuration document may extend another one (or the built-in default).
Loading resolves that chain parent-first, merges each child over its base,
overlays an optional profile and validates the final result once.
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import orjson
import yaml
from pydantic import ValidationError

from rules.config import ConfigError, GuardConfig
from rules.defaults import create_default_configuration
from rules.merge import apply_profile, merge_configs
from rules.validation import validate_config

logger = logging.getLogger(__name__)

CONFIG_FILENAMES = (
    ".modulith.toml",
    ".modulith.yml",
    ".modulith.yaml",
    ".modulith.json",
    "modulith.toml",
    "modulith.yml",
    "modulith.yaml",
    "modulith.json",
)

DEFAULT_EXTENDS = "default"


@dataclass
class ConfigLoadResult:
    config: GuardConfig
    path: Path | None = None
    warnings: list[str] = field(default_factory=list)

    @property
    def is_default(self) -> bool:
        return self.path is None


def find_config_file(directory: Path) -> Path | None:
    """Return the first configuration document found in a directory."""
    for name in CONFIG_FILENAMES:
        candidate = Path(directory) / name
        if candidate.is_file():
            return candidate
    return None


def _read_document(path: Path) -> dict[str, Any]:
    suffix = path.suffix.lower()
    try:
        if suffix == ".toml":
            with path.open("rb") as f:
                data: Any = tomllib.load(f)
        elif suffix in {".yml", ".yaml"}:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        elif suffix == ".json":
            data = orjson.loads(path.read_bytes())
        else:
            msg = f"Unsupported configuration file format: {suffix or path.name}"
            raise ConfigError(msg, path=str(path))
    except (tomllib.TOMLDecodeError, yaml.YAMLError, orjson.JSONDecodeError) as exc:
        msg = f"Failed to parse configuration file '{path}': {exc}"
        raise ConfigError(msg, path=str(path)) from exc
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"Failed to read configuration file '{path}': {exc}"
        raise ConfigError(msg, path=str(path)) from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"Configuration file '{path}' must contain a mapping at the top level"
        raise ConfigError(msg, path=str(path))
    return data


def _parse_config(path: Path) -> GuardConfig:
    data = _read_document(path)
    try:
        return GuardConfig.model_validate(data)
    except ValidationError as exc:
        errors = [
            f"{'.'.join(str(part) for part in error['loc']) or '<root>'}: {error['msg']}"
            for error in exc.errors()
        ]
        msg = f"Invalid configuration in '{path}'"
        raise ConfigError(msg, path=str(path), errors=errors) from exc


def _resolve_extends(extends: str, current_file: Path) -> Path | None:
    if extends.strip() == DEFAULT_EXTENDS:
        return None
    base_path = Path(extends).expanduser()
    if base_path.is_absolute():
        return base_path
    return current_file.parent / base_path


def _load_chain(path: Path, in_progress: tuple[Path, ...]) -> GuardConfig:
    """Load one document and, recursively, the documents it extends.

    ``in_progress`` holds the absolute paths currently being resolved for
    this top-level load; a repeat means the chain is circular.
    """
    absolute = path.resolve()

    if absolute in in_progress:
        cycle = " -> ".join(str(p) for p in (*in_progress, absolute))
        msg = f"Circular configuration dependency detected: {cycle}"
        raise ConfigError(msg, path=str(path))

    if not absolute.is_file():
        if in_progress:
            msg = (
                f"Configuration '{in_progress[-1]}' extends '{path}', "
                "which does not exist"
            )
        else:
            msg = f"Configuration file not found: {path}"
        raise ConfigError(msg, path=str(path))

    config = _parse_config(absolute)
    if not config.extends or not config.extends.strip():
        return config

    base_path = _resolve_extends(config.extends, absolute)
    if base_path is None:
        logger.debug("%s extends the built-in default configuration", absolute)
        base = create_default_configuration()
    else:
        logger.debug("%s extends %s", absolute, base_path)
        base = _load_chain(base_path, (*in_progress, absolute))

    return merge_configs(base, config)


def load_config_file(path: Path, profile: str | None = None) -> ConfigLoadResult:
    """Load, merge, profile and validate a configuration document.

    Raises:
        ConfigError: If any document in the chain is missing, malformed or
            circular, the profile does not exist, or validation finds errors.
    """
    path = Path(path)
    config = _load_chain(path, ())

    if profile and profile.strip():
        try:
            config = apply_profile(config, profile.strip())
        except ConfigError as exc:
            raise ConfigError(exc.message, path=str(path)) from exc

    validation = validate_config(config)
    if not validation.ok:
        msg = f"Configuration file '{path}' contains errors:"
        raise ConfigError(msg, path=str(path), errors=validation.errors)

    for warning in validation.warnings:
        logger.warning("Configuration warning in '%s': %s", path, warning)

    return ConfigLoadResult(config=config, path=path, warnings=validation.warnings)


def resolve_configuration(
    directory: Path, profile: str | None = None
) -> ConfigLoadResult:
    """Load the configuration document in a directory, or the default one."""
    config_path = find_config_file(directory)
    if config_path is not None:
        return load_config_file(config_path, profile)

    config = create_default_configuration()
    if profile and profile.strip():
        config = apply_profile(config, profile.strip())
    return ConfigLoadResult(config=config)


def load_configuration(directory: Path, profile: str | None = None) -> GuardConfig:
    return resolve_configuration(directory, profile).config


__all__ = [
    "CONFIG_FILENAMES",
    "DEFAULT_EXTENDS",
    "ConfigLoadResult",
    "find_config_file",
    "load_config_file",
    "load_configuration",
    "resolve_configuration",
]
