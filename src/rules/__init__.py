"""Dependency rules for modular monolith checks."""

from rules.classify import ProjectClassifier
from rules.config import (
    ConfigError,
    DependencyRule,
    GuardConfig,
    ProjectPattern,
)
from rules.defaults import create_default_configuration
from rules.engine import ValidationEngine, ValidationReport
from rules.loader import load_config_file, load_configuration, resolve_configuration
from rules.validation import validate_config

__all__ = [
    "ConfigError",
    "DependencyRule",
    "GuardConfig",
    "ProjectClassifier",
    "ProjectPattern",
    "ValidationEngine",
    "ValidationReport",
    "create_default_configuration",
    "load_config_file",
    "load_configuration",
    "resolve_configuration",
    "validate_config",
]
