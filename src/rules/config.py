from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

InheritMode = Literal["replace", "merge", "extend"]

UNKNOWN_TYPE = "unknown"
SHARED_MODULE = "Shared"
UNKNOWN_MODULE = "Unknown"


class _ConfigModel(BaseModel):
    """Base for configuration documents: snake_case or camelCase keys, no extras."""

    model_config = ConfigDict(
        extra="forbid",
        populate_by_name=True,
        alias_generator=to_camel,
    )


class ProjectPattern(_ConfigModel):
    """A pattern identifying one project type."""

    name: str = Field(default="", description="Display name for this project type")
    pattern: str = Field(default="", description="Glob matched against project names")
    type: str = Field(default="", description="Unique type identifier")
    module_extraction: str | None = Field(
        default=None,
        description="Regex whose first group extracts the module name",
    )


class ModulesConfig(_ConfigModel):
    """Patterns for projects that belong to a business module."""

    patterns: list[ProjectPattern] = Field(default_factory=list)
    missing_rules_warnings: bool = Field(
        default=True,
        description="Warn about module types without dependency rules",
    )


class SharedConfig(_ConfigModel):
    """Patterns for projects shared by every module."""

    working_directory: str | None = Field(
        default=None,
        description=(
            "Directory (relative to the scanned root) holding shared projects; "
            "when set, only projects inside it match shared patterns"
        ),
    )
    patterns: list[ProjectPattern] = Field(default_factory=list)
    missing_rules_warnings: bool = Field(
        default=True,
        description="Warn about shared types without dependency rules",
    )


class DependencyRule(_ConfigModel):
    """Allowed and denied dependency globs for one project type."""

    inherit: InheritMode = Field(
        default="replace",
        description="How this rule combines with an inherited rule for the same type",
    )
    allowed: list[str] = Field(default_factory=list)
    denied: list[str] = Field(default_factory=list)

    @field_validator("inherit", mode="before")
    @classmethod
    def normalize_inherit(cls, v: Any) -> Any:
        if v is None:
            return "replace"
        if isinstance(v, str):
            return v.strip().lower()
        return v


class SeverityOverride(_ConfigModel):
    """Replacement severity for every violation of one rule."""

    rule: str = ""
    severity: str | None = None


class ConfigurationProfile(_ConfigModel):
    """Named overlay applied on top of the merged configuration."""

    ignored_projects: list[str] = Field(default_factory=list)
    severity_overrides: list[SeverityOverride] = Field(default_factory=list)
    dependency_rules: dict[str, DependencyRule] = Field(default_factory=dict)


class GuardConfig(_ConfigModel):
    """Root configuration for modular monolith dependency checks."""

    extends: str | None = Field(
        default=None,
        description="Base configuration file to inherit from, or 'default'",
    )
    modules: ModulesConfig = Field(default_factory=ModulesConfig)
    shared: SharedConfig = Field(default_factory=SharedConfig)
    dependency_rules: dict[str, DependencyRule] = Field(default_factory=dict)
    ignored_projects: list[str] = Field(default_factory=list)
    severity_overrides: list[SeverityOverride] = Field(default_factory=list)
    profiles: dict[str, ConfigurationProfile] = Field(default_factory=dict)


class ConfigError(Exception):
    """Raised when a configuration cannot be loaded, resolved or validated."""

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        errors: list[str] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.path = path
        self.errors = list(errors or [])

    def __str__(self) -> str:
        if not self.errors:
            return self.message
        items = "\n".join(f"  - {error}" for error in self.errors)
        return f"{self.message}\n{items}"


__all__ = [
    "SHARED_MODULE",
    "UNKNOWN_MODULE",
    "UNKNOWN_TYPE",
    "ConfigError",
    "ConfigurationProfile",
    "DependencyRule",
    "GuardConfig",
    "InheritMode",
    "ModulesConfig",
    "ProjectPattern",
    "SeverityOverride",
    "SharedConfig",
]
