"""Built-in configuration for a conventional modular monolith layout."""

from __future__ import annotations

from rules.config import (
    DependencyRule,
    GuardConfig,
    ModulesConfig,
    ProjectPattern,
    SharedConfig,
)

# (pattern name, project name suffix, type id)
_MODULE_LAYOUT: tuple[tuple[str, str, str], ...] = (
    ("Core", "Core", "core"),
    ("Infrastructure", "Infrastructure", "infrastructure"),
    ("AdminApp", "Admin.App", "admin-app"),
    ("AdminEndpoints", "Admin.Endpoints", "admin-endpoints"),
    ("PrivateApp", "Private.App", "private-app"),
    ("PrivateEndpoints", "Private.Endpoints", "private-endpoints"),
    ("PublicApp", "Public.App", "public-app"),
    ("PublicEndpoints", "Public.Endpoints", "public-endpoints"),
    ("SharedEvents", "Shared.Events", "shared-events"),
    ("SharedMessages", "Shared.Messages", "shared-messages"),
)

_SHARED_LAYOUT: tuple[tuple[str, str, str], ...] = (
    ("SharedCore", "Shared.Core", "shared-core"),
    ("SharedInfrastructure", "Shared.Infrastructure", "shared-infrastructure"),
    ("SharedAppAdmin", "Shared.App.Admin", "shared-app-admin"),
    ("SharedAppPrivate", "Shared.App.Private", "shared-app-private"),
    ("SharedAppPublic", "Shared.App.Public", "shared-app-public"),
)

_APP_VARIANTS = ("Admin", "Private", "Public")


def _module_pattern(name: str, suffix: str, type_id: str) -> ProjectPattern:
    extraction = "^(.+)\\." + suffix.replace(".", "\\.") + "$"
    return ProjectPattern(
        name=name,
        pattern=f"*.{suffix}",
        type=type_id,
        module_extraction=extraction,
    )


def _default_rules() -> dict[str, DependencyRule]:
    rules: dict[str, DependencyRule] = {
        "core": DependencyRule(
            allowed=["Shared.Core"],
            denied=["*.Infrastructure", "*.App", "*.Endpoints"],
        ),
        "infrastructure": DependencyRule(
            allowed=["Shared.Infrastructure", "{module}.Core"],
            denied=["*.App", "*.Endpoints"],
        ),
    }
    for variant in _APP_VARIANTS:
        rules[f"{variant.lower()}-app"] = DependencyRule(
            allowed=[
                f"Shared.App.{variant}",
                "{module}.Core",
                "{module}.Infrastructure",
                "*.Shared.Events",
                "*.Shared.Messages",
            ],
            denied=["*.Endpoints"],
        )
    for variant in _APP_VARIANTS:
        rules[f"{variant.lower()}-endpoints"] = DependencyRule(
            allowed=[f"{{module}}.{variant}.App"],
            denied=["*.Core", "*.Infrastructure"],
        )
    return rules


def create_default_configuration() -> GuardConfig:
    """Return a fresh copy of the built-in configuration."""
    return GuardConfig(
        modules=ModulesConfig(
            patterns=[
                _module_pattern(name, suffix, type_id)
                for name, suffix, type_id in _MODULE_LAYOUT
            ],
        ),
        shared=SharedConfig(
            patterns=[
                ProjectPattern(name=name, pattern=pattern, type=type_id)
                for name, pattern, type_id in _SHARED_LAYOUT
            ],
        ),
        dependency_rules=_default_rules(),
    )


__all__ = ["create_default_configuration"]
