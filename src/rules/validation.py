"""Static validation of a merged configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from models.violations import Severity

if TYPE_CHECKING:
    from rules.config import (
        DependencyRule,
        GuardConfig,
        ProjectPattern,
        SeverityOverride,
        SharedConfig,
    )


_SECTION_KINDS = {"modules": "module", "shared": "shared"}


@dataclass
class ConfigValidationResult:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def _check_pattern_set(
    patterns: list[ProjectPattern],
    section: str,
    result: ConfigValidationResult,
) -> None:
    if not patterns:
        kind = _SECTION_KINDS.get(section, section)
        result.warnings.append(
            f"{kind.capitalize()} configuration has no patterns defined. "
            f"No {kind} projects will be detected."
        )
        return

    seen_types: set[str] = set()
    seen_globs: set[str] = set()

    for pattern in patterns:
        if not pattern.name.strip():
            result.errors.append(f"Project pattern in {section} has empty name.")

        if not pattern.pattern.strip():
            result.errors.append(
                f"Project pattern '{pattern.name}' in {section} has empty pattern."
            )
        elif pattern.pattern in seen_globs:
            result.errors.append(
                f"Duplicate pattern '{pattern.pattern}' found in {section}. "
                "Each pattern must be unique."
            )
        else:
            seen_globs.add(pattern.pattern)

        if not pattern.type.strip():
            result.errors.append(
                f"Project pattern '{pattern.name}' in {section} has empty type identifier."
            )
        elif pattern.type in seen_types:
            result.errors.append(
                f"Duplicate type '{pattern.type}' found in {section}. "
                "Each type must be unique."
            )
        else:
            seen_types.add(pattern.type)


def _check_module_extraction(
    patterns: list[ProjectPattern], result: ConfigValidationResult
) -> None:
    for pattern in patterns:
        if not (pattern.module_extraction or "").strip():
            result.errors.append(
                f"Module pattern '{pattern.name}' (type: {pattern.type}) must have "
                "a moduleExtraction regex to extract module name."
            )


def _check_working_directory(
    shared: SharedConfig, result: ConfigValidationResult
) -> None:
    directory = shared.working_directory
    if directory and ("*" in directory or "?" in directory):
        result.errors.append(
            f"Shared workingDirectory cannot contain wildcards: '{directory}'"
        )


def _check_dependency_rules(
    config: GuardConfig, result: ConfigValidationResult
) -> None:
    rules: dict[str, DependencyRule] = config.dependency_rules
    module_types = {p.type for p in config.modules.patterns if p.type}
    shared_types = {p.type for p in config.shared.patterns if p.type}

    if not rules:
        result.warnings.append(
            "No dependency rules defined. All project dependencies will be allowed."
        )

    for type_id, rule in rules.items():
        if type_id not in module_types and type_id not in shared_types:
            result.warnings.append(
                f"Dependency rule defined for type '{type_id}' but no project "
                "pattern with this type exists."
            )
        if not rule.allowed and not rule.denied:
            result.warnings.append(
                f"Dependency rule for type '{type_id}' has no allowed or denied "
                "patterns. This rule has no effect."
            )
        for category, entries in (("allowed", rule.allowed), ("denied", rule.denied)):
            if any(not entry.strip() for entry in entries):
                result.errors.append(
                    f"Dependency rule for type '{type_id}' contains empty {category} pattern."
                )

    ordered_types = [p.type for p in config.modules.patterns] + [
        p.type for p in config.shared.patterns
    ]
    for type_id in dict.fromkeys(t for t in ordered_types if t):
        if type_id in rules:
            continue
        should_warn = (
            type_id in module_types and config.modules.missing_rules_warnings
        ) or (type_id in shared_types and config.shared.missing_rules_warnings)
        if should_warn:
            result.warnings.append(
                f"Project type '{type_id}' has no dependency rules defined. "
                "All dependencies will be allowed for this type."
            )


def _check_severity_overrides(
    overrides: list[SeverityOverride], result: ConfigValidationResult
) -> None:
    seen_rules: set[str] = set()

    for override in overrides:
        if not override.rule.strip():
            result.errors.append("Severity override has empty rule name.")
            continue

        if override.rule in seen_rules:
            result.warnings.append(
                f"Duplicate severity override for rule '{override.rule}'. "
                "Only the last override will apply."
            )
        else:
            seen_rules.add(override.rule)

        if not (override.severity or "").strip():
            result.errors.append(
                f"Severity override for rule '{override.rule}' has empty severity."
            )
        elif Severity.parse(override.severity) is None:
            valid = ", ".join(member.value for member in Severity)
            result.errors.append(
                f"Severity override for rule '{override.rule}' has invalid severity "
                f"'{override.severity}'. Valid values are: {valid}."
            )


def _check_ignored_projects(
    ignored: list[str], result: ConfigValidationResult
) -> None:
    if any(not entry.strip() for entry in ignored):
        result.errors.append("Ignored projects list contains empty pattern.")


def validate_config(config: GuardConfig) -> ConfigValidationResult:
    """Check a merged configuration for errors and advisory warnings.

    Every check runs regardless of earlier findings so that a single pass
    reports all problems.
    """
    result = ConfigValidationResult()

    _check_pattern_set(config.modules.patterns, "modules", result)
    _check_module_extraction(config.modules.patterns, result)
    _check_pattern_set(config.shared.patterns, "shared", result)
    _check_working_directory(config.shared, result)
    _check_dependency_rules(config, result)
    _check_severity_overrides(config.severity_overrides, result)
    _check_ignored_projects(config.ignored_projects, result)

    return result


__all__ = ["ConfigValidationResult", "validate_config"]
