"""Dependency rule evaluation.

Rules are a data table: one entry per type id from the configuration's
dependency rules, evaluated after a fixed check for unclassified projects.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from models.violations import Severity, Violation
from rules.config import UNKNOWN_TYPE
from rules.patterns import compile_glob, expand_module, matches_any

if TYPE_CHECKING:
    import re
    from collections.abc import Sequence

    from models.projects import ModuleInfo, ProjectReference
    from rules.config import DependencyRule, GuardConfig

logger = logging.getLogger(__name__)

UNKNOWN_TYPE_RULE_ID = "unknown-project-type"
MAX_ALLOWED_EXAMPLES = 3

# (referenced type fragment, source type fragment, note)
_ANTI_PATTERN_NOTES: tuple[tuple[str, str, str], ...] = (
    (
        "endpoints",
        "app",
        "App projects should not reference Endpoints projects. "
        "Consider moving shared logic to Core or Infrastructure.",
    ),
    (
        "infrastructure",
        "core",
        "Core projects should not reference Infrastructure projects. "
        "Core should be infrastructure-agnostic.",
    ),
    (
        "app",
        "infrastructure",
        "Infrastructure projects should not reference App projects. "
        "Consider moving shared logic to Core.",
    ),
)


def rule_id_for(type_id: str) -> str:
    return f"dependency-rule:{type_id}"


@dataclass(frozen=True)
class _RuleEntry:
    type_id: str
    rule: DependencyRule


@dataclass
class ValidationReport:
    violations: list[Violation] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return sum(1 for v in self.violations if v.severity is Severity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for v in self.violations if v.severity is Severity.WARNING)

    @property
    def info_count(self) -> int:
        return sum(1 for v in self.violations if v.severity is Severity.INFO)

    @property
    def has_errors(self) -> bool:
        return self.error_count > 0

    @property
    def exit_code(self) -> int:
        return 1 if self.has_errors else 0


def sort_violations(violations: list[Violation]) -> list[Violation]:
    """Order by project name, then severity (errors first); stable otherwise."""
    return sorted(violations, key=lambda v: (v.project_name, v.severity.rank))


class ValidationEngine:
    """Evaluates project references against a configuration's rule table."""

    def __init__(self, config: GuardConfig) -> None:
        self._rules = [
            _RuleEntry(type_id, rule) for type_id, rule in config.dependency_rules.items()
        ]
        self._ignored: list[re.Pattern[str]] = [
            regex
            for regex in (compile_glob(glob) for glob in config.ignored_projects)
            if regex is not None
        ]
        self._overrides: dict[str, Severity | None] = {}
        for override in config.severity_overrides:
            self._overrides[override.rule.lower()] = Severity.parse(override.severity)
        logger.debug("Validation engine built with rules: %s", ", ".join(self.rule_ids))

    @property
    def rule_ids(self) -> list[str]:
        return [UNKNOWN_TYPE_RULE_ID, *(rule_id_for(entry.type_id) for entry in self._rules)]

    def is_ignored(self, project_name: str) -> bool:
        return any(regex.fullmatch(project_name) for regex in self._ignored)

    def validate_all(self, modules: Sequence[ModuleInfo]) -> list[Violation]:
        """Validate every module and return severity-adjusted, sorted violations."""
        by_name = {module.name.lower(): module for module in reversed(modules)}
        violations: list[Violation] = []

        for module in modules:
            if self.is_ignored(module.name):
                logger.debug("Skipping ignored project %s", module.name)
                continue

            if module.type_id == UNKNOWN_TYPE:
                violations.append(_unknown_type_violation(module))

            for entry in self._rules:
                if entry.type_id.lower() != module.type_id.lower():
                    continue
                found = _evaluate_rule(entry, module, by_name)
                if found:
                    logger.debug(
                        "Rule %s found %d violation(s) in %s",
                        rule_id_for(entry.type_id),
                        len(found),
                        module.name,
                    )
                violations.extend(found)

        return sort_violations([self._apply_override(v) for v in violations])

    def validate(self, modules: Sequence[ModuleInfo]) -> ValidationReport:
        return ValidationReport(violations=self.validate_all(modules))

    def _apply_override(self, violation: Violation) -> Violation:
        severity = self._overrides.get(violation.rule_id.lower())
        if severity is None:
            return violation
        return violation.model_copy(update={"severity": severity})


def _unknown_type_violation(module: ModuleInfo) -> Violation:
    name = module.name
    return Violation(
        project_name=name,
        reference=None,
        rule_id=UNKNOWN_TYPE_RULE_ID,
        description=(
            f"Project '{name}' does not match any module or shared pattern. "
            "Update configuration to add a matching pattern, or add this project "
            "to 'ignoredProjects' if it should be excluded from validation."
        ),
        severity=Severity.ERROR,
        suggestion=(
            "Add a project type pattern in the configuration file, or add "
            f"'{name}' to the 'ignoredProjects' list."
        ),
        auto_fixable=False,
    )


def _matches_rule_patterns(module: ModuleInfo, target: ModuleInfo, globs: list[str]) -> bool:
    return matches_any(target.name, [expand_module(g, module.module_name) for g in globs])


def _evaluate_rule(
    entry: _RuleEntry,
    module: ModuleInfo,
    by_name: dict[str, ModuleInfo],
) -> list[Violation]:
    violations: list[Violation] = []

    for reference in module.project.references:
        target = by_name.get(reference.target_name.lower())
        if target is None:
            continue

        if _matches_rule_patterns(module, target, entry.rule.denied):
            reason = "This reference is explicitly denied by configuration."
        elif not _matches_rule_patterns(module, target, entry.rule.allowed):
            reason = "This reference is not in the allowed list."
        else:
            continue

        violations.append(_reference_violation(entry, module, target, reference, reason))

    return violations


def _reference_violation(
    entry: _RuleEntry,
    module: ModuleInfo,
    target: ModuleInfo,
    reference: ProjectReference,
    reason: str,
) -> Violation:
    return Violation(
        project_name=module.name,
        reference=target.name,
        rule_id=rule_id_for(entry.type_id),
        description=(
            f"Project of type '{entry.type_id}' cannot reference '{target.name}'. {reason}"
        ),
        severity=Severity.ERROR,
        suggestion=build_suggestion(entry.type_id, entry.rule, module, target),
        auto_fixable=True,
        location=reference.location,
    )


def build_suggestion(
    type_id: str,
    rule: DependencyRule,
    module: ModuleInfo,
    target: ModuleInfo,
) -> str:
    parts = [f"Remove the reference to '{target.name}' from '{module.name}'"]

    examples = [
        expand_module(glob, module.module_name)
        for glob in rule.allowed[:MAX_ALLOWED_EXAMPLES]
    ]
    if examples:
        parts.append(f"Allowed references for {type_id}: {', '.join(examples)}")

    source_type = module.type_id.lower()
    target_type = target.type_id.lower()
    for target_fragment, source_fragment, note in _ANTI_PATTERN_NOTES:
        if target_fragment in target_type and source_fragment in source_type:
            parts.append(note)
            break

    return " | ".join(parts)


__all__ = [
    "UNKNOWN_TYPE_RULE_ID",
    "ValidationEngine",
    "ValidationReport",
    "build_suggestion",
    "rule_id_for",
    "sort_violations",
]
