"""Configuration inheritance and profile overlay."""

from __future__ import annotations

from rules.config import (
    ConfigError,
    ConfigurationProfile,
    DependencyRule,
    GuardConfig,
    ModulesConfig,
    SeverityOverride,
    SharedConfig,
)


def _dedupe(items: list[str]) -> list[str]:
    return list(dict.fromkeys(items))


def _merge_modules(base: ModulesConfig, child: ModulesConfig) -> ModulesConfig:
    if child.patterns:
        return child.model_copy(deep=True)
    return base.model_copy(deep=True)


def _merge_shared(base: SharedConfig, child: SharedConfig) -> SharedConfig:
    if child.patterns:
        return SharedConfig(
            working_directory=(
                child.working_directory
                if child.working_directory is not None
                else base.working_directory
            ),
            patterns=[pattern.model_copy() for pattern in child.patterns],
            missing_rules_warnings=child.missing_rules_warnings,
        )
    return base.model_copy(deep=True)


def _union_rule(base: DependencyRule, child: DependencyRule) -> DependencyRule:
    return DependencyRule(
        allowed=_dedupe([*base.allowed, *child.allowed]),
        denied=_dedupe([*base.denied, *child.denied]),
    )


def _extend_rule(base: DependencyRule, child: DependencyRule) -> DependencyRule:
    allowed = list(base.allowed)
    allowed.extend(p for p in _dedupe(child.allowed) if p not in base.allowed)
    denied = list(base.denied)
    denied.extend(p for p in _dedupe(child.denied) if p not in base.denied)
    return DependencyRule(allowed=allowed, denied=denied)


def merge_dependency_rules(
    base_rules: dict[str, DependencyRule],
    child_rules: dict[str, DependencyRule],
) -> dict[str, DependencyRule]:
    """Merge rule maps; the child rule's inherit mode decides conflicts."""
    merged = {type_id: rule.model_copy(deep=True) for type_id, rule in base_rules.items()}

    for type_id, child_rule in child_rules.items():
        base_rule = merged.get(type_id)
        if base_rule is None:
            merged[type_id] = child_rule.model_copy(deep=True)
            continue

        if child_rule.inherit == "merge":
            merged[type_id] = _union_rule(base_rule, child_rule)
        elif child_rule.inherit == "extend":
            merged[type_id] = _extend_rule(base_rule, child_rule)
        else:
            merged[type_id] = child_rule.model_copy(deep=True, update={"inherit": "replace"})

    return merged


def merge_severity_overrides(
    base: list[SeverityOverride],
    child: list[SeverityOverride],
) -> list[SeverityOverride]:
    """Key overrides by rule id; later entries win, first-seen order kept."""
    merged: dict[str, SeverityOverride] = {}
    for override in [*base, *child]:
        merged[override.rule] = override.model_copy()
    return list(merged.values())


def merge_configs(base: GuardConfig, child: GuardConfig) -> GuardConfig:
    """Merge a child configuration over its base.

    Pattern sets are replaced wholesale when the child defines any, rule maps
    are combined per type id, ignore lists are unioned and severity overrides
    are keyed by rule with the child winning. The result has no ``extends``.
    """
    profiles = {name: p.model_copy(deep=True) for name, p in base.profiles.items()}
    profiles.update(
        {name: p.model_copy(deep=True) for name, p in child.profiles.items()}
    )

    return GuardConfig(
        extends=None,
        modules=_merge_modules(base.modules, child.modules),
        shared=_merge_shared(base.shared, child.shared),
        dependency_rules=merge_dependency_rules(
            base.dependency_rules, child.dependency_rules
        ),
        ignored_projects=_dedupe([*base.ignored_projects, *child.ignored_projects]),
        severity_overrides=merge_severity_overrides(
            base.severity_overrides, child.severity_overrides
        ),
        profiles=profiles,
    )


def apply_profile(config: GuardConfig, profile_name: str) -> GuardConfig:
    """Overlay a named profile onto a merged configuration."""
    profile: ConfigurationProfile | None = config.profiles.get(profile_name)
    if profile is None:
        available = ", ".join(config.profiles) or "(none)"
        msg = (
            f"Profile '{profile_name}' not found in configuration. "
            f"Available profiles: {available}"
        )
        raise ConfigError(msg)

    rules = {type_id: rule.model_copy(deep=True) for type_id, rule in config.dependency_rules.items()}
    for type_id, rule in profile.dependency_rules.items():
        rules[type_id] = rule.model_copy(deep=True, update={"inherit": "replace"})

    return config.model_copy(
        deep=True,
        update={
            "extends": None,
            "dependency_rules": rules,
            "ignored_projects": _dedupe(
                [*config.ignored_projects, *profile.ignored_projects]
            ),
            "severity_overrides": merge_severity_overrides(
                config.severity_overrides, profile.severity_overrides
            ),
        },
    )


__all__ = [
    "apply_profile",
    "merge_configs",
    "merge_dependency_rules",
    "merge_severity_overrides",
]
