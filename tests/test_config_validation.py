from __future__ import annotations

from rules.config import GuardConfig
from rules.defaults import create_default_configuration
from rules.validation import validate_config


def _config(**fields: object) -> GuardConfig:
    return GuardConfig.model_validate(fields)


def _pattern(name: str, pattern: str, type_id: str, extraction: str | None = "^(.+)\\.X$") -> dict[str, object]:
    return {"name": name, "pattern": pattern, "type": type_id, "moduleExtraction": extraction}


def test_default_configuration_has_no_errors() -> None:
    result = validate_config(create_default_configuration())

    assert result.ok
    assert result.errors == []


def test_empty_pattern_sets_warn() -> None:
    result = validate_config(_config())

    assert result.ok
    assert any("Module configuration has no patterns" in w for w in result.warnings)
    assert any("Shared configuration has no patterns" in w for w in result.warnings)
    assert any("No dependency rules defined" in w for w in result.warnings)


def test_duplicate_type_and_glob_are_errors() -> None:
    result = validate_config(
        _config(
            modules={
                "patterns": [
                    _pattern("A", "*.Core", "core"),
                    _pattern("B", "*.Core", "core"),
                ]
            }
        )
    )

    assert any("Duplicate pattern '*.Core'" in e for e in result.errors)
    assert any("Duplicate type 'core'" in e for e in result.errors)


def test_empty_fields_are_errors() -> None:
    result = validate_config(_config(shared={"patterns": [{"name": "", "pattern": "", "type": ""}]}))

    assert any("has empty name" in e for e in result.errors)
    assert any("has empty pattern" in e for e in result.errors)
    assert any("has empty type identifier" in e for e in result.errors)


def test_module_pattern_without_extraction_is_error() -> None:
    result = validate_config(_config(modules={"patterns": [_pattern("Core", "*.Core", "core", None)]}))

    assert any("must have a moduleExtraction" in e for e in result.errors)


def test_working_directory_wildcards_are_errors() -> None:
    result = validate_config(_config(shared={"workingDirectory": "shared/*"}))

    assert any("cannot contain wildcards" in e for e in result.errors)


def test_rule_checks() -> None:
    result = validate_config(
        _config(
            modules={"patterns": [_pattern("Core", "*.Core", "core")]},
            dependencyRules={
                "ghost": {"allowed": ["A"]},
                "core": {"allowed": [""], "denied": []},
            },
        )
    )

    assert any("type 'ghost' but no project pattern" in w for w in result.warnings)
    assert any("contains empty allowed pattern" in e for e in result.errors)


def test_rule_without_entries_warns() -> None:
    result = validate_config(
        _config(
            modules={"patterns": [_pattern("Core", "*.Core", "core")]},
            dependencyRules={"core": {}},
        )
    )

    assert any("has no allowed or denied patterns" in w for w in result.warnings)


def test_missing_rule_warning_gated_per_set() -> None:
    config = _config(
        modules={
            "patterns": [_pattern("Core", "*.Core", "core")],
            "missingRulesWarnings": False,
        },
        shared={"patterns": [{"name": "S", "pattern": "Shared", "type": "shared"}]},
        dependencyRules={"other": {"allowed": ["A"]}},
    )

    result = validate_config(config)

    assert not any("'core' has no dependency rules" in w for w in result.warnings)
    assert any("'shared' has no dependency rules" in w for w in result.warnings)


def test_severity_override_checks() -> None:
    result = validate_config(
        _config(
            severityOverrides=[
                {"rule": "", "severity": "Error"},
                {"rule": "a", "severity": "fatal"},
                {"rule": "b", "severity": ""},
                {"rule": "c", "severity": "warning"},
                {"rule": "c", "severity": "INFO"},
            ]
        )
    )

    assert any("empty rule name" in e for e in result.errors)
    assert any("invalid severity 'fatal'" in e for e in result.errors)
    assert any("rule 'b' has empty severity" in e for e in result.errors)
    assert any("Duplicate severity override for rule 'c'" in w for w in result.warnings)
    assert len(result.errors) == 3


def test_empty_ignore_entry_is_error() -> None:
    result = validate_config(_config(ignoredProjects=["Legacy.*", " "]))

    assert result.errors == ["Ignored projects list contains empty pattern."]
