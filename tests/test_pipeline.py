from __future__ import annotations

from pathlib import Path

import pytest

from check.pipeline import load_modules, run_check, run_fix, run_optimize, validate_all
from models.optimization import UnnecessaryReason
from models.violations import Severity
from rules.config import ConfigError
from rules.defaults import create_default_configuration


def _write_project(root: Path, name: str, references: list[str] | None = None) -> Path:
    items = "\n".join(
        f'    <ProjectReference Include="..\\{ref}\\{ref}.csproj" />' for ref in references or []
    )
    body = f"  <ItemGroup>\n{items}\n  </ItemGroup>\n" if items else ""
    path = root / name / f"{name}.csproj"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f'<Project Sdk="Microsoft.NET.Sdk">\n{body}</Project>\n', encoding="utf-8")
    return path


def test_core_referencing_infrastructure_yields_one_error(tmp_path: Path) -> None:
    _write_project(tmp_path, "Orders.Core", ["Orders.Infrastructure"])
    _write_project(tmp_path, "Orders.Infrastructure", ["Orders.Core"])

    result = run_check(tmp_path)

    assert result.configuration.is_default
    assert len(result.violations) == 1
    violation = result.violations[0]
    assert violation.project_name == "Orders.Core"
    assert violation.reference == "Orders.Infrastructure"
    assert violation.rule_id == "dependency-rule:core"
    assert violation.severity is Severity.ERROR
    assert violation.auto_fixable is True
    assert result.exit_code == 1


def test_clean_layout_has_no_violations(tmp_path: Path) -> None:
    _write_project(tmp_path, "Shared.Core")
    _write_project(tmp_path, "Orders.Core", ["Shared.Core"])
    _write_project(tmp_path, "Orders.Infrastructure", ["Orders.Core"])
    _write_project(tmp_path, "Orders.Public.App", ["Orders.Core", "Orders.Infrastructure"])
    _write_project(tmp_path, "Orders.Public.Endpoints", ["Orders.Public.App"])

    result = run_check(tmp_path)

    assert result.violations == []
    assert result.exit_code == 0


def test_load_errors_are_collected(tmp_path: Path) -> None:
    _write_project(tmp_path, "Orders.Core")
    broken = tmp_path / "Broken.Core" / "Broken.Core.csproj"
    broken.parent.mkdir()
    broken.write_text("<Project>", encoding="utf-8")

    result = run_check(tmp_path)

    assert [m.name for m in result.modules] == ["Orders.Core"]
    assert [e.path for e in result.loaded.errors] == [str(broken)]


def test_ignored_projects_are_not_loaded_as_modules(tmp_path: Path) -> None:
    (tmp_path / ".modulith.toml").write_text(
        'extends = "default"\nignoredProjects = ["*.Tests"]\n', encoding="utf-8"
    )
    _write_project(tmp_path, "Orders.Tests", ["Orders.Core"])
    _write_project(tmp_path, "Orders.Core")

    result = run_check(tmp_path)

    assert result.loaded.ignored == ["Orders.Tests"]
    assert result.violations == []


def test_load_modules_and_validate_all(tmp_path: Path) -> None:
    _write_project(tmp_path, "Tools")
    config = create_default_configuration()

    modules, _ = load_modules(tmp_path, config)
    violations = validate_all(modules, config)

    assert [(m.type_id, m.module_name) for m in modules] == [("unknown", "Unknown")]
    assert [v.rule_id for v in violations] == ["unknown-project-type"]


def test_missing_root_raises(tmp_path: Path) -> None:
    with pytest.raises(NotADirectoryError):
        run_check(tmp_path / "missing")


def test_unknown_profile_is_fatal(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        run_check(tmp_path, profile="ci")


def test_run_fix_removes_offending_reference(tmp_path: Path) -> None:
    core = _write_project(tmp_path, "Orders.Core", ["Orders.Infrastructure"])
    _write_project(tmp_path, "Orders.Infrastructure")

    run = run_fix(tmp_path)

    assert run.exit_code == 0
    assert [r.success for r in run.results] == [True]
    assert "Orders.Infrastructure" not in core.read_text(encoding="utf-8")
    assert run_check(tmp_path).violations == []


def test_run_fix_dry_run(tmp_path: Path) -> None:
    core = _write_project(tmp_path, "Orders.Core", ["Orders.Infrastructure"])
    _write_project(tmp_path, "Orders.Infrastructure")
    before = core.read_bytes()

    run = run_fix(tmp_path, dry_run=True)

    assert run.dry_run
    assert run.results[0].success
    assert core.read_bytes() == before


def test_run_fix_with_only_manual_violations_fails(tmp_path: Path) -> None:
    _write_project(tmp_path, "Tools")

    run = run_fix(tmp_path)

    assert run.fixable == []
    assert len(run.manual) == 1
    assert run.exit_code == 1


def test_run_optimize_reports_transitive_and_unused(tmp_path: Path) -> None:
    app = _write_project(tmp_path, "Orders.App", ["Orders.Infrastructure", "Orders.Core"])
    _write_project(tmp_path, "Orders.Infrastructure", ["Orders.Core"])
    _write_project(tmp_path, "Orders.Core")
    (app.parent / "Handler.cs").write_text("namespace Orders.App;\npublic class Handler {}\n", encoding="utf-8")

    result = run_optimize(tmp_path)

    assert len(result.results) == 1
    refs = {r.reference_name: r.reason for r in result.results[0].references}
    assert refs == {
        "Orders.Core": UnnecessaryReason.TRANSITIVE,
        "Orders.Infrastructure": UnnecessaryReason.UNUSED,
    }
