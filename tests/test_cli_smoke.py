from __future__ import annotations

from pathlib import Path

import orjson
import pytest

from cli import _violation_payload, main
from models.violations import Severity, Violation


def _write_project(root: Path, name: str, references: list[str] | None = None) -> Path:
    items = "".join(
        f'    <ProjectReference Include="../{ref}/{ref}.csproj" />\n' for ref in references or []
    )
    path = root / name / f"{name}.csproj"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        f"<Project>\n  <ItemGroup>\n{items}  </ItemGroup>\n</Project>\n", encoding="utf-8"
    )
    return path


def _write_violating_repo(root: Path) -> Path:
    core = _write_project(root, "Orders.Core", ["Orders.Infrastructure"])
    _write_project(root, "Orders.Infrastructure", ["Orders.Core"])
    return core


def test_cli_check_reports_violation(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _write_violating_repo(tmp_path)

    exit_code = main(["check", str(tmp_path)])

    assert exit_code == 1
    out = capsys.readouterr().out
    assert "error [dependency-rule:core]" in out
    assert "Orders.Core.csproj:3:5" in out
    assert "1 error(s), 0 warning(s)" in out


def test_cli_check_json(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _write_violating_repo(tmp_path)

    exit_code = main(["check", str(tmp_path), "--format", "json"])

    assert exit_code == 1
    payload = orjson.loads(capsys.readouterr().out)
    assert payload["configuration"] is None
    assert payload["summary"]["errors"] == 1
    assert payload["violations"][0]["rule_id"] == "dependency-rule:core"
    assert payload["violations"][0]["severity"] == "Error"
    assert "doc_url" not in payload["violations"][0]


def test_cli_check_clean_repo_exits_zero(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _write_project(tmp_path, "Orders.Core")

    monkeypatch.chdir(tmp_path)
    exit_code = main(["check"])

    assert exit_code == 0
    assert "1 project(s) checked: 0 error(s)" in capsys.readouterr().out


def test_cli_check_without_projects(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["check", str(tmp_path)]) == 0
    assert "No project files found." in capsys.readouterr().out


def test_cli_check_missing_directory(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["check", str(tmp_path / "missing")]) == 1
    assert "Directory not found" in capsys.readouterr().err


def test_cli_config_error_includes_path_and_items(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    config_path = tmp_path / ".modulith.toml"
    config_path.write_text(
        '[[modules.patterns]]\nname = "Core"\npattern = "*.Core"\ntype = "core"\n',
        encoding="utf-8",
    )

    exit_code = main(["check", str(tmp_path)])

    assert exit_code == 1
    err = capsys.readouterr().err
    assert f"config: {config_path}" in err
    assert "  - Module pattern 'Core'" in err


def test_cli_unknown_profile(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["check", str(tmp_path), "--profile", "ci"]) == 1
    assert "Profile 'ci' not found" in capsys.readouterr().err


def test_cli_fix_dry_run_then_fix(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    core = _write_violating_repo(tmp_path)
    before = core.read_bytes()

    assert main(["fix", str(tmp_path), "--dry-run"]) == 0
    assert "[DRY RUN] Would remove reference to 'Orders.Infrastructure'" in capsys.readouterr().out
    assert core.read_bytes() == before

    assert main(["fix", str(tmp_path)]) == 0
    assert "Fix summary: 1 succeeded, 0 failed" in capsys.readouterr().out
    assert main(["check", str(tmp_path)]) == 0


def test_cli_optimize_json(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _write_project(tmp_path, "A", ["B", "C"])
    _write_project(tmp_path, "B", ["C"])
    _write_project(tmp_path, "C")

    assert main(["optimize", str(tmp_path), "--format", "json"]) == 0
    payload = orjson.loads(capsys.readouterr().out)
    assert payload["results"][0]["project_name"] == "A"
    assert payload["results"][0]["references"][0] == {
        "reference_name": "C",
        "reason": "Transitive",
        "transitive_path": "A → B → C",
    }


def test_cli_config_prints_resolved_configuration(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    assert main(["config", str(tmp_path)]) == 0
    payload = orjson.loads(capsys.readouterr().out)
    assert "core" in payload["dependencyRules"]
    assert payload["modules"]["patterns"][0]["moduleExtraction"] == "^(.+)\\.Core$"


def test_violation_payload_keeps_documentation_url_when_set() -> None:
    violation = Violation(
        project_name="Orders.Core",
        reference="Orders.Infrastructure",
        rule_id="dependency-rule:core",
        description="not allowed",
        severity=Severity.ERROR,
        doc_url="https://example.invalid/rules",
    )

    payload = _violation_payload(violation)

    assert payload["doc_url"] == "https://example.invalid/rules"
    assert payload["reference"] == "Orders.Infrastructure"
    assert "doc_url" not in _violation_payload(violation.model_copy(update={"doc_url": None}))
