"""Discover → load → classify → validate / optimize / fix.

Every run rebuilds its configuration, classifier and engine from disk so
that results never depend on an earlier run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from fix.autofix import fix_violations
from graph.optimizer import analyze_optimizations
from models.projects import ModuleInfo
from models.violations import Severity
from rules.classify import ProjectClassifier
from rules.engine import ValidationEngine, ValidationReport
from rules.loader import resolve_configuration
from scan.descriptors import ProjectLoadError, load_project
from scan.files import find_project_files
from scan.usages import collect_used_namespaces, has_sources

if TYPE_CHECKING:
    from collections.abc import Sequence

    from fix.autofix import FixResult
    from models.optimization import OptimizationResult
    from models.projects import ProjectInfo
    from models.violations import Violation
    from rules.config import GuardConfig
    from rules.loader import ConfigLoadResult

logger = logging.getLogger(__name__)


@dataclass
class LoadedProjects:
    """Projects found under a root, split by how loading went."""

    discovered: list[Path] = field(default_factory=list)
    projects: list[ProjectInfo] = field(default_factory=list)
    ignored: list[str] = field(default_factory=list)
    errors: list[ProjectLoadError] = field(default_factory=list)


@dataclass
class CheckResult:
    root: Path
    configuration: ConfigLoadResult
    modules: list[ModuleInfo]
    violations: list[Violation]
    loaded: LoadedProjects

    @property
    def report(self) -> ValidationReport:
        return ValidationReport(violations=self.violations)

    @property
    def exit_code(self) -> int:
        return self.report.exit_code


@dataclass
class OptimizeResult:
    root: Path
    results: list[OptimizationResult]
    loaded: LoadedProjects


@dataclass
class FixRun:
    check: CheckResult
    fixable: list[Violation]
    manual: list[Violation]
    results: list[FixResult]
    dry_run: bool = False

    @property
    def failures(self) -> list[FixResult]:
        return [result for result in self.results if not result.success]

    @property
    def exit_code(self) -> int:
        if not self.check.violations:
            return 0
        if not self.fixable or self.failures:
            return 1
        return 0


def _require_directory(root: Path) -> Path:
    resolved = Path(root).expanduser().resolve()
    if not resolved.is_dir():
        msg = f"Directory not found: {resolved}"
        raise NotADirectoryError(msg)
    return resolved


def load_projects(
    root: Path,
    engine: ValidationEngine | None = None,
) -> LoadedProjects:
    """Discover and load every descriptor under a root.

    Descriptors that fail to load are logged and collected. When an engine is
    given, projects it ignores are skipped before classification.
    """
    loaded = LoadedProjects(discovered=find_project_files(root))
    logger.info("Found %d project(s) under %s", len(loaded.discovered), root)

    for path in loaded.discovered:
        try:
            project = load_project(path)
        except ProjectLoadError as exc:
            logger.warning("Failed to load %s: %s", path.name, exc.message)
            loaded.errors.append(exc)
            continue

        if engine is not None and engine.is_ignored(project.name):
            logger.info("Skipping ignored project %s", project.name)
            loaded.ignored.append(project.name)
            continue

        loaded.projects.append(project)

    return loaded


def load_modules(
    root: Path,
    config: GuardConfig,
) -> tuple[list[ModuleInfo], LoadedProjects]:
    """Load and classify every non-ignored project under a root."""
    engine = ValidationEngine(config)
    classifier = ProjectClassifier(config)
    loaded = load_projects(root, engine)

    modules: list[ModuleInfo] = []
    for project in loaded.projects:
        type_id, module_name = classifier.classify(project.name, project.path, root)
        logger.debug(
            "Loaded %s -> module %s, type %s, %d reference(s)",
            project.name,
            module_name,
            type_id,
            len(project.references),
        )
        modules.append(
            ModuleInfo(module_name=module_name, type_id=type_id, project=project)
        )

    return modules, loaded


def validate_all(modules: Sequence[ModuleInfo], config: GuardConfig) -> list[Violation]:
    return ValidationEngine(config).validate_all(modules)


def run_check(root: Path, profile: str | None = None) -> CheckResult:
    """Run one full check of a directory.

    Raises:
        NotADirectoryError: If the root is not a directory.
        ConfigError: If the configuration cannot be loaded.
    """
    root = _require_directory(root)
    configuration = resolve_configuration(root, profile)
    if configuration.is_default:
        logger.info("Using default configuration")
    else:
        logger.info("Using configuration file %s", configuration.path)

    modules, loaded = load_modules(root, configuration.config)
    violations = validate_all(modules, configuration.config)
    logger.info(
        "Validated %d project(s), %d violation(s)", len(modules), len(violations)
    )
    return CheckResult(
        root=root,
        configuration=configuration,
        modules=modules,
        violations=violations,
        loaded=loaded,
    )


def run_fix(
    root: Path,
    profile: str | None = None,
    dry_run: bool = False,
) -> FixRun:
    """Check a directory and remove the references behind fixable errors."""
    check = run_check(root, profile)
    fixable: list[Violation] = []
    manual: list[Violation] = []
    for violation in check.violations:
        if violation.auto_fixable and violation.severity is Severity.ERROR:
            fixable.append(violation)
        else:
            manual.append(violation)

    results = fix_violations(fixable, check.modules, dry_run=dry_run) if fixable else []
    return FixRun(
        check=check, fixable=fixable, manual=manual, results=results, dry_run=dry_run
    )


def collect_project_tokens(projects: Sequence[ProjectInfo]) -> dict[str, set[str]]:
    """Scan each project's directory for namespace tokens.

    Projects whose directory holds no source files are left out, which
    disables unused-reference detection for them.
    """
    tokens: dict[str, set[str]] = {}
    for project in projects:
        directory = Path(project.path).parent
        if not has_sources(directory):
            logger.debug("No sources for %s, skipping unused detection", project.name)
            continue
        tokens[project.name] = collect_used_namespaces(directory)
    return tokens


def run_optimize(root: Path) -> OptimizeResult:
    """Find transitive and unused references under a directory.

    Raises:
        NotADirectoryError: If the root is not a directory.
    """
    root = _require_directory(root)
    loaded = load_projects(root)
    results = analyze_optimizations(
        loaded.projects, collect_project_tokens(loaded.projects)
    )
    logger.info(
        "Analyzed %d project(s), %d with unnecessary references",
        len(loaded.projects),
        len(results),
    )
    return OptimizeResult(root=root, results=results, loaded=loaded)


__all__ = [
    "CheckResult",
    "FixRun",
    "LoadedProjects",
    "OptimizeResult",
    "collect_project_tokens",
    "load_modules",
    "load_projects",
    "run_check",
    "run_fix",
    "run_optimize",
    "validate_all",
]
