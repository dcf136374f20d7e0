"""Command-line interface for modulith-guard."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

import orjson

from check.pipeline import run_check, run_fix, run_optimize
from check.watch import DEFAULT_SETTLE_SECONDS, ProjectWatcher
from models.optimization import UnnecessaryReason
from rules.config import ConfigError
from rules.loader import resolve_configuration

if TYPE_CHECKING:
    from check.pipeline import CheckResult, FixRun, LoadedProjects, OptimizeResult
    from models.violations import Violation

_LOG_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG)


def _add_common_paths(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "root",
        nargs="?",
        default=".",
        help="Directory to scan for project files (default: .)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v info, -vv debug)",
    )


def _add_profile(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--profile",
        default=None,
        help="Configuration profile to apply",
    )


def _add_format(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--format",
        choices=("text", "json"),
        default="text",
        help="Output format (default: text)",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="modulith")
    subparsers = parser.add_subparsers(dest="command", required=True)

    check_parser = subparsers.add_parser(
        "check", help="Validate project references against dependency rules"
    )
    _add_common_paths(check_parser)
    _add_profile(check_parser)
    _add_format(check_parser)

    fix_parser = subparsers.add_parser(
        "fix", help="Remove references that violate dependency rules"
    )
    _add_common_paths(fix_parser)
    _add_profile(fix_parser)
    fix_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report the references that would be removed without editing files",
    )

    optimize_parser = subparsers.add_parser(
        "optimize", help="Report transitive and unused project references"
    )
    _add_common_paths(optimize_parser)
    _add_format(optimize_parser)

    watch_parser = subparsers.add_parser(
        "watch", help="Revalidate whenever project or configuration files change"
    )
    _add_common_paths(watch_parser)
    _add_profile(watch_parser)
    watch_parser.add_argument(
        "--settle",
        type=float,
        default=DEFAULT_SETTLE_SECONDS,
        help=f"Seconds to wait after a change before revalidating (default: {DEFAULT_SETTLE_SECONDS})",
    )

    config_parser = subparsers.add_parser(
        "config", help="Print the resolved configuration as JSON"
    )
    _add_common_paths(config_parser)
    _add_profile(config_parser)

    return parser


def _configure_logging(verbosity: int) -> None:
    level = _LOG_LEVELS[min(verbosity, len(_LOG_LEVELS) - 1)]
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    logging.getLogger().setLevel(level)


def _write_json(payload: Any) -> None:
    opts = orjson.OPT_SORT_KEYS | orjson.OPT_INDENT_2
    sys.stdout.write(orjson.dumps(payload, option=opts).decode("utf-8"))
    sys.stdout.write("\n")


def _report_config_error(exc: ConfigError) -> int:
    if exc.path:
        sys.stderr.write(f"config: {exc.path}\n")
    sys.stderr.write(f"error: {exc}\n")
    return 1


def _report_load_errors(loaded: LoadedProjects) -> None:
    for error in loaded.errors:
        sys.stderr.write(f"{error.path}: {error.message}\n")


def _format_violation(violation: Violation) -> str:
    where = str(violation.location) if violation.location else violation.project_name
    lines = [
        f"{where}: {violation.severity.value.lower()} [{violation.rule_id}] "
        f"{violation.description}"
    ]
    if violation.suggestion:
        lines.append(f"    suggestion: {violation.suggestion}")
    if violation.doc_url:
        lines.append(f"    documentation: {violation.doc_url}")
    return "\n".join(lines)


def _write_check_text(result: CheckResult) -> None:
    if not result.loaded.discovered:
        sys.stdout.write("No project files found.\n")
        return

    for violation in result.violations:
        sys.stdout.write(_format_violation(violation) + "\n")

    report = result.report
    sys.stdout.write(
        f"{len(result.modules)} project(s) checked: "
        f"{report.error_count} error(s), {report.warning_count} warning(s), "
        f"{report.info_count} info\n"
    )


def _violation_payload(violation: Violation) -> dict[str, Any]:
    exclude = None if violation.doc_url else {"doc_url"}
    return violation.model_dump(mode="json", exclude=exclude)


def _check_payload(result: CheckResult) -> dict[str, Any]:
    report = result.report
    configuration = result.configuration
    return {
        "root": str(result.root),
        "configuration": str(configuration.path) if configuration.path else None,
        "summary": {
            "projects": len(result.modules),
            "errors": report.error_count,
            "warnings": report.warning_count,
            "info": report.info_count,
        },
        "violations": [_violation_payload(v) for v in result.violations],
        "load_errors": [
            {"path": error.path, "message": error.message}
            for error in result.loaded.errors
        ],
    }


def _handle_check(root: Path, profile: str | None, output_format: str) -> int:
    try:
        result = run_check(root, profile)
    except NotADirectoryError as exc:
        sys.stderr.write(f"error: {exc}\n")
        return 1
    except ConfigError as exc:
        return _report_config_error(exc)

    if output_format == "json":
        _write_json(_check_payload(result))
    else:
        _report_load_errors(result.loaded)
        _write_check_text(result)
    return result.exit_code


def _write_fix_text(run: FixRun) -> None:
    if not run.check.violations:
        sys.stdout.write("No violations found. Nothing to fix.\n")
        return

    sys.stdout.write(
        f"Found {len(run.check.violations)} violation(s): "
        f"{len(run.fixable)} auto-fixable, {len(run.manual)} require manual fixes\n"
    )
    for violation in run.manual:
        sys.stdout.write(
            f"  manual: {violation.project_name}: {violation.description}\n"
        )
    for result in run.results:
        marker = "ok" if result.success else "failed"
        sys.stdout.write(f"  {marker}: {result.message}\n")

    succeeded = len(run.results) - len(run.failures)
    label = "Dry run" if run.dry_run else "Fix"
    sys.stdout.write(
        f"{label} summary: {succeeded} succeeded, {len(run.failures)} failed\n"
    )


def _handle_fix(root: Path, profile: str | None, dry_run: bool) -> int:
    try:
        run = run_fix(root, profile, dry_run=dry_run)
    except NotADirectoryError as exc:
        sys.stderr.write(f"error: {exc}\n")
        return 1
    except ConfigError as exc:
        return _report_config_error(exc)

    _report_load_errors(run.check.loaded)
    _write_fix_text(run)
    return run.exit_code


def _write_optimize_text(result: OptimizeResult) -> None:
    if not result.loaded.discovered:
        sys.stdout.write("No project files found.\n")
        return
    if not result.results:
        sys.stdout.write("No unnecessary references found.\n")
        return

    unused = transitive = 0
    for project in result.results:
        sys.stdout.write(f"{project.project_name} ({project.project_path})\n")
        for reference in project.references:
            detail = f" via {reference.transitive_path}" if reference.transitive_path else ""
            sys.stdout.write(
                f"  {reference.reason.value.lower()}: {reference.reference_name}{detail}\n"
            )
            if reference.reason is UnnecessaryReason.TRANSITIVE:
                transitive += 1
            else:
                unused += 1
    sys.stdout.write(
        f"Unused references: {unused}, transitive references: {transitive}, "
        f"total: {unused + transitive}\n"
    )


def _handle_optimize(root: Path, output_format: str) -> int:
    try:
        result = run_optimize(root)
    except NotADirectoryError as exc:
        sys.stderr.write(f"error: {exc}\n")
        return 1

    if output_format == "json":
        _write_json(
            {
                "root": str(result.root),
                "projects": len(result.loaded.projects),
                "results": [r.model_dump(mode="json") for r in result.results],
            }
        )
    else:
        _report_load_errors(result.loaded)
        _write_optimize_text(result)
    return 0


def _print_watch_result(result: CheckResult) -> None:
    _write_check_text(result)
    sys.stdout.flush()


def _handle_watch(root: Path, profile: str | None, settle: float) -> int:
    if not root.is_dir():
        sys.stderr.write(f"error: Directory not found: {root}\n")
        return 1

    watcher = ProjectWatcher(
        root, profile=profile, settle=settle, on_result=_print_watch_result
    )
    sys.stdout.write(f"Watching {root} (press Ctrl+C to exit)\n")
    try:
        watcher.run()
    except KeyboardInterrupt:
        watcher.stop()
    return 0


def _handle_config(root: Path, profile: str | None) -> int:
    try:
        loaded = resolve_configuration(root, profile)
    except ConfigError as exc:
        return _report_config_error(exc)

    for warning in loaded.warnings:
        sys.stderr.write(f"warning: {warning}\n")
    _write_json(loaded.config.model_dump(mode="json", by_alias=True, exclude={"extends"}))
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    root = Path(args.root).expanduser().resolve()

    if args.command == "check":
        return _handle_check(root, args.profile, args.format)

    if args.command == "fix":
        return _handle_fix(root, args.profile, args.dry_run)

    if args.command == "optimize":
        return _handle_optimize(root, args.format)

    if args.command == "watch":
        return _handle_watch(root, args.profile, args.settle)

    if args.command == "config":
        return _handle_config(root, args.profile)

    raise AssertionError


if __name__ == "__main__":
    raise SystemExit(main())
