"""Check, optimize and fix pipelines plus watch mode."""

from check.pipeline import (
    CheckResult,
    FixRun,
    OptimizeResult,
    load_modules,
    run_check,
    run_fix,
    run_optimize,
    validate_all,
)
from check.watch import ProjectWatcher

__all__ = [
    "CheckResult",
    "FixRun",
    "OptimizeResult",
    "ProjectWatcher",
    "load_modules",
    "run_check",
    "run_fix",
    "run_optimize",
    "validate_all",
]
