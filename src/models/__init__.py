"""Model namespace for modulith-guard records."""

from models.optimization import (
    OptimizationResult,
    UnnecessaryReason,
    UnnecessaryReference,
)
from models.projects import (
    ModuleInfo,
    ProjectInfo,
    ProjectReference,
    SourceLocation,
)
from models.violations import Severity, Violation

__all__ = [
    "ModuleInfo",
    "OptimizationResult",
    "ProjectInfo",
    "ProjectReference",
    "Severity",
    "SourceLocation",
    "UnnecessaryReason",
    "UnnecessaryReference",
    "Violation",
]
