"""Violation models for dependency rule breaches."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel

from models.projects import SourceLocation  # noqa: TC001


class Severity(str, Enum):
    """Violation severity, ordered from most to least severe."""

    ERROR = "Error"
    WARNING = "Warning"
    INFO = "Info"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    @classmethod
    def parse(cls, value: str | None) -> Severity | None:
        """Parse a severity name case-insensitively; None when unrecognized."""
        if not value:
            return None
        normalized = value.strip().lower()
        for member in cls:
            if member.value.lower() == normalized:
                return member
        return None


_SEVERITY_RANK = {Severity.ERROR: 0, Severity.WARNING: 1, Severity.INFO: 2}


class Violation(BaseModel):
    """A reported rule breach with remediation metadata."""

    project_name: str
    reference: str | None = None
    rule_id: str
    description: str
    severity: Severity = Severity.ERROR
    suggestion: str | None = None
    doc_url: str | None = None
    auto_fixable: bool = False
    location: SourceLocation | None = None


__all__ = ["Severity", "Violation"]
