"""Optimization models for redundant reference declarations."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class UnnecessaryReason(str, Enum):
    UNUSED = "Unused"
    TRANSITIVE = "Transitive"


class UnnecessaryReference(BaseModel):
    """A direct reference that can be removed."""

    reference_name: str
    reason: UnnecessaryReason
    transitive_path: str | None = None


class OptimizationResult(BaseModel):
    """Unnecessary references found for one project."""

    project_name: str
    project_path: str
    references: list[UnnecessaryReference] = Field(default_factory=list)


__all__ = ["OptimizationResult", "UnnecessaryReason", "UnnecessaryReference"]
