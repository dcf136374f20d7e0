"""Project records loaded from build descriptors.

This module contains the models describing a component (project), the
references it declares, and the per-run classification attached to it.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from utils import reference_name

# Output item types that mark a reference as build-time only.
BUILD_ONLY_ITEM_TYPES = frozenset({"analyzer"})


class SourceLocation(BaseModel):
    """Position of a declaration inside a descriptor file."""

    path: str
    line: int | None = None
    column: int | None = None

    def __str__(self) -> str:
        if self.line is None:
            return self.path
        if self.column is None:
            return f"{self.path}:{self.line}"
        return f"{self.path}:{self.line}:{self.column}"


class ProjectReference(BaseModel):
    """A dependency declared by one project on another."""

    path: str = Field(description="Target descriptor path as declared")
    output_item_type: str | None = None
    reference_output_assembly: bool = Field(
        default=True,
        description="Whether the target produces output used at runtime",
    )
    location: SourceLocation | None = None

    @property
    def target_name(self) -> str:
        return reference_name(self.path)

    def is_special(self) -> bool:
        """Return True for build-time-only references excluded from optimization."""
        if (
            self.output_item_type
            and self.output_item_type.lower() in BUILD_ONLY_ITEM_TYPES
        ):
            return True
        return not self.reference_output_assembly


class ProjectInfo(BaseModel):
    """A component loaded from its descriptor file."""

    name: str
    path: str = Field(description="Descriptor file path")
    references: list[ProjectReference] = Field(default_factory=list)


class ModuleInfo(BaseModel):
    """A project with its classification for the current run."""

    module_name: str
    type_id: str
    project: ProjectInfo

    @property
    def name(self) -> str:
        return self.project.name


__all__ = [
    "BUILD_ONLY_ITEM_TYPES",
    "ModuleInfo",
    "ProjectInfo",
    "ProjectReference",
    "SourceLocation",
]
