"""Detection of redundant project references.

A direct reference is *transitive* when another direct reference of the same
project already reaches its target, and *unused* when no source token of the
project names the target's namespace. Build-time-only references never take
part in either check.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from graph.algos import build_reference_graph, reachable
from models.optimization import (
    OptimizationResult,
    UnnecessaryReason,
    UnnecessaryReference,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from models.projects import ProjectInfo

logger = logging.getLogger(__name__)

PATH_SEPARATOR = " → "


def _transitive_references(
    project: ProjectInfo,
    graph: dict[str, list[str]],
) -> list[UnnecessaryReference]:
    direct = graph.get(project.name.lower(), [])
    found: dict[str, UnnecessaryReference] = {}

    for via in direct:
        via_reach = reachable(graph, via)
        for other in direct:
            if other == via or other.lower() not in via_reach:
                continue
            found.setdefault(
                other.lower(),
                UnnecessaryReference(
                    reference_name=other,
                    reason=UnnecessaryReason.TRANSITIVE,
                    transitive_path=PATH_SEPARATOR.join((project.name, via, other)),
                ),
            )

    return list(found.values())


def is_namespace_used(reference_name: str, tokens: Iterable[str]) -> bool:
    """Return True when a token equals the name or is nested beneath it."""
    name = reference_name.lower()
    prefix = f"{name}."
    return any(
        token.lower() == name or token.lower().startswith(prefix) for token in tokens
    )


def _unused_references(
    direct: list[str],
    tokens: set[str],
    exclude: set[str],
) -> list[UnnecessaryReference]:
    return [
        UnnecessaryReference(reference_name=name, reason=UnnecessaryReason.UNUSED)
        for name in direct
        if name.lower() not in exclude and not is_namespace_used(name, tokens)
    ]


def analyze_optimizations(
    projects: Sequence[ProjectInfo],
    used_tokens: Mapping[str, Iterable[str]] | None = None,
) -> list[OptimizationResult]:
    """Find transitive and unused direct references for every project.

    Args:
        projects: Loaded project records
        used_tokens: Optional mapping of project name to the namespace tokens
            found in its sources. Unused detection only runs for projects
            present in this mapping (matched case-insensitively).

    Returns:
        One result per project with at least one unnecessary reference, in
        project order. Transitive findings come first; a reference reported
        as transitive is never also reported as unused.
    """
    graph = build_reference_graph(projects)
    tokens_by_project = {
        name.lower(): set(tokens) for name, tokens in (used_tokens or {}).items()
    }

    results: list[OptimizationResult] = []
    for project in projects:
        transitive = _transitive_references(project, graph)
        unnecessary = list(transitive)

        tokens = tokens_by_project.get(project.name.lower())
        if tokens is not None:
            unnecessary.extend(
                _unused_references(
                    graph.get(project.name.lower(), []),
                    tokens,
                    {ref.reference_name.lower() for ref in transitive},
                )
            )

        if unnecessary:
            logger.debug(
                "%s has %d unnecessary reference(s)", project.name, len(unnecessary)
            )
            results.append(
                OptimizationResult(
                    project_name=project.name,
                    project_path=project.path,
                    references=unnecessary,
                )
            )

    return results


__all__ = ["PATH_SEPARATOR", "analyze_optimizations", "is_namespace_used"]
