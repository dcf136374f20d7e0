"""Graph algorithms over project references."""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from models.projects import ProjectInfo


def build_reference_graph(projects: Sequence[ProjectInfo]) -> dict[str, list[str]]:
    """Build the name-resolved graph of non-special references.

    Args:
        projects: Loaded project records

    Returns:
        Dictionary mapping each lower-cased project name to the canonical
        names of the projects it references directly, de-duplicated, in
        declaration order. References to unknown projects are dropped.
    """
    names: dict[str, str] = {}
    for project in projects:
        names.setdefault(project.name.lower(), project.name)

    graph: dict[str, list[str]] = {}
    for project in projects:
        key = project.name.lower()
        if key in graph:
            continue
        edges: list[str] = []
        for reference in project.references:
            if reference.is_special():
                continue
            target = names.get(reference.target_name.lower())
            if target is not None and target not in edges:
                edges.append(target)
        graph[key] = edges

    return graph


def reachable(graph: dict[str, list[str]], start: str) -> set[str]:
    """Return lower-cased names reachable from ``start`` through its edges.

    The start node itself is only included when a cycle leads back to it.
    """
    seen: set[str] = set()
    queue = deque(name.lower() for name in graph.get(start.lower(), []))

    while queue:
        node = queue.popleft()
        if node in seen:
            continue
        seen.add(node)
        queue.extend(
            name.lower() for name in graph.get(node, []) if name.lower() not in seen
        )

    return seen


__all__ = ["build_reference_graph", "reachable"]
