"""Reference graph analysis."""

from graph.algos import build_reference_graph, reachable
from graph.optimizer import analyze_optimizations

__all__ = ["analyze_optimizations", "build_reference_graph", "reachable"]
