"""Discovery and loading of project descriptors and sources."""

from scan.descriptors import ProjectLoadError, load_project
from scan.files import find_project_files
from scan.usages import collect_used_namespaces

__all__ = [
    "ProjectLoadError",
    "collect_used_namespaces",
    "find_project_files",
    "load_project",
]
