"""Loading of MSBuild-style project descriptors.

Only the static XML is read: ``ProjectReference`` items with their
``Include`` path and the ``OutputItemType`` / ``ReferenceOutputAssembly``
metadata, plus an optional ``ProjectName`` property. No build evaluation
takes place, so property expressions such as ``$(Foo)`` are not expanded.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import TYPE_CHECKING
from xml.parsers import expat

from models.projects import ProjectInfo, ProjectReference, SourceLocation

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger(__name__)

PROJECT_REFERENCE_TAG = "ProjectReference"
PROJECT_NAME_PROPERTY = "ProjectName"
INCLUDE_METADATA = "Include"


class ProjectLoadError(Exception):
    """Raised when a project descriptor cannot be read or parsed."""

    def __init__(self, path: str | Path, message: str) -> None:
        self.path = str(path)
        self.message = message
        super().__init__(f"Failed to load project: {self.path}: {message}")


def local_name(tag: object) -> str:
    """Return an element tag without its ``{namespace}`` or ``prefix:`` part."""
    if not isinstance(tag, str):
        return ""
    if tag.startswith("{"):
        tag = tag.partition("}")[2]
    return tag.rpartition(":")[2]


def iter_elements(root: ET.Element, name: str) -> Iterator[ET.Element]:
    """Yield descendants (including root) whose local name equals ``name``."""
    for element in root.iter():
        if local_name(element.tag) == name:
            yield element


def metadata_value(element: ET.Element, name: str) -> str | None:
    """Return item metadata from an attribute or child element, ignoring case."""
    wanted = name.lower()
    for attr, value in element.attrib.items():
        if local_name(attr).lower() == wanted:
            return value
    for child in element:
        if local_name(child.tag).lower() == wanted:
            return (child.text or "").strip()
    return None


def _reference_locations(data: bytes) -> list[tuple[int, int]]:
    """Return 1-based (line, column) of every ProjectReference start tag."""
    locations: list[tuple[int, int]] = []
    parser = expat.ParserCreate()

    def start(tag: str, _attrs: dict[str, str]) -> None:
        if local_name(tag) == PROJECT_REFERENCE_TAG:
            locations.append(
                (parser.CurrentLineNumber, parser.CurrentColumnNumber + 1)
            )

    parser.StartElementHandler = start
    parser.Parse(data, True)
    return locations


def _project_name(root: ET.Element, path: Path) -> str:
    for element in iter_elements(root, PROJECT_NAME_PROPERTY):
        value = (element.text or "").strip()
        if value and "$(" not in value:
            return value
    return path.stem


def _build_reference(
    include: str,
    element: ET.Element,
    location: SourceLocation | None,
) -> ProjectReference:
    output_item_type = metadata_value(element, "OutputItemType") or None
    reference_output = metadata_value(element, "ReferenceOutputAssembly")
    return ProjectReference(
        path=include,
        output_item_type=output_item_type,
        reference_output_assembly=(
            not reference_output or reference_output.strip().lower() != "false"
        ),
        location=location,
    )


def load_project(path: str | Path) -> ProjectInfo:
    """Load a project descriptor into a :class:`ProjectInfo`.

    Raises:
        ProjectLoadError: If the file cannot be read or is not well-formed XML.
    """
    path = Path(path)
    try:
        data = path.read_bytes()
        root = ET.fromstring(data)
        locations = _reference_locations(data)
    except OSError as exc:
        raise ProjectLoadError(path, str(exc)) from exc
    except (ET.ParseError, expat.ExpatError) as exc:
        raise ProjectLoadError(path, f"invalid XML: {exc}") from exc

    references: list[ProjectReference] = []
    for index, element in enumerate(iter_elements(root, PROJECT_REFERENCE_TAG)):
        location = None
        if index < len(locations):
            line, column = locations[index]
            location = SourceLocation(path=str(path), line=line, column=column)

        include = metadata_value(element, INCLUDE_METADATA) or ""
        for item in include.split(";"):
            if item.strip():
                references.append(_build_reference(item.strip(), element, location))

    project = ProjectInfo(
        name=_project_name(root, path),
        path=str(path),
        references=references,
    )
    logger.debug(
        "Loaded %s with %d reference(s)", project.name, len(project.references)
    )
    return project


__all__ = [
    "INCLUDE_METADATA",
    "PROJECT_REFERENCE_TAG",
    "ProjectLoadError",
    "iter_elements",
    "load_project",
    "local_name",
    "metadata_value",
]
