"""Auto-fix of dependency violations by editing project descriptors.

Every descriptor is handled as one transaction: it is parsed once, all
requested references are removed from the in-memory tree, ``ItemGroup``
elements left without child elements are dropped and the file is written
once. A dry run performs the same steps but never writes.

Only the content of the root element is re-serialized. The bytes before
the root start tag (BOM, XML declaration, header comments), the start tag
itself and everything from the root end tag onwards are written back as
they were read, and the original line ending style is kept.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING
from xml.parsers import expat
from xml.sax.saxutils import escape

from models.violations import Severity
from scan.descriptors import (
    INCLUDE_METADATA,
    PROJECT_REFERENCE_TAG,
    iter_elements,
    local_name,
    metadata_value,
)
from utils import reference_name

if TYPE_CHECKING:
    from collections.abc import Sequence

    from models.projects import ModuleInfo
    from models.violations import Violation

logger = logging.getLogger(__name__)

ITEM_GROUP_TAG = "ItemGroup"
_DEFAULT_ENCODING = "utf-8"
_ENCODING_RE = re.compile(rb"""^(?:\xef\xbb\xbf)?\s*<\?xml[^>]*?encoding\s*=\s*["']([A-Za-z0-9._-]+)["']""")


@dataclass(frozen=True)
class FixResult:
    success: bool
    message: str
    path: str
    changed: bool = False


@dataclass(frozen=True)
class _RootSpan:
    """Byte offsets of the root element inside the original document."""

    content_start: int
    content_end: int


def _failure(path: str | Path, message: str) -> FixResult:
    return FixResult(success=False, message=message, path=str(path), changed=False)


def _parse_preserving_comments(data: bytes) -> ET.Element:
    parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True, insert_pis=True))
    root = ET.fromstring(data, parser=parser)
    _strip_default_namespace(root)
    return root


def _strip_default_namespace(root: ET.Element) -> None:
    # The root start tag is written back verbatim, so its xmlns declaration
    # still covers the unqualified tags.
    if not root.tag.startswith("{"):
        return
    prefix = root.tag.partition("}")[0] + "}"
    for element in root.iter():
        if isinstance(element.tag, str) and element.tag.startswith(prefix):
            element.tag = element.tag[len(prefix):]


def _start_tag_end(data: bytes, start: int) -> int:
    quote = b""
    for index in range(start, len(data)):
        char = data[index : index + 1]
        if quote:
            if char == quote:
                quote = b""
        elif char in (b'"', b"'"):
            quote = char
        elif char == b">":
            return index + 1
    msg = "unterminated root start tag"
    raise ValueError(msg)


def _root_span(data: bytes) -> _RootSpan:
    """Locate the content of the root element in the raw document bytes."""
    parser = expat.ParserCreate()
    depth = 0
    offsets: dict[str, int] = {}

    def start(_tag: str, _attrs: dict[str, str]) -> None:
        nonlocal depth
        if depth == 0:
            offsets["start"] = parser.CurrentByteIndex
        depth += 1

    def end(_tag: str) -> None:
        nonlocal depth
        depth -= 1
        if depth == 0:
            offsets["end"] = parser.CurrentByteIndex

    parser.StartElementHandler = start
    parser.EndElementHandler = end
    parser.Parse(data, True)

    content_start = _start_tag_end(data, offsets["start"])
    # A self-closing root reports its end at the start tag.
    content_end = max(offsets["end"], content_start)
    return _RootSpan(content_start=content_start, content_end=content_end)


def _has_child_elements(element: ET.Element) -> bool:
    return any(isinstance(child.tag, str) for child in element)


def _detach(parent: ET.Element, element: ET.Element) -> None:
    """Remove an element, keeping the closing indentation of its parent."""
    children = list(parent)
    index = children.index(element)
    if index == len(children) - 1 and index > 0:
        children[index - 1].tail = element.tail
    parent.remove(element)


def _find_reference(
    root: ET.Element,
    name: str,
) -> tuple[ET.Element, list[str], int] | None:
    """Find the first ``Include`` item naming ``name``.

    Returns the element, its raw ``;``-separated items and the index of the
    matching item.
    """
    wanted = name.lower()
    for element in iter_elements(root, PROJECT_REFERENCE_TAG):
        items = (metadata_value(element, INCLUDE_METADATA) or "").split(";")
        for index, item in enumerate(items):
            if item.strip() and reference_name(item.strip()).lower() == wanted:
                return element, items, index
    return None


def _set_include(element: ET.Element, value: str) -> None:
    wanted = INCLUDE_METADATA.lower()
    for attr in element.attrib:
        if local_name(attr).lower() == wanted:
            element.set(attr, value)
            return
    for child in element:
        if local_name(child.tag).lower() == wanted:
            child.text = value
            return


def _remove_item(
    parent: ET.Element,
    element: ET.Element,
    items: list[str],
    index: int,
) -> None:
    remaining = items[:index] + items[index + 1 :]
    if any(item.strip() for item in remaining):
        _set_include(element, ";".join(remaining).strip())
    else:
        _detach(parent, element)


def _drop_empty_item_groups(root: ET.Element, parents: dict[int, ET.Element]) -> int:
    dropped = 0
    for group in list(iter_elements(root, ITEM_GROUP_TAG)):
        parent = parents.get(id(group))
        if parent is None or _has_child_elements(group):
            continue
        _detach(parent, group)
        dropped += 1
    return dropped


def _serialize(root: ET.Element, original: bytes, span: _RootSpan) -> bytes:
    content = escape(root.text or "") + "".join(
        ET.tostring(child, encoding="unicode") for child in root
    )
    if b"\r\n" in original:
        content = content.replace("\n", "\r\n")

    match = _ENCODING_RE.match(original)
    encoding = match.group(1).decode("ascii") if match else _DEFAULT_ENCODING
    return (
        original[: span.content_start]
        + content.encode(encoding, "xmlcharrefreplace")
        + original[span.content_end :]
    )


def remove_references(
    path: str | Path,
    reference_names: Sequence[str],
    dry_run: bool = False,
) -> list[FixResult]:
    """Remove one declaration per requested reference name from a descriptor.

    Args:
        path: Project descriptor to edit
        reference_names: Target project names, matched case-insensitively
            against the file stem of each ``;``-separated ``Include`` item
        dry_run: Simulate the edit without writing the file

    Returns:
        One result per requested name, in request order. Failures are
        reported in the results and never raised.
    """
    path = Path(path)
    file_name = path.name

    if not path.is_file():
        message = f"Project file not found: {path}"
        return [_failure(path, message) for _ in reference_names]

    try:
        original = path.read_bytes()
        root = _parse_preserving_comments(original)
        span = _root_span(original)
    except (OSError, ET.ParseError, expat.ExpatError, ValueError) as exc:
        message = f"Failed to fix project file: {exc}"
        return [_failure(path, message) for _ in reference_names]

    parents = {id(child): parent for parent in root.iter() for child in parent}
    outcomes: list[tuple[str, bool]] = []

    for name in reference_names:
        found = _find_reference(root, name)
        if found is None:
            outcomes.append((name, False))
            continue
        element, items, index = found
        _remove_item(parents[id(element)], element, items, index)
        outcomes.append((name, True))

    removed = any(found for _, found in outcomes)
    if removed:
        dropped = _drop_empty_item_groups(root, parents)
        logger.debug("Dropped %d empty ItemGroup(s) from %s", dropped, path)

    if removed and not dry_run:
        try:
            path.write_bytes(_serialize(root, original, span))
        except (OSError, LookupError) as exc:
            logger.warning("Failed to write %s: %s", path, exc)
            message = f"Failed to fix project file: {exc}"
            return [
                _failure(path, message)
                if found
                else _failure(path, f"Reference to '{name}' not found in project file")
                for name, found in outcomes
            ]

    results: list[FixResult] = []
    for name, found in outcomes:
        if not found:
            results.append(
                _failure(path, f"Reference to '{name}' not found in project file")
            )
        elif dry_run:
            results.append(
                FixResult(
                    success=True,
                    message=f"[DRY RUN] Would remove reference to '{name}' from {file_name}",
                    path=str(path),
                    changed=False,
                )
            )
        else:
            logger.info("Removed reference to %s from %s", name, path)
            results.append(
                FixResult(
                    success=True,
                    message=f"Removed reference to '{name}' from {file_name}",
                    path=str(path),
                    changed=True,
                )
            )
    return results


def remove_reference(
    path: str | Path,
    reference_name: str,
    dry_run: bool = False,
) -> FixResult:
    return remove_references(path, [reference_name], dry_run=dry_run)[0]


def _is_fixable(violation: Violation) -> bool:
    return (
        violation.auto_fixable
        and violation.severity is Severity.ERROR
        and bool(violation.reference and violation.reference.strip())
    )


def _project_path(project_name: str, modules: Sequence[ModuleInfo]) -> str | None:
    wanted = project_name.lower()
    for module in modules:
        if module.name.lower() == wanted:
            return module.project.path
    return None


def fix_violations(
    violations: Sequence[Violation],
    modules: Sequence[ModuleInfo],
    dry_run: bool = False,
) -> list[FixResult]:
    """Remove the offending reference of every fixable violation.

    Removals that target the same descriptor are applied in a single
    transaction. Results are returned in violation order.
    """
    results: list[FixResult | None] = [None] * len(violations)
    batches: dict[str, list[tuple[int, str]]] = {}

    for index, violation in enumerate(violations):
        project_path = _project_path(violation.project_name, modules)

        if not _is_fixable(violation):
            results[index] = _failure(
                project_path or "",
                f"Violation '{violation.rule_id}' cannot be automatically fixed; "
                "manual intervention is required",
            )
            continue

        if project_path is None:
            results[index] = _failure(
                "", f"Could not find project file for '{violation.project_name}'"
            )
            continue

        batches.setdefault(project_path, []).append(
            (index, violation.reference or "")
        )

    for project_path, entries in batches.items():
        batch_results = remove_references(
            project_path, [name for _, name in entries], dry_run=dry_run
        )
        for (index, _), result in zip(entries, batch_results, strict=True):
            results[index] = result

    return [result for result in results if result is not None]


__all__ = ["FixResult", "fix_violations", "remove_reference", "remove_references"]
