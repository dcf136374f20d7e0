"""Shared utilities for modulith-guard."""

from __future__ import annotations

import os
from pathlib import Path


def reference_name(reference_path: str | Path) -> str:
    """Convert a project reference path to the referenced project name.

    Args:
        reference_path: Path as written in a descriptor, using either
            separator style (e.g., "..\\Orders.Core\\Orders.Core.csproj")

    Returns:
        File name without its last extension (e.g., "Orders.Core")

    Examples:
        >>> reference_name("../Orders.Core/Orders.Core.csproj")
        'Orders.Core'
        >>> reference_name("..\\\\Shared.Core\\\\Shared.Core.csproj")
        'Shared.Core'
        >>> reference_name(Path("src/Billing.App/Billing.App.csproj"))
        'Billing.App'
    """
    path_str = reference_path.as_posix() if isinstance(reference_path, Path) else str(reference_path)
    normalized_parts = [part for part in path_str.replace("\\", "/").split("/") if part]
    if not normalized_parts:
        return ""

    file_name = normalized_parts[-1]
    stem, dot, _suffix = file_name.rpartition(".")
    # Dotfiles such as ".csproj" keep their full name.
    return stem if dot and stem else file_name


def normalize_path(path: str | Path) -> str:
    """Return an absolute, normalized path using forward slashes."""
    path_str = str(path).replace("\\", "/")
    return os.path.normpath(os.path.abspath(path_str)).replace("\\", "/")


__all__ = ["normalize_path", "reference_name"]
