"""Archive discovery utilities for scanning dependency directories."""

from pathlib import Path
from typing import Iterator, Optional, Set


DEFAULT_EXTENSIONS = {".rlib"}
DEFAULT_MAX_DEPTH = 0


def iter_archives(
    root: Path,
    include_ext: Optional[Set[str]] = None,
    max_depth: Optional[int] = DEFAULT_MAX_DEPTH,
) -> Iterator[Path]:
    """
    Iterate over archive files in a directory.

    Args:
        root: Directory to scan (usually ``target/<triple>/<profile>/deps``).
        include_ext: Set of file suffixes to include (e.g., {'.rlib', '.a'}).
                    If None, uses DEFAULT_EXTENSIONS.
        max_depth: Maximum depth to descend. 0 lists only ``root`` itself,
                  None means unlimited.

    Yields:
        Path objects for matching files, sorted by name within each directory.

    Raises:
        OSError: If a directory cannot be listed.
    """
    if include_ext is None:
        include_ext = DEFAULT_EXTENSIONS

    def _walk(current: Path, depth: int) -> Iterator[Path]:
        for entry in sorted(current.iterdir()):
            if entry.is_dir():
                if max_depth is None or depth < max_depth:
                    yield from _walk(entry, depth + 1)
            elif entry.is_file():
                if entry.suffix.lower() in include_ext:
                    yield entry

    yield from _walk(root, 0)


def normalize_extensions(extensions) -> Set[str]:
    """Lower-case suffixes and make sure each starts with a dot."""
    normalized = set()
    for ext in extensions:
        if not ext.startswith("."):
            ext = "." + ext
        normalized.add(ext.lower())
    return normalized
