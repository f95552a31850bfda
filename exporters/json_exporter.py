"""JSON exporter for import reports (machine-friendly format)."""

import json
from pathlib import Path
from typing import Any, Dict, List

from report.model import ImportReport


def to_json(
    report: ImportReport,
    indent: int = 2,
    include_skipped: bool = True,
) -> str:
    """
    Convert an import report to JSON format.

    Args:
        report: The report to export.
        indent: JSON indentation level.
        include_skipped: If True, include archives that could not be read.

    Returns:
        JSON string representation of the report.
    """
    archives: List[Dict[str, Any]] = []
    for archive, member in report.iter_matches():
        archives.append({"path": _get_path_str(archive), "member": member})

    data: Dict[str, Any] = {
        "module": report.module,
        "name": report.name,
        "found": report.found,
        "archives": archives,
    }

    if include_skipped:
        data["skipped"] = [
            {"path": _get_path_str(archive), "error": error}
            for archive, error in report.skipped.items()
        ]

    return json.dumps(data, indent=indent)


def _get_path_str(path: Path) -> str:
    """Get the string representation of a path."""
    return str(path).replace("\\", "/")
