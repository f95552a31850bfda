"""Plain text exporter for import reports (human-friendly format)."""

from typing import List

from report.model import ImportReport


def to_text(report: ImportReport, show_members: bool = False) -> str:
    """
    Convert an import report to the console message.

    Args:
        report: The report to export.
        show_members: If True, name the member that declared the import
                      after each archive.

    Returns:
        Either a "no imports found" line, or a heading followed by one
        indented line per matching archive.
    """
    query = f'"{report.module}" "{report.name}"'
    if not report.found:
        return f"No imports of {query} found."

    lines: List[str] = [f"{query} is imported by:"]
    for archive, member in report.iter_matches():
        if show_members:
            lines.append(f"  {archive} ({member})")
        else:
            lines.append(f"  {archive}")
    return "\n".join(lines)
