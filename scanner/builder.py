"""Report builder that orchestrates archive discovery and import scanning."""

from pathlib import Path
from typing import Optional, Set

from report.model import ImportReport, MemberDiagnostic
from .archive import ArchiveReader
from .discovery import iter_archives, DEFAULT_MAX_DEPTH
from .errors import MalformedArchiveError
from .wasm import ImportQuery, scan_module


def archive_contains_import(
    path: Path,
    query: ImportQuery,
    report: Optional[ImportReport] = None,
) -> Optional[str]:
    """
    Scan the members of one archive for an import.

    Members that are not modules (build scripts, proc macros, metadata) are
    expected and do not stop the scan. Reading stops at the first member that
    declares the import.

    Args:
        path: Archive file to read.
        query: The (module, name) import to look for.
        report: If given, receives a diagnostic for every member scanned.

    Returns:
        Name of the first matching member, or None if no member matches.

    Raises:
        OSError: If the archive cannot be opened or read.
        MalformedArchiveError: If the archive framing is broken.
    """
    with open(path, "rb") as handle:
        for member in ArchiveReader(handle):
            result = scan_module(member.data, query)
            if report is not None:
                report.add_diagnostic(
                    MemberDiagnostic(path, member.name, result.verdict.value, result.detail)
                )
            if result.found:
                return member.name
    return None


def build_report(
    root: Path,
    module: str,
    name: str,
    include_ext: Optional[Set[str]] = None,
    max_depth: Optional[int] = DEFAULT_MAX_DEPTH,
    keep_going: bool = False,
) -> ImportReport:
    """
    Scan a directory of archives and report which ones declare an import.

    Args:
        root: Directory holding the archives.
        module: Import module to look for (usually "env").
        name: Import name to look for.
        include_ext: Archive suffixes to scan (default: .rlib).
        max_depth: Maximum directory depth to scan.
        keep_going: If True, archives with broken framing are recorded as
                    skipped instead of aborting the scan.

    Returns:
        ImportReport listing matching archives in discovery order.

    Raises:
        OSError: If the directory cannot be listed or an archive opened.
        MalformedArchiveError: If an archive is malformed and keep_going is
                               False.
    """
    query = ImportQuery(module, name)
    report = ImportReport(module, name)

    for archive in iter_archives(root, include_ext=include_ext, max_depth=max_depth):
        try:
            member = archive_contains_import(archive, query, report)
        except MalformedArchiveError as e:
            if not keep_going:
                raise MalformedArchiveError(f"{archive}: {e}") from e
            report.add_skipped(archive, str(e))
            continue

        if member is not None:
            report.add_match(archive, member)

    return report
