"""Scanner module for archive discovery and module import decoding."""

from .discovery import iter_archives
from .archive import ArchiveMember, ArchiveReader, iter_members
from .wasm import ImportQuery, ScanResult, ScanVerdict, scan_module, module_contains_import
from .builder import archive_contains_import, build_report
from .errors import ImportFinderError, MalformedArchiveError, ModuleDecodeError

__all__ = [
    "iter_archives",
    "ArchiveMember",
    "ArchiveReader",
    "iter_members",
    "ImportQuery",
    "ScanResult",
    "ScanVerdict",
    "scan_module",
    "module_contains_import",
    "archive_contains_import",
    "build_report",
    "ImportFinderError",
    "MalformedArchiveError",
    "ModuleDecodeError",
]
