"""Data model for the archives found to declare an import."""

from pathlib import Path
from typing import Dict, Iterator, List, NamedTuple, Optional, Tuple


class MemberDiagnostic(NamedTuple):
    """What the module scanner concluded about one archive member."""

    archive: Path
    member: str
    verdict: str
    detail: Optional[str] = None


class ImportReport:
    """
    Results of scanning a directory of archives for one import.

    Matching archives are kept in discovery order, each with the name of the
    first member that declared the import. Archives whose framing could not be
    read are tracked separately as skipped.
    """

    def __init__(self, module: str, name: str):
        self.module = module
        self.name = name
        self._archives: List[Path] = []
        self._members: Dict[Path, str] = {}  # archive -> first matching member
        self._skipped: Dict[Path, str] = {}  # archive -> error message
        self._diagnostics: List[MemberDiagnostic] = []

    @property
    def archives(self) -> List[Path]:
        """Return matching archives in discovery order."""
        return list(self._archives)

    @property
    def skipped(self) -> Dict[Path, str]:
        """Return archives that could not be read (archive -> error)."""
        return dict(self._skipped)

    @property
    def diagnostics(self) -> List[MemberDiagnostic]:
        """Return per-member scan diagnostics in scan order."""
        return list(self._diagnostics)

    @property
    def found(self) -> bool:
        return bool(self._archives)

    def add_match(self, archive: Path, member: str) -> None:
        """
        Record that an archive declares the import.

        An archive is only ever recorded once; later calls for the same
        archive are ignored.
        """
        if archive in self._members:
            return
        self._archives.append(archive)
        self._members[archive] = member

    def get_member(self, archive: Path) -> Optional[str]:
        """Get the member that declared the import in the archive, if any."""
        return self._members.get(archive)

    def add_skipped(self, archive: Path, error: str) -> None:
        self._skipped[archive] = error

    def add_diagnostic(self, diagnostic: MemberDiagnostic) -> None:
        self._diagnostics.append(diagnostic)

    def iter_matches(self) -> Iterator[Tuple[Path, str]]:
        """Iterate over (archive, member) pairs in discovery order."""
        for archive in self._archives:
            yield archive, self._members[archive]

    def __len__(self) -> int:
        """Return the number of matching archives."""
        return len(self._archives)

    def __contains__(self, archive: Path) -> bool:
        return archive in self._members

    def __repr__(self) -> str:
        return f"ImportReport(module={self.module!r}, name={self.name!r}, archives={len(self._archives)}, skipped={len(self._skipped)})"
