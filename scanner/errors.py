"""Exceptions raised while reading archives and module binaries."""

from typing import Optional


class ImportFinderError(Exception):
    """Base class for decoding errors, tagged with a short machine code."""

    def __init__(self, message: str, code: str) -> None:
        super().__init__(message)
        self.code = code


class MalformedArchiveError(ImportFinderError):
    """The archive framing cannot be trusted (bad magic, header or size)."""

    def __init__(self, message: str, offset: Optional[int] = None) -> None:
        if offset is not None:
            message = f"{message} (at offset {offset})"
        super().__init__(message, "malformed_archive")
        self.offset = offset


class ModuleDecodeError(ImportFinderError):
    """A member payload could not be decoded as a module binary."""

    def __init__(self, message: str, offset: int) -> None:
        super().__init__(f"{message} (at offset {offset})", "module_decode")
        self.offset = offset
