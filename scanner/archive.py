"""Reader for Unix ``ar`` archives such as ``.rlib`` and ``.a`` files."""

from typing import BinaryIO, Iterator, NamedTuple, Optional

from .errors import MalformedArchiveError


ARCHIVE_MAGIC = b"!<arch>\n"
THIN_ARCHIVE_MAGIC = b"!<thin>\n"
HEADER_SIZE = 60
HEADER_TERMINATOR = b"`\n"

# Members that hold linker symbol tables rather than object files
SYMBOL_TABLE_NAMES = {"/", "/SYM64/", "__.SYMDEF", "__.SYMDEF SORTED"}
GNU_LONG_NAMES = "//"
BSD_NAME_PREFIX = "#1/"


class ArchiveMember(NamedTuple):
    """A named member payload extracted from an archive."""

    name: str
    data: bytes


class ArchiveReader:
    """
    Lazily iterate over the members of an ``ar`` archive stream.

    The magic header is validated when the reader is created. Iterating
    consumes the stream, so a reader can only be iterated once, and only one
    member payload is held in memory at a time.

    Raises:
        MalformedArchiveError: If the magic header is missing, a member header
            is truncated or unparseable, or a payload runs past the end of the
            stream.
    """

    def __init__(self, stream: BinaryIO):
        self._stream = stream
        self._offset = 0
        self._long_names: Optional[bytes] = None

        magic = self._read(len(ARCHIVE_MAGIC))
        if magic == THIN_ARCHIVE_MAGIC:
            raise MalformedArchiveError("thin archives are not supported", 0)
        if magic != ARCHIVE_MAGIC:
            raise MalformedArchiveError("not an archive: missing '!<arch>' magic", 0)

    def __iter__(self) -> Iterator[ArchiveMember]:
        return self._members()

    def _read(self, size: int) -> bytes:
        data = self._stream.read(size)
        self._offset += len(data)
        return data

    def _members(self) -> Iterator[ArchiveMember]:
        while True:
            header_offset = self._offset
            header = self._read(HEADER_SIZE)
            if not header:
                return
            if len(header) < HEADER_SIZE:
                raise MalformedArchiveError("truncated member header", header_offset)
            if header[58:60] != HEADER_TERMINATOR:
                raise MalformedArchiveError("invalid member header terminator", header_offset)

            size = _parse_size(header[48:58], header_offset)
            data = self._read(size)
            if len(data) < size:
                raise MalformedArchiveError(
                    f"member declares {size} bytes but only {len(data)} remain",
                    header_offset,
                )
            # Payloads are padded to an even offset; the final pad may be absent
            if size % 2:
                self._read(1)

            raw_name = header[:16].decode("utf-8", errors="replace").rstrip(" ")

            if raw_name == GNU_LONG_NAMES:
                self._long_names = data
                continue
            if raw_name in SYMBOL_TABLE_NAMES:
                continue

            if raw_name.startswith(BSD_NAME_PREFIX):
                name_len = _parse_decimal(raw_name[len(BSD_NAME_PREFIX):])
                if name_len is None or name_len > size:
                    raise MalformedArchiveError(f"invalid BSD member name '{raw_name}'", header_offset)
                name = data[:name_len].rstrip(b"\x00").decode("utf-8", errors="replace")
                data = data[name_len:]
                if name in SYMBOL_TABLE_NAMES:
                    continue
            elif raw_name.startswith("/"):
                index = _parse_decimal(raw_name[1:])
                if index is None:
                    raise MalformedArchiveError(f"invalid member name {raw_name!r}", header_offset)
                name = self._lookup_long_name(index, header_offset)
            elif raw_name.endswith("/"):
                name = raw_name[:-1]
            else:
                name = raw_name

            yield ArchiveMember(name, data)

    def _lookup_long_name(self, index: int, header_offset: int) -> str:
        """Resolve a GNU ``/<index>`` name against the ``//`` member."""
        if self._long_names is None or index >= len(self._long_names):
            raise MalformedArchiveError(f"long member name index {index} out of range", header_offset)
        end = self._long_names.find(b"/\n", index)
        if end == -1:
            end = len(self._long_names)
        return self._long_names[index:end].decode("utf-8", errors="replace")


def iter_members(stream: BinaryIO) -> Iterator[ArchiveMember]:
    """Validate the archive magic and iterate over the stream's members."""
    return iter(ArchiveReader(stream))


def _parse_decimal(text: str) -> Optional[int]:
    text = text.strip(" ")
    if not text or not all("0" <= ch <= "9" for ch in text):
        return None
    return int(text)


def _parse_size(field: bytes, header_offset: int) -> int:
    size = _parse_decimal(field.decode("ascii", errors="replace"))
    if size is None:
        raise MalformedArchiveError(f"invalid member size field {field!r}", header_offset)
    return size
