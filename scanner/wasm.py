"""
Streaming decoder for WebAssembly binaries, limited to finding imports.

The decoder never builds a full representation of a module. ``iter_payloads``
yields the header, then each top-level section as a bounded sub-reader, then
an end marker; sections nobody asks about are skipped by their length prefix.
``iter_imports`` decodes the import section one entry at a time so a match
can stop the scan before anything after it is read.
"""

import struct
from enum import Enum
from typing import Iterator, NamedTuple, Optional, Union

from .errors import ModuleDecodeError


WASM_MAGIC = b"\x00asm"
MODULE_VERSION = 1
MODULE_LAYER = 0
COMPONENT_LAYER = 1

IMPORT_SECTION_ID = 2

# Import descriptor kinds
EXTERNAL_FUNC = 0x00
EXTERNAL_TABLE = 0x01
EXTERNAL_MEMORY = 0x02
EXTERNAL_GLOBAL = 0x03
EXTERNAL_TAG = 0x04

NUMERIC_TYPES = {0x7F, 0x7E, 0x7D, 0x7C, 0x7B}  # i32 i64 f32 f64 v128
ABSTRACT_HEAP_TYPES = set(range(0x68, 0x76))  # cont..nocont, includes func/extern
SHARED_PREFIX = 0x65
REF_TYPE = 0x64
REF_NULL_TYPE = 0x63

TABLE_LIMIT_FLAGS = 0x07  # has max, shared, 64-bit
MEMORY_LIMIT_FLAGS = 0x0F  # has max, shared, 64-bit, custom page size


class Encoding(Enum):
    MODULE = "module"
    COMPONENT = "component"


class ScanVerdict(Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    NOT_A_MODULE = "not_a_module"


class ImportQuery(NamedTuple):
    """The (module, name) import pair to look for."""

    module: str
    name: str


class DecodedImport(NamedTuple):
    module: str
    name: str
    kind: int


class ScanResult(NamedTuple):
    """Verdict for one payload, plus why it was not a module if it wasn't."""

    verdict: ScanVerdict
    detail: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.verdict is ScanVerdict.FOUND


class Version(NamedTuple):
    encoding: Encoding
    version: int


class Section(NamedTuple):
    id: int
    reader: "BinaryReader"


class End:
    """Marks a module whose sections were all read."""


Payload = Union[Version, Section, End]


class BinaryReader:
    """
    Cursor over a bounded window of a byte buffer.

    Offsets reported in errors are absolute positions in the underlying buffer.
    """

    def __init__(self, data, start: int = 0, end: Optional[int] = None):
        self._data = memoryview(data)
        self._pos = start
        self._end = len(self._data) if end is None else end

    @property
    def position(self) -> int:
        return self._pos

    @property
    def eof(self) -> bool:
        return self._pos >= self._end

    def _ensure(self, size: int) -> None:
        if self._end - self._pos < size:
            raise ModuleDecodeError(
                f"unexpected end-of-file: need {size} more bytes",
                self._pos,
            )

    def peek_u8(self) -> int:
        self._ensure(1)
        return self._data[self._pos]

    def read_u8(self) -> int:
        self._ensure(1)
        value = self._data[self._pos]
        self._pos += 1
        return value

    def read_u16_le(self) -> int:
        self._ensure(2)
        (value,) = struct.unpack_from("<H", self._data, self._pos)
        self._pos += 2
        return value

    def read_bytes(self, size: int) -> bytes:
        self._ensure(size)
        value = bytes(self._data[self._pos:self._pos + size])
        self._pos += size
        return value

    def read_var_u32(self) -> int:
        return self._read_var_uint(32)

    def read_var_u64(self) -> int:
        return self._read_var_uint(64)

    def _read_var_uint(self, bits: int) -> int:
        start = self._pos
        result = 0
        shift = 0
        while True:
            byte = self.read_u8()
            result |= (byte & 0x7F) << shift
            if shift + 7 >= bits:
                if byte & 0x80:
                    raise ModuleDecodeError(f"invalid var_u{bits}: integer representation too long", start)
                if byte >> (bits - shift):
                    raise ModuleDecodeError(f"invalid var_u{bits}: integer too large", start)
                return result
            if not byte & 0x80:
                return result
            shift += 7

    def read_var_s33(self) -> int:
        start = self._pos
        result = 0
        shift = 0
        while True:
            byte = self.read_u8()
            result |= (byte & 0x7F) << shift
            shift += 7
            if not byte & 0x80:
                break
            if shift >= 35:
                raise ModuleDecodeError("invalid var_s33: integer representation too long", start)
        # The unused high bits of a fifth byte must all match the sign bit
        if shift == 35 and (byte & 0x70) not in (0x00, 0x70):
            raise ModuleDecodeError("invalid var_s33: integer too large", start)
        if byte & 0x40:
            result -= 1 << shift
        return result

    def read_name(self) -> str:
        start = self._pos
        size = self.read_var_u32()
        raw = self.read_bytes(size)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError:
            raise ModuleDecodeError("malformed UTF-8 encoding in name", start) from None

    def sub_reader(self, size: int) -> "BinaryReader":
        """Split off the next ``size`` bytes as their own reader and skip them."""
        if self._end - self._pos < size:
            raise ModuleDecodeError(
                f"section of {size} bytes extends past the end of the data",
                self._pos,
            )
        reader = BinaryReader(self._data, self._pos, self._pos + size)
        self._pos += size
        return reader


def iter_payloads(data) -> Iterator[Payload]:
    """
    Lazily decode the top-level structure of a WebAssembly binary.

    Yields a ``Version`` first, then one ``Section`` per section, then an
    ``End`` once the data is exhausted exactly on a section boundary.

    Raises:
        ModuleDecodeError: As soon as the data stops making sense.
    """
    reader = BinaryReader(data)
    yield _read_version(reader)

    while not reader.eof:
        section_id = reader.read_u8()
        size = reader.read_var_u32()
        yield Section(section_id, reader.sub_reader(size))

    yield End()


def _read_version(reader: BinaryReader) -> Version:
    if reader.read_bytes(4) != WASM_MAGIC:
        raise ModuleDecodeError("magic header not detected: bad magic number", 0)
    version = reader.read_u16_le()
    layer = reader.read_u16_le()
    if layer == MODULE_LAYER and version == MODULE_VERSION:
        return Version(Encoding.MODULE, version)
    if layer == COMPONENT_LAYER:
        return Version(Encoding.COMPONENT, version)
    raise ModuleDecodeError(f"unknown binary version and encoding: {version:#x}/{layer:#x}", 4)


def iter_imports(section: Section) -> Iterator[DecodedImport]:
    """
    Decode an import section one entry at a time.

    Each entry's type descriptor is decoded only to find where the next entry
    starts.
    """
    if section.id != IMPORT_SECTION_ID:
        raise ValueError(f"section {section.id} is not an import section")

    reader = section.reader
    count = reader.read_var_u32()
    for _ in range(count):
        module = reader.read_name()
        name = reader.read_name()
        kind = _skip_import_type(reader)
        yield DecodedImport(module, name, kind)

    if not reader.eof:
        raise ModuleDecodeError("section size mismatch: unexpected data at the end of the section", reader.position)


def _skip_import_type(reader: BinaryReader) -> int:
    offset = reader.position
    kind = reader.read_u8()
    if kind == EXTERNAL_FUNC:
        reader.read_var_u32()
    elif kind == EXTERNAL_TABLE:
        _skip_ref_type(reader)
        _skip_limits(reader, TABLE_LIMIT_FLAGS)
    elif kind == EXTERNAL_MEMORY:
        _skip_limits(reader, MEMORY_LIMIT_FLAGS)
    elif kind == EXTERNAL_GLOBAL:
        _skip_val_type(reader)
        flags_offset = reader.position
        if reader.read_u8() & ~0x03:
            raise ModuleDecodeError("malformed global flags", flags_offset)
    elif kind == EXTERNAL_TAG:
        if reader.read_u8() != 0:
            raise ModuleDecodeError("invalid tag attributes", offset + 1)
        reader.read_var_u32()
    else:
        raise ModuleDecodeError(f"invalid leading byte ({kind:#x}) for external kind", offset)
    return kind


def _skip_limits(reader: BinaryReader, allowed_flags: int) -> None:
    offset = reader.position
    flags = reader.read_u8()
    if flags & ~allowed_flags:
        raise ModuleDecodeError(f"invalid limits flags {flags:#x}", offset)
    read_bound = reader.read_var_u64 if flags & 0x04 else reader.read_var_u32
    read_bound()
    if flags & 0x01:
        read_bound()
    if flags & 0x08:
        reader.read_var_u32()  # log2 of the page size


def _skip_val_type(reader: BinaryReader) -> None:
    if reader.peek_u8() in NUMERIC_TYPES:
        reader.read_u8()
    else:
        _skip_ref_type(reader)


def _skip_ref_type(reader: BinaryReader) -> None:
    offset = reader.position
    code = reader.read_u8()
    if code in ABSTRACT_HEAP_TYPES:
        return
    if code == SHARED_PREFIX:
        _skip_abstract_heap_type(reader)
    elif code in (REF_TYPE, REF_NULL_TYPE):
        _skip_heap_type(reader)
    else:
        raise ModuleDecodeError(f"invalid value type {code:#x}", offset)


def _skip_heap_type(reader: BinaryReader) -> None:
    code = reader.peek_u8()
    if code in ABSTRACT_HEAP_TYPES or code == SHARED_PREFIX:
        if reader.read_u8() == SHARED_PREFIX:
            _skip_abstract_heap_type(reader)
        return
    offset = reader.position
    if reader.read_var_s33() < 0:
        raise ModuleDecodeError("invalid heap type", offset)


def _skip_abstract_heap_type(reader: BinaryReader) -> None:
    offset = reader.position
    code = reader.read_u8()
    if code not in ABSTRACT_HEAP_TYPES:
        raise ModuleDecodeError(f"invalid abstract heap type {code:#x}", offset)


def scan_module(data, query: ImportQuery) -> ScanResult:
    """
    Check whether a module binary declares the import ``query``.

    Never raises for bad input: anything that is not a well-formed module up
    to the matching import (or the end of the module) is reported as
    ``NOT_A_MODULE`` with the reason in ``detail``.
    """
    try:
        for payload in iter_payloads(data):
            if isinstance(payload, Version):
                if payload.encoding is not Encoding.MODULE:
                    return ScanResult(
                        ScanVerdict.NOT_A_MODULE,
                        f"found a wasm {payload.encoding.value} (version {payload.version:#x}), not a module",
                    )
            elif isinstance(payload, End):
                return ScanResult(ScanVerdict.NOT_FOUND)
            elif payload.id == IMPORT_SECTION_ID:
                for entry in iter_imports(payload):
                    if entry.module == query.module and entry.name == query.name:
                        return ScanResult(ScanVerdict.FOUND)
    except ModuleDecodeError as e:
        return ScanResult(ScanVerdict.NOT_A_MODULE, str(e))


def module_contains_import(data, module: str, name: str) -> bool:
    """Return True if the binary is a module that imports ``module``/``name``."""
    return scan_module(data, ImportQuery(module, name)).found
