"""Shared fixtures for building module binaries and archives in tests."""

from pathlib import Path
from typing import Iterable, Tuple

import pytest


class Binaries:
    """Builders for the byte formats the scanner reads."""

    MODULE_HEADER = b"\x00asm\x01\x00\x00\x00"
    COMPONENT_HEADER = b"\x00asm\x0d\x00\x01\x00"

    @staticmethod
    def leb_u32(value: int) -> bytes:
        out = bytearray()
        while True:
            byte = value & 0x7F
            value >>= 7
            if value:
                out.append(byte | 0x80)
            else:
                out.append(byte)
                return bytes(out)

    @classmethod
    def name(cls, text: str) -> bytes:
        raw = text.encode("utf-8")
        return cls.leb_u32(len(raw)) + raw

    @classmethod
    def section(cls, section_id: int, payload: bytes) -> bytes:
        return bytes([section_id]) + cls.leb_u32(len(payload)) + payload

    @classmethod
    def custom_section(cls, name: str, payload: bytes = b"") -> bytes:
        return cls.section(0, cls.name(name) + payload)

    @classmethod
    def import_entry(cls, module: str, name: str, descriptor: bytes = b"\x00\x00") -> bytes:
        """Encode an import entry; the default descriptor is a function of type 0."""
        return cls.name(module) + cls.name(name) + descriptor

    @classmethod
    def import_section(cls, entries: Iterable[bytes]) -> bytes:
        entries = list(entries)
        return cls.section(2, cls.leb_u32(len(entries)) + b"".join(entries))

    @classmethod
    def module(cls, *sections: bytes) -> bytes:
        return cls.MODULE_HEADER + b"".join(sections)

    @classmethod
    def module_with_imports(cls, *imports: Tuple[str, str]) -> bytes:
        """A module with a type section, the given function imports and a code section."""
        type_section = cls.section(1, b"\x01\x60\x00\x00")
        code_section = cls.section(10, b"\x00")
        entries = [cls.import_entry(module, name) for module, name in imports]
        return cls.module(type_section, cls.import_section(entries), code_section)

    @staticmethod
    def member_header(name: str, size: int, terminator: bytes = b"`\n") -> bytes:
        return (
            name.encode("utf-8").ljust(16)
            + b"0".ljust(12)
            + b"0".ljust(6)
            + b"0".ljust(6)
            + b"644".ljust(8)
            + str(size).encode("ascii").ljust(10)
            + terminator
        )

    @classmethod
    def archive(cls, members: Iterable[Tuple[str, bytes]]) -> bytes:
        """Build a GNU-style archive, using a // table for names over 15 bytes."""
        members = list(members)
        long_names = bytearray()
        headers = []
        for name, data in members:
            if len(name.encode("utf-8")) > 15:
                headers.append(f"/{len(long_names)}")
                long_names += name.encode("utf-8") + b"/\n"
            else:
                headers.append(name + "/")

        out = bytearray(b"!<arch>\n")
        entries = list(zip(headers, (data for _, data in members)))
        if long_names:
            entries.insert(0, ("//", bytes(long_names)))
        for header_name, data in entries:
            out += cls.member_header(header_name, len(data))
            out += data
            if len(data) % 2:
                out += b"\n"
        return bytes(out)

    @classmethod
    def write_archive(cls, path: Path, members: Iterable[Tuple[str, bytes]]) -> Path:
        path.write_bytes(cls.archive(members))
        return path


@pytest.fixture
def binaries():
    """Builders for module binaries and archives."""
    return Binaries
