"""Magic-signature checks that confirm a file's container format."""
from __future__ import annotations

import os
import struct
from dataclasses import dataclass
from typing import BinaryIO, Dict, Optional

from .errors import RomParseError, ShortReadError
from .formats import RomFormat


@dataclass(frozen=True)
class Signature:
    magic: bytes
    offset: int


SIGNATURES: Dict[RomFormat, Signature] = {
    RomFormat.NRO: Signature(b"NRO0", 0x10),
    RomFormat.NSO: Signature(b"NSO0", 0x00),
}


def read_exact(handle: BinaryIO, offset: int, size: int) -> bytes:
    """Read exactly ``size`` bytes at absolute ``offset``.

    Requests reaching past the end of the stream fail before any read.
    """

    if offset < 0 or size < 0:
        raise RomParseError(f"invalid read of 0x{size:X} bytes at offset {offset}")
    try:
        length = handle.seek(0, os.SEEK_END)
        if offset + size > length:
            raise ShortReadError(offset, size, max(0, length - offset))
        handle.seek(offset)
        data = handle.read(size)
    except (OSError, ValueError, OverflowError) as exc:
        raise RomParseError(f"cannot read 0x{size:X} bytes at 0x{offset:X}: {exc}") from exc
    if len(data) != size:
        raise ShortReadError(offset, size, len(data))
    return data


def read_u32(handle: BinaryIO, offset: int) -> int:
    return struct.unpack("<I", read_exact(handle, offset, 4))[0]


def read_u64(handle: BinaryIO, offset: int) -> int:
    return struct.unpack("<Q", read_exact(handle, offset, 8))[0]


def verify_signature(handle: BinaryIO, rom_format: RomFormat) -> bool:
    """Return ``True`` if ``handle`` carries the magic of ``rom_format``.

    Encrypted containers have no plain signature here; their verification
    happens inside the container extractor, so they always pass. Read
    failures count as a mismatch.
    """

    signature = SIGNATURES.get(rom_format)
    if signature is None:
        return True
    try:
        data = read_exact(handle, signature.offset, len(signature.magic))
    except RomParseError:
        return False
    return data == signature.magic


def detect_format(handle: BinaryIO) -> Optional[RomFormat]:
    """Classify ``handle`` by signature alone, ignoring any file name."""

    for rom_format in SIGNATURES:
        if verify_signature(handle, rom_format):
            return rom_format
    return None
