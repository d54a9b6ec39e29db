"""Exceptions raised by the catalog pipeline."""
from __future__ import annotations


class RomCatalogError(Exception):
    """Base class for romcat errors."""


class RomParseError(RomCatalogError):
    """A container header is structurally invalid."""


class ShortReadError(RomParseError):
    """Fewer bytes were available than a header field requires."""

    def __init__(self, offset: int, expected: int, actual: int) -> None:
        super().__init__(f"short read at 0x{offset:X}: wanted {expected} bytes, got {actual}")
        self.offset = offset
        self.expected = expected
        self.actual = actual


class KeyFileError(RomCatalogError):
    """A key file line could not be parsed."""


class CatalogDecodeError(RomCatalogError):
    """The persisted catalog is missing, truncated or does not match the schema."""


class CatalogWriteError(RomCatalogError):
    """The catalog could not be persisted."""


class ScanLocationError(RomCatalogError):
    """The configured search location cannot be opened."""


class ScanCancelled(RomCatalogError):
    """A scan was superseded before it completed."""
