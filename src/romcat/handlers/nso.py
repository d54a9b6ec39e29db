"""Handler for NSO executables, which carry no title metadata."""
from __future__ import annotations

from typing import TYPE_CHECKING, BinaryIO

from ..documents import DocumentNode
from ..formats import RomFormat
from ..schema import CatalogEntry
from .base import RomHandler

if TYPE_CHECKING:  # pragma: no cover
    from ..scanner import ScanContext


class NsoHandler(RomHandler):
    rom_format = RomFormat.NSO

    def extract(self, handle: BinaryIO, document: DocumentNode, *, context: "ScanContext") -> CatalogEntry:  # type: ignore[override]
        return self.make_entry(document)
