"""Base class for the per-format ROM handlers used by the catalog scanner."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, BinaryIO, Optional

from ..detector import verify_signature
from ..documents import DocumentNode
from ..formats import LoaderResult, RomFormat
from ..schema import CatalogEntry

if TYPE_CHECKING:  # pragma: no cover
    from ..scanner import ScanContext


def fallback_title(file_name: str, rom_format: RomFormat) -> str:
    """Return ``file_name`` without its format extension."""

    if file_name.lower().endswith(rom_format.extension):
        return file_name[: -len(rom_format.extension)]
    stem, dot, _ = file_name.rpartition(".")
    return stem if dot else file_name


class RomHandler(ABC):
    """Reads one container format."""

    rom_format: RomFormat

    def sniff(self, file_name: str) -> bool:
        """Return ``True`` if the extension of ``file_name`` selects this handler."""

        return RomFormat.from_name(file_name) is self.rom_format

    def verify(self, handle: BinaryIO) -> bool:
        return verify_signature(handle, self.rom_format)

    @abstractmethod
    def extract(self, handle: BinaryIO, document: DocumentNode, *, context: "ScanContext") -> CatalogEntry:
        """Return the catalog entry for a verified file."""

    def make_entry(
        self,
        document: DocumentNode,
        *,
        title: Optional[str] = None,
        author: Optional[str] = None,
        icon: Optional[bytes] = None,
        outcome: LoaderResult = LoaderResult.SUCCESS,
    ) -> CatalogEntry:
        return CatalogEntry(
            location=document.uri,
            file_name=document.name,
            format=self.rom_format,
            title=title if title else fallback_title(document.name, self.rom_format),
            author=author or None,
            icon=icon,
            outcome=outcome,
        )
