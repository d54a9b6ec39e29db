"""Handler for NRO homebrew executables and their ASET asset section."""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, BinaryIO, Optional

from romcat_utils.logging import get_logger

from ..detector import read_exact, read_u32, read_u64
from ..documents import DocumentNode
from ..errors import RomParseError
from ..formats import ASET_MISSING, RomFormat
from ..icons import normalise_icon
from ..schema import CatalogEntry
from .base import RomHandler

if TYPE_CHECKING:  # pragma: no cover
    from ..scanner import ScanContext


LOGGER = get_logger(__name__)

NRO_SIZE_OFFSET = 0x18
ASET_MAGIC = b"ASET"
ASET_ICON_OFFSET = 0x08
ASET_ICON_SIZE = 0x10
ASET_NACP_OFFSET = 0x18
NACP_TITLE_SIZE = 0x200
NACP_AUTHOR_SIZE = 0x100


def nul_terminated(slot: bytes) -> str:
    """Decode ``slot`` up to its first NUL byte, or entirely if it has none."""

    end = slot.find(b"\x00")
    if end != -1:
        slot = slot[:end]
    return slot.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class NroMetadata:
    title: str
    author: str
    icon: Optional[bytes] = None


def _read_icon(handle: BinaryIO, asset_offset: int) -> Optional[bytes]:
    icon_offset = read_u64(handle, asset_offset + ASET_ICON_OFFSET)
    icon_size = read_u32(handle, asset_offset + ASET_ICON_SIZE)
    if icon_offset == 0 or icon_size == 0:
        LOGGER.debug("ASET declares no icon")
        return None
    try:
        raw = read_exact(handle, asset_offset + icon_offset, icon_size)
    except RomParseError as exc:
        LOGGER.debug("Icon data unavailable: %s", exc)
        return None
    return normalise_icon(raw)


def parse_nro_header(handle: BinaryIO) -> NroMetadata:
    """Read title, author and icon from the asset section of an NRO.

    Raises :class:`RomParseError` when the asset section or its NACP block
    is missing or truncated. A missing or broken icon is not an error.
    """

    asset_offset = read_u32(handle, NRO_SIZE_OFFSET)
    if read_exact(handle, asset_offset, len(ASET_MAGIC)) != ASET_MAGIC:
        raise RomParseError("missing ASET magic")

    icon = _read_icon(handle, asset_offset)

    nacp_offset = read_u64(handle, asset_offset + ASET_NACP_OFFSET)
    nacp_size = read_u64(handle, asset_offset + ASET_NACP_OFFSET + 8)
    if nacp_offset == 0 or nacp_size == 0:
        raise RomParseError("ASET declares no NACP")
    title = read_exact(handle, asset_offset + nacp_offset, NACP_TITLE_SIZE)
    author = read_exact(handle, asset_offset + nacp_offset + NACP_TITLE_SIZE, NACP_AUTHOR_SIZE)
    return NroMetadata(title=nul_terminated(title), author=nul_terminated(author), icon=icon)


class NroHandler(RomHandler):
    rom_format = RomFormat.NRO

    def extract(self, handle: BinaryIO, document: DocumentNode, *, context: "ScanContext") -> CatalogEntry:  # type: ignore[override]
        try:
            nro = parse_nro_header(handle)
        except RomParseError as exc:
            LOGGER.debug("No usable asset section in %s: %s", document.name, exc)
            return self.make_entry(document, title=ASET_MISSING)
        return self.make_entry(document, title=nro.title, author=nro.author, icon=nro.icon)
