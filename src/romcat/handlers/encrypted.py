"""Handler for encrypted containers, delegating to a container extractor."""
from __future__ import annotations

from typing import TYPE_CHECKING, BinaryIO

from romcat_utils.logging import get_logger

from ..documents import DocumentNode
from ..errors import RomParseError
from ..extractors import ContainerExtractor, ExtractionResult
from ..formats import LoaderResult, RomFormat
from ..icons import normalise_icon
from ..schema import CatalogEntry
from .base import RomHandler

if TYPE_CHECKING:  # pragma: no cover
    from ..scanner import ScanContext


LOGGER = get_logger(__name__)


class EncryptedContainerHandler(RomHandler):
    """NCA, XCI and NSP files; signature checks are left to the extractor."""

    def __init__(self, rom_format: RomFormat, extractor: ContainerExtractor) -> None:
        if not rom_format.encrypted:
            raise ValueError(f"{rom_format.value} is not an encrypted container format")
        self.rom_format = rom_format
        self.extractor = extractor

    def extract(self, handle: BinaryIO, document: DocumentNode, *, context: "ScanContext") -> CatalogEntry:  # type: ignore[override]
        try:
            result = self.extractor.extract(self.rom_format, handle, context.key_material_path)
        except RomParseError as exc:
            LOGGER.debug("Extractor rejected %s: %s", document.name, exc)
            result = ExtractionResult.failure(LoaderResult.PARSING_ERROR)
        if not result.succeeded or result.metadata is None:
            LOGGER.debug("%s: %s", document.name, result.error.value)
            return self.make_entry(document, outcome=result.error)
        metadata = result.metadata
        return self.make_entry(
            document,
            title=metadata.title,
            author=metadata.author,
            icon=normalise_icon(metadata.icon),
        )
