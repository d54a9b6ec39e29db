"""Boundary to extractors for encrypted containers (NCA, XCI, NSP).

Decryption is provided by backends registered under the
``romcat.extractors`` entry-point group. Without one, :class:`KeyCheckExtractor`
performs the structural and key-availability checks that do not need
cryptography.
"""
from __future__ import annotations

import struct
from abc import ABC, abstractmethod
from dataclasses import dataclass
from importlib import metadata
from pathlib import Path
from typing import BinaryIO, List, Optional

from romcat_utils.logging import get_logger

from .detector import read_exact
from .errors import KeyFileError, RomParseError
from .formats import LoaderResult, RomFormat
from .keys import KeyStore

LOGGER = get_logger(__name__)
EXTRACTOR_ENTRYPOINT_GROUP = "romcat.extractors"

PFS0_MAGIC = b"PFS0"
PFS0_HEADER_SIZE = 0x10
PFS0_ENTRY_SIZE = 0x18
XCI_MAGIC = b"HEAD"
XCI_MAGIC_OFFSET = 0x100


@dataclass(frozen=True)
class ContainerMetadata:
    title: str
    author: Optional[str] = None
    icon: Optional[bytes] = None


@dataclass(frozen=True)
class ExtractionResult:
    """Either metadata or the failure kind reported by an extractor."""

    metadata: Optional[ContainerMetadata] = None
    error: LoaderResult = LoaderResult.SUCCESS

    def __post_init__(self) -> None:
        if (self.metadata is None) == (self.error is LoaderResult.SUCCESS):
            raise ValueError("ExtractionResult needs metadata on success and an error kind otherwise")

    @classmethod
    def ok(cls, metadata: ContainerMetadata) -> "ExtractionResult":
        return cls(metadata=metadata)

    @classmethod
    def failure(cls, error: LoaderResult) -> "ExtractionResult":
        return cls(error=error)

    @property
    def succeeded(self) -> bool:
        return self.error is LoaderResult.SUCCESS


class ContainerExtractor(ABC):
    """Extract title metadata from an encrypted container."""

    @abstractmethod
    def extract(self, rom_format: RomFormat, handle: BinaryIO, key_material_path: Path) -> ExtractionResult:
        """Return metadata for the container behind ``handle``."""


def read_partition_names(handle: BinaryIO) -> List[str]:
    """Return the file names stored in a PFS0 partition header."""

    header = read_exact(handle, 0, PFS0_HEADER_SIZE)
    if header[:4] != PFS0_MAGIC:
        raise RomParseError("missing PFS0 magic")
    file_count, string_table_size = struct.unpack("<II", header[4:12])
    entries = read_exact(handle, PFS0_HEADER_SIZE, file_count * PFS0_ENTRY_SIZE)
    strings = read_exact(handle, PFS0_HEADER_SIZE + len(entries), string_table_size)
    names: List[str] = []
    for index in range(file_count):
        (name_offset,) = struct.unpack_from("<I", entries, index * PFS0_ENTRY_SIZE + 0x10)
        if name_offset >= string_table_size:
            raise RomParseError(f"PFS0 entry {index} name lies outside the string table")
        end = strings.find(b"\x00", name_offset)
        raw = strings[name_offset:] if end == -1 else strings[name_offset:end]
        names.append(raw.decode("utf-8", errors="replace"))
    return names


class KeyCheckExtractor(ContainerExtractor):
    """Fallback used when no decryption backend is installed."""

    def __init__(self) -> None:
        self._warned = False

    def _check_structure(self, rom_format: RomFormat, handle: BinaryIO) -> None:
        if rom_format is RomFormat.NSP:
            names = read_partition_names(handle)
            if not any(name.lower().endswith(".nca") for name in names):
                raise RomParseError("NSP holds no NCA files")
        elif rom_format is RomFormat.XCI:
            if read_exact(handle, XCI_MAGIC_OFFSET, len(XCI_MAGIC)) != XCI_MAGIC:
                raise RomParseError("missing XCI HEAD magic")

    def extract(self, rom_format: RomFormat, handle: BinaryIO, key_material_path: Path) -> ExtractionResult:
        try:
            self._check_structure(rom_format, handle)
        except RomParseError as exc:
            LOGGER.debug("%s structure check failed: %s", rom_format.value, exc)
            return ExtractionResult.failure(LoaderResult.PARSING_ERROR)
        try:
            keys = KeyStore.load(key_material_path)
        except (KeyFileError, OSError) as exc:
            LOGGER.warning("Unable to read key material from %s: %s", key_material_path, exc)
            return ExtractionResult.failure(LoaderResult.MISSING_HEADER_KEY)
        if keys.header_key is None:
            return ExtractionResult.failure(LoaderResult.MISSING_HEADER_KEY)
        if not self._warned:
            LOGGER.warning("No decryption backend installed; encrypted ROMs cannot be read")
            self._warned = True
        return ExtractionResult.failure(LoaderResult.PARSING_ERROR)


def load_extractor() -> ContainerExtractor:
    """Return the first registered backend, or :class:`KeyCheckExtractor`."""

    entry_points = metadata.entry_points().select(group=EXTRACTOR_ENTRYPOINT_GROUP)
    for ep in entry_points:
        try:
            loaded = ep.load()
            extractor = loaded() if isinstance(loaded, type) else loaded
        except Exception as exc:  # pragma: no cover - plugin safety
            LOGGER.warning("Failed to load extractor plugin %s: %s", ep.name, exc)
            continue
        if isinstance(extractor, ContainerExtractor):
            LOGGER.debug("Using container extractor %s", ep.name)
            return extractor
        LOGGER.warning("Entry point %s did not yield a ContainerExtractor", ep.name)
    return KeyCheckExtractor()
