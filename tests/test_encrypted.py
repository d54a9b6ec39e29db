from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, Dict

import io
import struct

import pytest

from romcat.documents import LocalDocument
from romcat.errors import RomParseError
from romcat.extractors import (
    ContainerExtractor,
    ContainerMetadata,
    ExtractionResult,
    KeyCheckExtractor,
    read_partition_names,
)
from romcat.formats import LoaderResult, RomFormat
from romcat.handlers import EncryptedContainerHandler
from romcat.icons import normalise_icon
from romcat.scanner import CatalogScanner, ScanConfig, ScanContext

from romfactory import build_pfs0, build_xci, opaque_container, png_icon


class MarkerExtractor(ContainerExtractor):
    """Chooses its answer from the first four bytes of the container."""

    def __init__(self, answers: Dict[bytes, ExtractionResult]) -> None:
        self.answers = answers

    def extract(self, rom_format: RomFormat, handle: BinaryIO, key_material_path: Path) -> ExtractionResult:
        handle.seek(0)
        marker = handle.read(4)
        if marker == b"RAIS":
            raise RomParseError("bad container")
        return self.answers[marker]


GOOD = ExtractionResult.ok(ContainerMetadata(title="Zelda", author="Nintendo", icon=png_icon()))
MISSING = ExtractionResult.failure(LoaderResult.MISSING_TITLE_KEY)


def _entry(tmp_path: Path, name: str, data: bytes, extractor: ContainerExtractor):
    path = tmp_path / name
    path.write_bytes(data)
    rom_format = RomFormat.from_name(name)
    handler = EncryptedContainerHandler(rom_format, extractor)
    document = LocalDocument(path)
    with document.open() as handle:
        return handler.extract(handle, document, context=ScanContext(key_material_path=tmp_path))


def test_successful_extraction_uses_metadata(tmp_path: Path) -> None:
    entry = _entry(tmp_path, "zelda.nsp", b"GOOD", MarkerExtractor({b"GOOD": GOOD}))
    assert entry.title == "Zelda"
    assert entry.author == "Nintendo"
    assert entry.icon == normalise_icon(png_icon())
    assert entry.valid


def test_failure_keeps_file_visible(tmp_path: Path) -> None:
    entry = _entry(tmp_path, "Mario Kart.xci", b"MISS", MarkerExtractor({b"MISS": MISSING}))
    assert entry.title == "Mario Kart"
    assert entry.outcome is LoaderResult.MISSING_TITLE_KEY
    assert entry.author is None
    assert entry.icon is None


def test_extractor_parse_errors_become_parsing_error(tmp_path: Path) -> None:
    entry = _entry(tmp_path, "broken.nca", b"RAIS", MarkerExtractor({}))
    assert entry.outcome is LoaderResult.PARSING_ERROR
    assert entry.title == "broken"


def test_empty_title_falls_back_to_file_name(tmp_path: Path) -> None:
    answer = ExtractionResult.ok(ContainerMetadata(title=""))
    entry = _entry(tmp_path, "untitled.nsp", b"EMPT", MarkerExtractor({b"EMPT": answer}))
    assert entry.title == "untitled"


def test_extraction_result_requires_consistent_fields() -> None:
    with pytest.raises(ValueError):
        ExtractionResult()
    with pytest.raises(ValueError):
        ExtractionResult(metadata=ContainerMetadata(title="x"), error=LoaderResult.PARSING_ERROR)


def test_handler_rejects_plain_formats() -> None:
    with pytest.raises(ValueError):
        EncryptedContainerHandler(RomFormat.NRO, KeyCheckExtractor())


def test_missing_title_key_is_aggregated(rom_dir: Path, data_dir: Path) -> None:
    names = ["a.nsp", "b.nsp", "c.nsp", "d.nsp", "e.nsp"]
    failing = {"b.nsp", "d.nsp"}
    for name in names:
        (rom_dir / name).write_bytes(b"MISS" if name in failing else b"GOOD")
    scanner = CatalogScanner(extractor=MarkerExtractor({b"GOOD": GOOD, b"MISS": MISSING}))
    result = scanner.build_catalog(ScanConfig(root=str(rom_dir), data_dir=data_dir))
    assert len(result.catalog.entries) == 5
    assert result.errors == {LoaderResult.MISSING_TITLE_KEY: ["b.nsp", "d.nsp"]}
    titles = [entry.title for entry in result.catalog.entries]
    assert titles == ["Zelda", "b", "Zelda", "d", "Zelda"]


def test_read_partition_names() -> None:
    names = read_partition_names(io.BytesIO(build_pfs0(["a.nca", "b.tik", "c.cnmt.nca"])))
    assert names == ["a.nca", "b.tik", "c.cnmt.nca"]


def test_read_partition_names_rejects_bad_magic() -> None:
    with pytest.raises(RomParseError):
        read_partition_names(io.BytesIO(b"HFS1" + bytes(12)))


@pytest.mark.parametrize(
    ("rom_format", "data", "expected"),
    [
        (RomFormat.NSP, opaque_container(), LoaderResult.PARSING_ERROR),
        (RomFormat.NSP, build_pfs0(["only.tik"]), LoaderResult.PARSING_ERROR),
        (RomFormat.NSP, build_pfs0(["program.nca"]), LoaderResult.MISSING_HEADER_KEY),
        (RomFormat.XCI, opaque_container(), LoaderResult.PARSING_ERROR),
        (RomFormat.XCI, build_xci(), LoaderResult.MISSING_HEADER_KEY),
        (RomFormat.NCA, opaque_container(), LoaderResult.MISSING_HEADER_KEY),
    ],
)
def test_key_check_extractor_without_keys(
    tmp_path: Path, rom_format: RomFormat, data: bytes, expected: LoaderResult
) -> None:
    result = KeyCheckExtractor().extract(rom_format, io.BytesIO(data), tmp_path)
    assert result.error is expected


def test_key_check_extractor_with_header_key_still_cannot_decrypt(tmp_path: Path) -> None:
    (tmp_path / "prod.keys").write_text(f"header_key = {'11' * 32}\n", encoding="utf-8")
    result = KeyCheckExtractor().extract(RomFormat.NCA, io.BytesIO(opaque_container()), tmp_path)
    assert result.error is LoaderResult.PARSING_ERROR


def test_key_check_extractor_treats_unreadable_keys_as_missing(tmp_path: Path) -> None:
    (tmp_path / "prod.keys").write_text("garbage\n", encoding="utf-8")
    result = KeyCheckExtractor().extract(RomFormat.NCA, io.BytesIO(opaque_container()), tmp_path)
    assert result.error is LoaderResult.MISSING_HEADER_KEY


def test_oversized_partition_header_does_not_abort_scan(rom_dir: Path, data_dir: Path) -> None:
    (rom_dir / "huge.nsp").write_bytes(b"PFS0" + struct.pack("<III", 0xFFFFFFFF, 0x10, 0) + bytes(64))
    (rom_dir / "huge_strings.nsp").write_bytes(b"PFS0" + struct.pack("<III", 1, 0xFFFFFFF0, 0) + bytes(64))
    (rom_dir / "good.xci").write_bytes(build_xci())
    result = CatalogScanner(extractor=KeyCheckExtractor()).build_catalog(
        ScanConfig(root=str(rom_dir), data_dir=data_dir)
    )
    outcomes = {entry.file_name: entry.outcome for entry in result.catalog.entries}
    assert outcomes == {
        "good.xci": LoaderResult.MISSING_HEADER_KEY,
        "huge.nsp": LoaderResult.PARSING_ERROR,
        "huge_strings.nsp": LoaderResult.PARSING_ERROR,
    }
