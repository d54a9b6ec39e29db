from __future__ import annotations

import io
from pathlib import Path

import pytest

from romcat.documents import LocalDocument
from romcat.errors import RomParseError
from romcat.formats import ASET_MISSING, LoaderResult, RomFormat
from romcat.handlers import NroHandler, NsoHandler, parse_nro_header
from romcat.icons import normalise_icon
from romcat.scanner import ScanContext

from romfactory import build_nro, build_nso, jpeg_icon, png_icon


def _extract(handler, path: Path, data: bytes):
    path.write_bytes(data)
    document = LocalDocument(path)
    with document.open() as handle:
        assert handler.verify(handle)
        return handler.extract(handle, document, context=ScanContext(key_material_path=path.parent))


def test_parse_full_asset_section() -> None:
    icon = png_icon()
    nro = parse_nro_header(io.BytesIO(build_nro(b"Tetris", b"Alexey", icon)))
    assert nro.title == "Tetris"
    assert nro.author == "Alexey"
    assert nro.icon == normalise_icon(icon)


def test_jpeg_icon_is_normalised_to_png() -> None:
    nro = parse_nro_header(io.BytesIO(build_nro(icon=jpeg_icon())))
    assert nro.icon is not None
    assert nro.icon.startswith(b"\x89PNG")


def test_title_without_nul_uses_whole_slot() -> None:
    nro = parse_nro_header(io.BytesIO(build_nro(title=b"A" * 0x200, author=b"")))
    assert nro.title == "A" * 0x200
    assert nro.author == ""


def test_missing_aset_raises() -> None:
    with pytest.raises(RomParseError):
        parse_nro_header(io.BytesIO(build_nro(aset_magic=b"NOPE")))


def test_zero_nacp_offset_raises() -> None:
    with pytest.raises(RomParseError):
        parse_nro_header(io.BytesIO(build_nro(nacp_offset=0)))


def test_icon_past_end_of_file_is_dropped(tmp_path: Path) -> None:
    data = build_nro(b"Far Icon", b"Dev", icon_offset=0x10000, icon_size=0x400)
    entry = _extract(NroHandler(), tmp_path / "far.nro", data)
    assert entry.title == "Far Icon"
    assert entry.author == "Dev"
    assert entry.icon is None
    assert entry.outcome is LoaderResult.SUCCESS


def test_zero_icon_size_keeps_title() -> None:
    nro = parse_nro_header(io.BytesIO(build_nro(b"No Icon", icon=png_icon(), icon_size=0)))
    assert nro.title == "No Icon"
    assert nro.icon is None


def test_undecodable_icon_is_dropped() -> None:
    nro = parse_nro_header(io.BytesIO(build_nro(b"Garbage", icon=b"not an image at all")))
    assert nro.title == "Garbage"
    assert nro.icon is None


def test_truncated_nacp_degrades_to_placeholder(tmp_path: Path) -> None:
    data = build_nro(b"Cut", b"Off", truncate_to=0x80 + 0x38 + 0x100)
    entry = _extract(NroHandler(), tmp_path / "cut.nro", data)
    assert entry.title == ASET_MISSING
    assert entry.author is None
    assert entry.icon is None
    assert entry.outcome is LoaderResult.SUCCESS


def test_handler_builds_entry(tmp_path: Path) -> None:
    entry = _extract(NroHandler(), tmp_path / "hb.nro", build_nro(b"Menu", b"Team", png_icon()))
    assert entry.format is RomFormat.NRO
    assert entry.file_name == "hb.nro"
    assert entry.location.startswith("file://")
    assert entry.icon_image().size == (4, 4)


def test_nso_uses_file_name(tmp_path: Path) -> None:
    entry = _extract(NsoHandler(), tmp_path / "main.NSO", build_nso())
    assert entry.title == "main"
    assert entry.author is None
    assert entry.icon is None
    assert entry.valid


def test_oversized_icon_size_is_dropped() -> None:
    nro = parse_nro_header(io.BytesIO(build_nro(b"Big Icon", icon=png_icon(), icon_size=0xFFFFFFFF)))
    assert nro.title == "Big Icon"
    assert nro.icon is None
