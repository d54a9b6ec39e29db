from __future__ import annotations

from rich.console import Console

from romcat.formats import LoaderResult, RomFormat
from romcat.report import ResultAggregator, render_error_report
from romcat.schema import Catalog, CatalogEntry, HeaderItem


def _entry(name: str, outcome: LoaderResult) -> CatalogEntry:
    return CatalogEntry(
        location=f"file:///roms/{name}", file_name=name, format=RomFormat.NSP, title=name, outcome=outcome
    )


def test_aggregator_groups_by_outcome() -> None:
    aggregator = ResultAggregator()
    aggregator.extend(
        [
            _entry("a.nsp", LoaderResult.SUCCESS),
            _entry("b.nsp", LoaderResult.MISSING_TITLE_KEY),
            _entry("c.nsp", LoaderResult.PARSING_ERROR),
            _entry("d.nsp", LoaderResult.MISSING_TITLE_KEY),
        ]
    )
    assert aggregator.has_errors
    assert aggregator.errors() == {
        LoaderResult.MISSING_TITLE_KEY: ["b.nsp", "d.nsp"],
        LoaderResult.PARSING_ERROR: ["c.nsp"],
    }


def test_from_catalog_skips_headers_and_successes() -> None:
    catalog = Catalog(items=(HeaderItem(title="NSP"), _entry("ok.nsp", LoaderResult.SUCCESS)))
    assert not ResultAggregator.from_catalog(catalog).has_errors


def test_render_error_report_lists_each_kind_once() -> None:
    console = Console(record=True, width=120)
    render_error_report({LoaderResult.MISSING_TITLE_KEY: ["b.nsp", "d.nsp"]}, console)
    text = console.export_text()
    assert text.count("Missing title key") == 1
    assert "b.nsp" in text and "d.nsp" in text


def test_render_error_report_without_errors() -> None:
    console = Console(record=True)
    render_error_report({}, console)
    assert "successfully" in console.export_text()
