"""Aggregation of per-file loader outcomes for a single error report."""
from __future__ import annotations

import threading
from typing import Dict, Iterable, List, Optional

from rich.console import Console
from rich.table import Table

from .formats import LoaderResult
from .schema import Catalog, CatalogEntry


class ResultAggregator:
    """Group the display names of failed files by outcome kind."""

    def __init__(self) -> None:
        self._errors: Dict[LoaderResult, List[str]] = {}
        self._lock = threading.Lock()

    def record(self, entry: CatalogEntry) -> None:
        if entry.valid:
            return
        with self._lock:
            self._errors.setdefault(entry.outcome, []).append(entry.file_name)

    def extend(self, entries: Iterable[CatalogEntry]) -> None:
        for entry in entries:
            self.record(entry)

    def errors(self) -> Dict[LoaderResult, List[str]]:
        with self._lock:
            return {kind: list(names) for kind, names in self._errors.items()}

    @property
    def has_errors(self) -> bool:
        with self._lock:
            return bool(self._errors)

    @classmethod
    def from_catalog(cls, catalog: Catalog) -> "ResultAggregator":
        aggregator = cls()
        aggregator.extend(catalog.entries)
        return aggregator


def render_error_report(errors: Dict[LoaderResult, List[str]], console: Optional[Console] = None) -> None:
    """Print one row per failure kind instead of one message per file."""

    console = console or Console()
    if not errors:
        console.print("All ROMs were read successfully.")
        return
    table = Table(title="ROMs that could not be read")
    table.add_column("Problem")
    table.add_column("Count", justify="right")
    table.add_column("Files")
    for kind, names in errors.items():
        table.add_row(f"{kind.message} ({kind.value})", str(len(names)), "\n".join(names))
    console.print(table)
