"""Persistence of the catalog as JSON Lines with an item-count trailer."""
from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List

import pyarrow as pa
import pyarrow.parquet as pq
from pydantic import TypeAdapter, ValidationError

from romcat_utils.logging import get_logger

from .errors import CatalogDecodeError, CatalogWriteError
from .schema import Catalog, CatalogItem

LOGGER = get_logger(__name__)

TRAILER_KIND = "trailer"

_ITEM_ADAPTER: TypeAdapter = TypeAdapter(CatalogItem)


class CatalogCodec:
    """Read and atomically rewrite the persisted catalog file."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def save(self, catalog: Catalog) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent)
        except OSError as exc:
            raise CatalogWriteError(f"Unable to write catalog {self.path}: {exc}") from exc
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                for item in catalog.items:
                    handle.write(item.model_dump_json() + "\n")
                handle.write(json.dumps({"kind": TRAILER_KIND, "items": len(catalog.items)}) + "\n")
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, self.path)
        except OSError as exc:
            tmp_path.unlink(missing_ok=True)
            raise CatalogWriteError(f"Unable to write catalog {self.path}: {exc}") from exc
        LOGGER.debug("Wrote %d catalog items to %s", len(catalog.items), self.path)

    def load(self) -> Catalog:
        try:
            lines = self.path.read_text(encoding="utf-8").splitlines()
        except FileNotFoundError as exc:
            raise CatalogDecodeError(f"No catalog at {self.path}") from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise CatalogDecodeError(f"Unable to read catalog {self.path}: {exc}") from exc

        records: List[Dict[str, Any]] = []
        for number, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            try:
                records.append(json.loads(line))
            except json.JSONDecodeError as exc:
                raise CatalogDecodeError(f"{self.path}:{number}: {exc}") from exc

        if not records or not isinstance(records[-1], dict) or records[-1].get("kind") != TRAILER_KIND:
            raise CatalogDecodeError(f"{self.path}: catalog trailer missing, file is truncated")
        trailer = records.pop()
        if trailer.get("items") != len(records):
            raise CatalogDecodeError(
                f"{self.path}: trailer declares {trailer.get('items')} items, found {len(records)}"
            )
        try:
            items = tuple(_ITEM_ADAPTER.validate_python(record) for record in records)
        except ValidationError as exc:
            raise CatalogDecodeError(f"{self.path}: schema mismatch: {exc}") from exc
        return Catalog(items=items)


def export_parquet(catalog: Catalog, path: Path) -> Path:
    """Write the entries of ``catalog`` to a Parquet table."""

    rows = []
    for entry in catalog.entries:
        record = entry.model_dump(exclude={"kind"})
        record["format"] = entry.format.value
        record["outcome"] = entry.outcome.value
        rows.append(record)
    schema = pa.schema(
        [
            ("location", pa.string()),
            ("file_name", pa.string()),
            ("format", pa.string()),
            ("title", pa.string()),
            ("author", pa.string()),
            ("icon", pa.binary()),
            ("outcome", pa.string()),
        ]
    )
    table = pa.Table.from_pylist(rows, schema=schema)
    path.parent.mkdir(parents=True, exist_ok=True)
    pq.write_table(table, path, compression="snappy")
    return path
