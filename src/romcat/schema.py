"""Pydantic models describing the catalog and its on-disk records."""
from __future__ import annotations

import base64
from typing import Annotated, Any, Dict, Iterable, List, Literal, Optional, Tuple, Union

from PIL import Image
from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from .formats import LoaderResult, RomFormat
from .icons import open_icon


class HeaderItem(BaseModel):
    """Group header preceding the entries of one format."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["header"] = "header"
    title: str


class CatalogEntry(BaseModel):
    """One processed ROM file."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["entry"] = "entry"
    location: str
    file_name: str
    format: RomFormat
    title: str
    author: Optional[str] = None
    icon: Optional[bytes] = None
    outcome: LoaderResult = LoaderResult.SUCCESS

    @field_validator("icon", mode="before")
    @classmethod
    def decode_icon(cls, value: Any) -> Any:
        if isinstance(value, str):
            return base64.b64decode(value.encode("ascii"), validate=True)
        return value

    @field_serializer("icon", when_used="json")
    def encode_icon(self, value: Optional[bytes]) -> Optional[str]:
        if value is None:
            return None
        return base64.b64encode(value).decode("ascii")

    @property
    def valid(self) -> bool:
        return self.outcome is LoaderResult.SUCCESS

    def icon_image(self) -> Optional[Image.Image]:
        return open_icon(self.icon) if self.icon is not None else None


CatalogItem = Annotated[Union[HeaderItem, CatalogEntry], Field(discriminator="kind")]


class CatalogSummary(BaseModel):
    """Aggregate summary information of a catalog."""

    total_entries: int
    failed_entries: int
    formats: Dict[str, int]

    @classmethod
    def from_entries(cls, entries: Iterable[CatalogEntry]) -> "CatalogSummary":
        entries_list = list(entries)
        counts: Dict[str, int] = {}
        for entry in entries_list:
            counts[entry.format.value] = counts.get(entry.format.value, 0) + 1
        failed = sum(1 for entry in entries_list if not entry.valid)
        return cls(total_entries=len(entries_list), failed_entries=failed, formats=counts)


class Catalog(BaseModel):
    """Ordered, immutable snapshot of headers and entries in scan order."""

    model_config = ConfigDict(frozen=True)

    items: Tuple[CatalogItem, ...] = ()

    @property
    def entries(self) -> List[CatalogEntry]:
        return [item for item in self.items if isinstance(item, CatalogEntry)]

    @property
    def headers(self) -> List[HeaderItem]:
        return [item for item in self.items if isinstance(item, HeaderItem)]

    def summary(self) -> CatalogSummary:
        return CatalogSummary.from_entries(self.entries)
