"""ROM catalog package: format detection, header parsing and persistence."""

from .codec import CatalogCodec
from .formats import LoaderResult, RomFormat
from .report import ResultAggregator
from .scanner import CancellationToken, CatalogScanner, ScanConfig, ScanResult
from .schema import Catalog, CatalogEntry, HeaderItem
from .service import CatalogService, ScanEvent

__all__ = [
    "CatalogCodec",
    "LoaderResult",
    "RomFormat",
    "ResultAggregator",
    "CancellationToken",
    "CatalogScanner",
    "ScanConfig",
    "ScanResult",
    "Catalog",
    "CatalogEntry",
    "HeaderItem",
    "CatalogService",
    "ScanEvent",
]
