"""Directory scanning that builds the ROM catalog.

Formats are scanned one after another in :data:`SCAN_ORDER`; each format gets
a complete pass over the tree before the next starts, so group headers keep
that order whatever the directory listing looks like.
"""
from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Union

from romcat_utils.config import AppConfig
from romcat_utils.logging import get_logger

from .codec import CatalogCodec
from .documents import DocumentNode, open_location
from .errors import CatalogDecodeError, CatalogWriteError, ScanCancelled
from .extractors import ContainerExtractor, load_extractor
from .formats import ENCRYPTED_FORMATS, NO_ROMS_FOUND, SCAN_ORDER, LoaderResult, RomFormat
from .handlers.base import RomHandler
from .handlers.encrypted import EncryptedContainerHandler
from .handlers.nro import NroHandler
from .handlers.nso import NsoHandler
from .report import ResultAggregator
from .schema import Catalog, CatalogEntry, HeaderItem

LOGGER = get_logger(__name__)
CATALOG_FILE_NAME = "roms.jsonl"


@dataclass(slots=True)
class ScanConfig:
    """Configuration parameters controlling scan behaviour."""

    root: str
    data_dir: Path = Path("~/.romcat")
    key_material_path: Optional[Path] = None
    formats: Sequence[RomFormat] = SCAN_ORDER
    exclude_dirs: Sequence[str] = (".git", "__pycache__")
    follow_symlinks: bool = False
    workers: int = 1
    catalog_name: str = CATALOG_FILE_NAME

    def __post_init__(self) -> None:
        self.root = str(self.root)
        self.data_dir = Path(self.data_dir).expanduser()
        self.data_dir.mkdir(parents=True, exist_ok=True)
        if self.key_material_path is None:
            self.key_material_path = self.data_dir
        requested = {RomFormat(fmt) for fmt in self.formats}
        self.formats = tuple(fmt for fmt in SCAN_ORDER if fmt in requested)
        if self.workers < 1:
            raise ValueError("workers must be >= 1")

    @property
    def catalog_path(self) -> Path:
        return self.data_dir / self.catalog_name

    @classmethod
    def from_app_config(cls, config: AppConfig, root: Optional[str] = None) -> "ScanConfig":
        return cls(
            root=root if root is not None else (config.search_location or ""),
            data_dir=config.data_dir,
            key_material_path=config.key_material_path,
            exclude_dirs=tuple(config.exclude_dirs),
            follow_symlinks=config.follow_symlinks,
            workers=config.workers,
        )


class CancellationToken:
    """Signals a running scan that its results are no longer wanted."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise ScanCancelled("scan was cancelled")


@dataclass(slots=True)
class ScanContext:
    """Context shared with ROM handlers during extraction."""

    key_material_path: Path
    token: CancellationToken = field(default_factory=CancellationToken)


class ScanState:
    """At most one scan per scanner; claimed with compare-and-set."""

    def __init__(self) -> None:
        self._active = False
        self._lock = threading.Lock()

    @property
    def active(self) -> bool:
        with self._lock:
            return self._active

    def try_begin(self) -> bool:
        with self._lock:
            if self._active:
                return False
            self._active = True
            return True

    def finish(self) -> None:
        with self._lock:
            self._active = False


@dataclass(frozen=True)
class ScanResult:
    catalog: Catalog
    errors: Dict[LoaderResult, List[str]]
    location: str
    from_cache: bool = False
    persisted: bool = False


class CatalogScanner:
    """Scan a document tree and dispatch files to the per-format handlers."""

    handlers: Dict[RomFormat, RomHandler]

    def __init__(
        self,
        handlers: Optional[Iterable[RomHandler]] = None,
        extractor: Optional[ContainerExtractor] = None,
    ) -> None:
        handler_list = list(handlers) if handlers is not None else self._load_handlers(extractor)
        self.handlers = {handler.rom_format: handler for handler in handler_list}
        self.state = ScanState()

    def _load_handlers(self, extractor: Optional[ContainerExtractor]) -> List[RomHandler]:
        extractor = extractor or load_extractor()
        handler_instances: List[RomHandler] = [NroHandler(), NsoHandler()]
        handler_instances.extend(
            EncryptedContainerHandler(fmt, extractor) for fmt in SCAN_ORDER if fmt in ENCRYPTED_FORMATS
        )
        return handler_instances

    @property
    def is_scanning(self) -> bool:
        return self.state.active

    def handler_for(self, rom_format: RomFormat) -> RomHandler:
        try:
            return self.handlers[rom_format]
        except KeyError:
            raise ValueError(f"No handler registered for {rom_format.value}") from None

    def extract_file(
        self, rom_format: RomFormat, document: DocumentNode, context: ScanContext
    ) -> Optional[CatalogEntry]:
        """Return the entry for ``document``, or ``None`` when it is excluded."""

        handler = self.handler_for(rom_format)
        try:
            with document.open() as handle:
                if not handler.verify(handle):
                    LOGGER.debug("Excluding %s: not a valid %s file", document.name, rom_format.value)
                    return None
                return handler.extract(handle, document, context=context)
        except OSError as exc:
            LOGGER.warning("Unable to read %s: %s", document.uri, exc)
            return None

    def _iter_files(
        self, rom_format: RomFormat, directory: DocumentNode, token: CancellationToken
    ) -> Iterator[DocumentNode]:
        handler = self.handler_for(rom_format)
        for child in directory.list_children():
            token.raise_if_cancelled()
            if child.is_directory():
                yield from self._iter_files(rom_format, child, token)
            elif handler.sniff(child.name):
                yield child

    def _extract_format(
        self,
        rom_format: RomFormat,
        root: DocumentNode,
        context: ScanContext,
        executor: Optional[ThreadPoolExecutor],
    ) -> Iterator[CatalogEntry]:
        files = self._iter_files(rom_format, root, context.token)
        if executor is None:
            for document in files:
                context.token.raise_if_cancelled()
                entry = self.extract_file(rom_format, document, context)
                if entry is not None:
                    yield entry
            return

        # results are consumed in submission order to keep scan order
        futures: List[Future] = [
            executor.submit(self.extract_file, rom_format, document, context) for document in files
        ]
        try:
            for future in futures:
                entry = future.result()
                context.token.raise_if_cancelled()
                if entry is not None:
                    yield entry
        finally:
            for future in futures:
                future.cancel()

    def build_catalog(self, config: ScanConfig, token: Optional[CancellationToken] = None) -> ScanResult:
        """Scan ``config.root`` and return the catalog without persisting it."""

        token = token or CancellationToken()
        root = open_location(
            config.root, exclude_dirs=config.exclude_dirs, follow_symlinks=config.follow_symlinks
        )
        context = ScanContext(key_material_path=Path(config.key_material_path or config.data_dir), token=token)
        items: List[Union[HeaderItem, CatalogEntry]] = []
        aggregator = ResultAggregator()
        executor: Optional[ThreadPoolExecutor] = None
        if config.workers > 1:
            executor = ThreadPoolExecutor(max_workers=config.workers, thread_name_prefix="romcat-extract")

        LOGGER.info("Scanning %s for %s", root.uri, ", ".join(fmt.value for fmt in config.formats))
        try:
            for rom_format in config.formats:
                found = False
                for entry in self._extract_format(rom_format, root, context, executor):
                    if not found:
                        items.append(HeaderItem(title=rom_format.value))
                        found = True
                    items.append(entry)
                    aggregator.record(entry)
        finally:
            if executor is not None:
                executor.shutdown(wait=True, cancel_futures=True)

        if not items:
            items.append(HeaderItem(title=NO_ROMS_FOUND))
        catalog = Catalog(items=tuple(items))
        LOGGER.info("Catalogued %d ROMs from %s", len(catalog.entries), root.uri)
        return ScanResult(catalog=catalog, errors=aggregator.errors(), location=config.root)

    def _persist(self, result: ScanResult, config: ScanConfig) -> ScanResult:
        try:
            CatalogCodec(config.catalog_path).save(result.catalog)
        except CatalogWriteError as exc:
            LOGGER.warning("Ran into exception while saving: %s", exc)
            return result
        return replace(result, persisted=True)

    def run_claimed(self, config: ScanConfig, token: Optional[CancellationToken] = None) -> ScanResult:
        """Scan and persist; the caller must already hold the scan guard."""

        try:
            result = self.build_catalog(config, token)
            if token is not None:
                token.raise_if_cancelled()
            return self._persist(result, config)
        finally:
            self.state.finish()

    def scan(self, config: ScanConfig, token: Optional[CancellationToken] = None) -> Optional[ScanResult]:
        """Run a full scan unless one is already running (then ``None``)."""

        if not self.state.try_begin():
            LOGGER.info("A scan is already in progress; ignoring request")
            return None
        return self.run_claimed(config, token)

    def load_cached(self, config: ScanConfig) -> ScanResult:
        catalog = CatalogCodec(config.catalog_path).load()
        return ScanResult(
            catalog=catalog,
            errors=ResultAggregator.from_catalog(catalog).errors(),
            location=config.root,
            from_cache=True,
            persisted=True,
        )

    def refresh(
        self,
        config: ScanConfig,
        load_from_cache: bool = True,
        token: Optional[CancellationToken] = None,
    ) -> Optional[ScanResult]:
        """Return the persisted catalog when usable, otherwise rescan."""

        if load_from_cache:
            try:
                return self.load_cached(config)
            except CatalogDecodeError as exc:
                LOGGER.warning("Ran into exception while loading: %s", exc)
        return self.scan(config, token)
