"""Background scanning with results published on a message queue.

The presentation layer never shares the catalog being built: a worker
thread builds a private catalog and posts a finished, immutable
:class:`~romcat.scanner.ScanResult` as a :class:`ScanEvent`.
"""
from __future__ import annotations

import queue
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Literal, Optional

from romcat_utils.logging import get_logger
from romcat_utils.parallel import run_in_executor

from .errors import CatalogDecodeError, RomCatalogError, ScanCancelled, ScanLocationError
from .scanner import CancellationToken, CatalogScanner, ScanConfig, ScanResult

LOGGER = get_logger(__name__)

EventKind = Literal["completed", "cancelled", "location_invalid", "failed"]


@dataclass(frozen=True)
class ScanEvent:
    kind: EventKind
    location: str
    result: Optional[ScanResult] = None
    error: Optional[BaseException] = None


class CatalogService:
    """Owns the scan worker, the current cancellation token and the event queue."""

    def __init__(self, config: ScanConfig, scanner: Optional[CatalogScanner] = None) -> None:
        self.config = config
        self.scanner = scanner or CatalogScanner()
        self.events: "queue.Queue[ScanEvent]" = queue.Queue()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="romcat-scan")
        self._token: Optional[CancellationToken] = None
        self._lock = threading.Lock()

    @property
    def is_scanning(self) -> bool:
        return self.scanner.is_scanning

    def _publish(self, event: ScanEvent) -> None:
        LOGGER.debug("Publishing %s event for %s", event.kind, event.location)
        self.events.put(event)

    def _load_cached(self, config: ScanConfig) -> Optional[ScanResult]:
        try:
            result = self.scanner.load_cached(config)
        except CatalogDecodeError as exc:
            LOGGER.warning("Ran into exception while loading: %s", exc)
            return None
        self._publish(ScanEvent("completed", config.root, result=result))
        return result

    def _claim(self) -> Optional[CancellationToken]:
        if not self.scanner.state.try_begin():
            LOGGER.info("A scan is already in progress; ignoring request")
            return None
        token = CancellationToken()
        with self._lock:
            self._token = token
        return token

    def refresh(self, load_from_cache: bool = True) -> Optional["Future[Optional[ScanResult]]"]:
        """Load the cached catalog or start a background scan.

        Returns ``None`` when a scan is already in flight.
        """

        config = self.config
        if load_from_cache:
            result = self._load_cached(config)
            if result is not None:
                done: "Future[Optional[ScanResult]]" = Future()
                done.set_result(result)
                return done
        token = self._claim()
        if token is None:
            return None
        return self._executor.submit(self._run, config, token)

    def _run(self, config: ScanConfig, token: CancellationToken) -> Optional[ScanResult]:
        try:
            result = self.scanner.run_claimed(config, token)
        except ScanCancelled:
            LOGGER.info("Scan of %s was superseded", config.root)
            self._publish(ScanEvent("cancelled", config.root))
            return None
        except ScanLocationError as exc:
            LOGGER.warning("Search location is invalid: %s", exc)
            self._publish(ScanEvent("location_invalid", config.root, error=exc))
            return None
        except (RomCatalogError, OSError) as exc:
            LOGGER.error("Scan of %s failed: %s", config.root, exc)
            self._publish(ScanEvent("failed", config.root, error=exc))
            return None
        self._publish(ScanEvent("completed", config.root, result=result))
        return result

    def change_location(self, location: str) -> None:
        """Point the service at a new root, cancelling any scan of the old one."""

        self.cancel()
        self.config = replace(self.config, root=location)

    def cancel(self) -> None:
        with self._lock:
            if self._token is not None:
                self._token.cancel()

    async def refresh_async(self, load_from_cache: bool = True) -> Optional[ScanResult]:
        """Awaitable :meth:`refresh`; ``None`` when the scan was skipped or did not complete."""

        config = self.config
        if load_from_cache:
            result = self._load_cached(config)
            if result is not None:
                return result
        token = self._claim()
        if token is None:
            return None
        return await run_in_executor(self._run, config, token, executor=self._executor)

    def close(self) -> None:
        self.cancel()
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "CatalogService":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
