"""Document-access layer: the scanner only lists children and opens files.

Nodes are addressed by an opaque ``uri`` that stays valid across restarts,
so persisted catalog entries never depend on a working directory.
"""
from __future__ import annotations

import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import BinaryIO, Iterable, List, Optional

from romcat_utils.logging import get_logger
from romcat_utils.paths import ensure_windows_path, normalise_path, path_to_uri, uri_to_path

from .errors import ScanLocationError

LOGGER = get_logger(__name__)


class DocumentNode(ABC):
    """A file or directory granted by the host's document-access layer."""

    @property
    @abstractmethod
    def uri(self) -> str:
        """Stable reference to this node."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Display name, including the extension."""

    @abstractmethod
    def is_directory(self) -> bool:
        ...

    @abstractmethod
    def list_children(self) -> List["DocumentNode"]:
        ...

    @abstractmethod
    def open(self) -> BinaryIO:
        """Open the document for random-access binary reads."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.uri!r})"


class LocalDocument(DocumentNode):
    """A node backed by the local filesystem."""

    def __init__(
        self,
        path: Path,
        *,
        exclude_dirs: Iterable[str] = (),
        follow_symlinks: bool = False,
    ) -> None:
        self.path = ensure_windows_path(Path(path))
        self._exclude_dirs = frozenset(name.lower() for name in exclude_dirs)
        self._follow_symlinks = follow_symlinks

    @property
    def uri(self) -> str:
        return path_to_uri(self.path)

    @property
    def name(self) -> str:
        return self.path.name

    def is_directory(self) -> bool:
        return self.path.is_dir()

    def list_children(self) -> List[DocumentNode]:
        children: List[DocumentNode] = []
        try:
            with os.scandir(self.path) as listing:
                items = sorted(listing, key=lambda item: item.name)
        except OSError as exc:
            LOGGER.warning("Unable to list %s: %s", self.path, exc)
            return children
        for item in items:
            try:
                is_dir = item.is_dir(follow_symlinks=self._follow_symlinks)
            except OSError as exc:
                LOGGER.warning("Unable to stat %s: %s", item.path, exc)
                continue
            if is_dir and item.name.lower() in self._exclude_dirs:
                continue
            if not is_dir and item.is_symlink() and not self._follow_symlinks:
                # skip dangling links and links to directories
                if not item.is_file(follow_symlinks=True):
                    continue
            children.append(
                LocalDocument(
                    Path(item.path),
                    exclude_dirs=self._exclude_dirs,
                    follow_symlinks=self._follow_symlinks,
                )
            )
        return children

    def open(self) -> BinaryIO:
        return self.path.open("rb")


def open_location(
    location: str,
    *,
    exclude_dirs: Iterable[str] = (),
    follow_symlinks: bool = False,
) -> LocalDocument:
    """Return the root node for ``location`` (a path or ``file://`` URI)."""

    if not location:
        raise ScanLocationError("No search location has been selected")
    path = normalise_path(uri_to_path(location))
    if not path.is_dir():
        raise ScanLocationError(f"Search location {location} is not an accessible directory")
    return LocalDocument(path, exclude_dirs=exclude_dirs, follow_symlinks=follow_symlinks)


def document_from_uri(uri: str) -> Optional[LocalDocument]:
    """Rebuild a node from a persisted ``location``; ``None`` if it is gone."""

    path = uri_to_path(uri)
    if not path.exists():
        return None
    return LocalDocument(path)
