"""Path and URI helpers."""
from __future__ import annotations

import os
from pathlib import Path
from urllib.parse import unquote, urlparse


def normalise_path(path: Path) -> Path:
    """Return a normalised path handling Windows drive casing."""

    return Path(str(path).replace("\\", "/")).expanduser().resolve()


def ensure_windows_path(path: Path) -> Path:
    if os.name == "nt":
        path_str = str(path)
        if not path_str.startswith("\\\\?\\") and len(path_str) > 240:
            return Path("\\\\?\\" + path_str)
    return path


def path_to_uri(path: Path) -> str:
    """Return the stable ``file://`` URI of ``path``."""

    return normalise_path(path).as_uri()


def uri_to_path(location: str) -> Path:
    """Accept either a ``file://`` URI or a plain path and return a path."""

    parsed = urlparse(location)
    if parsed.scheme == "file":
        raw = unquote(parsed.path)
        if os.name == "nt" and raw.startswith("/") and len(raw) > 2 and raw[2] == ":":
            raw = raw[1:]
        return Path(raw)
    return Path(location)
