"""Loading of user-imported key material (``prod.keys`` / ``title.keys``).

Only the text format is handled here; the keys are consumed by container
extractor backends.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterator, Optional, Tuple

from romcat_utils.logging import get_logger

from .errors import KeyFileError

LOGGER = get_logger(__name__)

PROD_KEYS_FILE = "prod.keys"
TITLE_KEYS_FILE = "title.keys"

INDEXED_KEY_PREFIXES = {
    "titlekek_": "title_kek",
    "key_area_key_application_": "key_area_application",
    "key_area_key_ocean_": "key_area_ocean",
    "key_area_key_system_": "key_area_system",
}


def _parse_hex(value: str, size: int, name: str) -> bytes:
    try:
        data = bytes.fromhex(value)
    except ValueError as exc:
        raise KeyFileError(f"{name}: invalid hex value") from exc
    if len(data) != size:
        raise KeyFileError(f"{name}: expected {size} bytes, got {len(data)}")
    return data


def _read_pairs(path: Path) -> Iterator[Tuple[str, str]]:
    text = path.read_text(encoding="utf-8", errors="replace")
    for number, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith((";", "#")):
            continue
        name, sep, value = line.partition("=")
        if not sep:
            raise KeyFileError(f"{path.name}:{number}: missing '='")
        yield name.strip().lower(), value.strip()


@dataclass
class KeyStore:
    """Keys available for decrypting containers."""

    header_key: Optional[bytes] = None
    title_kek: Dict[int, bytes] = field(default_factory=dict)
    key_area_application: Dict[int, bytes] = field(default_factory=dict)
    key_area_ocean: Dict[int, bytes] = field(default_factory=dict)
    key_area_system: Dict[int, bytes] = field(default_factory=dict)
    title_keys: Dict[bytes, bytes] = field(default_factory=dict)

    @classmethod
    def load(cls, directory: Path) -> "KeyStore":
        """Read whichever key files exist in ``directory``."""

        store = cls()
        loaders: Tuple[Tuple[str, Callable[[str, str], None]], ...] = (
            (TITLE_KEYS_FILE, store._add_title_key),
            (PROD_KEYS_FILE, store._add_key),
        )
        for file_name, add in loaders:
            path = Path(directory) / file_name
            if not path.is_file():
                continue
            for name, value in _read_pairs(path):
                add(name, value)
            LOGGER.debug("Loaded key file %s", path)
        return store

    def _add_title_key(self, name: str, value: str) -> None:
        rights_id = _parse_hex(name, 16, name)
        self.title_keys[rights_id] = _parse_hex(value, 16, name)

    def _add_key(self, name: str, value: str) -> None:
        if name == "header_key":
            self.header_key = _parse_hex(value, 32, name)
            return
        for prefix, attribute in INDEXED_KEY_PREFIXES.items():
            if name.startswith(prefix) and len(name) == len(prefix) + 2:
                try:
                    index = int(name[len(prefix):], 16)
                except ValueError as exc:
                    raise KeyFileError(f"{name}: invalid key index") from exc
                getattr(self, attribute)[index] = _parse_hex(value, 16, name)
                return

    def title_key(self, rights_id: bytes) -> Optional[bytes]:
        return self.title_keys.get(rights_id)

    @property
    def empty(self) -> bool:
        return self.header_key is None and not self.title_kek and not self.title_keys
