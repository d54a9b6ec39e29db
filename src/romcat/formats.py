"""Container formats, loader outcomes and the strings shown for them."""
from __future__ import annotations

from enum import Enum
from typing import Dict, Optional


class RomFormat(str, Enum):
    """Every supported ROM container, in presentation order."""

    NRO = "NRO"
    NSO = "NSO"
    NCA = "NCA"
    XCI = "XCI"
    NSP = "NSP"

    @property
    def extension(self) -> str:
        return f".{self.value.lower()}"

    @property
    def encrypted(self) -> bool:
        return self in ENCRYPTED_FORMATS

    @classmethod
    def from_name(cls, file_name: str) -> Optional["RomFormat"]:
        """Resolve a format from the extension of ``file_name``."""

        _, dot, suffix = file_name.rpartition(".")
        if not dot:
            return None
        try:
            return cls(suffix.upper())
        except ValueError:
            return None


SCAN_ORDER = (RomFormat.NRO, RomFormat.NSO, RomFormat.NCA, RomFormat.XCI, RomFormat.NSP)
ENCRYPTED_FORMATS = frozenset({RomFormat.NCA, RomFormat.XCI, RomFormat.NSP})


class LoaderResult(str, Enum):
    """Outcome of extracting metadata from a single ROM."""

    SUCCESS = "Success"
    PARSING_ERROR = "ParsingError"
    MISSING_HEADER_KEY = "MissingHeaderKey"
    MISSING_TITLE_KEY = "MissingTitleKey"
    MISSING_TITLE_KEK = "MissingTitleKek"
    MISSING_KEY_AREA = "MissingKeyArea"

    @property
    def code(self) -> int:
        return _CODES[self]

    @classmethod
    def from_code(cls, code: int) -> "LoaderResult":
        for result, value in _CODES.items():
            if value == code:
                return result
        raise ValueError(f"unknown loader result code {code}")

    @property
    def message(self) -> str:
        """Text shown to the user for this failure kind."""

        if self is LoaderResult.SUCCESS:
            raise ValueError("Success is not an error and has no message")
        return ERROR_MESSAGES[self]


_CODES: Dict[LoaderResult, int] = {result: index for index, result in enumerate(LoaderResult)}

INCOMPLETE_PROD_KEYS = "Incomplete production keys"

ERROR_MESSAGES: Dict[LoaderResult, str] = {
    LoaderResult.PARSING_ERROR: "Invalid file",
    LoaderResult.MISSING_TITLE_KEY: "Missing title key",
    LoaderResult.MISSING_HEADER_KEY: INCOMPLETE_PROD_KEYS,
    LoaderResult.MISSING_TITLE_KEK: INCOMPLETE_PROD_KEYS,
    LoaderResult.MISSING_KEY_AREA: INCOMPLETE_PROD_KEYS,
}

ASET_MISSING = "ASET header missing"
NO_ROMS_FOUND = "No ROMs found"
