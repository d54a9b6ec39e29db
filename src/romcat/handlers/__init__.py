"""ROM handlers for the catalog scanner."""

from .base import RomHandler, fallback_title
from .encrypted import EncryptedContainerHandler
from .nro import NroHandler, parse_nro_header
from .nso import NsoHandler

__all__ = [
    "RomHandler",
    "fallback_title",
    "EncryptedContainerHandler",
    "NroHandler",
    "parse_nro_header",
    "NsoHandler",
]
