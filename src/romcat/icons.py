"""Icon decoding with Pillow."""
from __future__ import annotations

import io
from typing import Optional

from PIL import Image

from romcat_utils.logging import get_logger

LOGGER = get_logger(__name__)


def normalise_icon(data: Optional[bytes]) -> Optional[bytes]:
    """Decode raw icon bytes and return them re-encoded as RGBA PNG.

    The returned bytes are what catalog entries carry; reloading them yields
    the same bytes. Undecodable input gives ``None``.
    """

    if not data:
        return None
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.load()
            converted = image.convert("RGBA")
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        LOGGER.debug("Icon decoding failed: %s", exc)
        return None
    buffer = io.BytesIO()
    converted.save(buffer, format="PNG")
    return buffer.getvalue()


def open_icon(png: bytes) -> Image.Image:
    image = Image.open(io.BytesIO(png))
    image.load()
    return image
