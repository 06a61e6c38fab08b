"""Image Codec — turns an arbitrary raster image into an inline WebP payload.

Invariants:
    - Output is always a data URI: "data:image/webp;base64,<payload>"
    - Longest side is capped at max_dimension (aspect ratio preserved, never upscaled)
    - Unreadable input raises ImageEncodingError; Pillow exceptions never escape

Design Decisions:
    - Palette and alpha images are kept as RGBA so transparency survives the conversion
"""

import base64
import io
import logging

from PIL import Image, UnidentifiedImageError

from roomcast.core.errors import ImageEncodingError

logger = logging.getLogger(__name__)

WEBP_DATA_URI_PREFIX = "data:image/webp;base64,"


def encode_image_payload(
    raw: bytes, max_dimension: int = 1024, quality: int = 80,
) -> str:
    """Decode raw image bytes and re-encode them as a WebP data URI."""
    if not raw:
        raise ImageEncodingError("empty input")
    try:
        with Image.open(io.BytesIO(raw)) as img:
            img.load()
            if img.mode in ("P", "LA", "RGBA") or "transparency" in img.info:
                img = img.convert("RGBA")
            elif img.mode != "RGB":
                img = img.convert("RGB")
            img.thumbnail((max_dimension, max_dimension))
            out = io.BytesIO()
            img.save(out, format="WEBP", quality=quality)
    except (
        UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError,
    ) as e:
        logger.warning(f"Image encoding failed: {e}")
        raise ImageEncodingError(str(e))
    return WEBP_DATA_URI_PREFIX + base64.b64encode(out.getvalue()).decode("ascii")

