"""Dominant colour of a beatmap cover, used for the embed side bar."""

from __future__ import annotations

import io

from loguru import logger
from PIL import Image, UnidentifiedImageError

from utils.errors import DecodeError

RGB = tuple[int, int, int]

DEFAULT_COLOR: RGB = (0, 0, 0)
PALETTE_SIZE = 2


def dominant_color(image_bytes: bytes) -> RGB:
    """Return the colour of the largest cluster in the image.

    The image is quantised to ``PALETTE_SIZE`` colours with median cut and the
    palette entry covering the most pixels wins.

    Raises:
        DecodeError: the bytes are not an image Pillow can read, or the image
            is over Pillow's decompression-bomb limit.
    """
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            quantized = img.convert("RGB").quantize(
                colors=PALETTE_SIZE, method=Image.Quantize.MEDIANCUT
            )
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        ValueError,
        EOFError,
        SyntaxError,
    ) as e:
        raise DecodeError(f"could not decode cover image: {type(e).__name__} - {e}") from e

    # getcolors() -> [(pixel_count, palette_index), ...]
    counts = quantized.getcolors(maxcolors=PALETTE_SIZE) or [(0, 0)]
    _, index = max(counts)
    palette = quantized.getpalette() or []
    r, g, b = palette[index * 3 : index * 3 + 3] or DEFAULT_COLOR
    logger.debug(f"[CoverColor] dominant colour #{r:02x}{g:02x}{b:02x}")
    return r, g, b
