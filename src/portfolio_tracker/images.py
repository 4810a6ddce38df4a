"""
images.py – Portfolio image intake
==================================
Uploaded photos are size-checked, shrunk to fit 800×600 and re-encoded as
JPEG before they go anywhere near the remote store.

  prepare_image(raw_bytes)  → PreparedImage   (data URI + final size)
  has_image(value)          → bool            (inline payload or hosted URL)

The size check runs on the raw byte count, so an oversized file is rejected
without being decoded.
"""

from __future__ import annotations

import base64
import io
import logging
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError

from portfolio_tracker.errors import ValidationError
from portfolio_tracker.guardrails import PortfolioGuardrails

logger = logging.getLogger(__name__)


MAX_WIDTH    = 800
MAX_HEIGHT   = 600
JPEG_QUALITY = 70

_INLINE_PREFIX = "data:image/"


@dataclass
class PreparedImage:
    data_uri:   str
    width:      int
    height:     int
    size_bytes: int   # encoded JPEG size


def fit_within(width: int, height: int,
               max_width: int = MAX_WIDTH, max_height: int = MAX_HEIGHT) -> tuple[int, int]:
    """Scale (width, height) down to fit the box, keeping aspect ratio.

    Images already inside the box are returned unchanged; nothing is enlarged.
    """
    if width <= max_width and height <= max_height:
        return width, height
    ratio = min(max_width / width, max_height / height)
    return max(1, round(width * ratio)), max(1, round(height * ratio))


def prepare_image(raw: bytes) -> PreparedImage:
    """Validate, downscale and JPEG-encode an uploaded image."""
    PortfolioGuardrails().check_upload_size(len(raw)).raise_if_blocked()

    try:
        with Image.open(io.BytesIO(raw)) as img:
            img.load()
            width, height = fit_within(*img.size)
            if (width, height) != img.size:
                img = img.resize((width, height), Image.Resampling.LANCZOS)
            if img.mode != "RGB":
                img = img.convert("RGB")
            buf = io.BytesIO()
            img.save(buf, format="JPEG", quality=JPEG_QUALITY)
    except (UnidentifiedImageError, OSError) as exc:
        raise ValidationError("The uploaded file is not a readable image.") from exc

    encoded = buf.getvalue()
    logger.debug("Image prepared: %dx%d, %d bytes", width, height, len(encoded))
    return PreparedImage(
        data_uri   = "data:image/jpeg;base64," + base64.b64encode(encoded).decode("ascii"),
        width      = width,
        height     = height,
        size_bytes = len(encoded),
    )


def is_inline_image(value: str) -> bool:
    return bool(value) and value.startswith(_INLINE_PREFIX)


def is_hosted_image(value: str) -> bool:
    """Any other non-blank value is a URL handed back by the image host,
    absolute or relative."""
    return bool(value and value.strip()) and not is_inline_image(value)


def has_image(value: str) -> bool:
    """True for an inline data-URI payload or a non-empty hosted URL."""
    return is_inline_image(value) or is_hosted_image(value)
