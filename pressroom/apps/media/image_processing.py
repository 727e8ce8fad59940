"""Image variant processing.

Every accepted image, whatever its source format, becomes two webp buffers:

- main: fit within ``MAIN_MAX_SIZE`` (1920x1080)
- thumbnail: fit within ``THUMB_MAX_SIZE`` (720x360)

Both are rendered from the upright (EXIF-transposed) source, keep its aspect
ratio, and are never upscaled. Video posters reuse the main rendering.
"""

from __future__ import annotations

import logging
from io import BytesIO

from PIL import Image, ImageOps, UnidentifiedImageError

from pressroom.apps.media.constants import MAIN_MAX_SIZE, THUMB_MAX_SIZE, WEBP_QUALITY
from pressroom.apps.media.errors import ProcessingFailure
from pressroom.apps.media.types import ImageVariant, ImageVariants

logger = logging.getLogger(__name__)

# Decoding/encoding errors Pillow raises for corrupt, truncated or hostile input.
IMAGE_ERRORS = (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _open_upright(data: bytes) -> Image.Image:
    """Decode ``data`` fully and apply its EXIF orientation."""
    image = Image.open(BytesIO(data))
    image.load()
    transposed = ImageOps.exif_transpose(image)
    return transposed if transposed is not None else image


def _webp_ready(image: Image.Image) -> Image.Image:
    """Convert to a mode the webp encoder accepts, keeping transparency."""
    if image.mode in {"RGB", "RGBA"}:
        return image
    has_alpha = image.mode in {"LA", "PA"} or (
        image.mode == "P" and "transparency" in image.info
    )
    return image.convert("RGBA" if has_alpha else "RGB")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def fit_within(size: tuple[int, int], box: tuple[int, int]) -> tuple[int, int]:
    """Scale ``size`` down to fit ``box``, keeping aspect ratio and at least 1px per side."""
    width, height = size
    if width <= box[0] and height <= box[1]:
        return size
    ratio = min(box[0] / width, box[1] / height)
    return max(1, round(width * ratio)), max(1, round(height * ratio))


def encode_webp_variant(image: Image.Image, box: tuple[int, int]) -> ImageVariant:
    """
    Fit ``image`` within ``box`` and encode it as webp.

    Images already inside the box keep their size.

    Raises:
        ProcessingFailure: if Pillow cannot resize or encode the image.
    """
    try:
        target = fit_within(image.size, box)
        if target != image.size:
            image = image.resize(target, Image.Resampling.LANCZOS)
        image = _webp_ready(image)

        buffer = BytesIO()
        image.save(buffer, format="WEBP", quality=WEBP_QUALITY)
    except IMAGE_ERRORS as exc:
        raise ProcessingFailure(f"Could not encode webp variant: {exc}") from exc

    return ImageVariant(data=buffer.getvalue(), width=image.width, height=image.height)


def process_image(data: bytes) -> ImageVariants:
    """
    Render the main and thumbnail variants of an uploaded image.

    Args:
        data: Raw bytes in any format Pillow (plus pillow-heif) can decode.

    Returns:
        The two webp variants with their dimensions.

    Raises:
        ProcessingFailure: if the bytes can't be decoded or either variant
            can't be encoded.
    """
    try:
        image = _open_upright(data)
    except IMAGE_ERRORS as exc:
        raise ProcessingFailure(f"Could not decode image: {exc}") from exc

    source_size = image.size
    main = encode_webp_variant(image, MAIN_MAX_SIZE)
    thumbnail = encode_webp_variant(image, THUMB_MAX_SIZE)

    logger.debug(
        "process_image: source=%s main=%sx%s (%d bytes) thumb=%sx%s (%d bytes)",
        source_size,
        main.width,
        main.height,
        main.byte_size,
        thumbnail.width,
        thumbnail.height,
        thumbnail.byte_size,
    )
    return ImageVariants(main=main, thumbnail=thumbnail)


def render_main_variant(data: bytes) -> ImageVariant:
    """Decode ``data`` and render only the main-size webp variant."""
    try:
        image = _open_upright(data)
    except IMAGE_ERRORS as exc:
        raise ProcessingFailure(f"Could not decode image: {exc}") from exc
    return encode_webp_variant(image, MAIN_MAX_SIZE)
