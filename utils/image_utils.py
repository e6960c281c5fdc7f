"""
Image utility functions built on Pillow.
"""

import io
import logging
from typing import Optional, Tuple

from PIL import Image, ImageDraw, ImageFont

from app.core.exceptions import TransformError

logger = logging.getLogger(__name__)

# (signature offset, signature, extension, content type)
_MAGIC_NUMBERS = (
    (0, b"\xff\xd8\xff", "jpg", "image/jpeg"),
    (0, b"\x89PNG\r\n\x1a\n", "png", "image/png"),
    (0, b"GIF87a", "gif", "image/gif"),
    (0, b"GIF89a", "gif", "image/gif"),
    (0, b"BM", "bmp", "image/bmp"),
)

FALLBACK_TYPE = ("bin", "application/octet-stream")

WATERMARK_FILL = (255, 255, 255, 102)  # white @ 40%
WATERMARK_STROKE = (0, 0, 0, 77)  # black @ 30%
WATERMARK_STROKE_WIDTH = 2
WATERMARK_FONT = "DejaVuSans-Bold.ttf"


def sniff_image_type(data: bytes) -> Tuple[str, str]:
    """Return (extension, content type) from the leading bytes of ``data``."""
    head = data[:16]
    if head[:4] == b"RIFF" and head[8:12] == b"WEBP":
        return "webp", "image/webp"
    for offset, signature, ext, content_type in _MAGIC_NUMBERS:
        if head[offset : offset + len(signature)] == signature:
            return ext, content_type
    return FALLBACK_TYPE


def fit_width(size: Tuple[int, int], max_width: int) -> Tuple[int, int]:
    """Scale (w, h) down to ``max_width`` keeping the aspect ratio; never upscales."""
    w, h = size
    if w <= max_width:
        return w, h
    return max_width, max(1, round(h * max_width / w))


def _has_alpha(img: Image.Image) -> bool:
    return img.mode in ("RGBA", "LA", "PA") or (
        img.mode == "P" and "transparency" in img.info
    )


def _prepare_mode(img: Image.Image, output_format: str) -> Image.Image:
    if output_format.upper() not in ("WEBP", "JPEG"):
        return img
    if output_format.upper() == "JPEG":
        return img.convert("RGB") if img.mode != "RGB" else img
    if _has_alpha(img):
        return img.convert("RGBA") if img.mode != "RGBA" else img
    return img.convert("RGB") if img.mode != "RGB" else img


def decode_and_fit(data: bytes, max_width: int = 1920) -> Image.Image:
    """
    Decode ``data`` and downscale it to ``max_width`` (LANCZOS, never upscales).

    Raises:
        TransformError: ``data`` is not a decodable image.
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            target = fit_width(img.size, max_width)
            if target != img.size:
                return img.resize(target, Image.Resampling.LANCZOS)
            return img.copy()
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise TransformError(f"Cannot decode image: {e}") from e


def encode_image(
    img: Image.Image, *, output_format: str = "WEBP", quality: int = 85, effort: int = 6
) -> bytes:
    buf = io.BytesIO()
    options = {"quality": quality}
    if output_format.upper() == "WEBP":
        options["method"] = effort
    try:
        _prepare_mode(img, output_format).save(buf, format=output_format, **options)
    except (OSError, ValueError, KeyError) as e:
        raise TransformError(f"Cannot encode image as {output_format}: {e}") from e
    return buf.getvalue()


def transform_image_bytes(
    data: bytes,
    *,
    max_width: int = 1920,
    output_format: str = "WEBP",
    quality: int = 85,
    effort: int = 6,
) -> Tuple[bytes, int, int]:
    """Decode, downscale and re-encode; returns (encoded bytes, width, height)."""
    img = decode_and_fit(data, max_width)
    encoded = encode_image(
        img, output_format=output_format, quality=quality, effort=effort
    )
    return encoded, img.width, img.height


def load_font(size: int) -> ImageFont.ImageFont:
    try:
        return ImageFont.truetype(WATERMARK_FONT, size)
    except OSError:
        return ImageFont.load_default(size=size)


def watermark_positions(
    canvas: Tuple[int, int], text_box: Tuple[int, int], padding: int
) -> list:
    """Top-left origins for the four corners plus the center."""
    w, h = canvas
    tw, th = text_box
    return [
        (padding, padding),
        (w - tw - padding, padding),
        (padding, h - th - padding),
        (w - tw - padding, h - th - padding),
        ((w - tw) // 2, (h - th) // 2),
    ]


def stamp_watermark(
    img: Image.Image, text: str, *, font_size: Optional[int] = None
) -> Image.Image:
    """
    Stamp ``text`` at five anchor points of a decoded image.

    White text at 40% opacity with a thin 30% black outline, sized at 1/25 of
    the image width (minimum 20px). Images without alpha come back as RGB.
    """
    base = img.convert("RGBA")
    size = font_size or max(base.width // 25, 20)
    font = load_font(size)
    padding = int(size * 0.5)

    overlay = Image.new("RGBA", base.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(overlay)
    left, top, right, bottom = draw.textbbox(
        (0, 0), text, font=font, stroke_width=WATERMARK_STROKE_WIDTH
    )
    text_box = (right - left, bottom - top)

    for x, y in watermark_positions(base.size, text_box, padding):
        draw.text(
            (x - left, y - top),
            text,
            font=font,
            fill=WATERMARK_FILL,
            stroke_width=WATERMARK_STROKE_WIDTH,
            stroke_fill=WATERMARK_STROKE,
        )

    composed = Image.alpha_composite(base, overlay)
    logger.debug("Watermark '%s' applied at %dpx", text, size)
    return composed if _has_alpha(img) else composed.convert("RGB")
