from __future__ import annotations

import logging
from typing import Optional

from PIL import Image

from app.application.interfaces.image_processor import IImageTransformer
from app.application.models import TransformedImage
from app.core.config import settings
from app.core.exceptions import TransformError
from utils.image_utils import (
    decode_and_fit,
    encode_image,
    sniff_image_type,
    stamp_watermark,
)

logger = logging.getLogger(__name__)

_CONTENT_TYPES = {"WEBP": "image/webp", "JPEG": "image/jpeg", "PNG": "image/png"}
_EXTENSIONS = {"WEBP": "webp", "JPEG": "jpg", "PNG": "png"}


class PillowImageTransformer(IImageTransformer):
    """Downscale, watermark and re-encode with Pillow; never raises on bad input."""

    def __init__(
        self,
        *,
        max_width: Optional[int] = None,
        quality: Optional[int] = None,
        effort: Optional[int] = None,
        output_format: Optional[str] = None,
    ) -> None:
        self.max_width = max_width or settings.image_max_width
        self.quality = quality or settings.image_quality
        self.effort = settings.image_effort if effort is None else effort
        self.output_format = (output_format or settings.image_output_format).upper()

    @property
    def content_type(self) -> str:
        return _CONTENT_TYPES.get(self.output_format, "application/octet-stream")

    @property
    def extension(self) -> str:
        return _EXTENSIONS.get(self.output_format, self.output_format.lower())

    def transform(
        self, data: bytes, watermark_text: Optional[str] = None
    ) -> TransformedImage:
        try:
            img = decode_and_fit(data, self.max_width)
            img, watermarked = self._watermark(img, watermark_text)
            encoded = encode_image(
                img,
                output_format=self.output_format,
                quality=self.quality,
                effort=self.effort,
            )
        except TransformError as e:
            logger.warning("Image processing failed, using original: %s", e)
            ext, content_type = sniff_image_type(data)
            return TransformedImage(
                data=data, content_type=content_type, extension=ext, transformed=False
            )

        return TransformedImage(
            data=encoded,
            content_type=self.content_type,
            extension=self.extension,
            width=img.width,
            height=img.height,
            watermarked=watermarked,
        )

    def _watermark(self, img: Image.Image, text: Optional[str]):
        text = (text or "").strip()
        if not text:
            return img, False
        try:
            return stamp_watermark(img, text), True
        except Exception as e:  # noqa: BLE001
            logger.warning("Watermark failed, keeping unmarked image: %s", e)
            return img, False
