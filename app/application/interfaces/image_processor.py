from __future__ import annotations

from typing import Optional, Protocol

from app.application.models import TransformedImage


class IImageTransformer(Protocol):
    def transform(
        self, data: bytes, watermark_text: Optional[str] = None
    ) -> TransformedImage:
        """Decode, downscale, optionally watermark and re-encode in one pass.

        Falls back to the original bytes instead of raising when the image
        cannot be processed; a failed watermark leaves the image unmarked.
        """
        ...
