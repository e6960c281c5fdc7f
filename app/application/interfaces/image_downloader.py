from __future__ import annotations

from typing import Protocol


class IImageDownloader(Protocol):
    """Fetches remote image bytes into memory."""

    async def download(self, url: str) -> bytes:
        """Return the body; raise DownloadError or DownloadTimeout."""
        ...
