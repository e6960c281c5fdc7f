from __future__ import annotations

from typing import Callable, Optional

import aiohttp

from app.application.interfaces.image_downloader import IImageDownloader
from app.core.config import settings
from app.core.exceptions import DownloadError
from utils.download_utils import default_download_headers, fetch_bytes


class AiohttpImageDownloader(IImageDownloader):
    """Downloads image bodies into memory, one short-lived session per call."""

    def __init__(
        self,
        *,
        timeout: Optional[float] = None,
        max_bytes: Optional[int] = None,
        min_bytes: Optional[int] = None,
        user_agent: Optional[str] = None,
        session_factory: Callable[..., aiohttp.ClientSession] = aiohttp.ClientSession,
    ) -> None:
        self.timeout = timeout or settings.download_timeout
        self.max_bytes = max_bytes or settings.download_max_bytes
        self.min_bytes = settings.download_min_bytes if min_bytes is None else min_bytes
        self.headers = default_download_headers(user_agent)
        self._session_factory = session_factory

    async def download(self, url: str) -> bytes:
        data = await fetch_bytes(
            url,
            headers=self.headers,
            timeout=self.timeout,
            max_bytes=self.max_bytes,
            session_factory=self._session_factory,
        )
        if len(data) < self.min_bytes:
            raise DownloadError(
                f"Downloaded body too small ({len(data)} bytes): {url}", url=url
            )
        return data
