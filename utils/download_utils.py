"""
Download utility functions.
"""

import asyncio
import logging
from typing import Callable, Dict, Optional

import aiohttp

from app.core.config import settings
from app.core.exceptions import DownloadError, DownloadTimeout

logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192


def default_download_headers(user_agent: Optional[str] = None) -> Dict[str, str]:
    return {
        "User-Agent": user_agent or settings.download_user_agent,
        "Accept": "image/webp,image/apng,image/*,*/*;q=0.8",
    }


async def fetch_bytes(
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    timeout: Optional[float] = None,
    max_bytes: Optional[int] = None,
    session_factory: Callable[..., aiohttp.ClientSession] = aiohttp.ClientSession,
) -> bytes:
    """
    Download a URL fully into memory.

    Args:
        url: Source URL to download from
        headers: Request headers (defaults to a desktop browser profile)
        timeout: Total time budget in seconds
        max_bytes: Upper bound on the body size; larger bodies are rejected

    Returns:
        The response body

    Raises:
        DownloadTimeout: the time budget elapsed
        DownloadError: non-2xx status, oversized body or transport failure
    """
    timeout = timeout or settings.download_timeout
    max_bytes = max_bytes or settings.download_max_bytes
    client_timeout = aiohttp.ClientTimeout(total=timeout)

    try:
        async with session_factory(timeout=client_timeout) as session:
            async with session.get(
                url, headers=headers or default_download_headers()
            ) as response:
                if not 200 <= response.status < 300:
                    raise DownloadError(
                        f"HTTP {response.status} downloading {url}", url=url
                    )

                declared = response.content_length
                if declared is not None and declared > max_bytes:
                    raise DownloadError(
                        f"Image too large ({declared} bytes): {url}", url=url
                    )

                # Stream so a lying Content-Length cannot exhaust memory
                buffer = bytearray()
                async for chunk in response.content.iter_chunked(CHUNK_SIZE):
                    buffer.extend(chunk)
                    if len(buffer) > max_bytes:
                        raise DownloadError(
                            f"Image exceeds {max_bytes} bytes: {url}", url=url
                        )

                logger.debug("✅ Downloaded %s (%d bytes)", url, len(buffer))
                return bytes(buffer)

    except DownloadError:
        raise
    except asyncio.TimeoutError as e:
        raise DownloadTimeout(
            f"Timed out after {timeout:.0f}s downloading {url}", url=url
        ) from e
    except aiohttp.ClientError as e:
        logger.debug("Failed to download %s: %s", url, e)
        raise DownloadError(f"Failed to download {url}: {e}", url=url) from e
