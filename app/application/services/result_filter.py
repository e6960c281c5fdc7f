"""
Filtering of raw provider results into acquisition candidates.

Pure functions, no I/O. The "looks like an image" heuristic is deliberately
loose: many CDN image URLs carry no file extension, so a keyword hit in the
URL is accepted as well.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

from app.application.models import RawImageResult, SearchCandidate

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDED_MARKERS: Sequence[str] = ("wikipedia.org", "wikimedia.org", "wiki")
IMAGE_EXTENSIONS: Sequence[str] = (".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp", ".svg")
IMAGE_KEYWORDS: Sequence[str] = ("image", "photo", "pic")
MIN_URL_LENGTH = 10


def is_excluded(url: Optional[str], markers: Iterable[str]) -> bool:
    """True when ``url`` contains any excluded-domain marker (case-insensitive)."""
    if not url:
        return False
    lower_url = url.lower()
    return any(marker.lower() in lower_url for marker in markers if marker)


def is_valid_image_url(url: Optional[str]) -> bool:
    """
    Validate if URL is a plausible image URL.

    Examples:
        >>> is_valid_image_url("https://cdn.example.com/a/b.JPG")
        True
        >>> is_valid_image_url("https://cdn.example.com/photo/123")
        True
        >>> is_valid_image_url("ftp://example.com/a.png")
        False
    """
    if not url or not isinstance(url, str):
        return False
    if not url.startswith(("http://", "https://")):
        return False

    lower_url = url.lower()
    has_image_extension = any(ext in lower_url for ext in IMAGE_EXTENSIONS)
    is_likely_image = has_image_extension or any(kw in url for kw in IMAGE_KEYWORDS)

    return is_likely_image and len(url) > MIN_URL_LENGTH


def filter_results(
    results: Iterable[RawImageResult],
    limit: int,
    excluded_markers: Iterable[str] = DEFAULT_EXCLUDED_MARKERS,
) -> List[SearchCandidate]:
    """Return the first ``limit`` results that survive all rules, in order."""
    markers = tuple(excluded_markers)
    candidates: List[SearchCandidate] = []
    if limit <= 0:
        return candidates

    for result in results:
        if len(candidates) >= limit:
            break

        image_url = result.image
        if not image_url:
            continue

        if is_excluded(result.url, markers) or is_excluded(image_url, markers):
            logger.debug("Skipping excluded-domain image: %s", image_url)
            continue

        if is_valid_image_url(image_url):
            candidates.append(
                SearchCandidate(
                    image_url=image_url,
                    source_url=result.url,
                    title=result.title or "Untitled",
                )
            )

    return candidates
