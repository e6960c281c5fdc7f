from __future__ import annotations

from typing import List, Protocol

from app.application.models import SearchCandidate


class IImageSearch(Protocol):
    """Finds candidate images for a keyword.

    The application layer should not know about concrete providers or about
    the retry/rotation policy used to reach them.
    """

    async def search_images(self, keyword: str, count: int) -> List[SearchCandidate]:
        """Return 1..count candidates or raise ExhaustedRetriesError."""
        ...
