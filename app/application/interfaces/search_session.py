from __future__ import annotations

from typing import List, Protocol

from app.application.models import Identity, RawImageResult


class ISearchSessionClient(Protocol):
    """Two-step provider handshake: page fetch for a token, then results query.

    Raises SessionError, ProviderError or NetworkError; never retries itself.
    """

    async def search(self, keyword: str, identity: Identity) -> List[RawImageResult]:
        """Return the raw (unfiltered) provider results for one attempt."""
        ...
