from __future__ import annotations
from typing import Protocol


class IBlobSink(Protocol):
    """Durable storage target returning public URLs.

    Implementations may back onto local FS, S3, etc. Concurrent ``put`` calls
    with distinct keys must be safe.
    """

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        """Persist bytes under ``key`` and return the public URL."""
        ...

    async def delete(self, key: str) -> bool:
        """Best-effort removal; True when something was deleted."""
        ...
