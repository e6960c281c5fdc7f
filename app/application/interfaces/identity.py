from __future__ import annotations

from typing import Protocol

from app.application.models import Identity


class IIdentityRotator(Protocol):
    """Supplies a rotating (user agent, proxy) pair per outbound attempt.

    Implementations must be safe to call from concurrent tasks.
    """

    @property
    def proxy_count(self) -> int:
        """Number of proxies in the pool (0 means direct connections)."""
        ...

    def next(self) -> Identity:
        """Advance both cursors and return the identity for one attempt."""
        ...
