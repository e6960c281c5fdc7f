from __future__ import annotations

import logging
import threading
from typing import Optional, Sequence

from app.application.interfaces.identity import IIdentityRotator
from app.application.models import Identity
from app.core.config import settings

logger = logging.getLogger(__name__)


class RoundRobinIdentityRotator(IIdentityRotator):
    """Independent round-robin cursors over user agents and proxies.

    Both cursors advance on every ``next()`` regardless of the outcome of the
    attempt that used the identity; access is serialized with a lock.
    """

    def __init__(
        self,
        user_agents: Optional[Sequence[str]] = None,
        proxies: Optional[Sequence[str]] = None,
    ) -> None:
        agents = list(settings.user_agents if user_agents is None else user_agents)
        if not agents:
            raise ValueError("At least one user agent is required")
        self._user_agents = agents
        self._proxies = [
            p.strip()
            for p in (settings.proxy_list if proxies is None else proxies)
            if p and p.strip()
        ]
        self._ua_index = 0
        self._proxy_index = 0
        self._lock = threading.Lock()

        if self._proxies:
            logger.info("Loaded %d proxies for rotation", len(self._proxies))
        else:
            logger.warning("No proxies configured; search requests go direct")

    @property
    def proxy_count(self) -> int:
        return len(self._proxies)

    def next(self) -> Identity:
        with self._lock:
            user_agent = self._user_agents[self._ua_index]
            self._ua_index = (self._ua_index + 1) % len(self._user_agents)

            proxy = None
            if self._proxies:
                proxy = self._proxies[self._proxy_index]
                self._proxy_index = (self._proxy_index + 1) % len(self._proxies)

        return Identity(user_agent=user_agent, proxy=proxy)
