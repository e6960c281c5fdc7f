from __future__ import annotations

import asyncio
import json
import logging
import random
import re
from typing import Any, Callable, Dict, List, Optional, Tuple

import aiohttp

from app.application.interfaces.search_session import ISearchSessionClient
from app.application.models import Identity, RawImageResult, SearchSession
from app.core.config import settings
from app.core.exceptions import (
    EmptyResultsError,
    NetworkError,
    ProviderError,
    SessionError,
)

logger = logging.getLogger(__name__)

# vqd='4-123...' / vqd="4-123..." in inline scripts, or vqd=4-123...& in links
VQD_PATTERNS = (
    re.compile(r"vqd=['\"]([^'\"]+)['\"]"),
    re.compile(r"vqd=([\d-]+)&"),
)

SEC_CH_UA = '"Not_A Brand";v="8", "Chromium";v="120", "Google Chrome";v="120"'


def extract_session(html: str) -> SearchSession:
    """Pull the short-lived ``vqd`` token out of the search page body."""
    for pattern in VQD_PATTERNS:
        match = pattern.search(html or "")
        if match:
            return SearchSession(token=match.group(1))
    raise SessionError("Could not extract vqd token from search page")


def build_headers(identity: Identity, *, api: bool = False, referer: str = "") -> Dict[str, str]:
    """Full browser header set; ``api=True`` switches to XHR-style headers."""
    headers = {
        "User-Agent": identity.user_agent,
        "Accept": (
            "application/json, text/javascript, */*; q=0.01"
            if api
            else "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,image/avif,*/*;q=0.8"
        ),
        "Accept-Language": "en-US,en;q=0.9",
        "Accept-Encoding": "gzip, deflate",
        "Connection": "keep-alive",
        "Sec-Fetch-Dest": "empty" if api else "document",
        "Sec-Fetch-Mode": "cors" if api else "navigate",
        "Sec-Fetch-Site": "same-origin" if api else "none",
        "Sec-Ch-Ua": SEC_CH_UA,
        "Sec-Ch-Ua-Mobile": "?0",
        "Sec-Ch-Ua-Platform": '"Windows"',
        "Cache-Control": "no-cache",
        "Pragma": "no-cache",
    }
    if api:
        headers["X-Requested-With"] = "XMLHttpRequest"
        if referer:
            headers["Referer"] = referer
    else:
        headers["Upgrade-Insecure-Requests"] = "1"
    return headers


class DuckDuckGoSessionClient(ISearchSessionClient):
    """Token handshake against DuckDuckGo's image search.

    1. GET the HTML search page and scrape the ``vqd`` token.
    2. Pause for a randomized, human-looking interval.
    3. GET ``/i.js`` with the token using the same identity.

    One attempt, no retries: failures are classified into SessionError,
    ProviderError (incl. EmptyResultsError) and NetworkError.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        locale: Optional[str] = None,
        timeout: Optional[float] = None,
        max_redirects: Optional[int] = None,
        pacing: Optional[Tuple[float, float]] = None,
        sleep: Callable[[float], Any] = asyncio.sleep,
        rng: Optional[random.Random] = None,
        session_factory: Callable[..., aiohttp.ClientSession] = aiohttp.ClientSession,
    ) -> None:
        self.base_url = (base_url or settings.search_base_url).rstrip("/")
        self.locale = locale or settings.search_locale
        self.timeout = float(timeout or settings.search_timeout)
        self.max_redirects = int(max_redirects or settings.search_max_redirects)
        self.pacing = pacing or (settings.search_pacing_min, settings.search_pacing_max)
        self._sleep = sleep
        self._rng = rng or random.Random()
        self._session_factory = session_factory

    async def search(self, keyword: str, identity: Identity) -> List[RawImageResult]:
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        try:
            async with self._session_factory(timeout=timeout) as session:
                html = await self._fetch_search_page(session, keyword, identity)
                search_session = extract_session(html)
                logger.info("✅ Session token extracted: %s", search_session.token)

                await self._pace()

                payload = await self._fetch_results(
                    session, keyword, search_session, identity
                )
        except asyncio.TimeoutError as e:
            raise NetworkError(
                f"Search request timed out after {self.timeout:.0f}s", timeout=True
            ) from e
        except aiohttp.ClientError as e:
            raise NetworkError(f"Network error talking to provider: {e}") from e

        results = payload.get("results") if isinstance(payload, dict) else None
        if not results:
            raise EmptyResultsError("No images found in provider results")

        return [RawImageResult.from_provider(r) for r in results if isinstance(r, dict)]

    async def _pace(self) -> None:
        low, high = self.pacing
        await self._sleep(self._rng.uniform(low, high))

    async def _fetch_search_page(
        self, session: aiohttp.ClientSession, keyword: str, identity: Identity
    ) -> str:
        params = {"q": keyword, "t": "h_", "iax": "images", "ia": "images"}
        logger.debug("Fetching search page via %s", identity.proxy_label)
        return await self._get_text(
            session, f"{self.base_url}/", params, build_headers(identity), identity
        )

    async def _fetch_results(
        self,
        session: aiohttp.ClientSession,
        keyword: str,
        search_session: SearchSession,
        identity: Identity,
    ) -> Dict[str, Any]:
        params = {
            "l": self.locale,
            "o": "json",
            "q": keyword,
            "vqd": search_session.token,
            "f": ",,,",
            "p": "1",
            "v7exp": "a",
        }
        headers = build_headers(identity, api=True, referer=f"{self.base_url}/")
        body = await self._get_text(
            session, f"{self.base_url}/i.js", params, headers, identity
        )
        try:
            return json.loads(body)
        except ValueError as e:
            raise ProviderError(f"Malformed JSON from results endpoint: {e}") from e

    async def _get_text(
        self,
        session: aiohttp.ClientSession,
        url: str,
        params: Dict[str, str],
        headers: Dict[str, str],
        identity: Identity,
    ) -> str:
        async with session.get(
            url,
            params=params,
            headers=headers,
            proxy=identity.proxy,
            max_redirects=self.max_redirects,
        ) as resp:
            if not 200 <= resp.status < 300:
                raise ProviderError(
                    f"HTTP {resp.status} from {url}", status=resp.status
                )
            try:
                return await resp.text()
            except UnicodeDecodeError as e:
                raise ProviderError(
                    f"Undecodable body from {url}: {e}", status=resp.status
                ) from e
