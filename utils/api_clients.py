"""
API Client module for fetching raw Pokemon data from PokeAPI.

This module is the only place that talks HTTP to the upstream data source.
It resolves a resource kind plus an identifier (numeric id, lowercase name,
or an absolute link embedded in another resource) to a parsed JSON object.
It deliberately does no caching and no retrying: callers decide what a
failure means for their request.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Dict, Optional, Union

import aiohttp

from config.settings import API_REQUEST_TIMEOUT, POKEAPI_URL
from utils.constants import (
    CONNECTION_KEEPALIVE_TIMEOUT,
    CONNECTION_POOL_LIMIT,
    CONNECTION_POOL_LIMIT_PER_HOST,
    USER_AGENT,
)

logger = logging.getLogger("pokedex_proxy.api")

Identifier = Union[int, str]


class ResourceKind(Enum):
    """Upstream resource kinds and their PokeAPI endpoint names."""

    ENTITY = "pokemon"  # Also serves alternate forms (varieties)
    SPECIES = "pokemon-species"
    TYPE = "type"
    EVOLUTION_CHAIN = "evolution-chain"
    GENERATION = "generation"


class UpstreamError(Exception):
    """
    Raised when an upstream resource could not be fetched or parsed.

    Attributes:
        kind: Resource kind that was requested.
        identifier: Identifier or link that was requested.
        status: HTTP status code, or None for transport and body failures.
    """

    def __init__(
        self,
        kind: ResourceKind,
        identifier: Identifier,
        status: Optional[int] = None,
        reason: str = "",
    ):
        self.kind = kind
        self.identifier = identifier
        self.status = status
        self.reason = reason
        detail = f"status {status}" if status is not None else reason or "error"
        super().__init__(f"{kind.value} '{identifier}' failed: {detail}")

    @property
    def is_not_found(self) -> bool:
        """True when upstream answered 404 for the resource."""
        return self.status == 404


class PokeAPIClient:
    """
    Client for raw PokeAPI resources.

    Key Features:
    - **Connection Pooling**: Uses `aiohttp.TCPConnector` to reuse connections.
    - **Lazy Session**: The session is created on first use under a lock so
      concurrent first requests share one pool.
    - **Uniform Failures**: Every failure surfaces as `UpstreamError`.
    """

    def __init__(self, base_url: str = POKEAPI_URL, timeout: float = API_REQUEST_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session: Optional[aiohttp.ClientSession] = None

        # Session creation lock to prevent race conditions during lazy loading
        self._session_lock = asyncio.Lock()

        # Request statistics
        self.request_count = 0
        self.failure_count = 0

    async def get_session(self) -> aiohttp.ClientSession:
        """
        Get or create aiohttp session with connection pooling configuration.

        Returns:
            Active aiohttp ClientSession.
        """
        async with self._session_lock:
            if self.session is None or self.session.closed:
                timeout = aiohttp.ClientTimeout(total=self.timeout)

                connector = aiohttp.TCPConnector(
                    limit=CONNECTION_POOL_LIMIT,
                    limit_per_host=CONNECTION_POOL_LIMIT_PER_HOST,
                    ttl_dns_cache=300,  # DNS cache TTL (5 minutes)
                    keepalive_timeout=CONNECTION_KEEPALIVE_TIMEOUT,
                    enable_cleanup_closed=True,
                )

                self.session = aiohttp.ClientSession(
                    timeout=timeout,
                    connector=connector,
                    headers={"User-Agent": USER_AGENT},
                )

                logger.info(
                    "Created aiohttp session with connection pooling",
                    extra={
                        "total_limit": CONNECTION_POOL_LIMIT,
                        "per_host_limit": CONNECTION_POOL_LIMIT_PER_HOST,
                        "keepalive": CONNECTION_KEEPALIVE_TIMEOUT,
                    },
                )

        return self.session

    async def close(self) -> None:
        """Close the aiohttp session."""
        if self.session and not self.session.closed:
            await self.session.close()
            logger.info(
                f"PokeAPI client session closed (Requests: {self.request_count}, "
                f"Failures: {self.failure_count})"
            )

    def build_url(self, kind: ResourceKind, identifier: Identifier) -> str:
        """
        Resolve a kind and identifier to an absolute upstream URL.

        Absolute links (as embedded in parent resources) are used verbatim;
        names are lowercased.

        Args:
            kind: Resource kind.
            identifier: Numeric id, name, or absolute link.

        Returns:
            Absolute URL string.
        """
        if isinstance(identifier, str) and identifier.startswith(("http://", "https://")):
            return identifier

        key = str(identifier).strip().lower()
        return f"{self.base_url}/{kind.value}/{key}/"

    async def fetch(self, kind: ResourceKind, identifier: Identifier) -> Dict[str, Any]:
        """
        Fetch a single upstream resource.

        Args:
            kind: Resource kind (entity, species, type, ...).
            identifier: Numeric id, lowercase name, or absolute link.

        Returns:
            Parsed JSON object.

        Raises:
            UpstreamError: On network error, non-2xx status or malformed body.
        """
        url = self.build_url(kind, identifier)
        return await self._get_json(kind, identifier, url)

    async def fetch_species_index(self, limit: int) -> Dict[str, Any]:
        """
        Fetch the paginated species list in a single page.

        Args:
            limit: Page size; large enough to cover every species.

        Returns:
            Parsed JSON object with a `results` list of `{name, url}`.

        Raises:
            UpstreamError: On any failure.
        """
        url = f"{self.base_url}/{ResourceKind.SPECIES.value}?limit={limit}"
        return await self._get_json(ResourceKind.SPECIES, "index", url)

    async def _get_json(
        self, kind: ResourceKind, identifier: Identifier, url: str
    ) -> Dict[str, Any]:
        """Internal method performing the GET and normalizing failures."""
        session = await self.get_session()
        self.request_count += 1
        logger.debug(f"Fetching {url}")

        try:
            async with session.get(url) as resp:
                if resp.status < 200 or resp.status >= 300:
                    self.failure_count += 1
                    log = logger.debug if resp.status == 404 else logger.warning
                    log(
                        "Upstream returned non-2xx status",
                        extra={"url": url, "status_code": resp.status},
                    )
                    raise UpstreamError(kind, identifier, status=resp.status)

                data = await resp.json(content_type=None)

        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            self.failure_count += 1
            logger.warning(
                "Upstream request failed",
                extra={"url": url, "error": str(e) or type(e).__name__},
            )
            raise UpstreamError(kind, identifier, reason=str(e) or type(e).__name__) from e

        if not isinstance(data, dict):
            self.failure_count += 1
            logger.warning("Upstream returned a non-object body", extra={"url": url})
            raise UpstreamError(kind, identifier, reason="malformed body")

        return data
