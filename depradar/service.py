"""Request handling for vulnerability lookups.

``VulnerabilityService.handle`` takes a request body of the form
``{"packages": [{"name": ..., "version": ...}, ...]}`` and returns
``{"results": {name: {...}}}``.  A structurally invalid body is the only
error it raises; upstream trouble degrades to partial or empty results.
"""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from .batch import run_batch, valid_queries
from .cache import ResponseCache
from .cache_keys import derive_cache_key
from .config import Settings
from .models import PackageVulnerabilities, VulnerabilitiesResponse
from .osv_client import client_timeout, request_headers

logger = logging.getLogger(__name__)

BAD_REQUEST_MESSAGE = "Request body must contain a packages array"


class BadRequestError(Exception):
    """The request body is missing or has no ``packages`` list."""

    status_code = 400

    def __init__(self, message: str = BAD_REQUEST_MESSAGE) -> None:
        super().__init__(message)
        self.message = message


def packages_from_body(body: Any) -> list[Any]:
    """Validate a request body and return its raw ``packages`` list.

    Raises:
        BadRequestError: if the body is not a mapping or ``packages`` is
            missing or not a list.
    """
    if not isinstance(body, dict):
        raise BadRequestError()
    packages = body.get("packages")
    if not isinstance(packages, list):
        raise BadRequestError()
    return packages


class VulnerabilityService:
    """Cached front door to the batch lookup.

    Attributes:
        settings: Active settings.
        cache: Response cache keyed by ``derive_cache_key``.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        cache: ResponseCache | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.cache = cache if cache is not None else ResponseCache(
            max_age=self.settings.cache.max_age,
            swr=self.settings.cache.swr,
            name=self.settings.cache.name,
            max_entries=self.settings.cache.max_entries,
            stale_ttl=self.settings.cache.stale_ttl,
        )
        self._session = session

    def cache_key(self, packages: list[Any] | None) -> str:
        return derive_cache_key(
            packages,
            namespace=self.settings.cache.namespace,
            schema_version=self.settings.cache.schema_version,
        )

    async def _lookup(self, packages: list[Any]) -> dict[str, PackageVulnerabilities]:
        if not valid_queries(packages):
            return {}
        if self._session is not None:
            return await run_batch(self._session, packages, self.settings)
        async with aiohttp.ClientSession(
            headers=request_headers(self.settings),
            timeout=client_timeout(self.settings),
        ) as session:
            return await run_batch(session, packages, self.settings)

    async def handle(self, body: Any) -> dict[str, Any]:
        """Serve one lookup request.

        Args:
            body: Decoded request body.

        Returns:
            ``{"results": {...}}`` as plain JSON-compatible data.

        Raises:
            BadRequestError: if the body has no ``packages`` list.
        """
        packages = packages_from_body(body)
        key = self.cache_key(packages)

        async def compute() -> dict[str, PackageVulnerabilities]:
            return await self._lookup(packages)

        results = await self.cache.get_or_compute(key, compute)
        logger.debug("%d of %d packages have known vulnerabilities", len(results), len(packages))
        return VulnerabilitiesResponse(results=results).model_dump(mode="json")

    async def aclose(self) -> None:
        """Let pending background cache refreshes finish."""
        await self.cache.drain()
