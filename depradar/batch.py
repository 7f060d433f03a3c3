"""Wave-based batch orchestration of OSV lookups.

Lookups run in consecutive waves of ``Settings.batch_size``.  Each wave
is gathered in full before the next one starts, so at most
``batch_size`` requests are in flight at any time.  Results are merged
into a plain dict only after a wave has joined.

Usage from synchronous code::

    from depradar.batch import scan_packages
    results = scan_packages([{"name": "lodash", "version": "4.17.20"}])
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable, Iterator

import aiohttp

from .config import Settings
from .models import PackageQuery, PackageVulnerabilities
from .osv_client import client_timeout, query_package, request_headers

logger = logging.getLogger(__name__)


def valid_queries(packages: Iterable[Any]) -> list[PackageQuery]:
    """Keep entries whose ``name`` and ``version`` are non-empty strings.

    Anything else (missing fields, numbers, ``None``, non-mappings) is
    dropped without error.

    Args:
        packages: Raw request entries or ``PackageQuery`` objects.

    Returns:
        List of ``PackageQuery`` in input order.
    """
    out: list[PackageQuery] = []
    for pkg in packages or []:
        if isinstance(pkg, PackageQuery):
            out.append(pkg)
            continue
        if not isinstance(pkg, dict):
            continue
        name = pkg.get("name")
        version = pkg.get("version")
        if isinstance(name, str) and name and isinstance(version, str) and version:
            out.append(PackageQuery(name=name, version=version))
    return out


def iter_waves(queries: list[PackageQuery], size: int) -> Iterator[list[PackageQuery]]:
    """Split queries into consecutive waves of at most ``size`` entries."""
    if size < 1:
        raise ValueError("wave size must be at least 1")
    for i in range(0, len(queries), size):
        yield queries[i : i + size]


async def run_batch(
    session: aiohttp.ClientSession,
    packages: Iterable[Any],
    settings: Settings,
) -> dict[str, PackageVulnerabilities]:
    """Look up every valid package, one wave at a time.

    Args:
        session: Shared aiohttp session.
        packages: Raw request entries (invalid ones are skipped).
        settings: Batch size, endpoint and timeout settings.

    Returns:
        Package name → ``PackageVulnerabilities`` for every package with
        at least one known vulnerability.  When a name appears twice the
        last successful lookup wins.
    """
    queries = valid_queries(packages)
    results: dict[str, PackageVulnerabilities] = {}
    if not queries:
        return results

    for n, wave in enumerate(iter_waves(queries, settings.batch_size), start=1):
        outcomes = await asyncio.gather(
            *(query_package(session, q.name, q.version, settings) for q in wave),
            return_exceptions=True,
        )
        for query, outcome in zip(wave, outcomes):
            if isinstance(outcome, BaseException):
                logger.debug("Lookup for %s@%s raised: %s", query.name, query.version, outcome)
                continue
            if outcome is not None:
                results[query.name] = outcome
        logger.debug("Wave %d done: %d lookups, %d packages affected so far", n, len(wave), len(results))

    return results


async def _scan(packages: Iterable[Any], settings: Settings) -> dict[str, PackageVulnerabilities]:
    async with aiohttp.ClientSession(
        headers=request_headers(settings),
        timeout=client_timeout(settings),
    ) as session:
        return await run_batch(session, packages, settings)


def scan_packages(
    packages: Iterable[Any],
    settings: Settings | None = None,
) -> dict[str, PackageVulnerabilities]:
    """Synchronous wrapper that runs a full batch via asyncio.

    Args:
        packages: ``{"name", "version"}`` dicts or ``PackageQuery`` objects.
        settings: Optional settings; defaults apply when omitted.

    Returns:
        Package name → ``PackageVulnerabilities``.
    """
    return asyncio.run(_scan(packages, settings or Settings()))
