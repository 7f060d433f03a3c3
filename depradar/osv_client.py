"""OSV lookups for a single package version.

Uses ``aiohttp`` to query the OSV ``/v1/query`` endpoint and turns the
raw response into a ``PackageVulnerabilities`` summary.  A lookup never
raises: any upstream problem (network error, bad status, timeout,
malformed JSON) makes the package drop out of the results.

Usage::

    async with aiohttp.ClientSession(headers=request_headers(settings)) as session:
        info = await query_package(session, "lodash", "4.17.20", settings)
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp

from .advisories import advisory_url
from .config import Settings
from .models import (
    NO_DESCRIPTION,
    PackageVulnerabilities,
    SeverityCounts,
    VulnerabilityRecord,
)
from .severity import SeverityLevel, classify_severity, severity_rank

logger = logging.getLogger(__name__)


class MalformedResponseError(ValueError):
    """OSV answered, but not with the expected JSON shape."""


def request_headers(settings: Settings) -> dict[str, str]:
    """Build HTTP headers for OSV requests."""
    return {
        "User-Agent": settings.user_agent,
        "Accept": "application/json",
        "Content-Type": "application/json",
    }


def client_timeout(settings: Settings) -> aiohttp.ClientTimeout:
    """Session-level timeout; a safety net behind the per-call limit."""
    return aiohttp.ClientTimeout(total=settings.request_timeout, connect=min(settings.request_timeout, 15))


async def _post_json(session: aiohttp.ClientSession, url: str, payload: dict[str, Any]) -> Any:
    """POST a JSON payload and parse the JSON reply."""
    async with session.post(url, json=payload) as resp:
        resp.raise_for_status()
        return await resp.json(content_type=None)


def _raw_vulns(data: Any) -> list[dict[str, Any]]:
    """Pull the ``vulns`` list out of an OSV query response."""
    if not isinstance(data, dict):
        raise MalformedResponseError(f"expected an object, got {type(data).__name__}")
    vulns = data.get("vulns") or []
    if not isinstance(vulns, list):
        raise MalformedResponseError("'vulns' is not a list")
    for v in vulns:
        if not isinstance(v, dict):
            raise MalformedResponseError("vulnerability entry is not an object")
    return vulns


def _normalize(record: dict[str, Any], severity: SeverityLevel) -> VulnerabilityRecord:
    aliases = record.get("aliases")
    summary = record.get("summary")
    return VulnerabilityRecord(
        id=str(record.get("id") or ""),
        summary=summary if isinstance(summary, str) and summary else NO_DESCRIPTION,
        severity=severity,
        aliases=[a for a in aliases if isinstance(a, str)] if isinstance(aliases, list) else [],
        url=advisory_url(record),
    )


def build_package_vulnerabilities(
    name: str,
    version: str,
    vulns: list[dict[str, Any]],
) -> PackageVulnerabilities | None:
    """Classify, link, sort and count the raw records of one package.

    Records are ordered critical first; records of equal severity keep
    their upstream order.

    Args:
        name: Package name.
        version: Package version.
        vulns: Raw OSV vulnerability dicts.

    Returns:
        ``PackageVulnerabilities``, or None when ``vulns`` is empty.
    """
    if not vulns:
        return None

    classified = [(classify_severity(v), v) for v in vulns]
    # sorted() is stable, so ties keep upstream order
    classified = sorted(classified, key=lambda pair: severity_rank(pair[0]))

    counts = SeverityCounts(total=len(classified))
    records: list[VulnerabilityRecord] = []
    for severity, raw in classified:
        if severity is SeverityLevel.CRITICAL:
            counts.critical += 1
        elif severity is SeverityLevel.HIGH:
            counts.high += 1
        elif severity is SeverityLevel.MODERATE:
            counts.moderate += 1
        elif severity is SeverityLevel.LOW:
            counts.low += 1
        records.append(_normalize(raw, severity))

    return PackageVulnerabilities(
        package=name,
        version=version,
        vulnerabilities=records,
        counts=counts,
    )


async def query_package(
    session: aiohttp.ClientSession,
    name: str,
    version: str,
    settings: Settings,
) -> PackageVulnerabilities | None:
    """Look up one package version in OSV.

    Args:
        session: Shared aiohttp session.
        name: npm package name.
        version: Concrete version string.
        settings: Endpoint, ecosystem and timeout settings.

    Returns:
        ``PackageVulnerabilities`` for the package, or None when OSV
        reports nothing or the lookup failed for any reason.
    """
    payload = {
        "package": {"name": name, "ecosystem": settings.ecosystem},
        "version": version,
    }
    try:
        data = await asyncio.wait_for(
            _post_json(session, settings.osv_url, payload),
            timeout=settings.request_timeout,
        )
        vulns = _raw_vulns(data)
    except asyncio.TimeoutError:
        logger.debug("OSV lookup for %s@%s timed out after %ss", name, version, settings.request_timeout)
        return None
    except Exception as e:
        logger.debug("OSV lookup for %s@%s failed: %s", name, version, e)
        return None

    return build_package_vulnerabilities(name, version, vulns)
