"""Shared fixtures: raw OSV vulnerability records as returned by the API."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from depradar.models import PackageVulnerabilities, SeverityCounts, VulnerabilityRecord
from depradar.severity import SeverityLevel


@pytest.fixture
def ghsa_high_record() -> dict[str, Any]:
    return {
        "id": "GHSA-35jh-r3h4-6jhm",
        "summary": "Command Injection in lodash",
        "aliases": ["CVE-2021-23337"],
        "database_specific": {"severity": "HIGH", "github_reviewed": True},
        "severity": [
            {"type": "CVSS_V3", "score": "CVSS:3.1/AV:N/AC:L/PR:H/UI:N/S:U/C:H/I:H/A:H"},
        ],
    }


@pytest.fixture
def cvss_only_record() -> dict[str, Any]:
    return {
        "id": "OSV-2024-0001",
        "summary": "Prototype pollution",
        "aliases": ["BIT-lodash-2024-1", "CVE-2024-0001"],
        "severity": [{"type": "CVSS_V3", "score": "CVSS:3.1/AV:N/AC:L:7.8"}],
    }


@pytest.fixture
def critical_record() -> dict[str, Any]:
    return {
        "id": "GHSA-p6mc-m468-83gw",
        "summary": "Prototype Pollution in lodash",
        "database_specific": {"severity": "CRITICAL"},
    }


@pytest.fixture
def bare_record() -> dict[str, Any]:
    return {"id": "MAL-2024-1234"}


@pytest.fixture
def make_result():
    """Factory for a minimal ``PackageVulnerabilities``."""

    def _make(
        name: str = "lodash",
        version: str = "4.17.20",
        severities: tuple[SeverityLevel, ...] = (SeverityLevel.HIGH,),
    ) -> PackageVulnerabilities:
        records = [
            VulnerabilityRecord(
                id=f"GHSA-{name}-{i}",
                summary=f"Issue {i} in {name}",
                severity=sev,
                url=f"https://github.com/advisories/GHSA-{name}-{i}",
            )
            for i, sev in enumerate(severities)
        ]
        counts = SeverityCounts(total=len(records))
        for r in records:
            if r.severity is not SeverityLevel.UNKNOWN:
                setattr(counts, r.severity.value, getattr(counts, r.severity.value) + 1)
        return PackageVulnerabilities(package=name, version=version, vulnerabilities=records, counts=counts)

    return _make


class AsyncContextManager:
    """Wraps an async mock to support `async with session.post(url) as resp:`."""

    def __init__(self, mock_resp):
        self.mock_resp = mock_resp

    async def __aenter__(self):
        return self.mock_resp

    async def __aexit__(self, *args):
        pass


@pytest.fixture
def osv_session():
    """Factory for a mock aiohttp session whose ``post`` answers ``payload``."""

    def _make(payload: Any = None, *, json_error: Exception | None = None, status_error: Exception | None = None):
        mock_resp = AsyncMock()
        mock_resp.json = AsyncMock(return_value=payload, side_effect=json_error)
        mock_resp.raise_for_status = MagicMock(side_effect=status_error)

        session = MagicMock()
        session.post = MagicMock(return_value=AsyncContextManager(mock_resp))
        return session

    return _make
