"""Pydantic models for lookup requests and aggregated results."""

from pydantic import BaseModel, Field

from .severity import SeverityLevel

NO_DESCRIPTION = "No description available"


class PackageQuery(BaseModel):
    """A resolved npm package version to look up."""

    name: str = Field(min_length=1)
    version: str = Field(min_length=1)


class VulnerabilityRecord(BaseModel):
    """Normalized view of a single OSV vulnerability.

    Attributes:
        id: OSV identifier (``GHSA-…``, ``CVE-…``, ``MAL-…``).
        summary: One-line summary, never empty.
        severity: Classified severity level.
        aliases: Alternate identifiers in upstream order.
        url: Canonical advisory link.
    """

    id: str
    summary: str = NO_DESCRIPTION
    severity: SeverityLevel = SeverityLevel.UNKNOWN
    aliases: list[str] = Field(default_factory=list)
    url: str


class SeverityCounts(BaseModel):
    """Per-package tally.  ``total`` includes records of unknown severity."""

    total: int = 0
    critical: int = 0
    high: int = 0
    moderate: int = 0
    low: int = 0


class PackageVulnerabilities(BaseModel):
    """All known vulnerabilities for one package version, critical first."""

    package: str
    version: str
    vulnerabilities: list[VulnerabilityRecord] = Field(default_factory=list)
    counts: SeverityCounts = Field(default_factory=SeverityCounts)


class VulnerabilitiesResponse(BaseModel):
    """Response body: package name → vulnerabilities."""

    results: dict[str, PackageVulnerabilities] = Field(default_factory=dict)
