"""Canonical advisory links for OSV vulnerability records."""

from typing import Any

GITHUB_ADVISORY_URL = "https://github.com/advisories/{id}"
NVD_DETAIL_URL = "https://nvd.nist.gov/vuln/detail/{id}"
OSV_DETAIL_URL = "https://osv.dev/vulnerability/{id}"


def advisory_url(record: dict[str, Any]) -> str:
    """Pick the best external page for a vulnerability record.

    GitHub advisory for ``GHSA-`` ids, then NVD for the first ``CVE-``
    alias, then the OSV detail page for the record's own id.

    Args:
        record: Raw OSV vulnerability dict.

    Returns:
        Absolute URL string.
    """
    vuln_id = str(record.get("id") or "")
    if vuln_id.startswith("GHSA-"):
        return GITHUB_ADVISORY_URL.format(id=vuln_id)

    aliases = record.get("aliases") or []
    if isinstance(aliases, list):
        for alias in aliases:
            if isinstance(alias, str) and alias.startswith("CVE-"):
                return NVD_DETAIL_URL.format(id=alias)

    return OSV_DETAIL_URL.format(id=vuln_id)
