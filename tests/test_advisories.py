"""Unit tests for depradar.advisories."""

from depradar.advisories import advisory_url


class TestAdvisoryUrl:
    def test_ghsa_id(self, ghsa_high_record):
        assert advisory_url(ghsa_high_record) == "https://github.com/advisories/GHSA-35jh-r3h4-6jhm"

    def test_first_cve_alias(self):
        record = {"id": "OSV-1", "aliases": ["BIT-1", "CVE-2024-0002", "CVE-2024-0003"]}
        assert advisory_url(record) == "https://nvd.nist.gov/vuln/detail/CVE-2024-0002"

    def test_ghsa_beats_cve_alias(self):
        record = {"id": "GHSA-aaaa-bbbb-cccc", "aliases": ["CVE-2024-0002"]}
        assert advisory_url(record).startswith("https://github.com/advisories/")

    def test_osv_fallback(self, bare_record):
        assert advisory_url(bare_record) == "https://osv.dev/vulnerability/MAL-2024-1234"

    def test_bad_aliases_ignored(self):
        record = {"id": "PYSEC-1", "aliases": "CVE-2024-1"}
        assert advisory_url(record) == "https://osv.dev/vulnerability/PYSEC-1"

    def test_missing_id(self):
        assert advisory_url({}) == "https://osv.dev/vulnerability/"
