"""Unit tests for depradar.config: Pydantic settings models."""

import json
from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from depradar.config import OSV_QUERY_URL, CacheConfig, Settings, find_settings, load_settings

# ── Settings ─────────────────────────────────────────────────────────────────


class TestSettings:
    def test_defaults(self):
        s = Settings()
        assert s.osv_url == OSV_QUERY_URL
        assert s.ecosystem == "npm"
        assert s.batch_size == 10
        assert s.request_timeout > 0
        assert s.cache.max_age == 3600
        assert s.cache.swr is True

    def test_batch_size_bounds(self):
        with pytest.raises(ValidationError):
            Settings(batch_size=0)
        with pytest.raises(ValidationError):
            Settings(batch_size=101)

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(request_timeout=0)

    def test_strips_url(self):
        assert Settings(osv_url="  https://osv.example/v1/query ").osv_url == "https://osv.example/v1/query"

    def test_blank_ecosystem_rejected(self):
        with pytest.raises(ValidationError):
            Settings(ecosystem="   ")


class TestCacheConfig:
    def test_defaults(self):
        c = CacheConfig()
        assert c.namespace == "osv"
        assert c.schema_version == "v1"
        assert c.name == "api-osv-vulnerabilities"

    def test_negative_max_age(self):
        with pytest.raises(ValidationError):
            CacheConfig(max_age=-1)

    def test_bounds_defaults(self):
        c = CacheConfig()
        assert c.max_entries == 1024
        assert c.stale_ttl == 86400

    def test_max_entries_must_be_positive(self):
        with pytest.raises(ValidationError):
            CacheConfig(max_entries=0)


# ── load_settings ────────────────────────────────────────────────────────────


class TestLoadSettings:
    def test_yaml(self, tmp_path: Path):
        path = tmp_path / "depradar.yaml"
        path.write_text(yaml.safe_dump({"batch_size": 5, "cache": {"max_age": 60, "swr": False}}))
        s = load_settings(path)
        assert s.batch_size == 5
        assert s.cache.max_age == 60
        assert s.cache.swr is False

    def test_json(self, tmp_path: Path):
        path = tmp_path / "depradar.json"
        path.write_text(json.dumps({"request_timeout": 2.5}))
        assert load_settings(path).request_timeout == 2.5

    def test_empty_yaml_uses_defaults(self, tmp_path: Path):
        path = tmp_path / "depradar.yaml"
        path.write_text("")
        assert load_settings(path) == Settings()

    def test_unknown_suffix(self, tmp_path: Path):
        path = tmp_path / "settings.conf"
        path.write_text("ecosystem: npm\nbatch_size: 3\n")
        assert load_settings(path).batch_size == 3

    def test_invalid_values(self, tmp_path: Path):
        path = tmp_path / "depradar.yaml"
        path.write_text("batch_size: -4\n")
        with pytest.raises(ValidationError):
            load_settings(path)

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "nope.yaml")


class TestFindSettings:
    def test_none(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert find_settings() is None

    def test_prefers_yaml(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "depradar.json").write_text("{}")
        (tmp_path / "depradar.yaml").write_text("{}")
        assert find_settings() == Path("depradar.yaml")
