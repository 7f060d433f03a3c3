"""Configuration models using Pydantic.

Settings for the OSV client, the wave-based batch runner, and the
response cache.  Loaded from ``depradar.yaml`` (or JSON) when present;
every field has a working default so no file is required.
"""

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

OSV_QUERY_URL = "https://api.osv.dev/v1/query"


class CacheConfig(BaseModel):
    """Response cache policy.

    Attributes:
        max_age: Seconds a cached response stays fresh.
        swr: Serve stale entries immediately and refresh in the background.
        stale_ttl: Seconds past ``max_age`` a stale entry may still be served.
        max_entries: Most responses held at once; least recently used go first.
        namespace: Prefix for cache keys.
        schema_version: Bumped whenever the cached response shape changes.
        name: Human-readable cache name used in log lines.
    """

    max_age: int = Field(default=3600, ge=0)
    swr: bool = True
    stale_ttl: int = Field(default=86400, ge=0)
    max_entries: int = Field(default=1024, ge=1)
    namespace: str = "osv"
    schema_version: str = "v1"
    name: str = "api-osv-vulnerabilities"


class Settings(BaseModel):
    """Validated DepRadar settings.

    Example YAML::

        osv_url: https://api.osv.dev/v1/query
        ecosystem: npm
        batch_size: 10
        request_timeout: 10
        cache:
          max_age: 3600
          swr: true
    """

    osv_url: str = OSV_QUERY_URL
    ecosystem: str = "npm"
    batch_size: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum concurrent OSV lookups per wave",
    )
    request_timeout: float = Field(
        default=10.0,
        gt=0.0,
        le=300.0,
        description="Seconds allowed for a single OSV lookup",
    )
    user_agent: str = "DepRadar/0.1 (+https://github.com/)"
    cache: CacheConfig = Field(default_factory=CacheConfig)

    @field_validator("osv_url", "ecosystem", mode="before")
    @classmethod
    def _strip(cls, v: Any) -> Any:
        """Strip surrounding whitespace; reject blank values."""
        if isinstance(v, str):
            v = v.strip()
            if not v:
                raise ValueError("must not be blank")
        return v


def load_settings(path: Path) -> Settings:
    """Load settings from a YAML or JSON file.

    Args:
        path: Path to the settings file.

    Returns:
        Validated ``Settings`` instance.

    Raises:
        FileNotFoundError: if the file doesn't exist.
        pydantic.ValidationError: if content fails validation.
    """
    suffix = path.suffix.lower()
    content = path.read_text(encoding="utf-8")

    if suffix in (".yaml", ".yml"):
        raw = yaml.safe_load(content) or {}
    elif suffix == ".json":
        raw = json.loads(content)
    else:
        try:
            raw = yaml.safe_load(content) or {}
        except yaml.YAMLError:
            raw = json.loads(content)

    return Settings.model_validate(raw)


def find_settings() -> Path | None:
    """Find a settings file in the working directory, preferring YAML.

    Returns:
        Path of the first existing settings file, or None.
    """
    for name in ("depradar.yaml", "depradar.yml", "depradar.json"):
        if Path(name).exists():
            return Path(name)
    return None
