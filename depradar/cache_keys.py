"""Stable cache keys for vulnerability lookups."""

from typing import Any
from urllib.parse import quote

from .batch import valid_queries

EMPTY_KEY_SUFFIX = "empty"

# Left unescaped. "@" and "," delimit the key, so they are always escaped.
_KEEP = "/:"


def _escape(part: str) -> str:
    return quote(part, safe=_KEEP)


def derive_cache_key(
    packages: list[Any] | None,
    namespace: str = "osv",
    schema_version: str = "v1",
) -> str:
    """Build an order-independent cache key from a request's package list.

    Entries are filtered with ``valid_queries``, so the key covers exactly
    the packages a lookup would send upstream.  Each survivor is rendered
    as ``name@version`` with ``@``, ``,`` and ``%`` percent-escaped, then
    the parts are sorted and joined with commas.  Two requests naming the
    same packages in a different order share a key.

    An absent or empty list maps to ``<namespace>:empty``, which never
    collides with a list whose entries were all invalid
    (``<namespace>:<schema_version>:``).

    Args:
        packages: Raw request entries.
        namespace: Key prefix.
        schema_version: Response schema tag.

    Returns:
        Cache key string.
    """
    if not packages:
        return f"{namespace}:{EMPTY_KEY_SUFFIX}"

    pairs = sorted((q.name, q.version) for q in valid_queries(packages))
    rendered = ",".join(f"{_escape(name)}@{_escape(version)}" for name, version in pairs)
    return f"{namespace}:{schema_version}:{rendered}"
