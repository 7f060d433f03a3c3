"""Severity classification for OSV vulnerability records.

Pure functions that map a raw OSV record (a dict straight from the API)
to a discrete severity level.  Every field of the record is treated as
optional; nothing here raises on missing or oddly shaped data.
"""

import re
from enum import Enum
from typing import Any, Callable


class SeverityLevel(str, Enum):
    """Discrete severity levels, declared in rank order (critical first)."""

    CRITICAL = "critical"
    HIGH = "high"
    MODERATE = "moderate"
    LOW = "low"
    UNKNOWN = "unknown"


_RANK = {level: i for i, level in enumerate(SeverityLevel)}

_DATABASE_SEVERITIES = {
    "critical": SeverityLevel.CRITICAL,
    "high": SeverityLevel.HIGH,
    "moderate": SeverityLevel.MODERATE,
    "medium": SeverityLevel.MODERATE,
    "low": SeverityLevel.LOW,
}

# Trailing number of a score string, e.g. "CVSS:3.1/AV:N/...:7.8" or "9.5".
_SCORE_RE = re.compile(r"(?:^|[/:])(\d+(?:\.\d+)?)\Z", re.ASCII)


def severity_rank(level: SeverityLevel) -> int:
    """Return the sort rank of a level (0 = critical … 4 = unknown)."""
    return _RANK[level]


def severity_from_database(record: dict[str, Any]) -> SeverityLevel | None:
    """Classify using ``database_specific.severity`` (e.g. GitHub advisories).

    Args:
        record: Raw OSV vulnerability dict.

    Returns:
        Matching level, or None if the field is absent or unrecognized.
    """
    db = record.get("database_specific")
    if not isinstance(db, dict):
        return None
    sev = db.get("severity")
    if not isinstance(sev, str):
        return None
    return _DATABASE_SEVERITIES.get(sev.lower())


def parse_cvss_score(score: str) -> float | None:
    """Extract the trailing numeric component of a CVSS-style score string.

    The number must be ASCII digits that end the string (no trailing
    newline) and be preceded by ``/``, ``:`` or the start of the string.

    Args:
        score: Score string such as ``"7.5"`` or ``"CVSS:3.1/...:7.8"``.

    Returns:
        Parsed float, or None when there is no trailing decimal number.
    """
    if not isinstance(score, str):
        return None
    m = _SCORE_RE.search(score)
    if not m:
        return None
    try:
        return float(m.group(1))
    except ValueError:
        return None


def bucket_score(score: float) -> SeverityLevel | None:
    """Bucket a numeric score; zero and negatives have no bucket."""
    if score >= 9.0:
        return SeverityLevel.CRITICAL
    if score >= 7.0:
        return SeverityLevel.HIGH
    if score >= 4.0:
        return SeverityLevel.MODERATE
    if score > 0:
        return SeverityLevel.LOW
    return None


def severity_from_cvss(record: dict[str, Any]) -> SeverityLevel | None:
    """Classify using the first entry of the record's ``severity`` list.

    Args:
        record: Raw OSV vulnerability dict.

    Returns:
        Matching level, or None if no usable score is present.
    """
    entries = record.get("severity")
    if not isinstance(entries, list) or not entries:
        return None
    first = entries[0]
    if not isinstance(first, dict):
        return None
    score = first.get("score")
    if not score:
        return None
    value = parse_cvss_score(score)
    if value is None:
        return None
    return bucket_score(value)


_CLASSIFIERS: tuple[Callable[[dict[str, Any]], SeverityLevel | None], ...] = (
    severity_from_database,
    severity_from_cvss,
)


def classify_severity(record: dict[str, Any]) -> SeverityLevel:
    """Classify a raw OSV record, first matching source wins.

    Tries ``database_specific.severity`` → CVSS score → ``unknown``.

    Args:
        record: Raw OSV vulnerability dict.

    Returns:
        Exactly one ``SeverityLevel``.
    """
    if not isinstance(record, dict):
        return SeverityLevel.UNKNOWN
    for classifier in _CLASSIFIERS:
        level = classifier(record)
        if level is not None:
            return level
    return SeverityLevel.UNKNOWN


def highest_severity(counts: Any) -> SeverityLevel:
    """Return the most severe non-empty bucket of a ``SeverityCounts``.

    Records of unknown severity have no bucket, so a package whose
    records are all unknown reports ``unknown``.
    """
    if counts.critical > 0:
        return SeverityLevel.CRITICAL
    if counts.high > 0:
        return SeverityLevel.HIGH
    if counts.moderate > 0:
        return SeverityLevel.MODERATE
    if counts.low > 0:
        return SeverityLevel.LOW
    return SeverityLevel.UNKNOWN
