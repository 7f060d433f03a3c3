"""Report generation using Jinja2 templates.

Renders a Markdown summary of lookup results.  The default template
lives at ``depradar/templates/report.md.j2``.
"""

import datetime as dt
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .models import PackageVulnerabilities
from .severity import SeverityLevel, highest_severity, severity_rank

_TEMPLATES_DIR = Path(__file__).parent / "templates"

_SEVERITY_BADGES = {
    SeverityLevel.CRITICAL: "🔴 Critical",
    SeverityLevel.HIGH: "🟠 High",
    SeverityLevel.MODERATE: "🟡 Moderate",
    SeverityLevel.LOW: "🔵 Low",
    SeverityLevel.UNKNOWN: "⚪ Unknown",
}


def vulnerability_tooltip(info: PackageVulnerabilities, max_ids: int = 3) -> str:
    """Short text summary of one package's vulnerabilities.

    Example: ``"3 vulnerabilities (1 critical, 2 high)\\nGHSA-a, GHSA-b, CVE-c"``.

    Args:
        info: Lookup result for the package.
        max_ids: How many identifiers to list on the second line.

    Returns:
        One or two lines of text.
    """
    counts = info.counts
    parts = []
    if counts.critical > 0:
        parts.append(f"{counts.critical} critical")
    if counts.high > 0:
        parts.append(f"{counts.high} high")
    if counts.moderate > 0:
        parts.append(f"{counts.moderate} moderate")
    if counts.low > 0:
        parts.append(f"{counts.low} low")

    breakdown = f" ({', '.join(parts)})" if parts else ""
    plural = "vulnerability" if counts.total == 1 else "vulnerabilities"
    ids = ", ".join(v.id for v in info.vulnerabilities[:max_ids])
    suffix = f"\n{ids}" if ids else ""
    return f"{counts.total} {plural}{breakdown}{suffix}"


def _now_utc_iso() -> str:
    return dt.datetime.now(dt.timezone.utc).replace(microsecond=0).isoformat()


def write_markdown_report(
    path: Path,
    results: dict[str, PackageVulnerabilities],
    scanned: int,
) -> None:
    """Write a GitHub-renderable Markdown report using Jinja2.

    Args:
        path: Output path for the markdown report.
        results: Package name → lookup result.
        scanned: Number of packages that were looked up.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    packages = sorted(
        results.values(),
        key=lambda p: (severity_rank(highest_severity(p.counts)), -p.counts.total, p.package),
    )
    rows = [
        {
            "info": p,
            "badge": _SEVERITY_BADGES[highest_severity(p.counts)],
            "summary": vulnerability_tooltip(p).splitlines()[0],
        }
        for p in packages
    ]
    totals = {
        "total": sum(p.counts.total for p in packages),
        "critical": sum(p.counts.critical for p in packages),
        "high": sum(p.counts.high for p in packages),
        "moderate": sum(p.counts.moderate for p in packages),
        "low": sum(p.counts.low for p in packages),
    }

    env = Environment(
        loader=FileSystemLoader(str(_TEMPLATES_DIR)),
        autoescape=select_autoescape(default_for_string=False, default=False),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    template = env.get_template("report.md.j2")

    rendered = template.render(
        generated_at=_now_utc_iso(),
        scanned=scanned,
        affected=len(packages),
        totals=totals,
        rows=rows,
    )

    tmp = path.with_suffix(path.suffix + ".tmp")
    with tmp.open("w", encoding="utf-8") as f:
        f.write(rendered)
    tmp.replace(path)
