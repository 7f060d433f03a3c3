"""Command-line entry point.

``depradar scan packages.yaml`` reads a request body
(``{"packages": [{"name": ..., "version": ...}]}``, YAML or JSON), looks
every package up in OSV, and writes the JSON results.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Sequence

import yaml
from pydantic import ValidationError

from .config import Settings, find_settings, load_settings
from .models import PackageVulnerabilities
from .report import vulnerability_tooltip, write_markdown_report
from .service import BadRequestError, VulnerabilityService


def _load_body(path: Path) -> Any:
    """Read a request body from a YAML or JSON file."""
    content = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        return json.loads(content)
    return yaml.safe_load(content)


def _load_cli_settings(path: Path | None) -> Settings:
    if path is None:
        path = find_settings()
    if path is None:
        return Settings()
    print(f"Using settings from {path}", file=sys.stderr)
    return load_settings(path)


async def _run(body: Any, settings: Settings) -> dict[str, Any]:
    service = VulnerabilityService(settings=settings)
    try:
        return await service.handle(body)
    finally:
        await service.aclose()


def _parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="depradar", description="Look up known vulnerabilities for npm packages in OSV.")
    sub = p.add_subparsers(dest="command", required=True)

    scan = sub.add_parser("scan", help="Scan a list of package versions")
    scan.add_argument("input", type=Path, help="YAML/JSON file with a 'packages' list")
    scan.add_argument("--config", type=Path, default=None, help="Settings file (default: depradar.yaml if present)")
    scan.add_argument("--output", type=Path, default=None, help="Write JSON results here instead of stdout")
    scan.add_argument("--report", type=Path, default=None, help="Also write a Markdown report")
    scan.add_argument("--batch-size", type=int, default=None, help="Concurrent lookups per wave")
    scan.add_argument("--timeout", type=float, default=None, help="Seconds allowed per lookup")
    return p


def main(argv: Sequence[str] | None = None) -> int:
    args = _parser().parse_args(argv)

    try:
        body = _load_body(args.input)
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"❌ Could not read {args.input}: {e}", file=sys.stderr)
        return 2

    overrides: dict[str, Any] = {}
    if args.batch_size is not None:
        overrides["batch_size"] = args.batch_size
    if args.timeout is not None:
        overrides["request_timeout"] = args.timeout
    try:
        settings = _load_cli_settings(args.config)
        if overrides:
            settings = Settings.model_validate({**settings.model_dump(), **overrides})
    except (OSError, ValidationError, ValueError, yaml.YAMLError) as e:
        print(f"❌ Invalid settings: {e}", file=sys.stderr)
        return 2

    try:
        response = asyncio.run(_run(body, settings))
    except BadRequestError as e:
        print(f"❌ {e.message}", file=sys.stderr)
        return 2

    scanned = len(body["packages"])
    results = {name: PackageVulnerabilities.model_validate(info) for name, info in response["results"].items()}
    print(f"Scanned {scanned} package(s), {len(results)} with known vulnerabilities", file=sys.stderr)
    for name, info in results.items():
        first_line = vulnerability_tooltip(info).splitlines()[0]
        print(f"  ⚠️ {name}@{info.version}: {first_line}", file=sys.stderr)

    text = json.dumps(response, indent=2, sort_keys=True)
    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(text + "\n", encoding="utf-8")
        print(f"  ✅ Results written to {args.output}", file=sys.stderr)
    else:
        print(text)

    if args.report:
        write_markdown_report(args.report, results, scanned=scanned)
        print(f"  ✅ Report written to {args.report}", file=sys.stderr)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
