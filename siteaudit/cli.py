"""Command-line interface for auditing a built site."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from .cli_config import load_config
from .config import PHASE_IDS, PRESETS, AuditConfig, ConfigOverrides, apply_overrides
from .errors import AuditError
from .report import format_report, report_location, summarize, write_report
from .scan import audit_site_async
from .urls import RedirectTable

# Configuration directory for global CLI usage
CONFIG_DIR = Path.home() / ".config" / "siteaudit"
CONFIG_ENV_FILE = CONFIG_DIR / ".env"


def _load_config() -> None:
    load_config(config_env_file=CONFIG_ENV_FILE, cwd=Path.cwd(), load_env=load_dotenv)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="site-audit",
        description="Audit a built static site for broken links and SEO issues.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Audit the build output with default settings
    site-audit dist

    # Check external links too and write a JSON report
    site-audit dist --check-external --report reports/site.json

    # Use a preset and skip the AI content heuristics
    site-audit dist --preset comprehensive --disable-phase ai_detection

    # Apply site redirects from a JSON file
    site-audit dist --redirects redirects.json

    # Print the JSON report to stdout
    site-audit dist --json

Configured report paths (SITEAUDIT_REPORT_PATH or the preset default) are
relative to the build directory; --report is taken as given.

Exit status is 0 when nothing was found, 1 when broken links or issues
were reported or the audit failed, 130 when interrupted.
""",
    )
    parser.add_argument("dist", help="Build output directory to audit")
    parser.add_argument("--report", "-o", help="Report file path")
    parser.add_argument(
        "--format",
        choices=["markdown", "json", "csv"],
        help="Report format (default: from the report file extension)",
    )
    parser.add_argument(
        "--preset",
        choices=sorted(PRESETS),
        help="Start from a named configuration preset",
    )
    parser.add_argument(
        "--check-external",
        action="store_true",
        default=None,
        help="Also check external http(s) links",
    )
    parser.add_argument("--redirects", help="JSON file mapping source paths to destinations")
    parser.add_argument(
        "--concurrency",
        type=int,
        help="Maximum simultaneous link checks (default: 50)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="Timeout in seconds for external requests (default: 10)",
    )
    parser.add_argument(
        "--max-retries",
        type=int,
        help="Retries after a connection reset (default: 3)",
    )
    parser.add_argument(
        "--disable-phase",
        action="append",
        default=[],
        choices=PHASE_IDS,
        metavar="PHASE",
        help=f"Disable a phase; repeatable ({', '.join(PHASE_IDS)})",
    )
    parser.add_argument(
        "--email-allow",
        action="append",
        default=[],
        metavar="EMAIL",
        help="Email address allowed to appear in pages; repeatable",
    )
    parser.add_argument(
        "--json",
        dest="json_output",
        action="store_true",
        help="Print the JSON report to stdout instead of writing a file",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser.parse_args(argv)


def _build_config(args: argparse.Namespace) -> AuditConfig:
    config = AuditConfig.from_env(preset=args.preset)
    apply_overrides(
        config,
        ConfigOverrides(
            report_format=args.format,
            check_external_links=args.check_external,
            verbose=True if args.verbose else None,
            email_allowlist=list(args.email_allow),
            disabled_phases=list(args.disable_phase),
            max_concurrent_checks=args.concurrency,
            request_timeout=args.timeout,
            max_retries=args.max_retries,
        ),
    )
    return config.validate()


async def _run_audit_async(args: argparse.Namespace) -> int:
    config = _build_config(args)
    redirects = RedirectTable.from_file(args.redirects) if args.redirects else None

    result = await audit_site_async(args.dist, config, redirects)

    if args.json_output:
        print(format_report(result, fmt="json"))
    else:
        if args.report:
            path = Path(args.report)
        else:
            path = report_location(args.dist, config.report_file_path)
        write_report(result, path, config.report_format)
        print(summarize(result, path, config.report_format))

    return 1 if result.has_problems else 0


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point for the site audit."""
    args = _parse_args(argv)
    _setup_logging(args.verbose)
    _load_config()

    try:
        return asyncio.run(_run_audit_async(args))
    except KeyboardInterrupt:
        logging.info("Interrupted")
        return 130
    except AuditError as exc:
        logging.error("%s", exc.format())
        if args.verbose:
            logging.exception("Full traceback:")
        return 1
    except Exception as exc:
        logging.error("Error: %s", exc)
        if args.verbose:
            logging.exception("Full traceback:")
        return 1


if __name__ == "__main__":
    sys.exit(main())
