"""MCP server exposing the site audit as a tool.

Supports both STDIO and HTTP transports.

Usage:
    # STDIO (for desktop MCP clients)
    python -m siteaudit.mcp_server

    # HTTP (for remote access)
    python -m siteaudit.mcp_server --transport http --port 8000

Environment Variables:
    SITEAUDIT_PRESET, SITEAUDIT_CHECK_EXTERNAL, SITEAUDIT_TIMEOUT, ...:
        Defaults for every audit; tool arguments take precedence.
"""

from __future__ import annotations

import argparse
import json
import logging
from enum import Enum
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from fastmcp import FastMCP

from .config import AuditConfig, ConfigOverrides, apply_overrides
from .errors import AuditError
from .report import format_report
from .scan import audit_site_async

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
LOGGER = logging.getLogger(__name__)

# Load .env before reading environment variables
load_dotenv()

mcp = FastMCP(
    name="Site Audit",
    instructions="""
    Audits a statically built website on the local filesystem.

    Tool:
       - audit_site: validate every link in the build output and run the
         SEO checks, returning a report

    Output formats:
    - markdown: Human readable report (default)
    - json: Structured report with counts, broken links and issues
    - csv: One row per problem and page
    """,
)


class OutputFormat(str, Enum):
    """Output format for audit reports."""

    markdown = "markdown"
    json = "json"
    csv = "csv"


def _build_config(preset: Optional[str], check_external_links: Optional[bool]) -> AuditConfig:
    config = AuditConfig.from_env(preset=preset)
    apply_overrides(config, ConfigOverrides(check_external_links=check_external_links))
    return config.validate()


async def audit_site(
    dist_path: str,
    output_format: str = "markdown",
    check_external_links: Optional[bool] = None,
    preset: Optional[str] = None,
    redirects: Optional[Dict[str, Any]] = None,
) -> str:
    """
    Audit a built static site for broken links and SEO issues.

    Args:
        dist_path: Path to the build output directory (e.g. "dist")
        output_format: "markdown" (default), "json" or "csv"
        check_external_links: Also request external http(s) links
        preset: Optional configuration preset (minimal, standard,
            comprehensive, performance, accessibility, ai_detection)
        redirects: Optional mapping of source path to destination path

    Returns:
        The formatted report, or a JSON object with an "error" key.
    """
    try:
        fmt = OutputFormat(output_format.lower()).value
    except ValueError:
        return json.dumps(
            {"error": f"Invalid output format: '{output_format}'", "dist_path": dist_path},
            ensure_ascii=False,
        )

    LOGGER.info("Auditing %s (format=%s)", dist_path, fmt)
    try:
        config = _build_config(preset, check_external_links)
        result = await audit_site_async(dist_path, config, redirects)
    except AuditError as exc:
        LOGGER.error("%s", exc)
        payload = {"error": str(exc), "dist_path": dist_path}
        if exc.suggestion:
            payload["suggestion"] = exc.suggestion
        return json.dumps(payload, ensure_ascii=False)
    except Exception as exc:
        error_msg = f"Unexpected error: {str(exc)}"
        LOGGER.error(error_msg)
        return json.dumps({"error": error_msg, "dist_path": dist_path}, ensure_ascii=False)

    LOGGER.info(
        "Audit finished: %d broken links, %d issues",
        len(result.broken_links),
        result.issue_count,
    )
    return format_report(result, fmt=fmt)


mcp.tool(audit_site)


# =============================================================================
# CLI ENTRY POINT
# =============================================================================


def main():
    """CLI entry point for running the MCP server."""
    parser = argparse.ArgumentParser(
        description="Run the site audit MCP server.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # STDIO transport (default)
    python -m siteaudit.mcp_server

    # HTTP transport (for remote access)
    python -m siteaudit.mcp_server --transport http --port 8000

    # Custom host/port
    python -m siteaudit.mcp_server --transport http --host 0.0.0.0 --port 9000
""",
    )
    parser.add_argument(
        "--transport",
        choices=["stdio", "http"],
        default="stdio",
        help="Transport protocol (default: stdio)",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to for HTTP transport (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind to for HTTP transport (default: 8000)",
    )

    args = parser.parse_args()

    if args.transport == "http":
        LOGGER.info("Starting MCP server on http://%s:%d/mcp", args.host, args.port)
        mcp.run(transport="http", host=args.host, port=args.port)
    else:
        LOGGER.info("Starting MCP server with STDIO transport")
        mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
