"""HTML and config builders shared by the test modules."""

from __future__ import annotations

from siteaudit.config import PHASE_IDS, AuditConfig


def page_html(
    body: str = "",
    *,
    title: str = "Page",
    description: str = "A page",
    head: str = "",
    lang: str = "en",
) -> str:
    """A page that passes the metadata checks unless told otherwise."""
    return (
        f'<!DOCTYPE html><html lang="{lang}"><head>'
        f"<title>{title}</title>"
        f'<meta name="description" content="{description}">'
        '<meta name="viewport" content="width=device-width, initial-scale=1">'
        f"{head}</head><body>{body}</body></html>"
    )


def only_phases(*enabled: str, **options) -> AuditConfig:
    return AuditConfig(phases={phase: phase in enabled for phase in PHASE_IDS}, **options)
