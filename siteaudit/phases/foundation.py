"""Foundation & Privacy: broken links and exposed email addresses."""

from __future__ import annotations

import re
from typing import Iterable, List

from ..html import attribute, element_text, extract_link_references, extract_text
from ..issues import PRIVACY_EMAIL
from .base import PageContext

EMAIL_PATTERN = re.compile(r"[a-z0-9._%+-]+@[a-z0-9.-]+\.[a-z]{2,}", re.IGNORECASE)
OBFUSCATION_MARKERS = ("[at]", "[dot]", " at ", " dot ")
CONTEXT_CHARS = 30


def _surrounding_text(text: str, start: int, end: int, context: int = CONTEXT_CHARS) -> str:
    return text[max(0, start - context) : min(len(text), end + context)]


def is_obfuscated(text: str) -> bool:
    lowered = text.lower()
    return any(marker in lowered for marker in OBFUSCATION_MARKERS)


def find_raw_emails(text: str, allowlist: Iterable[str] = ()) -> List[str]:
    """Email addresses in ``text`` that are neither allow-listed nor obfuscated."""
    allowed = set(allowlist)
    emails: List[str] = []
    for match in EMAIL_PATTERN.finditer(text):
        email = match.group(0)
        if email in allowed:
            continue
        if is_obfuscated(_surrounding_text(text, match.start(), match.end())):
            continue
        emails.append(email)
    return emails


def _mailto_address(href: str) -> str:
    return re.sub(r"^mailto:", "", href, flags=re.IGNORECASE).split("?")[0].strip()


async def check(page: PageContext) -> None:
    if page.links is not None:
        await page.links.check_document(page.site_path, extract_link_references(page.soup))

    allowlist = page.config.email_allowlist
    for email in find_raw_emails(extract_text(page.soup), allowlist):
        page.add_issue(PRIVACY_EMAIL, f"Raw email exposed: {email}")

    for anchor in page.soup.find_all("a", href=True):
        href = attribute(anchor, "href")
        if not href.lower().startswith("mailto:"):
            continue
        email = _mailto_address(href)
        if not email or email in allowlist:
            continue
        # The visible text gives the address away.
        if email in element_text(anchor):
            page.add_issue(PRIVACY_EMAIL, f"Unobfuscated mailto link: {email}")
