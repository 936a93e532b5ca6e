"""Reference classification, site-path resolution and redirect lookup.

Everything here is synchronous and free of I/O: the same reference
always classifies and resolves the same way for a given document.
"""

from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional, Union
from urllib.parse import quote, unquote, urljoin, urlsplit

from .document import ResolvedTarget, TargetKind
from .errors import ConfigError, MalformedReferenceError

LOGGER = logging.getLogger(__name__)

SKIP_PREFIXES = ("mailto:", "tel:", "javascript:")
EXTERNAL_PREFIXES = ("http://", "https://", "//")

# Characters encodeURI leaves untouched, beyond the always-safe set.
_URI_SAFE = "/;,?:@&=+$!*'()#"
_SYNTHETIC_ORIGIN = "https://localhost"
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")

RedirectValue = Union[str, Mapping[str, Any], Any]


def normalize_path(path: str) -> str:
    """Normalize a page path to its site path.

    Query and fragment are stripped, ``/index.html`` collapses to the
    directory, a trailing ``.html`` is removed and a leading ``/`` is
    enforced.
    """
    normalized = str(path).split("?")[0].split("#")[0]
    if normalized.endswith("/index.html"):
        normalized = normalized[: -len("index.html")]
    elif normalized.endswith(".html"):
        normalized = normalized[: -len(".html")]
    if not normalized.startswith("/"):
        normalized = "/" + normalized
    return normalized


def normalize_html_file_path(file_path: Union[str, Path], dist_path: Union[str, Path] = "") -> str:
    """Site path of an HTML file relative to the build output root."""
    if dist_path:
        relative = os.path.relpath(str(file_path), str(dist_path))
    else:
        relative = str(file_path)
    return normalize_path(relative.replace(os.sep, "/"))


def is_homepage(site_path: str) -> bool:
    return site_path in ("", "/", "/index")


def classify_reference(reference: str) -> TargetKind:
    """Decide whether a reference is skipped, site-local or external."""
    if reference is None or not reference.strip():
        return TargetKind.SKIP
    lowered = reference.lower()
    if reference.startswith("#") or lowered.startswith(SKIP_PREFIXES):
        return TargetKind.SKIP
    if lowered.startswith(EXTERNAL_PREFIXES):
        return TargetKind.EXTERNAL
    return TargetKind.SITE_LOCAL


def _check_escapes(value: str) -> None:
    if _BAD_ESCAPE.search(value):
        raise MalformedReferenceError(f"Invalid percent-encoding in {value!r}", value)
    try:
        unquote(value, errors="strict")
    except UnicodeDecodeError as exc:
        raise MalformedReferenceError(
            f"Percent-encoding in {value!r} is not valid UTF-8", value
        ) from exc


def encode_reference(reference: str) -> str:
    """Encode like ``encodeURI`` unless the reference is already encoded."""
    if "%" in reference:
        _check_escapes(reference)
        return reference
    return quote(reference, safe=_URI_SAFE)


def resolve_site_path(reference: str, document_site_path: str) -> str:
    """Resolve a site-local reference against the referring document.

    Raises:
        MalformedReferenceError: If the reference has broken escapes or
            cannot be parsed as a URL.
    """
    encoded = encode_reference(reference)
    try:
        resolved = urljoin(_SYNTHETIC_ORIGIN + document_site_path, encoded)
        return urlsplit(resolved).path or "/"
    except ValueError as exc:
        raise MalformedReferenceError(f"Cannot resolve {reference!r}: {exc}", reference) from exc


def external_fetch_url(reference: str) -> str:
    """Absolute URL used to request an external reference."""
    url = "https:" + reference if reference.startswith("//") else reference
    try:
        parts = urlsplit(url)
    except ValueError as exc:
        raise MalformedReferenceError(f"Invalid URL {reference!r}: {exc}", reference) from exc
    if not parts.netloc:
        raise MalformedReferenceError(f"URL {reference!r} has no host", reference)
    return url


class RedirectTable:
    """Immutable map of source site paths to redirect destinations.

    Destinations may be plain strings or structured redirects carrying a
    ``destination`` field. Only a single hop is resolved.
    """

    def __init__(self, redirects: Optional[Mapping[str, RedirectValue]] = None):
        self._redirects: Mapping[str, RedirectValue] = MappingProxyType(dict(redirects or {}))

    def __len__(self) -> int:
        return len(self._redirects)

    def __contains__(self, path: object) -> bool:
        return path in self._redirects

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "RedirectTable":
        """Load redirects from a JSON object file."""
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigError(
                f"Could not load redirects from {path}: {exc}",
                suggestion="Provide a JSON object mapping source paths to destinations.",
            ) from exc
        if not isinstance(data, dict):
            raise ConfigError(f"Redirects file {path} must contain a JSON object")
        return cls(data)

    def resolve(self, site_path: str) -> str:
        """Return the redirect destination for a path, or the path itself."""
        redirect = self._redirects.get(site_path)
        if not redirect:
            try:
                redirect = self._redirects.get(unquote(site_path, errors="strict"))
            except UnicodeDecodeError:
                redirect = None
        if not redirect:
            return site_path
        destination = _destination_of(redirect)
        if not destination:
            LOGGER.warning("Redirect for %s has no destination; ignoring", site_path)
            return site_path
        return destination


def _destination_of(redirect: RedirectValue) -> Optional[str]:
    if isinstance(redirect, str):
        return redirect
    if isinstance(redirect, Mapping):
        value = redirect.get("destination")
    else:
        value = getattr(redirect, "destination", None)
    return str(value) if value else None


def resolve_reference(
    reference: str,
    document_site_path: str,
    redirects: Optional[RedirectTable] = None,
) -> ResolvedTarget:
    """Classify and resolve one reference found in a document.

    Raises:
        MalformedReferenceError: If the reference cannot be resolved.
    """
    kind = classify_reference(reference)
    if kind is TargetKind.SKIP:
        return ResolvedTarget(reference=reference, kind=kind)

    if kind is TargetKind.EXTERNAL:
        url = external_fetch_url(reference)
        return ResolvedTarget(reference=reference, kind=kind, fetch_key=url, absolute_form=url)

    absolute = resolve_site_path(reference, document_site_path)
    fetch_key = redirects.resolve(absolute) if redirects is not None else absolute
    return ResolvedTarget(
        reference=reference,
        kind=kind,
        fetch_key=fetch_key,
        absolute_form=absolute,
    )
