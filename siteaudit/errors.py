"""Exception types raised by the site auditor."""

from __future__ import annotations

from typing import Optional


class AuditError(Exception):
    """Base error for audit failures.

    ``fatal`` marks precondition failures that abort the whole scan;
    everything else is logged and the scan continues.
    """

    category = "General"

    def __init__(
        self,
        message: str,
        *,
        suggestion: Optional[str] = None,
        fatal: bool = False,
    ):
        self.suggestion = suggestion
        self.fatal = fatal
        super().__init__(message)

    def format(self) -> str:
        """Render the error for console output."""
        text = f"Site audit {self.category} error: {self}"
        if self.suggestion:
            text += f"\n\nSuggestion: {self.suggestion}"
        return text


class ConfigError(AuditError):
    """Raised for invalid configuration values."""

    category = "Configuration"


class FilesystemError(AuditError):
    """Raised when the build output or report location is unusable."""

    category = "Filesystem"


class ParsingError(AuditError):
    """Raised when a document cannot be read or parsed."""

    category = "Parsing"


class NetworkError(AuditError):
    """Raised for network failures outside of per-link checks."""

    category = "Network"


class MalformedReferenceError(AuditError):
    """Raised when a link reference cannot be resolved to a path or URL."""

    category = "Reference"

    def __init__(self, message: str, reference: str = ""):
        self.reference = reference
        super().__init__(message)
