"""Audit configuration, presets and environment overrides."""

from __future__ import annotations

import copy
import logging
import os
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Mapping, Optional

from .errors import ConfigError

LOGGER = logging.getLogger(__name__)

PHASE_IDS: List[str] = [
    "foundation",
    "metadata",
    "accessibility",
    "performance",
    "crawlability",
    "ai_detection",
]

REPORT_FORMATS = ("markdown", "json", "csv")

ENV_PREFIX = "SITEAUDIT_"


def _all_phases() -> Dict[str, bool]:
    return {phase_id: True for phase_id in PHASE_IDS}


@dataclass
class AuditConfig:
    """Options controlling one audit run."""

    report_file_path: str = "site-report.log"
    report_format: Optional[str] = None
    check_external_links: bool = False
    verbose: bool = False
    email_allowlist: List[str] = field(default_factory=list)
    check_canonical: bool = True
    phases: Dict[str, bool] = field(default_factory=_all_phases)
    ignore_empty_alt: bool = False
    check_resource_sizes: bool = False
    # Thresholds in KB.
    image_size_threshold: float = 200
    inline_script_threshold: float = 2
    inline_style_threshold: float = 1
    min_internal_links: int = 3
    max_internal_links: int = 100
    ai_detection_threshold: float = 60
    ai_detection_exclude_paths: List[str] = field(default_factory=list)
    max_concurrent_checks: int = 50
    request_timeout: float = 10.0
    max_retries: int = 3
    retry_backoff: float = 0.5

    def phase_enabled(self, phase_id: str) -> bool:
        return bool(self.phases.get(phase_id, False))

    def enabled_phases(self) -> List[str]:
        return [phase_id for phase_id in PHASE_IDS if self.phase_enabled(phase_id)]

    def validate(self) -> "AuditConfig":
        """Check value ranges; raises ConfigError on the first problem."""
        if self.report_format and self.report_format.lower() not in REPORT_FORMATS:
            raise ConfigError(
                f"Invalid report format: '{self.report_format}'",
                suggestion="Valid formats are 'markdown', 'json', or 'csv'. "
                "Omit the format to detect it from the file extension.",
            )
        unknown = sorted(set(self.phases) - set(PHASE_IDS))
        if unknown:
            raise ConfigError(
                f"Unknown phase(s): {', '.join(unknown)}",
                suggestion=f"Known phases are: {', '.join(PHASE_IDS)}",
            )
        if self.max_concurrent_checks < 1:
            raise ConfigError("max_concurrent_checks must be at least 1")
        if self.request_timeout <= 0:
            raise ConfigError("request_timeout must be positive")
        if self.max_retries < 0:
            raise ConfigError("max_retries cannot be negative")
        if self.retry_backoff < 0:
            raise ConfigError("retry_backoff cannot be negative")
        if self.min_internal_links < 0 or self.max_internal_links < self.min_internal_links:
            raise ConfigError(
                "Internal link bounds are inconsistent "
                f"(min={self.min_internal_links}, max={self.max_internal_links})"
            )
        if not 0 <= self.ai_detection_threshold <= 100:
            raise ConfigError("ai_detection_threshold must be between 0 and 100")
        for name in ("image_size_threshold", "inline_script_threshold", "inline_style_threshold"):
            if getattr(self, name) < 0:
                raise ConfigError(f"{name} cannot be negative")
        return self

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "AuditConfig":
        """Build a config from a plain mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration option(s): {', '.join(unknown)}")
        data = copy.deepcopy(dict(values))
        if "phases" in data:
            data["phases"] = {**_all_phases(), **dict(data["phases"])}
        return cls(**data)

    @classmethod
    def from_preset(cls, name: str, **overrides: Any) -> "AuditConfig":
        base = get_preset(name)
        if overrides:
            base = extend_preset(base, overrides)
        return cls.from_mapping(base)

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        *,
        preset: Optional[str] = None,
    ) -> "AuditConfig":
        """Config from ``SITEAUDIT_*`` variables, read at call time.

        ``preset`` (or else ``SITEAUDIT_PRESET``) selects the starting
        preset; the remaining variables override individual fields.
        """
        env = os.environ if environ is None else environ
        preset = preset or env.get(f"{ENV_PREFIX}PRESET")
        config = cls.from_preset(preset) if preset else cls()
        apply_overrides(config, overrides_from_env(env))
        return config


@dataclass
class ConfigOverrides:
    """Optional per-run overrides layered on top of an AuditConfig."""

    report_file_path: Optional[str] = None
    report_format: Optional[str] = None
    check_external_links: Optional[bool] = None
    verbose: Optional[bool] = None
    email_allowlist: List[str] = field(default_factory=list)
    disabled_phases: List[str] = field(default_factory=list)
    max_concurrent_checks: Optional[int] = None
    request_timeout: Optional[float] = None
    max_retries: Optional[int] = None
    ai_detection_threshold: Optional[float] = None


def apply_overrides(config: AuditConfig, overrides: ConfigOverrides) -> None:
    """Apply optional overrides to an AuditConfig in place."""
    if overrides.report_file_path:
        config.report_file_path = overrides.report_file_path
    if overrides.report_format:
        config.report_format = overrides.report_format
    if overrides.check_external_links is not None:
        config.check_external_links = overrides.check_external_links
    if overrides.verbose is not None:
        config.verbose = overrides.verbose
    if overrides.email_allowlist:
        config.email_allowlist = list(config.email_allowlist) + [
            email for email in overrides.email_allowlist if email not in config.email_allowlist
        ]
    for phase_id in overrides.disabled_phases:
        if phase_id not in PHASE_IDS:
            raise ConfigError(
                f"Unknown phase: '{phase_id}'",
                suggestion=f"Known phases are: {', '.join(PHASE_IDS)}",
            )
        config.phases[phase_id] = False
    if overrides.max_concurrent_checks is not None:
        config.max_concurrent_checks = overrides.max_concurrent_checks
    if overrides.request_timeout is not None:
        config.request_timeout = overrides.request_timeout
    if overrides.max_retries is not None:
        config.max_retries = overrides.max_retries
    if overrides.ai_detection_threshold is not None:
        config.ai_detection_threshold = overrides.ai_detection_threshold


def _env_bool(value: Optional[str]) -> Optional[bool]:
    if value is None or not value.strip():
        return None
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ConfigError(f"Expected a boolean value, got '{value}'")


def _env_number(name: str, value: Optional[str], kind: type) -> Any:
    if value is None or not value.strip():
        return None
    try:
        return kind(value)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got '{value}'") from exc


def _env_list(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def overrides_from_env(environ: Mapping[str, str]) -> ConfigOverrides:
    def get(key: str) -> Optional[str]:
        return environ.get(ENV_PREFIX + key)

    return ConfigOverrides(
        report_file_path=get("REPORT_PATH") or None,
        report_format=get("REPORT_FORMAT") or None,
        check_external_links=_env_bool(get("CHECK_EXTERNAL")),
        verbose=_env_bool(get("VERBOSE")),
        email_allowlist=_env_list(get("EMAIL_ALLOWLIST")),
        disabled_phases=_env_list(get("DISABLED_PHASES")),
        max_concurrent_checks=_env_number("SITEAUDIT_MAX_CONCURRENCY", get("MAX_CONCURRENCY"), int),
        request_timeout=_env_number("SITEAUDIT_TIMEOUT", get("TIMEOUT"), float),
        max_retries=_env_number("SITEAUDIT_MAX_RETRIES", get("MAX_RETRIES"), int),
        ai_detection_threshold=_env_number(
            "SITEAUDIT_AI_THRESHOLD", get("AI_THRESHOLD"), float
        ),
    )


# ---------------------------------------------------------------------------
# Presets
# ---------------------------------------------------------------------------


def _phases(*enabled: str) -> Dict[str, bool]:
    return {phase_id: phase_id in enabled for phase_id in PHASE_IDS}


PRESETS: Dict[str, Dict[str, Any]] = {
    # Broken links, metadata and AI content only.
    "minimal": {
        "report_file_path": "site-report.log",
        "check_external_links": False,
        "phases": _phases("foundation", "metadata", "ai_detection"),
        "ai_detection_threshold": 75,
    },
    "standard": {
        "report_file_path": "site-report.log",
        "check_external_links": False,
        "phases": _phases("foundation", "metadata", "accessibility", "performance", "crawlability"),
        "ignore_empty_alt": True,
        "check_resource_sizes": True,
        "image_size_threshold": 200,
        "min_internal_links": 3,
        "max_internal_links": 100,
    },
    "comprehensive": {
        "report_file_path": "site-report.log",
        "check_external_links": True,
        "phases": _phases(*PHASE_IDS),
        "ignore_empty_alt": False,
        "check_resource_sizes": True,
        "image_size_threshold": 150,
        "inline_script_threshold": 1,
        "inline_style_threshold": 0.5,
        "min_internal_links": 2,
        "max_internal_links": 75,
        "ai_detection_threshold": 65,
    },
    "performance": {
        "report_file_path": "site-report-performance.log",
        "check_external_links": False,
        "phases": _phases("performance"),
        "check_resource_sizes": True,
        "image_size_threshold": 100,
        "inline_script_threshold": 0.5,
        "inline_style_threshold": 0.2,
    },
    "accessibility": {
        "report_file_path": "site-report-a11y.log",
        "check_external_links": False,
        "phases": _phases("accessibility"),
        "ignore_empty_alt": False,
    },
    "ai_detection": {
        "report_file_path": "site-report-ai.log",
        "check_external_links": False,
        "phases": _phases("ai_detection"),
        "ai_detection_threshold": 60,
        "ai_detection_exclude_paths": [],
    },
}


def get_preset(name: str) -> Dict[str, Any]:
    """Return a copy of a named preset."""
    key = (name or "").strip().lower().replace("-", "_")
    if key not in PRESETS:
        raise ConfigError(
            f"Unknown preset: '{name}'",
            suggestion=f"Available presets: {', '.join(PRESETS)}",
        )
    return copy.deepcopy(PRESETS[key])


def extend_preset(base: Mapping[str, Any], custom: Mapping[str, Any]) -> Dict[str, Any]:
    """Combine a preset with custom options; phase maps are merged."""
    merged = copy.deepcopy(dict(base))
    extra = copy.deepcopy(dict(custom))
    if "phases" in merged and "phases" in extra:
        extra["phases"] = {**merged["phases"], **extra["phases"]}
    merged.update(extra)
    return merged
