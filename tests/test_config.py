"""Tests for siteaudit.config module."""

from __future__ import annotations

import pytest

from siteaudit.config import (
    PHASE_IDS,
    PRESETS,
    AuditConfig,
    ConfigOverrides,
    apply_overrides,
    extend_preset,
    get_preset,
    overrides_from_env,
)
from siteaudit.errors import ConfigError


class TestAuditConfig:
    def test_defaults(self):
        config = AuditConfig()
        assert config.report_file_path == "site-report.log"
        assert config.check_external_links is False
        assert config.max_concurrent_checks == 50
        assert config.max_retries == 3
        assert config.enabled_phases() == PHASE_IDS

    def test_phase_enabled_unknown(self):
        assert not AuditConfig().phase_enabled("nope")

    def test_validate_returns_self(self):
        config = AuditConfig()
        assert config.validate() is config

    @pytest.mark.parametrize(
        "options",
        [
            {"report_format": "xml"},
            {"phases": {"foundation": True, "extra": True}},
            {"max_concurrent_checks": 0},
            {"request_timeout": 0},
            {"max_retries": -1},
            {"min_internal_links": 10, "max_internal_links": 5},
            {"ai_detection_threshold": 101},
            {"image_size_threshold": -1},
        ],
    )
    def test_validate_rejects(self, options):
        with pytest.raises(ConfigError):
            AuditConfig(**options).validate()

    def test_format_error_has_suggestion(self):
        with pytest.raises(ConfigError) as excinfo:
            AuditConfig(report_format="xml").validate()
        assert "markdown" in excinfo.value.suggestion

    def test_from_mapping_merges_phases(self):
        config = AuditConfig.from_mapping({"phases": {"ai_detection": False}})
        assert config.enabled_phases() == PHASE_IDS[:-1]

    def test_from_mapping_rejects_unknown_keys(self):
        with pytest.raises(ConfigError):
            AuditConfig.from_mapping({"colour": "blue"})


class TestPresets:
    def test_all_presets_are_valid(self):
        for name in PRESETS:
            AuditConfig.from_preset(name).validate()

    def test_minimal(self):
        config = AuditConfig.from_preset("minimal")
        assert config.enabled_phases() == ["foundation", "metadata", "ai_detection"]
        assert config.ai_detection_threshold == 75

    def test_dash_names(self):
        assert get_preset("ai-detection") == get_preset("ai_detection")

    def test_unknown(self):
        with pytest.raises(ConfigError) as excinfo:
            get_preset("turbo")
        assert "standard" in excinfo.value.suggestion

    def test_get_preset_returns_copy(self):
        get_preset("standard")["phases"]["foundation"] = False
        assert PRESETS["standard"]["phases"]["foundation"] is True

    def test_extend_preset_merges_phases(self):
        merged = extend_preset(get_preset("standard"), {"phases": {"ai_detection": True}})
        assert merged["phases"]["ai_detection"] is True
        assert merged["phases"]["metadata"] is True

    def test_from_preset_overrides(self):
        config = AuditConfig.from_preset("standard", check_external_links=True)
        assert config.check_external_links is True
        assert config.ignore_empty_alt is True


class TestOverrides:
    def test_apply(self):
        config = AuditConfig(email_allowlist=["a@b.co"])
        apply_overrides(
            config,
            ConfigOverrides(
                check_external_links=True,
                email_allowlist=["a@b.co", "c@d.co"],
                disabled_phases=["ai_detection"],
                max_concurrent_checks=5,
            ),
        )
        assert config.check_external_links is True
        assert config.email_allowlist == ["a@b.co", "c@d.co"]
        assert not config.phase_enabled("ai_detection")
        assert config.max_concurrent_checks == 5

    def test_none_leaves_values(self):
        config = AuditConfig(check_external_links=True)
        apply_overrides(config, ConfigOverrides())
        assert config.check_external_links is True

    def test_unknown_disabled_phase(self):
        with pytest.raises(ConfigError):
            apply_overrides(AuditConfig(), ConfigOverrides(disabled_phases=["nope"]))


class TestEnvironment:
    def test_overrides_from_env(self):
        overrides = overrides_from_env(
            {
                "SITEAUDIT_CHECK_EXTERNAL": "yes",
                "SITEAUDIT_DISABLED_PHASES": "ai_detection, performance",
                "SITEAUDIT_MAX_CONCURRENCY": "8",
                "SITEAUDIT_TIMEOUT": "2.5",
                "SITEAUDIT_EMAIL_ALLOWLIST": "a@b.co,,c@d.co",
            }
        )
        assert overrides.check_external_links is True
        assert overrides.disabled_phases == ["ai_detection", "performance"]
        assert overrides.max_concurrent_checks == 8
        assert overrides.request_timeout == 2.5
        assert overrides.email_allowlist == ["a@b.co", "c@d.co"]

    def test_bad_boolean(self):
        with pytest.raises(ConfigError):
            overrides_from_env({"SITEAUDIT_VERBOSE": "maybe"})

    def test_bad_number(self):
        with pytest.raises(ConfigError) as excinfo:
            overrides_from_env({"SITEAUDIT_MAX_RETRIES": "many"})
        assert "SITEAUDIT_MAX_RETRIES" in str(excinfo.value)

    def test_from_env_preset(self):
        config = AuditConfig.from_env({"SITEAUDIT_PRESET": "performance", "SITEAUDIT_TIMEOUT": "3"})
        assert config.enabled_phases() == ["performance"]
        assert config.request_timeout == 3.0

    def test_explicit_preset_wins(self):
        config = AuditConfig.from_env({"SITEAUDIT_PRESET": "performance"}, preset="accessibility")
        assert config.enabled_phases() == ["accessibility"]

    def test_from_env_reads_os_environ(self, monkeypatch):
        monkeypatch.setenv("SITEAUDIT_REPORT_PATH", "out/report.json")
        assert AuditConfig.from_env().report_file_path == "out/report.json"
