"""
Smoke tests for config / settings loading.
Run: python -m pytest tests/ -v
"""
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import pytest

from groot.config import DEFAULT_BASE_URL, DEFAULT_MODEL, _is_placeholder, get_settings
from groot.errors import ConfigurationError


class TestIsPlaceholder:
    def test_empty_string_is_placeholder(self):
        assert _is_placeholder("")

    def test_angle_bracket_is_placeholder(self):
        assert _is_placeholder("<your-key-here>")

    def test_your_prefix_is_placeholder(self):
        assert _is_placeholder("your-api-key")

    def test_literal_PLACEHOLDER_is_placeholder(self):
        assert _is_placeholder("PLACEHOLDER")

    def test_real_key_not_placeholder(self):
        assert not _is_placeholder("sk-ant-REDACTED")


class TestSettingsLoading:
    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for key in ("ANTHROPIC_API_KEY", "GROOT_MODEL", "GROOT_BASE_URL",
                    "GROOT_BEADS_ENABLED", "GROOT_DEBUG", "GROOT_OUTPUT_DIR"):
            monkeypatch.delenv(key, raising=False)

    def test_defaults(self):
        s = get_settings()
        assert s.model == DEFAULT_MODEL
        assert s.base_url == DEFAULT_BASE_URL
        assert s.beads_enabled
        assert not s.debug_mode
        assert s.output_dir == "./output"

    def test_missing_key_is_not_configured(self):
        s = get_settings()
        assert not s.is_configured
        assert s.validate() == ["ANTHROPIC_API_KEY environment variable is required"]

    def test_require_api_key_raises_configuration_error(self):
        with pytest.raises(ConfigurationError, match="ANTHROPIC_API_KEY"):
            get_settings().require_api_key()

    def test_real_key_is_returned(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-realkey123")
        assert get_settings().require_api_key() == "sk-ant-realkey123"

    def test_beads_disabled_only_by_explicit_false(self, monkeypatch):
        monkeypatch.setenv("GROOT_BEADS_ENABLED", "FALSE")
        assert not get_settings().beads_enabled
        monkeypatch.setenv("GROOT_BEADS_ENABLED", "0")
        assert get_settings().beads_enabled

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("GROOT_MODEL", "claude-haiku")
        monkeypatch.setenv("GROOT_DEBUG", "true")
        monkeypatch.setenv("GROOT_OUTPUT_DIR", "/tmp/scaffolds")
        s = get_settings()
        assert s.model == "claude-haiku"
        assert s.debug_mode
        assert s.output_dir == "/tmp/scaffolds"

    def test_status_summary_keys(self):
        summary = get_settings().status_summary()
        assert set(summary) == {"Model API", "BEADS", "Debug events"}
