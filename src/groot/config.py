"""
config.py — Central settings for GROOT
=======================================
All configuration is loaded from environment variables / .env file.

  ANTHROPIC_API_KEY     required for any command that talks to the model
  GROOT_MODEL           model id (default claude-sonnet-4-20250514)
  GROOT_BASE_URL        OpenAI-compatible endpoint (default: Anthropic's)
  GROOT_BEADS_ENABLED   "false" disables the BEADS issue tracker integration
  GROOT_DEBUG           "true" turns on orchestrator debug events
  GROOT_OUTPUT_DIR      parent directory for `groot seed` scaffolds (default ./output)
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from groot.errors import ConfigurationError

# Load .env into os.environ (no-op if already set, safe to call multiple times)
load_dotenv(override=False)


DEFAULT_MODEL    = "claude-sonnet-4-20250514"
DEFAULT_BASE_URL = "https://api.anthropic.com/v1/"


# ─── Helpers ────────────────────────────────────────────────────────────────

def _is_placeholder(value: str) -> bool:
    """Return True if the value looks like an unfilled template placeholder."""
    return not value or "<" in value or value.startswith("your-") or value == "PLACEHOLDER"


# ─── Master settings object ──────────────────────────────────────────────────

@dataclass(frozen=True)
class Settings:
    anthropic_api_key: str
    model:             str
    base_url:          str
    beads_enabled:     bool
    debug_mode:        bool
    output_dir:        str

    @property
    def is_configured(self) -> bool:
        """True when the API key is a real (non-placeholder) value."""
        return not _is_placeholder(self.anthropic_api_key)

    def validate(self) -> list[str]:
        """Return a list of human-readable configuration problems (empty if valid)."""
        errors: list[str] = []
        if not self.is_configured:
            errors.append("ANTHROPIC_API_KEY environment variable is required")
        if not self.model:
            errors.append("GROOT_MODEL must not be empty")
        return errors

    def require_api_key(self) -> str:
        """Return the API key or raise ConfigurationError listing every problem."""
        errors = self.validate()
        if errors:
            raise ConfigurationError("; ".join(errors))
        return self.anthropic_api_key

    def status_summary(self) -> dict[str, str]:
        def badge(ok: bool) -> str:
            return "🟢 Ready" if ok else "⚪ Not configured"

        return {
            "Model API":    badge(self.is_configured),
            "BEADS":        "🟢 Enabled" if self.beads_enabled else "⚪ Disabled",
            "Debug events": "🟢 On" if self.debug_mode else "⚪ Off",
        }


def get_settings() -> Settings:
    """Load all configuration from environment variables."""
    _str  = lambda k, d="": os.getenv(k, d).strip()
    _bool = lambda k, d=False: os.getenv(k, str(d)).lower() in ("1", "true", "yes")

    return Settings(
        anthropic_api_key = _str("ANTHROPIC_API_KEY"),
        model             = _str("GROOT_MODEL", DEFAULT_MODEL) or DEFAULT_MODEL,
        base_url          = _str("GROOT_BASE_URL", DEFAULT_BASE_URL) or DEFAULT_BASE_URL,
        # BEADS is opt-out: anything but an explicit "false" keeps it on
        beads_enabled     = os.getenv("GROOT_BEADS_ENABLED", "true").strip().lower() != "false",
        debug_mode        = _bool("GROOT_DEBUG", False),
        output_dir        = _str("GROOT_OUTPUT_DIR", "./output"),
    )
