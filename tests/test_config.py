"""Tests for Config loading and SG_* environment overrides."""

from __future__ import annotations

import json

import session_guard.config as config_mod
from session_guard.config import Config


class TestConfigLoad:
    def test_defaults(self, tmp_path, monkeypatch):
        monkeypatch.setattr(config_mod, "_CONFIG_FILE", tmp_path / "missing.json")
        cfg = Config.load()
        assert cfg.idle_timeout_seconds == 1800.0
        assert cfg.warning_lead_seconds == 60.0
        assert "pointer_move" in cfg.activity_signals

    def test_config_file_overrides(self, tmp_path, monkeypatch):
        f = tmp_path / "config.json"
        f.write_text(json.dumps({"idle_timeout_seconds": 600, "bogus": 1}))
        monkeypatch.setattr(config_mod, "_CONFIG_FILE", f)
        cfg = Config.load()
        assert cfg.idle_timeout_seconds == 600
        assert not hasattr(cfg, "bogus")

    def test_env_overrides_are_coerced(self, tmp_path, monkeypatch):
        monkeypatch.setattr(config_mod, "_CONFIG_FILE", tmp_path / "missing.json")
        monkeypatch.setenv("SG_WARNING_LEAD_SECONDS", "15")
        monkeypatch.setenv("SG_API_PORT", "9000")
        cfg = Config.load()
        assert cfg.warning_lead_seconds == 15.0
        assert cfg.api_port == 9000

    def test_env_list_override(self, tmp_path, monkeypatch):
        monkeypatch.setattr(config_mod, "_CONFIG_FILE", tmp_path / "missing.json")
        monkeypatch.setenv("SG_ACTIVITY_SIGNALS", "click, key_press")
        cfg = Config.load()
        assert cfg.activity_signals == ["click", "key_press"]
