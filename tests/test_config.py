"""
Smoke tests for config / settings loading.
Run: python -m pytest tests/ -v
"""
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import pytest

from portfolio_tracker.config import get_settings, _is_placeholder


class TestIsPlaceholder:
    def test_empty_string_is_placeholder(self):
        assert _is_placeholder("")

    def test_angle_bracket_is_placeholder(self):
        assert _is_placeholder("<paste-your-web-app-url>")

    def test_your_prefix_is_placeholder(self):
        assert _is_placeholder("your-endpoint")

    def test_literal_PLACEHOLDER_is_placeholder(self):
        assert _is_placeholder("PLACEHOLDER")

    def test_real_value_not_placeholder(self):
        assert not _is_placeholder("https://script.google.com/macros/s/abc/exec")


class TestSettingsLoading:
    def test_get_settings_returns_object(self):
        s = get_settings()
        assert s is not None
        assert hasattr(s, "store")
        assert hasattr(s, "cache")

    def test_table_transport_uses_base_url(self, monkeypatch):
        monkeypatch.setenv("STORE_TRANSPORT", "table")
        monkeypatch.setenv("STORE_BASE_URL", "http://store.test")
        s = get_settings()
        assert s.store.endpoint == "http://store.test/"
        assert s.store.is_configured

    def test_rpc_without_url_is_not_configured(self, monkeypatch):
        monkeypatch.setenv("STORE_TRANSPORT", "rpc")
        monkeypatch.delenv("STORE_RPC_URL", raising=False)
        s = get_settings()
        assert s.store.transport == "rpc"
        assert not s.store.is_configured

    def test_unknown_transport_rejected(self, monkeypatch):
        monkeypatch.setenv("STORE_TRANSPORT", "carrier-pigeon")
        with pytest.raises(ValueError):
            get_settings()

    def test_numeric_and_bool_parsing(self, monkeypatch):
        monkeypatch.setenv("STORE_TIMEOUT_S", "2.5")
        monkeypatch.setenv("STORE_READ_RETRIES", "0")
        monkeypatch.setenv("IMAGE_HOSTING", "yes")
        s = get_settings()
        assert s.store.timeout_s == pytest.approx(2.5)
        assert s.store.read_retries == 0
        assert s.store.image_hosting

    def test_image_hosting_defaults_false(self, monkeypatch):
        monkeypatch.delenv("IMAGE_HOSTING", raising=False)
        assert not get_settings().store.image_hosting

    def test_status_summary_keys(self):
        summary = get_settings().status_summary()
        assert any("Remote store" in k for k in summary)
        assert "Local cache" in summary
