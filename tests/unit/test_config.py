"""Tests for configuration loading, overrides and persistence."""

import json
from pathlib import Path

import pytest

from meishi_exchange.config import ConfigManager, MeishiConfig

pytestmark = pytest.mark.unit


@pytest.fixture
def manager(tmp_path, monkeypatch):
    """A config manager reading from an empty temporary data directory."""
    monkeypatch.setenv("MEISHI_DATA_DIR", str(tmp_path))
    for name in ("MEISHI_BASE_URL", "MEISHI_ENCRYPTION_KEY", "MEISHI_DEBUG", "MEISHI_LOG_DIR"):
        monkeypatch.delenv(name, raising=False)
    return ConfigManager()


class TestLoading:
    def test_defaults_without_file(self, manager, tmp_path):
        config = manager.load_config()

        assert manager.config_file == tmp_path / "config.json"
        assert config.app.data_dir == str(tmp_path)
        assert config.links.base_url == "https://airmeishi.app"
        assert config.links.app_clip_url == "https://airmeishi.app/clip"
        assert config.links.scheme == "airmeishi"
        assert config.links.default_expiration_hours == 24
        assert config.app.sort_empty_search is False

    def test_file_values_are_used(self, manager, tmp_path):
        (tmp_path / "config.json").write_text(
            json.dumps({"server": {"port": 9100}, "links": {"default_expiration_hours": 6}})
        )

        config = manager.load_config()

        assert config.server.port == 9100
        assert config.links.default_expiration_hours == 6
        assert config.server.host == "127.0.0.1"

    def test_invalid_file_falls_back_to_defaults(self, manager, tmp_path):
        (tmp_path / "config.json").write_text("{not json")

        assert manager.load_config().server.port == 8000

    def test_unknown_keys_fall_back_to_defaults(self, manager, tmp_path):
        (tmp_path / "config.json").write_text(json.dumps({"server": {"colour": "red"}}))

        assert manager.load_config().server.port == 8000


class TestEnvironment:
    def test_overrides(self, manager, monkeypatch):
        monkeypatch.setenv("MEISHI_BASE_URL", "https://cards.example.org/")
        monkeypatch.setenv("MEISHI_DATABASE_URL", "sqlite:///other.db")
        monkeypatch.setenv("MEISHI_SORT_EMPTY_SEARCH", "true")
        monkeypatch.setenv("MEISHI_DEBUG", "1")

        config = manager.load_config()

        assert config.links.base_url == "https://cards.example.org"
        assert config.storage.url == "sqlite:///other.db"
        assert config.app.sort_empty_search is True
        assert config.server.debug is True
        assert config.app.log_level == "DEBUG"

    def test_environment_wins_over_file(self, manager, tmp_path, monkeypatch):
        (tmp_path / "config.json").write_text(json.dumps({"app": {"log_to_file": True}}))
        monkeypatch.setenv("MEISHI_LOG_TO_FILE", "off")

        assert manager.load_config().app.log_to_file is False


class TestSaving:
    def test_update_config_persists(self, manager, tmp_path):
        manager.load_config()

        assert manager.update_config({"server.port": 9001, "links": {"scheme": "meishi"}})

        saved = json.loads((tmp_path / "config.json").read_text())
        assert saved["server"]["port"] == 9001
        assert saved["links"]["scheme"] == "meishi"
        assert ConfigManager().load_config().server.port == 9001

    def test_update_with_unknown_key_fails(self, manager):
        assert manager.update_config({"server.colour": "red"}) is False

    def test_dict_round_trip(self, manager):
        config = manager.load_config()
        assert MeishiConfig.from_dict(config.to_dict()) == config


class TestValidation:
    def test_default_config_is_valid(self, manager):
        assert manager.validate_config() == []

    def test_reports_problems(self, manager):
        config = manager.load_config()
        config.links.base_url = "ftp://airmeishi.app"
        config.links.default_expiration_hours = -1

        issues = manager.validate_config()

        assert len(issues) == 2
        assert any("Base URL" in issue for issue in issues)


class TestPaths:
    def test_relative_paths_use_data_dir(self, manager, tmp_path):
        config = manager.load_config()

        assert config.resolve_path("meishi.key") == tmp_path / "meishi.key"
        assert config.resolve_path("/etc/meishi.key") == Path("/etc/meishi.key")

    def test_without_data_dir(self):
        config = MeishiConfig.from_dict({})
        assert config.resolve_path("logs") == Path("logs")
