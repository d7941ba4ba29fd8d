"""Tests for factoid store configuration."""

import json
from pathlib import Path

import pytest

from factoids.config import (
    DEFAULT_MAX_ALIAS_DEPTH,
    FactoidsConfig,
    config_from_env,
    load_config,
    save_config,
)


class TestFactoidsConfig:
    """Tests for FactoidsConfig dataclass."""

    def test_default_values(self) -> None:
        config = FactoidsConfig()

        assert config.max_alias_depth == DEFAULT_MAX_ALIAS_DEPTH
        assert config.max_message_length is None
        assert config.safe_replace is False
        assert config.admin_check_timeout is None
        assert config.database is None
        assert config.audit_log_dir is None

    @pytest.mark.parametrize("depth", [0, -1, 2.5, True, "3"])
    def test_invalid_alias_depth(self, depth) -> None:
        with pytest.raises(ValueError, match="max_alias_depth"):
            FactoidsConfig(max_alias_depth=depth)

    @pytest.mark.parametrize("length", [0, -10, 1.5])
    def test_invalid_message_length(self, length) -> None:
        with pytest.raises(ValueError, match="max_message_length"):
            FactoidsConfig(max_message_length=length)

    def test_invalid_timeout(self) -> None:
        with pytest.raises(ValueError, match="admin_check_timeout"):
            FactoidsConfig(admin_check_timeout=0)

    def test_message_too_long(self) -> None:
        config = FactoidsConfig(max_message_length=5)
        assert config.message_too_long("123456")
        assert not config.message_too_long("12345")

    def test_unbounded_message_length(self) -> None:
        assert not FactoidsConfig().message_too_long("x" * 100_000)


class TestLoadConfig:
    """Tests for loading config from JSON."""

    def test_loads_from_file(self, tmp_path: Path) -> None:
        path = tmp_path / "config.json"
        path.write_text(json.dumps({
            "factoids": {
                "max_alias_depth": 5,
                "max_message_length": 400,
                "safe_replace": True,
                "admin_check_timeout": 2.5,
                "database": "factoids.db",
                "audit_log_dir": "logs",
            }
        }))

        config = load_config(path)

        assert config.max_alias_depth == 5
        assert config.max_message_length == 400
        assert config.safe_replace is True
        assert config.admin_check_timeout == 2.5
        assert config.database == "factoids.db"
        assert config.audit_log_dir == "logs"

    def test_returns_defaults_when_file_missing(self, tmp_path: Path) -> None:
        assert load_config(tmp_path / "missing.json") == FactoidsConfig()

    def test_returns_defaults_on_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "config.json"
        path.write_text("{not json")
        assert load_config(path) == FactoidsConfig()

    def test_wrong_types_fall_back(self, tmp_path: Path) -> None:
        path = tmp_path / "config.json"
        path.write_text(json.dumps({
            "factoids": {
                "max_alias_depth": 0,
                "max_message_length": "long",
                "safe_replace": "yes",
                "admin_check_timeout": -1,
            }
        }))

        config = load_config(path)

        assert config.max_alias_depth == DEFAULT_MAX_ALIAS_DEPTH
        assert config.max_message_length is None
        assert config.safe_replace is False
        assert config.admin_check_timeout is None


class TestSaveConfig:
    def test_roundtrip(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "config.json"
        original = FactoidsConfig(
            max_alias_depth=4,
            max_message_length=200,
            safe_replace=True,
            database="db.sqlite",
        )

        save_config(original, path)

        assert load_config(path) == original

    def test_defaults_write_empty_object(self, tmp_path: Path) -> None:
        path = tmp_path / "config.json"
        save_config(FactoidsConfig(), path)
        assert json.loads(path.read_text()) == {}


class TestConfigFromEnv:
    def test_reads_environment(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("FACTOIDS_MAX_ALIAS_DEPTH", "7")
        monkeypatch.setenv("FACTOIDS_MAX_MESSAGE_LENGTH", "300")
        monkeypatch.setenv("FACTOIDS_SAFE_REPLACE", "true")
        monkeypatch.setenv("FACTOIDS_ADMIN_CHECK_TIMEOUT", "1.5")
        monkeypatch.setenv("FACTOIDS_DATABASE", str(tmp_path / "f.db"))

        config = config_from_env()

        assert config.max_alias_depth == 7
        assert config.max_message_length == 300
        assert config.safe_replace is True
        assert config.admin_check_timeout == 1.5
        assert config.database == str(tmp_path / "f.db")

    def test_reads_dotenv_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        # setenv first so the values loaded from .env are undone afterwards
        for name in ("FACTOIDS_MAX_ALIAS_DEPTH", "FACTOIDS_SAFE_REPLACE"):
            monkeypatch.setenv(name, "")
            monkeypatch.delenv(name)
        (tmp_path / ".env").write_text("FACTOIDS_MAX_ALIAS_DEPTH=9\nFACTOIDS_SAFE_REPLACE=1\n")
        monkeypatch.chdir(tmp_path)

        config = config_from_env()

        assert config.max_alias_depth == 9
        assert config.safe_replace is True
