"""Unit tests for configuration management."""

from pathlib import Path

import pytest
import yaml

from portfolio_registry.utils.config import (
    DEFAULT_SETTINGS,
    Config,
    load_config,
    load_registry_config,
)


class TestConfig:
    """Test cases for Config class."""

    def test_from_file_valid_yaml(self, tmp_path: Path) -> None:
        """Test loading valid YAML configuration file."""
        config_file = tmp_path / "test_config.yaml"
        config_data = {
            "registry": {"deployer": "alice", "fee_bps": 25},
            "logging": {"level": "DEBUG"},
        }
        config_file.write_text(yaml.dump(config_data))

        config = Config.from_file(config_file)
        assert config.get("registry.deployer") == "alice"
        assert config.get("logging.level") == "DEBUG"

    def test_from_file_empty_yaml(self, tmp_path: Path) -> None:
        """Test loading empty YAML file."""
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")

        config = Config.from_file(config_file)
        assert config.to_dict() == {}

    def test_from_file_not_found(self) -> None:
        """Test loading non-existent file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError, match="Configuration file not found"):
            Config.from_file("nonexistent.yaml")

    def test_get_default_value(self) -> None:
        config = Config({"existing": "value"})

        assert config.get("missing.key", "default") == "default"
        assert config.get("existing", "default") == "value"

    def test_get_false_value(self) -> None:
        """Test a stored False is returned rather than the default."""
        config = Config({"portfolio": {"strict_allocation_updates": False}})
        assert config.get("portfolio.strict_allocation_updates", True) is False

    def test_bracket_notation_key_error(self) -> None:
        config = Config({"existing": "value"})

        with pytest.raises(KeyError, match="Configuration key not found"):
            _ = config["missing.key"]

    def test_set_creates_intermediate_dicts(self) -> None:
        config = Config({})
        config.set("database.path", "x.db")
        assert config["database.path"] == "x.db"

    def test_to_dict_is_a_copy(self) -> None:
        config = Config({"key": {"nested": "value"}})

        result = config.to_dict()
        result["key"]["nested"] = "changed"
        assert config.get("key.nested") == "value"

    def test_with_defaults_merges_nested(self) -> None:
        """Test overrides replace single keys without dropping siblings."""
        config = Config.with_defaults({"portfolio": {"rebalance_interval": 10}})

        assert config.get("portfolio.rebalance_interval") == 10
        assert config.get("portfolio.max_user_portfolios") == 20
        assert DEFAULT_SETTINGS["portfolio"]["rebalance_interval"] == 144


class TestLoadConfig:
    """Test cases for the loader helpers."""

    def test_load_config_overlays_file(self, tmp_path: Path) -> None:
        config_file = tmp_path / "custom.yaml"
        config_file.write_text(yaml.dump({"portfolio": {"max_tokens": 5}}))

        config = load_config(config_file)
        assert config.get("portfolio.max_tokens") == 5
        assert config.get("portfolio.min_tokens") == 2

    def test_environment_overrides(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("REGISTRY_DB_PATH", str(tmp_path / "env.db"))
        monkeypatch.setenv("REGISTRY_DEPLOYER", "env-deployer")

        config = load_registry_config(env_file=tmp_path / "missing.env")

        assert config.get("database.path") == str(tmp_path / "env.db")
        assert config.get("registry.deployer") == "env-deployer"

    def test_dotenv_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test values from a .env file are applied."""
        monkeypatch.delenv("REGISTRY_LOG_LEVEL", raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("REGISTRY_LOG_LEVEL=DEBUG\n")

        config = load_registry_config(env_file=env_file)
        assert config.get("logging.level") == "DEBUG"

        monkeypatch.delenv("REGISTRY_LOG_LEVEL", raising=False)


def test_load_default_config() -> None:
    """Integration test: Load the actual default.yaml config."""
    config_path = Path(__file__).parent.parent.parent / "config" / "default.yaml"

    if config_path.exists():
        config = Config.from_file(config_path)
        assert config.get("portfolio.rebalance_interval") == 144
        assert config.get("portfolio.max_user_portfolios") == 20
        assert config.get("logging.level") is not None
