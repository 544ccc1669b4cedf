"""Unit tests for RegistryAPI."""

from pathlib import Path

import pytest

from portfolio_registry.api.registry_api import RegistryAPI
from portfolio_registry.clock import ManualClock, StoredClock
from portfolio_registry.manager import PortfolioManager
from portfolio_registry.storage.database import DatabaseManager
from portfolio_registry.utils.config import Config
from portfolio_registry.utils.exceptions import ConfigurationError


def _config(tmp_path: Path, **portfolio) -> Config:
    return Config.with_defaults(
        {
            "database": {"path": str(tmp_path / "registry.db")},
            "portfolio": portfolio,
        }
    )


class TestRegistryAPIInit:
    """Test cases for RegistryAPI initialization."""

    def test_default_initialization(self) -> None:
        """Test the API wires a manager and admin over the database."""
        api = RegistryAPI(DatabaseManager(":memory:"))

        assert isinstance(api.manager, PortfolioManager)
        assert isinstance(api.clock, StoredClock)
        assert api.admin.get_owner() == "deployer"
        assert api.admin.get_fee_bps() == 50

    def test_from_config(self, tmp_path: Path) -> None:
        api = RegistryAPI.from_config(_config(tmp_path, rebalance_interval=10))

        assert Path(api.db.db_path).exists()
        assert api.manager.rebalance_interval == 10

    def test_state_survives_reopen(self, tmp_path: Path) -> None:
        """Test portfolios, counter and block height persist across instances."""
        config = _config(tmp_path)
        first = RegistryAPI.from_config(config)
        first.clock.advance(12)
        first.manager.create_portfolio("alice", ["A", "B"], [5000, 5000])
        first.close()

        second = RegistryAPI.from_config(config)
        assert second.manager.get_user_portfolios("alice") == [1]
        assert second.clock.now() == 12
        assert second.manager.create_portfolio("alice", ["A", "B"], [5000, 5000]) == 2

    def test_deployer_is_only_seeded_once(self, tmp_path: Path) -> None:
        config = _config(tmp_path)
        api = RegistryAPI.from_config(config)
        api.admin.initialize("deployer", "carol")
        api.close()

        reopened = RegistryAPI.from_config(config)
        assert reopened.admin.get_owner() == "carol"

    def test_missing_deployer(self) -> None:
        config = Config.with_defaults({"registry": {"deployer": ""}})
        with pytest.raises(ConfigurationError, match="deployer"):
            RegistryAPI(DatabaseManager(":memory:"), config=config)

    def test_invalid_fee(self) -> None:
        config = Config.with_defaults({"registry": {"fee_bps": 20000}})
        with pytest.raises(ConfigurationError, match="fee_bps"):
            RegistryAPI(DatabaseManager(":memory:"), config=config)

    def test_invalid_portfolio_limits(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="max_tokens"):
            RegistryAPI.from_config(_config(tmp_path, max_tokens=12))


class TestRegistryAPIViews:
    """Test cases for the reporting helpers."""

    @pytest.fixture
    def clock(self) -> ManualClock:
        return ManualClock(start=1000)

    @pytest.fixture
    def api(self, clock: ManualClock) -> RegistryAPI:
        return RegistryAPI(DatabaseManager(":memory:"), clock=clock)

    def test_describe_portfolio(self, api: RegistryAPI) -> None:
        portfolio_id = api.manager.create_portfolio("alice", ["A", "B"], [6000, 4000])

        result = api.describe_portfolio(portfolio_id)

        assert result["portfolio_id"] == portfolio_id
        assert result["owner"] == "alice"
        assert result["token_count"] == 2
        assert result["needs_rebalance"] is False
        assert result["assets"] == [
            {"slot": 0, "target_percentage": 6000, "current_amount": 0, "token_address": "A"},
            {"slot": 1, "target_percentage": 4000, "current_amount": 0, "token_address": "B"},
        ]

    def test_describe_unknown_portfolio(self, api: RegistryAPI) -> None:
        assert api.describe_portfolio(5) is None

    def test_list_user_portfolios(self, api: RegistryAPI, clock: ManualClock) -> None:
        api.manager.create_portfolio("alice", ["A", "B"], [5000, 5000])
        clock.advance(100)
        api.manager.create_portfolio("alice", ["A", "B", "C"], [5000, 2500, 2500])
        clock.advance(100)

        summary = api.list_user_portfolios("alice")

        assert list(summary.index) == [1, 2]
        assert summary.loc[1, "token_count"] == 2
        assert summary.loc[2, "created_at"] == 1100
        assert bool(summary.loc[1, "needs_rebalance"]) is True
        assert bool(summary.loc[2, "needs_rebalance"]) is False

    def test_list_user_portfolios_empty(self, api: RegistryAPI) -> None:
        summary = api.list_user_portfolios("nobody")
        assert summary.empty
        assert "needs_rebalance" in summary.columns

    def test_registry_info(self, api: RegistryAPI) -> None:
        api.manager.create_portfolio("alice", ["A", "B"], [5000, 5000])

        assert api.registry_info() == {
            "owner": "deployer",
            "fee_bps": 50,
            "portfolio_counter": 1,
            "block_height": 1000,
        }
