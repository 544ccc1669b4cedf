"""User-friendly Registry API.

This module wires configuration, storage, the logical clock, the portfolio
manager and the registry admin into a single object, and exposes
dictionary views of portfolios for reporting.
"""

import threading
from dataclasses import asdict
from typing import Any, Dict, List, Optional

import pandas as pd

from portfolio_registry.admin import RegistryAdmin
from portfolio_registry.clock import LogicalClock, StoredClock
from portfolio_registry.manager import PortfolioManager
from portfolio_registry.storage.database import DatabaseManager
from portfolio_registry.storage.stores import (
    AssetStore,
    PortfolioStore,
    RegistrySettings,
    UserIndex,
)
from portfolio_registry.utils.config import Config, load_registry_config
from portfolio_registry.utils.exceptions import ConfigurationError
from portfolio_registry.utils.logging import get_logger

logger = get_logger(__name__)


class RegistryAPI:
    """High-level API for the portfolio registry.

    Example:
        >>> from portfolio_registry.api import RegistryAPI
        >>> from portfolio_registry.utils.config import Config
        >>>
        >>> api = RegistryAPI.from_config(
        ...     Config.with_defaults({"database": {"path": ":memory:"}})
        ... )
        >>> pid = api.manager.create_portfolio("alice", ["T-A", "T-B"], [6000, 4000])
        >>> api.describe_portfolio(pid)["token_count"]
        2
    """

    def __init__(
        self,
        db: DatabaseManager,
        config: Optional[Config] = None,
        clock: Optional[LogicalClock] = None,
    ):
        """Initialize RegistryAPI.

        Args:
            db: Database holding the registry tables
            config: Registry configuration (defaults to built-in settings)
            clock: Logical clock (defaults to the block height stored in db)
        """
        self.config = config or Config.with_defaults()
        self.db = db

        deployer = self.config.get("registry.deployer")
        fee_bps = self.config.get("registry.fee_bps", 0)
        if not deployer:
            raise ConfigurationError("registry.deployer must be set")
        if not isinstance(fee_bps, int) or not 0 <= fee_bps <= 10000:
            raise ConfigurationError(f"registry.fee_bps must be in [0, 10000], got {fee_bps}")

        self.settings = RegistrySettings(db)
        self.settings.initialize_defaults(deployer=str(deployer), fee_bps=fee_bps)

        self.clock = clock or StoredClock(db, self.settings)

        portfolio_config = self.config.get("portfolio", {})
        lock = threading.RLock()
        self.manager = PortfolioManager(
            db=db,
            portfolios=PortfolioStore(db),
            assets=AssetStore(db),
            user_index=UserIndex(
                db, capacity=portfolio_config.get("max_user_portfolios", 20)
            ),
            settings=self.settings,
            clock=self.clock,
            config=portfolio_config,
            lock=lock,
        )
        self.admin = RegistryAdmin(db, self.settings, lock=lock)

        logger.debug("RegistryAPI initialized with database %s", db.db_path)

    @classmethod
    def from_config(
        cls,
        config: Optional[Config] = None,
        clock: Optional[LogicalClock] = None,
    ) -> "RegistryAPI":
        """Open the database named by ``database.path`` and build the API.

        Args:
            config: Registry configuration. If None, loads it with
                :func:`load_registry_config`.
            clock: Optional logical clock override
        """
        config = config or load_registry_config()
        db_path = config.get("database.path")
        if not db_path:
            raise ConfigurationError("database.path must be set")
        return cls(DatabaseManager(str(db_path)), config=config, clock=clock)

    def describe_portfolio(self, portfolio_id: int) -> Optional[Dict[str, Any]]:
        """Return the header, slots and staleness of a portfolio as a dict.

        Returns:
            Dictionary with the header fields plus ``assets`` (list of slot
            dicts) and ``needs_rebalance``, or None if the portfolio is unknown
        """
        portfolio = self.manager.get_portfolio(portfolio_id)
        if portfolio is None:
            return None

        status = self.manager.calculate_rebalance_amounts(portfolio_id)
        result = asdict(portfolio)
        result["assets"] = [
            {"slot": slot, **asdict(asset)}
            for slot, asset in enumerate(self.manager.get_portfolio_assets(portfolio_id))
        ]
        result["needs_rebalance"] = status.needs_rebalance
        return result

    def list_user_portfolios(self, owner: str) -> pd.DataFrame:
        """Summarize every portfolio of an owner.

        Returns:
            DataFrame indexed by portfolio_id with created_at, last_rebalanced,
            token_count, active and needs_rebalance columns. Empty when the
            owner has no portfolios.
        """
        columns = ["created_at", "last_rebalanced", "token_count", "active", "needs_rebalance"]
        rows: List[Dict[str, Any]] = []
        for portfolio_id in self.manager.get_user_portfolios(owner):
            portfolio = self.manager.get_portfolio(portfolio_id)
            status = self.manager.calculate_rebalance_amounts(portfolio_id)
            rows.append(
                {
                    "portfolio_id": portfolio_id,
                    "created_at": portfolio.created_at,
                    "last_rebalanced": portfolio.last_rebalanced,
                    "token_count": portfolio.token_count,
                    "active": portfolio.active,
                    "needs_rebalance": status.needs_rebalance,
                }
            )

        if not rows:
            return pd.DataFrame(columns=columns, index=pd.Index([], name="portfolio_id"))
        return pd.DataFrame(rows).set_index("portfolio_id")[columns]

    def registry_info(self) -> Dict[str, Any]:
        """Return the registry scalars: owner, fee, counter and block height."""
        return {
            "owner": self.admin.get_owner(),
            "fee_bps": self.admin.get_fee_bps(),
            "portfolio_counter": self.manager.get_portfolio_counter(),
            "block_height": self.clock.now(),
        }

    def close(self) -> None:
        self.db.close()
