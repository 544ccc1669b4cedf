"""Portfolio manager: the only writer of the registry stores.

Operations and their failure order:

create_portfolio:
0. NotAuthorized - caller identity is empty
1. LengthMismatch - token and percentage lists differ in length
2. MaxTokensExceeded - more than ``max_tokens`` tokens
3. InvalidPortfolio - fewer than ``min_tokens`` tokens
4. InvalidPercentage - percentages out of range or not summing to 10000
5. InvalidToken - malformed token identity
6. UserStorageFailed - caller already owns ``max_user_portfolios`` portfolios

update_allocation:
1. InvalidPortfolio - unknown portfolio
2. NotAuthorized - caller is not the owner
3. InvalidPercentage - new percentage out of range
4. InvalidTokenId - slot outside the portfolio

rebalance:
1. InvalidPortfolio - unknown or inactive portfolio
2. NotAuthorized - caller is not the owner

Each mutating operation holds the manager lock and runs in one database
transaction, so it either commits completely or leaves nothing behind.
"""

import threading
from typing import Dict, List, Optional, Sequence

import pandas as pd

from portfolio_registry.clock import LogicalClock
from portfolio_registry.models import Portfolio, PortfolioAsset, RebalanceStatus
from portfolio_registry.storage.database import DatabaseManager
from portfolio_registry.storage.stores import (
    SETTING_PORTFOLIO_COUNTER,
    AssetStore,
    PortfolioStore,
    RegistrySettings,
    UserIndex,
)
from portfolio_registry.utils.exceptions import (
    ConfigurationError,
    InvalidPercentageError,
    InvalidPortfolioError,
    InvalidTokenIdError,
    LengthMismatchError,
    MaxTokensExceededError,
    NotAuthorizedError,
    PortfolioError,
)
from portfolio_registry.utils.logging import get_logger, log_with_context
from portfolio_registry.validation import (
    BASIS_POINTS,
    MAX_PERCENTAGE_SET_SIZE,
    validate_identity,
    validate_percentage,
    validate_percentage_set,
    validate_token_address,
)

logger = get_logger(__name__)

# Slot indices at or above this are never valid
MAX_SLOT_INDEX = MAX_PERCENTAGE_SET_SIZE

# Smallest portfolio the registry accepts, whatever the configuration
MIN_PORTFOLIO_TOKENS = 2


class PortfolioManager:
    """Creates portfolios, updates allocations and records rebalances.

    Configuration Parameters:
        min_tokens: Minimum slots per portfolio (default 2)
        max_tokens: Maximum slots per portfolio (default 10, hard limit 10)
        max_user_portfolios: Capacity of each owner's index (default 20)
        rebalance_interval: Blocks after which a portfolio is stale (default 144)
        strict_allocation_updates: Re-check the 10000 bps sum on every
            allocation update (default False)

    Example:
        >>> db = DatabaseManager(":memory:")
        >>> manager = PortfolioManager.from_database(db, ManualClock())
        >>> pid = manager.create_portfolio("alice", ["TOKEN-A", "TOKEN-B"], [5000, 5000])
        >>> manager.get_portfolio(pid).token_count
        2
    """

    def __init__(
        self,
        db: DatabaseManager,
        portfolios: PortfolioStore,
        assets: AssetStore,
        user_index: UserIndex,
        settings: RegistrySettings,
        clock: LogicalClock,
        config: Optional[Dict] = None,
        lock: Optional[threading.RLock] = None,
    ):
        """Initialize the manager with explicit store handles.

        Args:
            db: Database manager providing transactions
            portfolios: Portfolio header store
            assets: Asset slot store
            user_index: Owner -> portfolio id index
            settings: Registry scalar values (portfolio counter)
            clock: Source of the current block height
            config: Optional manager parameters, see class docstring
            lock: Lock serializing operations; shared with the admin when
                both run against one database
        """
        config = config or {}

        self.db = db
        self.portfolios = portfolios
        self.assets = assets
        self.user_index = user_index
        self.settings = settings
        self.clock = clock
        self._lock = lock or threading.RLock()

        self.min_tokens = config.get("min_tokens", 2)
        self.max_tokens = config.get("max_tokens", MAX_PERCENTAGE_SET_SIZE)
        self.rebalance_interval = config.get("rebalance_interval", 144)
        self.strict_allocation_updates = bool(
            config.get("strict_allocation_updates", False)
        )

        self._validate_config()

    @classmethod
    def from_database(
        cls,
        db: DatabaseManager,
        clock: LogicalClock,
        config: Optional[Dict] = None,
    ) -> "PortfolioManager":
        """Build a manager with fresh stores over ``db``."""
        config = config or {}
        return cls(
            db=db,
            portfolios=PortfolioStore(db),
            assets=AssetStore(db),
            user_index=UserIndex(db, capacity=config.get("max_user_portfolios", 20)),
            settings=RegistrySettings(db),
            clock=clock,
            config=config,
        )

    def _validate_config(self) -> None:
        """Validate configuration parameters."""
        if self.min_tokens < MIN_PORTFOLIO_TOKENS:
            raise ConfigurationError(
                f"min_tokens must be >= {MIN_PORTFOLIO_TOKENS}, got {self.min_tokens}"
            )
        if not self.min_tokens <= self.max_tokens <= MAX_PERCENTAGE_SET_SIZE:
            raise ConfigurationError(
                f"max_tokens must be in [{self.min_tokens}, {MAX_PERCENTAGE_SET_SIZE}], "
                f"got {self.max_tokens}"
            )
        if self.user_index.capacity < 1:
            raise ConfigurationError(
                f"max_user_portfolios must be >= 1, got {self.user_index.capacity}"
            )
        if self.rebalance_interval < 0:
            raise ConfigurationError(
                f"rebalance_interval must be >= 0, got {self.rebalance_interval}"
            )

    def create_portfolio(
        self,
        caller: str,
        tokens: Sequence[str],
        percentages: Sequence[int],
    ) -> int:
        """Create a portfolio owned by ``caller``.

        Args:
            caller: Verified identity of the creating account
            tokens: Token identities, one per slot
            percentages: Target percentages in basis points, summing to 10000

        Returns:
            The new portfolio id

        Raises:
            NotAuthorizedError, LengthMismatchError, MaxTokensExceededError,
            InvalidPortfolioError, InvalidPercentageError, InvalidTokenError,
            UserStorageFailedError
        """
        tokens = list(tokens)
        percentages = list(percentages)

        with self._lock:
            try:
                validate_identity(caller)
                if len(tokens) != len(percentages):
                    raise LengthMismatchError(
                        f"{len(tokens)} tokens but {len(percentages)} percentages"
                    )
                if len(tokens) > self.max_tokens:
                    raise MaxTokensExceededError(
                        f"at most {self.max_tokens} tokens allowed, got {len(tokens)}"
                    )
                if len(tokens) < self.min_tokens:
                    raise InvalidPortfolioError(
                        f"at least {self.min_tokens} tokens required, got {len(tokens)}"
                    )
                validate_percentage_set(percentages)

                now = self.clock.now()
                with self.db.transaction() as conn:
                    portfolio_id = self.settings.get_int(SETTING_PORTFOLIO_COUNTER) + 1

                    self.portfolios.insert(
                        conn,
                        Portfolio(
                            portfolio_id=portfolio_id,
                            owner=caller,
                            created_at=now,
                            last_rebalanced=now,
                            total_value=0,
                            active=True,
                            token_count=len(tokens),
                        ),
                    )

                    for slot, (token, percentage) in enumerate(zip(tokens, percentages)):
                        validate_token_address(token)
                        self.assets.insert(
                            conn,
                            portfolio_id,
                            slot,
                            PortfolioAsset(
                                target_percentage=percentage,
                                current_amount=0,
                                token_address=token,
                            ),
                        )

                    self.user_index.append(conn, caller, portfolio_id)
                    self.settings.set(conn, SETTING_PORTFOLIO_COUNTER, portfolio_id)
            except PortfolioError as e:
                log_with_context(
                    logger, "warning", "Portfolio creation rejected",
                    caller=caller, error=e.code, reason=e,
                )
                raise

        log_with_context(
            logger, "info", "Portfolio created",
            portfolio_id=portfolio_id, owner=caller,
            token_count=len(tokens), block=now,
        )
        return portfolio_id

    def update_allocation(
        self,
        caller: str,
        portfolio_id: int,
        slot: int,
        new_percentage: int,
    ) -> bool:
        """Overwrite the target percentage of one slot.

        Only ``target_percentage`` changes; token and amount are kept. The
        portfolio-wide sum is not re-checked unless
        ``strict_allocation_updates`` is enabled, so by default an update can
        leave the portfolio off 10000 bps.

        Returns:
            True on success

        Raises:
            InvalidPortfolioError, NotAuthorizedError, InvalidPercentageError,
            InvalidTokenIdError
        """
        with self._lock:
            try:
                portfolio = self._get_owned_portfolio(caller, portfolio_id)
                validate_percentage(new_percentage)

                if slot < 0 or slot >= portfolio.token_count or slot >= MAX_SLOT_INDEX:
                    raise InvalidTokenIdError(
                        f"slot {slot} is outside portfolio {portfolio_id} "
                        f"({portfolio.token_count} slots)"
                    )
                if self.assets.get(portfolio_id, slot) is None:
                    raise InvalidTokenIdError(
                        f"portfolio {portfolio_id} has no asset in slot {slot}"
                    )

                with self.db.transaction() as conn:
                    self.assets.set_target_percentage(
                        conn, portfolio_id, slot, new_percentage
                    )
                    if self.strict_allocation_updates:
                        self._check_allocation_total(portfolio_id)
            except PortfolioError as e:
                log_with_context(
                    logger, "warning", "Allocation update rejected",
                    caller=caller, portfolio_id=portfolio_id, slot=slot, error=e.code,
                )
                raise

        log_with_context(
            logger, "info", "Allocation updated",
            portfolio_id=portfolio_id, slot=slot, target_percentage=new_percentage,
        )
        return True

    def rebalance(self, caller: str, portfolio_id: int) -> bool:
        """Record a rebalance checkpoint at the current block height.

        No asset amounts move; only ``last_rebalanced`` changes.

        Returns:
            True on success

        Raises:
            InvalidPortfolioError: If the portfolio is unknown or inactive
            NotAuthorizedError: If the caller is not the owner
        """
        with self._lock:
            try:
                portfolio = self.portfolios.get(portfolio_id)
                if portfolio is None or not portfolio.active:
                    raise InvalidPortfolioError(
                        f"portfolio {portfolio_id} is missing or inactive"
                    )
                if caller != portfolio.owner:
                    raise NotAuthorizedError(
                        f"{caller} does not own portfolio {portfolio_id}"
                    )

                now = self.clock.now()
                with self.db.transaction() as conn:
                    self.portfolios.set_last_rebalanced(conn, portfolio_id, now)
            except PortfolioError as e:
                log_with_context(
                    logger, "warning", "Rebalance rejected",
                    caller=caller, portfolio_id=portfolio_id, error=e.code,
                )
                raise

        log_with_context(
            logger, "info", "Rebalance recorded", portfolio_id=portfolio_id, block=now
        )
        return True

    def get_portfolio(self, portfolio_id: int) -> Optional[Portfolio]:
        return self.portfolios.get(portfolio_id)

    def get_portfolio_asset(self, portfolio_id: int, slot: int) -> Optional[PortfolioAsset]:
        return self.assets.get(portfolio_id, slot)

    def get_portfolio_assets(self, portfolio_id: int) -> List[PortfolioAsset]:
        return self.assets.get_all(portfolio_id)

    def get_user_portfolios(self, owner: str) -> List[int]:
        """Return the owner's portfolio ids in creation order, or []."""
        return self.user_index.get(owner)

    def get_portfolio_counter(self) -> int:
        """Return the last portfolio id issued (0 before any creation)."""
        return self.settings.get_int(SETTING_PORTFOLIO_COUNTER)

    def calculate_rebalance_amounts(self, portfolio_id: int) -> RebalanceStatus:
        """Report whether a portfolio is due for rebalancing.

        Staleness is purely time based: a portfolio needs rebalancing once
        more than ``rebalance_interval`` blocks have passed since its last
        checkpoint. Market drift is not considered.

        Raises:
            InvalidPortfolioError: If the portfolio is unknown
        """
        portfolio = self.portfolios.get(portfolio_id)
        if portfolio is None:
            raise InvalidPortfolioError(f"portfolio {portfolio_id} not found")

        elapsed = self.clock.now() - portfolio.last_rebalanced
        return RebalanceStatus(
            portfolio_id=portfolio_id,
            total_value=portfolio.total_value,
            needs_rebalance=elapsed > self.rebalance_interval,
        )

    def allocation_frame(self, portfolio_id: int) -> pd.DataFrame:
        """Return the slots of a portfolio as a DataFrame.

        Columns: token_address, target_percentage, current_amount, weight
        (target as a fraction of 1.0), indexed by slot.

        Raises:
            InvalidPortfolioError: If the portfolio is unknown
        """
        if self.portfolios.get(portfolio_id) is None:
            raise InvalidPortfolioError(f"portfolio {portfolio_id} not found")

        df = self.assets.frame(portfolio_id)
        df["weight"] = df["target_percentage"] / BASIS_POINTS
        return df

    def _get_owned_portfolio(self, caller: str, portfolio_id: int) -> Portfolio:
        portfolio = self.portfolios.get(portfolio_id)
        if portfolio is None:
            raise InvalidPortfolioError(f"portfolio {portfolio_id} not found")
        if caller != portfolio.owner:
            raise NotAuthorizedError(f"{caller} does not own portfolio {portfolio_id}")
        return portfolio

    def _check_allocation_total(self, portfolio_id: int) -> None:
        total = sum(asset.target_percentage for asset in self.assets.get_all(portfolio_id))
        if total != BASIS_POINTS:
            raise InvalidPercentageError(
                f"portfolio {portfolio_id} would total {total} bps, expected {BASIS_POINTS}"
            )
