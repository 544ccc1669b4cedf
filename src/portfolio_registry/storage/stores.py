"""Key-value stores over the registry tables.

Each store wraps one table. Reads go through the shared
:class:`DatabaseManager`; writes take the connection of an open
transaction so the caller decides the atomic boundary.
"""

import sqlite3

import pandas as pd

from portfolio_registry.models import Portfolio, PortfolioAsset
from portfolio_registry.storage.database import DatabaseManager, fits_sqlite_integer
from portfolio_registry.utils.exceptions import UserStorageFailedError

SETTING_OWNER = "owner"
SETTING_PORTFOLIO_COUNTER = "portfolio_counter"
SETTING_FEE_BPS = "fee_bps"
SETTING_BLOCK_HEIGHT = "block_height"


class PortfolioStore:
    """portfolio_id -> Portfolio header.

    Ids outside the SQLite INTEGER range cannot be stored, so lookups for
    them read as "not found".
    """

    def __init__(self, db: DatabaseManager):
        self.db = db

    def get(self, portfolio_id: int) -> Portfolio | None:
        if not fits_sqlite_integer(portfolio_id):
            return None
        row = self.db.fetch_one(
            "SELECT * FROM portfolios WHERE portfolio_id = ?", (portfolio_id,)
        )
        return Portfolio.from_row(row) if row else None

    def insert(self, conn: sqlite3.Connection, portfolio: Portfolio) -> None:
        conn.execute(
            """
            INSERT INTO portfolios
            (portfolio_id, owner, created_at, last_rebalanced, total_value, active, token_count)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                portfolio.portfolio_id,
                portfolio.owner,
                portfolio.created_at,
                portfolio.last_rebalanced,
                portfolio.total_value,
                int(portfolio.active),
                portfolio.token_count,
            ),
        )

    def set_last_rebalanced(
        self, conn: sqlite3.Connection, portfolio_id: int, block_height: int
    ) -> None:
        conn.execute(
            "UPDATE portfolios SET last_rebalanced = ? WHERE portfolio_id = ?",
            (block_height, portfolio_id),
        )


class AssetStore:
    """(portfolio_id, slot) -> PortfolioAsset."""

    def __init__(self, db: DatabaseManager):
        self.db = db

    def get(self, portfolio_id: int, slot: int) -> PortfolioAsset | None:
        if not fits_sqlite_integer(portfolio_id, slot):
            return None
        row = self.db.fetch_one(
            "SELECT * FROM portfolio_assets WHERE portfolio_id = ? AND slot = ?",
            (portfolio_id, slot),
        )
        return PortfolioAsset.from_row(row) if row else None

    def get_all(self, portfolio_id: int) -> list[PortfolioAsset]:
        """Return every slot of a portfolio in index order."""
        if not fits_sqlite_integer(portfolio_id):
            return []
        rows = self.db.fetch_all(
            "SELECT * FROM portfolio_assets WHERE portfolio_id = ? ORDER BY slot ASC",
            (portfolio_id,),
        )
        return [PortfolioAsset.from_row(row) for row in rows]

    def insert(
        self,
        conn: sqlite3.Connection,
        portfolio_id: int,
        slot: int,
        asset: PortfolioAsset,
    ) -> None:
        conn.execute(
            """
            INSERT INTO portfolio_assets
            (portfolio_id, slot, target_percentage, current_amount, token_address)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                portfolio_id,
                slot,
                asset.target_percentage,
                asset.current_amount,
                asset.token_address,
            ),
        )

    def set_target_percentage(
        self,
        conn: sqlite3.Connection,
        portfolio_id: int,
        slot: int,
        percentage: int,
    ) -> None:
        conn.execute(
            """
            UPDATE portfolio_assets SET target_percentage = ?
            WHERE portfolio_id = ? AND slot = ?
            """,
            (percentage, portfolio_id, slot),
        )

    def frame(self, portfolio_id: int) -> pd.DataFrame:
        """Load the slots of a portfolio as a DataFrame indexed by slot."""
        if not fits_sqlite_integer(portfolio_id):
            return pd.DataFrame(
                columns=["token_address", "target_percentage", "current_amount"],
                index=pd.Index([], name="slot"),
            )
        df = self.db.read_frame(
            """
            SELECT slot, token_address, target_percentage, current_amount
            FROM portfolio_assets
            WHERE portfolio_id = ?
            ORDER BY slot ASC
            """,
            (portfolio_id,),
        )
        df.set_index("slot", inplace=True)
        return df


class UserIndex:
    """owner -> ordered list of portfolio ids, bounded by ``capacity``.

    The list is append-only. Appending to a full list raises
    :class:`UserStorageFailedError` instead of growing it.
    """

    def __init__(self, db: DatabaseManager, capacity: int = 20):
        self.db = db
        self.capacity = capacity

    def get(self, owner: str) -> list[int]:
        rows = self.db.fetch_all(
            "SELECT portfolio_id FROM user_portfolios WHERE owner = ? ORDER BY position ASC",
            (owner,),
        )
        return [row["portfolio_id"] for row in rows]

    def append(self, conn: sqlite3.Connection, owner: str, portfolio_id: int) -> None:
        count = conn.execute(
            "SELECT COUNT(*) FROM user_portfolios WHERE owner = ?", (owner,)
        ).fetchone()[0]
        if count >= self.capacity:
            raise UserStorageFailedError(
                f"{owner} already holds {count} portfolios (capacity {self.capacity})"
            )
        conn.execute(
            "INSERT INTO user_portfolios (owner, position, portfolio_id) VALUES (?, ?, ?)",
            (owner, count, portfolio_id),
        )


class RegistrySettings:
    """Scalar registry values: owner, portfolio counter, fee and block height."""

    def __init__(self, db: DatabaseManager):
        self.db = db

    def initialize_defaults(self, deployer: str, fee_bps: int) -> None:
        """Seed the scalars on first use; existing values are kept."""
        defaults = {
            SETTING_OWNER: deployer,
            SETTING_PORTFOLIO_COUNTER: "0",
            SETTING_FEE_BPS: str(fee_bps),
            SETTING_BLOCK_HEIGHT: "0",
        }
        with self.db.transaction() as conn:
            conn.executemany(
                "INSERT OR IGNORE INTO registry_settings (name, value) VALUES (?, ?)",
                list(defaults.items()),
            )

    def get(self, name: str) -> str | None:
        row = self.db.fetch_one(
            "SELECT value FROM registry_settings WHERE name = ?", (name,)
        )
        return row["value"] if row else None

    def get_int(self, name: str, default: int = 0) -> int:
        value = self.get(name)
        return int(value) if value is not None else default

    def set(self, conn: sqlite3.Connection, name: str, value: str | int) -> None:
        conn.execute(
            """
            INSERT INTO registry_settings (name, value) VALUES (?, ?)
            ON CONFLICT(name) DO UPDATE SET value = excluded.value
            """,
            (name, str(value)),
        )
