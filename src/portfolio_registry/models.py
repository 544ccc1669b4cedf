"""Data structures for portfolios and their asset slots.

The records here are plain values read back from storage. Only the
:class:`~portfolio_registry.manager.PortfolioManager` creates or mutates
the stored rows they mirror.
"""

import sqlite3
from dataclasses import dataclass


@dataclass(frozen=True)
class Portfolio:
    """Portfolio header record.

    Attributes:
        portfolio_id: Registry-assigned id, starting at 1
        owner: Identity of the creating caller
        created_at: Logical time (block height) at creation
        last_rebalanced: Logical time of the last rebalance checkpoint
        total_value: Aggregate value placeholder, always 0 in this registry
        active: Whether the portfolio accepts rebalances
        token_count: Number of asset slots (2-10)
    """

    portfolio_id: int
    owner: str
    created_at: int
    last_rebalanced: int
    total_value: int
    active: bool
    token_count: int

    def __post_init__(self):
        """Validate header fields."""
        if self.portfolio_id <= 0:
            raise ValueError(
                f"portfolio_id must be positive, got {self.portfolio_id}"
            )
        if self.token_count <= 0:
            raise ValueError(f"token_count must be positive, got {self.token_count}")

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Portfolio":
        return cls(
            portfolio_id=row["portfolio_id"],
            owner=row["owner"],
            created_at=row["created_at"],
            last_rebalanced=row["last_rebalanced"],
            total_value=row["total_value"],
            active=bool(row["active"]),
            token_count=row["token_count"],
        )


@dataclass(frozen=True)
class PortfolioAsset:
    """A single weighted slot within a portfolio.

    Attributes:
        target_percentage: Target allocation in basis points
        current_amount: Held amount placeholder, always 0 in this registry
        token_address: Identity of the token contract
    """

    target_percentage: int
    current_amount: int
    token_address: str

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "PortfolioAsset":
        return cls(
            target_percentage=row["target_percentage"],
            current_amount=row["current_amount"],
            token_address=row["token_address"],
        )


@dataclass(frozen=True)
class RebalanceStatus:
    """Time-based staleness report for a portfolio."""

    portfolio_id: int
    total_value: int
    needs_rebalance: bool
