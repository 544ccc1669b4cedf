"""Portfolio Registry.

Accounts define portfolios of 2-10 weighted token allocations (in basis
points), each account holding up to 20 portfolios, and record rebalance
checkpoints against a logical block-height clock.

Components:
- PortfolioManager: Creation, allocation updates and rebalance checkpoints
- RegistryAdmin: Registry owner and fee
- Portfolio / PortfolioAsset / RebalanceStatus: Stored records
"""

from portfolio_registry.admin import RegistryAdmin
from portfolio_registry.clock import LogicalClock, ManualClock, StoredClock
from portfolio_registry.manager import PortfolioManager
from portfolio_registry.models import Portfolio, PortfolioAsset, RebalanceStatus

__version__ = "0.1.0"

__all__ = [
    "PortfolioManager",
    "RegistryAdmin",
    "Portfolio",
    "PortfolioAsset",
    "RebalanceStatus",
    "LogicalClock",
    "ManualClock",
    "StoredClock",
]
