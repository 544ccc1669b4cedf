"""Storage layer: SQLite database manager and the registry stores."""

from portfolio_registry.storage.database import DatabaseManager
from portfolio_registry.storage.stores import (
    AssetStore,
    PortfolioStore,
    RegistrySettings,
    UserIndex,
)

__all__ = [
    "DatabaseManager",
    "PortfolioStore",
    "AssetStore",
    "UserIndex",
    "RegistrySettings",
]
