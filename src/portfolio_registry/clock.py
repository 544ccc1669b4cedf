"""Logical clocks supplying "now" as a block-height analogue.

Block heights never move backwards; :meth:`LogicalClock.advance` only
accepts non-negative steps.
"""

from abc import ABC, abstractmethod

from portfolio_registry.storage.database import DatabaseManager
from portfolio_registry.storage.stores import SETTING_BLOCK_HEIGHT, RegistrySettings


class LogicalClock(ABC):
    """Abstract source of the current logical time."""

    @abstractmethod
    def now(self) -> int:
        """Return the current block height."""
        pass

    @abstractmethod
    def advance(self, blocks: int = 1) -> int:
        """Move the clock forward and return the new block height."""
        pass

    @staticmethod
    def _check_step(blocks: int) -> None:
        if blocks < 0:
            raise ValueError(f"blocks must be non-negative, got {blocks}")


class ManualClock(LogicalClock):
    """In-memory clock, advanced explicitly.

    Example:
        >>> clock = ManualClock(start=100)
        >>> clock.advance(145)
        245
    """

    def __init__(self, start: int = 0):
        self._check_step(start)
        self._height = start

    def now(self) -> int:
        return self._height

    def advance(self, blocks: int = 1) -> int:
        self._check_step(blocks)
        self._height += blocks
        return self._height


class StoredClock(LogicalClock):
    """Clock persisted in the registry settings table.

    Lets separate processes (for example successive CLI invocations) share
    one block height.
    """

    def __init__(self, db: DatabaseManager, settings: RegistrySettings):
        self.db = db
        self.settings = settings

    def now(self) -> int:
        return self.settings.get_int(SETTING_BLOCK_HEIGHT)

    def advance(self, blocks: int = 1) -> int:
        self._check_step(blocks)
        with self.db.transaction() as conn:
            height = self.now() + blocks
            self.settings.set(conn, SETTING_BLOCK_HEIGHT, height)
        return height
