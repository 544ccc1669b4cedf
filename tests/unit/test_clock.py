"""Unit tests for logical clocks."""

import pytest

from portfolio_registry.clock import LogicalClock, ManualClock, StoredClock
from portfolio_registry.storage.database import DatabaseManager
from portfolio_registry.storage.stores import RegistrySettings


class TestManualClock:
    """Test cases for ManualClock."""

    def test_defaults_to_zero(self) -> None:
        assert ManualClock().now() == 0

    def test_advance(self) -> None:
        clock = ManualClock(start=100)
        assert clock.advance() == 101
        assert clock.advance(44) == 145
        assert clock.now() == 145

    def test_advance_zero_is_allowed(self) -> None:
        clock = ManualClock(start=3)
        assert clock.advance(0) == 3

    def test_cannot_move_backwards(self) -> None:
        """Test negative steps are rejected."""
        clock = ManualClock(start=10)
        with pytest.raises(ValueError, match="non-negative"):
            clock.advance(-1)
        assert clock.now() == 10

    def test_negative_start_rejected(self) -> None:
        with pytest.raises(ValueError):
            ManualClock(start=-5)

    def test_is_logical_clock(self) -> None:
        assert isinstance(ManualClock(), LogicalClock)


class TestStoredClock:
    """Test cases for StoredClock."""

    @pytest.fixture
    def settings(self, tmp_path) -> RegistrySettings:
        db = DatabaseManager(str(tmp_path / "registry.db"))
        settings = RegistrySettings(db)
        settings.initialize_defaults(deployer="deployer", fee_bps=50)
        return settings

    def test_starts_at_zero(self, settings: RegistrySettings) -> None:
        assert StoredClock(settings.db, settings).now() == 0

    def test_height_is_persisted(self, settings: RegistrySettings) -> None:
        """Test a second clock over the same database sees the advanced height."""
        StoredClock(settings.db, settings).advance(150)

        other = StoredClock(settings.db, RegistrySettings(settings.db))
        assert other.now() == 150
        assert other.advance(5) == 155

    def test_cannot_move_backwards(self, settings: RegistrySettings) -> None:
        clock = StoredClock(settings.db, settings)
        with pytest.raises(ValueError):
            clock.advance(-10)
        assert clock.now() == 0
