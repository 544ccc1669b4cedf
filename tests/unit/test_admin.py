"""Unit tests for RegistryAdmin."""

import pytest

from portfolio_registry.admin import RegistryAdmin
from portfolio_registry.storage.database import DatabaseManager
from portfolio_registry.storage.stores import RegistrySettings
from portfolio_registry.utils.exceptions import NotAuthorizedError


class TestRegistryAdmin:
    """Test cases for registry ownership and fee."""

    @pytest.fixture
    def admin(self) -> RegistryAdmin:
        db = DatabaseManager(":memory:")
        settings = RegistrySettings(db)
        settings.initialize_defaults(deployer="deployer", fee_bps=50)
        return RegistryAdmin(db, settings)

    def test_initial_state(self, admin: RegistryAdmin) -> None:
        """Test the deployer owns the registry and the fee is seeded."""
        assert admin.get_owner() == "deployer"
        assert admin.get_fee_bps() == 50

    def test_owner_transfers(self, admin: RegistryAdmin) -> None:
        assert admin.initialize("deployer", "carol") is True
        assert admin.get_owner() == "carol"

    def test_previous_owner_loses_rights(self, admin: RegistryAdmin) -> None:
        admin.initialize("deployer", "carol")

        with pytest.raises(NotAuthorizedError):
            admin.initialize("deployer", "dave")
        assert admin.initialize("carol", "dave") is True

    def test_non_owner_rejected(self, admin: RegistryAdmin) -> None:
        with pytest.raises(NotAuthorizedError, match="not the registry owner"):
            admin.initialize("mallory", "mallory2")
        assert admin.get_owner() == "deployer"

    def test_transfer_to_self_rejected(self, admin: RegistryAdmin) -> None:
        """Test the new owner must differ from the caller."""
        with pytest.raises(NotAuthorizedError, match="must differ"):
            admin.initialize("deployer", "deployer")
        assert admin.get_owner() == "deployer"

    def test_empty_new_owner_rejected(self, admin: RegistryAdmin) -> None:
        with pytest.raises(NotAuthorizedError):
            admin.initialize("deployer", "")
        assert admin.get_owner() == "deployer"
