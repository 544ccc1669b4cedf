"""Registry administration: owner identity and protocol fee."""

import threading
from typing import Optional

from portfolio_registry.storage.database import DatabaseManager
from portfolio_registry.storage.stores import (
    SETTING_FEE_BPS,
    SETTING_OWNER,
    RegistrySettings,
)
from portfolio_registry.utils.exceptions import NotAuthorizedError
from portfolio_registry.utils.logging import get_logger, log_with_context
from portfolio_registry.validation import validate_identity

logger = get_logger(__name__)


class RegistryAdmin:
    """Holds the registry owner and the fee, independent of portfolio logic.

    The owner starts as the deployer identity and can only be changed by the
    current owner through :meth:`initialize`.
    """

    def __init__(
        self,
        db: DatabaseManager,
        settings: RegistrySettings,
        lock: Optional[threading.RLock] = None,
    ):
        self.db = db
        self.settings = settings
        self._lock = lock or threading.RLock()

    def get_owner(self) -> Optional[str]:
        return self.settings.get(SETTING_OWNER)

    def get_fee_bps(self) -> int:
        return self.settings.get_int(SETTING_FEE_BPS)

    def initialize(self, caller: str, new_owner: str) -> bool:
        """Hand registry ownership to ``new_owner``.

        Args:
            caller: Identity invoking the transfer; must be the current owner
            new_owner: Identity receiving ownership; must differ from caller

        Returns:
            True on success

        Raises:
            NotAuthorizedError: If the caller is not the owner or tries to
                hand ownership to itself
        """
        validate_identity(new_owner)

        with self._lock:
            owner = self.get_owner()
            if caller != owner:
                log_with_context(
                    logger, "warning", "Owner transfer rejected",
                    caller=caller, reason="not owner",
                )
                raise NotAuthorizedError(f"{caller} is not the registry owner")
            if new_owner == caller:
                log_with_context(
                    logger, "warning", "Owner transfer rejected",
                    caller=caller, reason="new owner equals caller",
                )
                raise NotAuthorizedError("new owner must differ from the current owner")

            with self.db.transaction() as conn:
                self.settings.set(conn, SETTING_OWNER, new_owner)

        log_with_context(
            logger, "info", "Registry owner changed", previous=caller, owner=new_owner
        )
        return True
