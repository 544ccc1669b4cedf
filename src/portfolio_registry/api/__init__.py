"""User-friendly APIs for the portfolio registry.

Components:
- RegistryAPI: Wires storage, clock, manager and admin together
"""

from portfolio_registry.api.registry_api import RegistryAPI

__all__ = ["RegistryAPI"]
