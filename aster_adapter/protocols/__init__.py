"""
Protocol adapters for Aster Adapter
"""

from .aster import AsterVault, TreasuryDeposit

__all__ = [
    "AsterVault",
    "TreasuryDeposit",
]
