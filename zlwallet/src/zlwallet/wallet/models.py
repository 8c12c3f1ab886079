"""
Wallet data models.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class WalletAddresses:
    """Addresses created in the node wallet for one user"""

    transparent_address: str
    shielded_address: str | None = None
    private_key: str = field(default="", repr=False)  # WIF, for user backup only


@dataclass
class WalletInfo:
    """Balances in zatoshi"""

    address: str
    balance: int
    shielded_address: str | None = None
    shielded_balance: int = 0

    @property
    def total_balance(self) -> int:
        return self.balance + self.shielded_balance
