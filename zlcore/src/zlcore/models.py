"""
UTXO and selection data models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from zlcore.amounts import zec_to_zatoshi
from zlcore.errors import InvalidAmountError


class AddressType(str, Enum):
    SHIELDED = "shielded"
    TRANSPARENT = "transparent"
    UNKNOWN = "unknown"


class PrivacyLevel(str, Enum):
    TRANSPARENT = "transparent"
    SHIELDED = "shielded"
    ZERO_LINK = "zero-link"


@dataclass
class UTXO:
    """Spendable transparent output as reported by the node"""

    txid: str
    vout: int
    amount: int  # zatoshi
    confirmations: int = 0
    address: str = ""

    def __post_init__(self) -> None:
        if isinstance(self.amount, bool) or not isinstance(self.amount, int):
            raise InvalidAmountError(
                f"UTXO amount must be integer zatoshi, got {self.amount!r}"
            )
        if self.amount < 0:
            raise InvalidAmountError(f"UTXO amount must be non-negative, got {self.amount}")
        if isinstance(self.vout, bool) or not isinstance(self.vout, int) or self.vout < 0:
            raise ValueError(f"Output index must be a non-negative integer, got {self.vout!r}")
        if (
            isinstance(self.confirmations, bool)
            or not isinstance(self.confirmations, int)
            or self.confirmations < 0
        ):
            raise ValueError(
                f"Confirmations must be a non-negative integer, got {self.confirmations!r}"
            )

    @property
    def outpoint(self) -> str:
        return f"{self.txid}:{self.vout}"

    @classmethod
    def from_rpc(cls, entry: dict[str, Any]) -> UTXO:
        """
        Build a UTXO from a zcashd ``listunspent`` entry.

        zcashd reports ``amount`` in ZEC and, on recent versions, the exact
        ``amountZat`` as well; the integer field wins when present.
        """
        if "amountZat" in entry:
            amount = int(entry["amountZat"])
        else:
            amount = zec_to_zatoshi(entry["amount"])
        return cls(
            txid=entry["txid"],
            vout=int(entry["vout"]),
            amount=amount,
            confirmations=int(entry.get("confirmations", 0)),
            address=entry.get("address", ""),
        )


@dataclass
class CoinSelection:
    """Result of coin selection"""

    utxos: list[UTXO]
    total_value: int
    target: int
    fee: int
    change_value: int = field(init=False)

    def __post_init__(self) -> None:
        self.change_value = self.total_value - self.target - self.fee

    @property
    def outpoints(self) -> list[str]:
        return [utxo.outpoint for utxo in self.utxos]
