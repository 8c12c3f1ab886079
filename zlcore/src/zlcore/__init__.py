"""
zlcore - Core library for zero-link Zcash wallet components

Provides amount handling, address classification and privacy-aware UTXO selection.
"""

__version__ = "0.1.0"

from zlcore.address import classify_address, is_shielded_address, is_transparent_address
from zlcore.amounts import format_zec, parse_zec, zatoshi_to_zec, zec_to_zatoshi
from zlcore.constants import (
    DEFAULT_FEE_ZATOSHI,
    DEFAULT_OVERAGE_CEILING,
    ZATOSHI_PER_ZEC,
)
from zlcore.errors import (
    InsufficientFundsError,
    InsufficientInputsError,
    InvalidAmountError,
    ZeroLinkError,
)
from zlcore.models import UTXO, AddressType, CoinSelection, PrivacyLevel
from zlcore.routing import (
    ScoredCandidate,
    outpoint_key,
    plan_zero_link_spend,
    rank_utxos,
    score_utxo,
    select_utxos_for_zero_link,
)

__all__ = [
    "AddressType",
    "CoinSelection",
    "DEFAULT_FEE_ZATOSHI",
    "DEFAULT_OVERAGE_CEILING",
    "InsufficientFundsError",
    "InsufficientInputsError",
    "InvalidAmountError",
    "PrivacyLevel",
    "ScoredCandidate",
    "UTXO",
    "ZATOSHI_PER_ZEC",
    "ZeroLinkError",
    "classify_address",
    "format_zec",
    "is_shielded_address",
    "is_transparent_address",
    "outpoint_key",
    "parse_zec",
    "plan_zero_link_spend",
    "rank_utxos",
    "score_utxo",
    "select_utxos_for_zero_link",
    "zatoshi_to_zec",
    "zec_to_zatoshi",
]
