"""
Zcash address classification by prefix.
"""

from __future__ import annotations

from zlcore.constants import SHIELDED_ADDRESS_PREFIXES, TRANSPARENT_ADDRESS_PREFIXES
from zlcore.models import AddressType


def is_shielded_address(address: str) -> bool:
    """Check if an address is a shielded (Sapling z-) address."""
    return address.startswith(SHIELDED_ADDRESS_PREFIXES)


def is_transparent_address(address: str) -> bool:
    """Check if an address is a transparent (t-) address."""
    return address.startswith(TRANSPARENT_ADDRESS_PREFIXES)


def classify_address(address: str) -> AddressType:
    if is_shielded_address(address):
        return AddressType.SHIELDED
    if is_transparent_address(address):
        return AddressType.TRANSPARENT
    return AddressType.UNKNOWN
