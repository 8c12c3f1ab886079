"""
Error taxonomy for zero-link input selection.
"""

from __future__ import annotations


class ZeroLinkError(Exception):
    """Base class for selection errors."""

    pass


class InvalidAmountError(ZeroLinkError, ValueError):
    """Raised for non-positive, non-finite or non-integral amounts."""

    pass


class InsufficientInputsError(ZeroLinkError):
    """Raised when no candidate UTXOs were supplied."""

    pass


class InsufficientFundsError(ZeroLinkError):
    """Raised when every candidate together still cannot cover the spend."""

    def __init__(self, total_needed: int, total_selected: int):
        self.total_needed = total_needed
        self.total_selected = total_selected
        super().__init__(
            f"Insufficient funds: need {total_needed} zatoshi, have {total_selected} zatoshi"
        )
