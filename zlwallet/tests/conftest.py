"""
Pytest configuration and fixtures for wallet tests.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from zlcore.models import UTXO

from zlwallet.backends.base import NodeBackend
from zlwallet.wallet.models import WalletAddresses
from zlwallet.wallet.service import WalletService

TRANSPARENT_ADDRESS = "tmLzgM8hsGkmP4B8tjrSyQSxCRazvX2KmMx"
SHIELDED_ADDRESS = (
    "ztestsapling1jp3amtgxqq6m7xkxcsdhk9fnyhm6ek4w2kqls2zl6ehxzcgdl0ra4p2ys5j9yl5mgkwagc3n3yd"
)


class ReversingRng:
    """Deterministic shuffle: reverses the selection order."""

    def shuffle(self, x: list) -> None:
        x.reverse()


@pytest.fixture
def mock_backend() -> AsyncMock:
    """Node backend with every RPC mocked."""
    backend = AsyncMock(spec=NodeBackend)
    backend.list_unspent.return_value = []
    backend.get_shielded_balance.return_value = 0
    return backend


@pytest.fixture
def sample_utxos() -> list[UTXO]:
    """0.3 ZEC (10 conf) + 0.25 ZEC (1 conf)."""
    return [
        UTXO(
            txid="a" * 64,
            vout=0,
            amount=30_000_000,
            confirmations=10,
            address=TRANSPARENT_ADDRESS,
        ),
        UTXO(
            txid="b" * 64,
            vout=1,
            amount=25_000_000,
            confirmations=1,
            address=TRANSPARENT_ADDRESS,
        ),
    ]


@pytest.fixture
def wallet(mock_backend: AsyncMock) -> WalletService:
    return WalletService(
        backend=mock_backend,
        addresses=WalletAddresses(
            transparent_address=TRANSPARENT_ADDRESS,
            shielded_address=SHIELDED_ADDRESS,
            private_key="cTestWifKey",
        ),
        network="testnet",
        rng=ReversingRng(),
    )


@pytest.fixture
def transparent_wallet(mock_backend: AsyncMock) -> WalletService:
    """Wallet whose node could not create a shielded address."""
    return WalletService(
        backend=mock_backend,
        addresses=WalletAddresses(transparent_address=TRANSPARENT_ADDRESS),
        network="testnet",
        rng=ReversingRng(),
    )
