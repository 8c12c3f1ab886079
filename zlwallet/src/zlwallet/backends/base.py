"""
Base Zcash node backend interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from loguru import logger
from zlcore.constants import DEFAULT_FEE_ZATOSHI
from zlcore.models import UTXO


class NodeRPCError(Exception):
    """Error reported by the Zcash node over JSON-RPC."""

    def __init__(self, message: str, code: int | None = None):
        self.code = code
        self.message = message
        super().__init__(message if code is None else f"RPC error {code}: {message}")


class NodeReindexingError(NodeRPCError):
    """The node is reindexing and refuses wallet calls until it finishes."""

    pass


BACKUP_ACK_REQUIRED_MESSAGE = (
    "Wallet backup acknowledgment required. Run 'zcashd-wallet-tool' to acknowledge "
    "the backup before creating addresses."
)
EXPORTDIR_MISSING_MESSAGE = (
    "Wallet backup directory not configured. The Zcash node requires -exportdir to be set."
)
REINDEXING_MESSAGE = (
    "Zcash node is currently reindexing. Please wait for reindexing to complete."
)


def needs_backup_acknowledgment(message: str) -> bool:
    return (
        "Please acknowledge" in message
        or "backed up" in message
        or "zcashd-wallet-tool" in message
    )


def is_exportdir_error(message: str) -> bool:
    return "exportdir" in message or "export-dir" in message


@dataclass
class OperationStatus:
    """Status of an asynchronous z_sendmany operation"""

    operation_id: str
    status: str
    txid: str | None = None
    error: str | None = None

    @property
    def is_final(self) -> bool:
        return self.status in ("success", "failed", "cancelled")


@dataclass
class InitializationStatus:
    initialized: bool
    error: str | None = None


class NodeBackend(ABC):
    """
    Abstract Zcash node interface.
    The node owns all keys; this layer only asks it to list, build and send.
    """

    @abstractmethod
    async def list_unspent(
        self, addresses: list[str], min_confirmations: int = 0
    ) -> list[UTXO]:
        """Get transparent UTXOs for given addresses"""

    @abstractmethod
    async def get_shielded_balance(self, address: str, min_confirmations: int = 1) -> int:
        """Get balance of a shielded address in zatoshi"""

    @abstractmethod
    async def get_new_address(self) -> str:
        """Create a new transparent address in the node wallet"""

    @abstractmethod
    async def get_new_shielded_address(self, address_type: str = "sapling") -> str:
        """Create a new shielded address in the node wallet"""

    @abstractmethod
    async def dump_private_key(self, address: str) -> str:
        """Export the WIF private key of a transparent address"""

    @abstractmethod
    async def send_many(
        self,
        from_address: str,
        recipients: list[tuple[str, int]],
        min_confirmations: int = 1,
        fee: int = DEFAULT_FEE_ZATOSHI,
    ) -> str:
        """Start a z_sendmany operation, returns the operation id"""

    @abstractmethod
    async def get_operation_status(self, operation_id: str) -> OperationStatus:
        """Get status of an asynchronous operation"""

    @abstractmethod
    async def create_raw_transaction(self, inputs: list[UTXO], outputs: dict[str, int]) -> str:
        """Build an unsigned transaction spending exactly the given inputs, returns hex"""

    @abstractmethod
    async def sign_raw_transaction(self, tx_hex: str) -> str:
        """Sign a raw transaction with wallet keys, returns signed hex"""

    @abstractmethod
    async def send_raw_transaction(self, tx_hex: str) -> str:
        """Broadcast transaction, returns txid"""

    @abstractmethod
    async def backup_wallet(self, filename: str | None = None) -> str:
        """Write a wallet backup into the node's export directory, returns filename"""

    async def check_wallet_initialization(self) -> InitializationStatus:
        """
        Check whether the node wallet can create addresses.

        Calls ``getnewaddress`` rather than ``getwalletinfo``: the latter
        succeeds even while zcashd still waits for the backup to be
        acknowledged with zcashd-wallet-tool.

        Returns:
            InitializationStatus with a user-facing error when not ready
        """
        try:
            await self.get_new_address()
            return InitializationStatus(initialized=True)
        except NodeReindexingError:
            return InitializationStatus(initialized=False, error=REINDEXING_MESSAGE)
        except NodeRPCError as e:
            logger.warning(f"Wallet initialization check failed: {e.message}")
            if needs_backup_acknowledgment(e.message):
                return InitializationStatus(initialized=False, error=BACKUP_ACK_REQUIRED_MESSAGE)
            if is_exportdir_error(e.message):
                return InitializationStatus(initialized=False, error=EXPORTDIR_MISSING_MESSAGE)
            return InitializationStatus(initialized=False, error=e.message)

    async def close(self) -> None:
        """Close backend connection"""
        pass
