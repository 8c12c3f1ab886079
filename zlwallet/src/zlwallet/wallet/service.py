"""
Zcash wallet service with zero-link input selection.
"""

from __future__ import annotations

from decimal import Decimal

from loguru import logger
from zlcore.address import is_transparent_address
from zlcore.amounts import format_zec
from zlcore.constants import DEFAULT_FEE_ZATOSHI, DEFAULT_OVERAGE_CEILING
from zlcore.models import UTXO, CoinSelection
from zlcore.routing import Shuffler, plan_zero_link_spend, required_zatoshi

from zlwallet.backends.base import NodeBackend, NodeRPCError, OperationStatus
from zlwallet.wallet.models import WalletAddresses, WalletInfo

AmountLike = Decimal | int | float | str


class WalletService:
    """
    Wallet session for one set of node-wallet addresses.

    Every call goes through an explicit instance: there is no process-wide
    "current wallet". The session also owns the set of recently spent
    outpoints ("txid:vout") consulted by zero-link selection; pass in a
    shared set to persist it across sessions.
    """

    def __init__(
        self,
        backend: NodeBackend,
        addresses: WalletAddresses,
        network: str = "testnet",
        min_confirmations: int = 1,
        fee: int = DEFAULT_FEE_ZATOSHI,
        recently_used: set[str] | None = None,
        overage_ceiling: float = DEFAULT_OVERAGE_CEILING,
        rng: Shuffler | None = None,
    ):
        self.backend = backend
        self.addresses = addresses
        self.network = network
        self.min_confirmations = min_confirmations
        self.fee = fee
        self.recently_used: set[str] = recently_used if recently_used is not None else set()
        self.overage_ceiling = overage_ceiling
        self.rng = rng

    @classmethod
    async def create(cls, backend: NodeBackend, **kwargs) -> WalletService:
        """
        Create a new wallet on the node.

        Returns a session holding a fresh transparent address, its private key
        (for user backup) and, when the node supports it, a Sapling address.
        """
        address = await backend.get_new_address()

        shielded_address: str | None = None
        try:
            shielded_address = await backend.get_new_shielded_address("sapling")
        except NodeRPCError as e:
            logger.warning(
                f"z_getnewaddress failed, wallet will be transparent-only: {e.message}"
            )

        private_key = await backend.dump_private_key(address)

        logger.info(
            f"Created wallet (shielded address: {'yes' if shielded_address else 'no'})"
        )
        addresses = WalletAddresses(
            transparent_address=address,
            shielded_address=shielded_address,
            private_key=private_key,
        )
        return cls(backend, addresses, **kwargs)

    @property
    def transparent_address(self) -> str:
        return self.addresses.transparent_address

    @property
    def shielded_address(self) -> str | None:
        return self.addresses.shielded_address

    def _require_shielded_address(self) -> str:
        if not self.shielded_address:
            raise ValueError("Shielded address not available")
        return self.shielded_address

    async def get_balance(self) -> WalletInfo:
        """Get transparent and shielded balances"""
        utxos = await self.backend.list_unspent([self.transparent_address], 0)
        balance = sum(utxo.amount for utxo in utxos)

        shielded_balance = 0
        if self.shielded_address:
            try:
                shielded_balance = await self.backend.get_shielded_balance(self.shielded_address)
            except NodeRPCError as e:
                logger.warning(f"Failed to get shielded balance: {e.message}")

        return WalletInfo(
            address=self.transparent_address,
            balance=balance,
            shielded_address=self.shielded_address,
            shielded_balance=shielded_balance,
        )

    async def get_spendable_utxos(self) -> list[UTXO]:
        """Transparent UTXOs with at least min_confirmations"""
        return await self.backend.list_unspent(
            [self.transparent_address], self.min_confirmations
        )

    async def select_inputs(self, amount: AmountLike) -> CoinSelection:
        """Choose transparent inputs for spending amount ZEC using zero-link routing."""
        utxos = await self.get_spendable_utxos()
        selection = plan_zero_link_spend(
            amount,
            utxos,
            self.recently_used,
            fee=self.fee,
            overage_ceiling=self.overage_ceiling,
            rng=self.rng,
        )
        logger.info(
            f"Selected {len(selection.utxos)} of {len(utxos)} UTXOs "
            f"({format_zec(selection.total_value)}, change {format_zec(selection.change_value)})"
        )
        return selection

    async def send(self, to_address: str, amount: AmountLike) -> str:
        """Send from the transparent address with z_sendmany; returns operation id."""
        zatoshi = required_zatoshi(amount)
        logger.info(f"Sending {format_zec(zatoshi)} via z_sendmany")
        return await self.backend.send_many(
            self.transparent_address, [(to_address, zatoshi)], self.min_confirmations, self.fee
        )

    async def shield(self, amount: AmountLike) -> str:
        """Move funds from the transparent to the shielded address."""
        shielded_address = self._require_shielded_address()
        zatoshi = required_zatoshi(amount)
        logger.info(f"Shielding {format_zec(zatoshi)}")
        return await self.backend.send_many(
            self.transparent_address,
            [(shielded_address, zatoshi)],
            self.min_confirmations,
            self.fee,
        )

    async def unshield(self, amount: AmountLike, to_address: str | None = None) -> str:
        """Move funds out of the shielded pool (to our transparent address by default)."""
        shielded_address = self._require_shielded_address()
        zatoshi = required_zatoshi(amount)
        destination = to_address or self.transparent_address
        logger.info(f"Unshielding {format_zec(zatoshi)}")
        return await self.backend.send_many(
            shielded_address, [(destination, zatoshi)], self.min_confirmations, self.fee
        )

    async def send_zero_link(self, to_address: str, amount: AmountLike) -> str:
        """
        Transparent spend with explicitly chosen inputs.

        Inputs come from zero-link selection, change goes to a fresh
        transparent address, and the spent outpoints are remembered so later
        selections avoid linking to them.

        Returns:
            Broadcast txid
        """
        if not is_transparent_address(to_address):
            raise ValueError("Zero-link spends require a transparent recipient address")
        if not is_transparent_address(self.transparent_address):
            raise ValueError("Zero-link spends require a transparent source address")

        selection = await self.select_inputs(amount)

        outputs = {to_address: selection.target}
        if selection.change_value > 0:
            change_address = await self.backend.get_new_address()
            outputs[change_address] = selection.change_value

        unsigned = await self.backend.create_raw_transaction(selection.utxos, outputs)
        signed = await self.backend.sign_raw_transaction(unsigned)
        txid = await self.backend.send_raw_transaction(signed)

        self.recently_used.update(selection.outpoints)
        logger.info(f"Zero-link spend broadcast with {len(selection.utxos)} input(s): {txid}")
        return txid

    async def get_operation_status(self, operation_id: str) -> OperationStatus:
        return await self.backend.get_operation_status(operation_id)

    async def close(self) -> None:
        """Close backend connection"""
        await self.backend.close()
