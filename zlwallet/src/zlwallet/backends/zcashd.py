"""
zcashd JSON-RPC backend.
Uses the node's own wallet for keys; amounts cross the RPC boundary as ZEC.
"""

from __future__ import annotations

import os
import time
from typing import Any

import httpx
from loguru import logger
from zlcore.amounts import zatoshi_to_zec, zec_to_zatoshi
from zlcore.constants import DEFAULT_FEE_ZATOSHI
from zlcore.models import UTXO

from zlwallet.backends.base import (
    NodeBackend,
    NodeReindexingError,
    NodeRPCError,
    OperationStatus,
    is_exportdir_error,
    needs_backup_acknowledgment,
)

# Timeout for regular RPC calls (seconds)
DEFAULT_RPC_TIMEOUT = 30.0

# listunspent upper confirmation bound (effectively unbounded)
MAX_CONFIRMATIONS = 9_999_999

# Environment variable to enable sensitive logging (addresses, raw transactions)
# WARNING: Enabling this will log wallet addresses to the log
SENSITIVE_LOGGING = os.environ.get("SENSITIVE_LOGGING", "").lower() in ("1", "true", "yes")


def _zec_param(zatoshi: int) -> float:
    """JSON-encodable ZEC amount; every 8-place decimal round-trips through float."""
    return float(zatoshi_to_zec(zatoshi))


class ZcashdBackend(NodeBackend):
    """
    Zcash node backend using zcashd JSON-RPC.
    Shielded operations go through z_sendmany; explicit-input transparent
    spends use createrawtransaction / signrawtransaction.
    """

    def __init__(
        self,
        rpc_url: str = "http://127.0.0.1:18232",
        rpc_user: str = "zcash",
        rpc_password: str = "zcash",
        timeout: float = DEFAULT_RPC_TIMEOUT,
    ):
        self.rpc_url = rpc_url.rstrip("/")
        self.rpc_user = rpc_user
        self.rpc_password = rpc_password
        self.client = httpx.AsyncClient(timeout=timeout, auth=(rpc_user, rpc_password))
        self._request_id = 0

    async def _rpc_call(self, method: str, params: list | None = None) -> Any:
        """
        Make an RPC call to zcashd.

        zcashd answers RPC errors with HTTP 500 and a JSON body, so the body
        is inspected before the status code.

        Args:
            method: RPC method name
            params: Method parameters

        Returns:
            RPC result

        Raises:
            NodeReindexingError: Node is reindexing
            NodeRPCError: On RPC errors
            httpx.HTTPError: On connection/timeout errors
        """
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params or [],
        }

        try:
            response = await self.client.post(self.rpc_url, json=payload)
        except httpx.TimeoutException as e:
            logger.error(f"RPC call timed out: {method} - {e}")
            raise
        except httpx.HTTPError as e:
            logger.error(f"RPC call failed: {method} - {e}")
            raise

        try:
            data = response.json()
        except ValueError:
            response.raise_for_status()
            raise NodeRPCError(f"Invalid JSON response to {method}") from None

        if data.get("error"):
            error_info = data["error"]
            error_code = error_info.get("code")
            error_msg = error_info.get("message") or f"RPC error: {error_code}"
            if "reindexing" in error_msg:
                raise NodeReindexingError("Node is reindexing. Please wait.", error_code)
            raise NodeRPCError(error_msg, error_code)

        response.raise_for_status()
        return data.get("result")

    async def list_unspent(
        self, addresses: list[str], min_confirmations: int = 0
    ) -> list[UTXO]:
        if not addresses:
            return []

        result = await self._rpc_call(
            "listunspent", [min_confirmations, MAX_CONFIRMATIONS, addresses]
        )
        utxos = [UTXO.from_rpc(entry) for entry in result or []]

        logger.debug(f"listunspent: {len(utxos)} UTXOs for {len(addresses)} address(es)")
        if SENSITIVE_LOGGING:
            logger.debug(f"UTXOs: {[u.outpoint for u in utxos]} for {addresses}")
        return utxos

    async def get_shielded_balance(self, address: str, min_confirmations: int = 1) -> int:
        balance = await self._rpc_call("z_getbalance", [address, min_confirmations])
        # Some zcashd versions return the balance as a string
        return zec_to_zatoshi(balance)

    async def get_new_address(self) -> str:
        return await self._rpc_call("getnewaddress", [])

    async def get_new_shielded_address(self, address_type: str = "sapling") -> str:
        return await self._rpc_call("z_getnewaddress", [address_type])

    async def dump_private_key(self, address: str) -> str:
        return await self._rpc_call("dumpprivkey", [address])

    async def send_many(
        self,
        from_address: str,
        recipients: list[tuple[str, int]],
        min_confirmations: int = 1,
        fee: int = DEFAULT_FEE_ZATOSHI,
    ) -> str:
        amounts = [
            {"address": address, "amount": _zec_param(amount)} for address, amount in recipients
        ]
        operation_id = await self._rpc_call(
            "z_sendmany", [from_address, amounts, min_confirmations, _zec_param(fee)]
        )
        logger.info(
            f"Started z_sendmany operation {operation_id} to {len(recipients)} recipient(s)"
        )
        return operation_id

    async def get_operation_status(self, operation_id: str) -> OperationStatus:
        result = await self._rpc_call("z_getoperationstatus", [[operation_id]])

        if not result:
            return OperationStatus(operation_id=operation_id, status="unknown")

        operation = result[0]
        return OperationStatus(
            operation_id=operation.get("id", operation_id),
            status=operation.get("status", "unknown"),
            txid=(operation.get("result") or {}).get("txid"),
            error=(operation.get("error") or {}).get("message"),
        )

    async def create_raw_transaction(self, inputs: list[UTXO], outputs: dict[str, int]) -> str:
        tx_inputs = [{"txid": utxo.txid, "vout": utxo.vout} for utxo in inputs]
        tx_outputs = {address: _zec_param(amount) for address, amount in outputs.items()}
        return await self._rpc_call("createrawtransaction", [tx_inputs, tx_outputs])

    async def sign_raw_transaction(self, tx_hex: str) -> str:
        result = await self._rpc_call("signrawtransaction", [tx_hex])
        if not result.get("complete"):
            errors = result.get("errors") or []
            details = "; ".join(e.get("error", str(e)) for e in errors) or "unknown reason"
            raise NodeRPCError(f"Transaction signing incomplete: {details}")
        return result["hex"]

    async def send_raw_transaction(self, tx_hex: str) -> str:
        try:
            txid = await self._rpc_call("sendrawtransaction", [tx_hex])
            logger.info(f"Broadcast transaction: {txid}")
            return txid

        except NodeRPCError as e:
            logger.error(f"Failed to broadcast transaction: {e}")
            raise

    async def backup_wallet(self, filename: str | None = None) -> str:
        """
        Back up the node wallet into its -exportdir.

        Note that backupwallet does NOT acknowledge the backup requirement
        for new wallets; that still has to be done with zcashd-wallet-tool.
        """
        if filename is None:
            # zcashd only accepts alphanumeric backup names
            filename = f"walletbackup{int(time.time() * 1000)}"

        try:
            await self._rpc_call("backupwallet", [filename])
        except NodeReindexingError:
            raise
        except NodeRPCError as e:
            logger.error(f"Error backing up wallet: {e.message}")
            if is_exportdir_error(e.message):
                raise NodeRPCError(
                    "Wallet backup directory not configured. "
                    "Please ensure -exportdir is set in zcashd configuration.",
                    e.code,
                ) from e
            if "invalid" in e.message and "alphanumeric" in e.message:
                raise NodeRPCError(
                    "Backup filename must contain only alphanumeric characters "
                    "(a-z, A-Z, 0-9)",
                    e.code,
                ) from e
            if needs_backup_acknowledgment(e.message):
                raise NodeRPCError(
                    "Wallet backup acknowledgment required. The backupwallet RPC creates "
                    "a backup but does not acknowledge it. Run 'zcashd-wallet-tool' to "
                    "acknowledge the backup.",
                    e.code,
                ) from e
            raise NodeRPCError(f"Failed to backup wallet: {e.message}", e.code) from e

        logger.info(f"Wallet backup created: {filename}")
        logger.warning(
            "backupwallet does not acknowledge the backup requirement; "
            "run zcashd-wallet-tool before creating addresses"
        )
        return filename

    async def close(self) -> None:
        await self.client.aclose()
