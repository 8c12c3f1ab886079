"""
Tests for ZcashdBackend and the NodeBackend initialization check (mocked RPC).
"""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import httpx
import pytest
from zlcore.models import UTXO

from zlwallet.backends.base import (
    BACKUP_ACK_REQUIRED_MESSAGE,
    EXPORTDIR_MISSING_MESSAGE,
    REINDEXING_MESSAGE,
    NodeReindexingError,
    NodeRPCError,
    OperationStatus,
)
from zlwallet.backends.zcashd import MAX_CONFIRMATIONS, ZcashdBackend


def backend_with_transport(handler) -> ZcashdBackend:
    backend = ZcashdBackend(rpc_url="http://node:18232/", rpc_user="u", rpc_password="p")
    backend.client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler), auth=("u", "p")
    )
    return backend


@pytest.fixture
def backend() -> ZcashdBackend:
    backend = ZcashdBackend(rpc_url="http://node:18232", rpc_user="u", rpc_password="p")
    backend._rpc_call = AsyncMock()
    return backend


class TestRpcCall:
    """JSON-RPC transport handling."""

    @pytest.mark.asyncio
    async def test_returns_result_and_sends_payload(self) -> None:
        """Successful call returns the result field."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"result": 42, "error": None, "id": 1})

        backend = backend_with_transport(handler)
        try:
            assert await backend._rpc_call("getblockcount") == 42
        finally:
            await backend.close()

        payload = json.loads(seen[0].content)
        assert payload["method"] == "getblockcount"
        assert payload["params"] == []
        assert str(seen[0].url) == "http://node:18232"
        assert seen[0].headers["authorization"].startswith("Basic ")

    @pytest.mark.asyncio
    async def test_error_body_on_http_500(self) -> None:
        """zcashd reports RPC errors with HTTP 500 and a JSON body."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                500,
                json={"result": None, "error": {"code": -5, "message": "Invalid address"}},
            )

        backend = backend_with_transport(handler)
        try:
            with pytest.raises(NodeRPCError) as exc_info:
                await backend._rpc_call("dumpprivkey", ["bogus"])
        finally:
            await backend.close()

        assert exc_info.value.code == -5
        assert exc_info.value.message == "Invalid address"
        assert str(exc_info.value) == "RPC error -5: Invalid address"

    @pytest.mark.asyncio
    async def test_reindexing_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                500,
                json={
                    "result": None,
                    "error": {"code": -28, "message": "Loading block index... reindexing"},
                },
            )

        backend = backend_with_transport(handler)
        try:
            with pytest.raises(NodeReindexingError):
                await backend._rpc_call("getnewaddress")
        finally:
            await backend.close()

    @pytest.mark.asyncio
    async def test_non_json_error_raises_http_status(self) -> None:
        """Bad credentials give an empty 401 body."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, content=b"")

        backend = backend_with_transport(handler)
        try:
            with pytest.raises(httpx.HTTPStatusError):
                await backend._rpc_call("getnewaddress")
        finally:
            await backend.close()

    @pytest.mark.asyncio
    async def test_connection_error_propagates(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        backend = backend_with_transport(handler)
        try:
            with pytest.raises(httpx.ConnectError):
                await backend._rpc_call("getnewaddress")
        finally:
            await backend.close()


class TestListUnspent:
    @pytest.mark.asyncio
    async def test_parses_entries(self, backend: ZcashdBackend) -> None:
        backend._rpc_call.return_value = [
            {"txid": "a" * 64, "vout": 0, "amount": 0.3, "confirmations": 10, "address": "tmA"},
            {
                "txid": "b" * 64,
                "vout": 2,
                "amount": 0.25,
                "amountZat": 25_000_000,
                "confirmations": 1,
            },
        ]

        utxos = await backend.list_unspent(["tmA"], 1)

        backend._rpc_call.assert_awaited_once_with(
            "listunspent", [1, MAX_CONFIRMATIONS, ["tmA"]]
        )
        assert utxos == [
            UTXO(txid="a" * 64, vout=0, amount=30_000_000, confirmations=10, address="tmA"),
            UTXO(txid="b" * 64, vout=2, amount=25_000_000, confirmations=1),
        ]

    @pytest.mark.asyncio
    async def test_no_addresses_skips_rpc(self, backend: ZcashdBackend) -> None:
        assert await backend.list_unspent([]) == []
        backend._rpc_call.assert_not_awaited()


class TestWalletCalls:
    """Thin RPC wrappers."""

    @pytest.mark.asyncio
    async def test_shielded_balance_string(self, backend: ZcashdBackend) -> None:
        """Balance may come back as a string; result is zatoshi."""
        backend._rpc_call.return_value = "1.5"
        assert await backend.get_shielded_balance("zs1abc") == 150_000_000
        backend._rpc_call.assert_awaited_once_with("z_getbalance", ["zs1abc", 1])

    @pytest.mark.asyncio
    async def test_new_addresses(self, backend: ZcashdBackend) -> None:
        backend._rpc_call.side_effect = ["tmNew", "ztestsapling1new"]
        assert await backend.get_new_address() == "tmNew"
        assert await backend.get_new_shielded_address() == "ztestsapling1new"
        assert backend._rpc_call.await_args_list[1].args == ("z_getnewaddress", ["sapling"])

    @pytest.mark.asyncio
    async def test_send_many_uses_zec_amounts(self, backend: ZcashdBackend) -> None:
        backend._rpc_call.return_value = "opid-1234"

        operation_id = await backend.send_many("tmFrom", [("zs1to", 50_000_000)], 1, 10_000)

        assert operation_id == "opid-1234"
        backend._rpc_call.assert_awaited_once_with(
            "z_sendmany", ["tmFrom", [{"address": "zs1to", "amount": 0.5}], 1, 0.0001]
        )

    @pytest.mark.asyncio
    async def test_operation_status_success(self, backend: ZcashdBackend) -> None:
        backend._rpc_call.return_value = [
            {"id": "opid-1", "status": "success", "result": {"txid": "c" * 64}}
        ]

        status = await backend.get_operation_status("opid-1")

        backend._rpc_call.assert_awaited_once_with("z_getoperationstatus", [["opid-1"]])
        assert status == OperationStatus(operation_id="opid-1", status="success", txid="c" * 64)
        assert status.is_final

    @pytest.mark.asyncio
    async def test_operation_status_failed_and_unknown(self, backend: ZcashdBackend) -> None:
        backend._rpc_call.side_effect = [
            [
                {
                    "id": "opid-2",
                    "status": "failed",
                    "error": {"code": -6, "message": "Insufficient"},
                }
            ],
            [],
        ]

        failed = await backend.get_operation_status("opid-2")
        assert failed.error == "Insufficient"
        assert failed.is_final

        unknown = await backend.get_operation_status("opid-3")
        assert unknown.status == "unknown"
        assert not unknown.is_final


class TestRawTransactions:
    @pytest.mark.asyncio
    async def test_create_raw_transaction(self, backend: ZcashdBackend) -> None:
        backend._rpc_call.return_value = "deadbeef"
        inputs = [UTXO(txid="a" * 64, vout=1, amount=30_000_000)]

        raw = await backend.create_raw_transaction(inputs, {"tmTo": 20_000_000, "tmChg": 9_990_000})

        assert raw == "deadbeef"
        backend._rpc_call.assert_awaited_once_with(
            "createrawtransaction",
            [[{"txid": "a" * 64, "vout": 1}], {"tmTo": 0.2, "tmChg": 0.0999}],
        )

    @pytest.mark.asyncio
    async def test_sign_complete(self, backend: ZcashdBackend) -> None:
        backend._rpc_call.return_value = {"hex": "signed", "complete": True}
        assert await backend.sign_raw_transaction("deadbeef") == "signed"

    @pytest.mark.asyncio
    async def test_sign_incomplete_raises(self, backend: ZcashdBackend) -> None:
        backend._rpc_call.return_value = {
            "hex": "partial",
            "complete": False,
            "errors": [{"error": "Input not found or already spent"}],
        }
        with pytest.raises(NodeRPCError, match="Input not found"):
            await backend.sign_raw_transaction("deadbeef")

    @pytest.mark.asyncio
    async def test_send_raw_transaction(self, backend: ZcashdBackend) -> None:
        backend._rpc_call.return_value = "d" * 64
        assert await backend.send_raw_transaction("signed") == "d" * 64

    @pytest.mark.asyncio
    async def test_send_raw_transaction_error(self, backend: ZcashdBackend) -> None:
        backend._rpc_call.side_effect = NodeRPCError("bad-txns-inputs-spent", -26)
        with pytest.raises(NodeRPCError):
            await backend.send_raw_transaction("signed")


class TestBackupWallet:
    @pytest.mark.asyncio
    async def test_named_backup(self, backend: ZcashdBackend) -> None:
        backend._rpc_call.return_value = "/export/mybackup"
        assert await backend.backup_wallet("mybackup") == "mybackup"
        backend._rpc_call.assert_awaited_once_with("backupwallet", ["mybackup"])

    @pytest.mark.asyncio
    async def test_default_name_is_alphanumeric(self, backend: ZcashdBackend) -> None:
        backend._rpc_call.return_value = "/export/x"
        name = await backend.backup_wallet()
        assert name.startswith("walletbackup")
        assert name.isalnum()

    @pytest.mark.asyncio
    async def test_missing_exportdir(self, backend: ZcashdBackend) -> None:
        backend._rpc_call.side_effect = NodeRPCError(
            "Cannot backup wallet: -exportdir is not set", -4
        )
        with pytest.raises(NodeRPCError, match="backup directory not configured"):
            await backend.backup_wallet("mybackup")

    @pytest.mark.asyncio
    async def test_invalid_filename(self, backend: ZcashdBackend) -> None:
        backend._rpc_call.side_effect = NodeRPCError(
            "Filename is invalid as only alphanumeric characters are allowed", -4
        )
        with pytest.raises(NodeRPCError, match="alphanumeric characters"):
            await backend.backup_wallet("bad-name")

    @pytest.mark.asyncio
    async def test_other_error_wrapped(self, backend: ZcashdBackend) -> None:
        backend._rpc_call.side_effect = NodeRPCError("disk full", -1)
        with pytest.raises(NodeRPCError, match="Failed to backup wallet: disk full"):
            await backend.backup_wallet("mybackup")

    @pytest.mark.asyncio
    async def test_reindexing_passes_through(self, backend: ZcashdBackend) -> None:
        backend._rpc_call.side_effect = NodeReindexingError("Node is reindexing. Please wait.")
        with pytest.raises(NodeReindexingError):
            await backend.backup_wallet("mybackup")


class TestInitializationCheck:
    """check_wallet_initialization tries getnewaddress."""

    @pytest.mark.asyncio
    async def test_initialized(self, backend: ZcashdBackend) -> None:
        backend._rpc_call.return_value = "tmFresh"
        status = await backend.check_wallet_initialization()
        assert status.initialized
        assert status.error is None

    @pytest.mark.asyncio
    async def test_backup_not_acknowledged(self, backend: ZcashdBackend) -> None:
        backend._rpc_call.side_effect = NodeRPCError(
            "Error: Please acknowledge that you have backed up the wallet's emergency "
            "recovery phrase by using zcashd-wallet-tool first.",
            -4,
        )
        status = await backend.check_wallet_initialization()
        assert not status.initialized
        assert status.error == BACKUP_ACK_REQUIRED_MESSAGE

    @pytest.mark.asyncio
    async def test_exportdir_missing(self, backend: ZcashdBackend) -> None:
        backend._rpc_call.side_effect = NodeRPCError("-exportdir is not set", -4)
        status = await backend.check_wallet_initialization()
        assert status.error == EXPORTDIR_MISSING_MESSAGE

    @pytest.mark.asyncio
    async def test_reindexing(self, backend: ZcashdBackend) -> None:
        backend._rpc_call.side_effect = NodeReindexingError("Node is reindexing. Please wait.")
        status = await backend.check_wallet_initialization()
        assert status.error == REINDEXING_MESSAGE

    @pytest.mark.asyncio
    async def test_other_error_message_kept(self, backend: ZcashdBackend) -> None:
        backend._rpc_call.side_effect = NodeRPCError("Keypool ran out", -12)
        status = await backend.check_wallet_initialization()
        assert status.error == "Keypool ran out"
