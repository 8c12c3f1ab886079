"""
Intent execution against the node wallet.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

import httpx
from loguru import logger
from zlcore.address import is_shielded_address, is_transparent_address
from zlcore.amounts import format_zec
from zlcore.errors import ZeroLinkError
from zlcore.models import PrivacyLevel

from zlwallet.backends.base import NodeBackend, NodeRPCError
from zlwallet.wallet.intent import IntentAction, ParsedIntent
from zlwallet.wallet.service import WalletService

ExecutionStatus = Literal["pending", "success", "failed"]


@dataclass
class ExecutionResult:
    success: bool
    status: ExecutionStatus
    privacy_level: PrivacyLevel
    message: str
    txid: str | None = None
    operation_id: str | None = None
    error: str | None = None


def _failed(privacy_level: PrivacyLevel, message: str, error: str) -> ExecutionResult:
    return ExecutionResult(
        success=False,
        status="failed",
        privacy_level=privacy_level,
        message=message,
        error=error,
    )


async def execute_intent(intent: ParsedIntent, wallet: WalletService) -> ExecutionResult:
    """
    Execute a parsed intent and describe the outcome.

    Node and selection errors are logged and reported as a failed result;
    programming errors propagate.
    """
    if intent.action in (IntentAction.SEND, IntentAction.SHIELD, IntentAction.UNSHIELD):
        if intent.amount is None or intent.amount <= 0:
            return _failed(
                PrivacyLevel.TRANSPARENT
                if intent.action == IntentAction.SEND
                else PrivacyLevel.SHIELDED,
                f"Please specify a valid amount to {intent.action.value}.",
                "Invalid amount",
            )

    if intent.action == IntentAction.SEND:
        return await _handle_send(intent, wallet)
    if intent.action == IntentAction.SHIELD:
        return await _handle_shield(intent, wallet)
    if intent.action == IntentAction.UNSHIELD:
        return await _handle_unshield(intent, wallet)
    if intent.action == IntentAction.BALANCE:
        return await _handle_balance(wallet)
    if intent.action == IntentAction.QUERY:
        return await _handle_query(wallet)

    return _failed(
        PrivacyLevel.TRANSPARENT,
        f"Unknown action: {intent.action.value}. "
        "I can help you send, shield, unshield, or check your balance.",
        f"Unknown action: {intent.action.value}",
    )


async def _handle_send(intent: ParsedIntent, wallet: WalletService) -> ExecutionResult:
    if not intent.recipient:
        return _failed(
            PrivacyLevel.TRANSPARENT, "Please specify a recipient address.", "Missing recipient"
        )

    to_address = intent.recipient
    zero_link = (
        not intent.is_private
        and is_transparent_address(to_address)
        and is_transparent_address(wallet.transparent_address)
    )
    if zero_link:
        privacy_level = PrivacyLevel.ZERO_LINK
    elif is_shielded_address(to_address):
        privacy_level = PrivacyLevel.SHIELDED
    else:
        privacy_level = PrivacyLevel.TRANSPARENT

    try:
        if zero_link:
            txid = await wallet.send_zero_link(to_address, intent.amount)
            return ExecutionResult(
                success=True,
                status="success",
                txid=txid,
                privacy_level=privacy_level,
                message=(
                    f"Successfully sent {intent.amount} {intent.currency} to "
                    f"{to_address[:10]}... ({privacy_level.value})"
                ),
            )

        operation_id = await wallet.send(to_address, intent.amount)
        return ExecutionResult(
            success=True,
            status="pending",
            operation_id=operation_id,
            privacy_level=privacy_level,
            message=(
                f"Sending {intent.amount} {intent.currency} to {to_address[:10]}... "
                f"({privacy_level.value}). Operation ID: {operation_id}"
            ),
        )

    except (NodeRPCError, ZeroLinkError, ValueError, httpx.HTTPError) as e:
        logger.error(f"Send failed: {e}")
        return _failed(privacy_level, f"Failed to send transaction: {e}", str(e))


async def _handle_shield(intent: ParsedIntent, wallet: WalletService) -> ExecutionResult:
    try:
        operation_id = await wallet.shield(intent.amount)
    except (NodeRPCError, ValueError, httpx.HTTPError) as e:
        logger.error(f"Shield failed: {e}")
        return _failed(PrivacyLevel.SHIELDED, f"Failed to shield transaction: {e}", str(e))

    return ExecutionResult(
        success=True,
        status="pending",
        operation_id=operation_id,
        privacy_level=PrivacyLevel.SHIELDED,
        message=(
            f"Shielding {intent.amount} {intent.currency} to private pool. "
            f"Operation ID: {operation_id}"
        ),
    )


async def _handle_unshield(intent: ParsedIntent, wallet: WalletService) -> ExecutionResult:
    try:
        operation_id = await wallet.unshield(intent.amount, intent.recipient)
    except (NodeRPCError, ValueError, httpx.HTTPError) as e:
        logger.error(f"Unshield failed: {e}")
        return _failed(PrivacyLevel.SHIELDED, f"Failed to unshield transaction: {e}", str(e))

    return ExecutionResult(
        success=True,
        status="pending",
        operation_id=operation_id,
        privacy_level=PrivacyLevel.SHIELDED,
        message=(
            f"Unshielding {intent.amount} {intent.currency} from private pool. "
            f"Operation ID: {operation_id}"
        ),
    )


async def _handle_balance(wallet: WalletService) -> ExecutionResult:
    try:
        info = await wallet.get_balance()
    except (NodeRPCError, httpx.HTTPError) as e:
        logger.error(f"Balance query failed: {e}")
        return _failed(PrivacyLevel.TRANSPARENT, f"Failed to get balance: {e}", str(e))

    message = f"Transparent balance: {format_zec(info.balance)}"
    if info.shielded_address:
        message += f"\nShielded balance: {format_zec(info.shielded_balance)}"
    return ExecutionResult(
        success=True,
        status="success",
        privacy_level=PrivacyLevel.SHIELDED if info.shielded_address else PrivacyLevel.TRANSPARENT,
        message=message,
    )


async def _handle_query(wallet: WalletService) -> ExecutionResult:
    try:
        info = await wallet.get_balance()
    except (NodeRPCError, httpx.HTTPError) as e:
        logger.error(f"Wallet query failed: {e}")
        return _failed(PrivacyLevel.TRANSPARENT, f"Failed to query wallet: {e}", str(e))

    message = (
        f"Wallet address: {info.address}\n"
        f"Transparent balance: {format_zec(info.balance)}\n"
        f"Shielded balance: {format_zec(info.shielded_balance)}"
    )
    if info.shielded_address:
        message += f"\nShielded address: {info.shielded_address[:10]}..."
    return ExecutionResult(
        success=True,
        status="success",
        privacy_level=PrivacyLevel.TRANSPARENT,
        message=message,
    )


async def check_operation_status(
    source: WalletService | NodeBackend, operation_id: str
) -> ExecutionResult:
    """
    Resolve a pending z_sendmany operation into an execution result.

    A finished operation with a txid is a success, a queued or executing one
    is still pending, and one carrying an error has failed. Any other state
    is reported as pending.
    """
    try:
        operation = await source.get_operation_status(operation_id)
    except (NodeRPCError, httpx.HTTPError) as e:
        logger.error(f"Operation status check failed for {operation_id}: {e}")
        return ExecutionResult(
            success=False,
            status="failed",
            privacy_level=PrivacyLevel.SHIELDED,
            operation_id=operation_id,
            message=f"Failed to check operation status: {e}",
            error=str(e),
        )

    if operation.status == "success" and operation.txid:
        return ExecutionResult(
            success=True,
            status="success",
            privacy_level=PrivacyLevel.SHIELDED,
            operation_id=operation_id,
            txid=operation.txid,
            message=f"Transaction confirmed. TXID: {operation.txid}",
        )
    if operation.status in ("executing", "queued"):
        return ExecutionResult(
            success=True,
            status="pending",
            privacy_level=PrivacyLevel.SHIELDED,
            operation_id=operation_id,
            message=f"Transaction is {operation.status}. Please check again later.",
        )
    if operation.error:
        return ExecutionResult(
            success=False,
            status="failed",
            privacy_level=PrivacyLevel.SHIELDED,
            operation_id=operation_id,
            message=f"Transaction failed: {operation.error}",
            error=operation.error,
        )
    return ExecutionResult(
        success=True,
        status="pending",
        privacy_level=PrivacyLevel.SHIELDED,
        operation_id=operation_id,
        message=f"Transaction status: {operation.status}",
    )
