"""
Transaction evaluation: validate an intent and prepare the node call
without executing it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx
from loguru import logger
from zlcore.address import is_shielded_address, is_transparent_address
from zlcore.amounts import format_zec, zatoshi_to_zec
from zlcore.errors import InvalidAmountError
from zlcore.models import PrivacyLevel
from zlcore.routing import required_zatoshi

from zlwallet.backends.base import NodeRPCError
from zlwallet.wallet.intent import IntentAction, ParsedIntent
from zlwallet.wallet.service import WalletService


@dataclass
class TransactionData:
    from_address: str
    to_address: str
    amount: int  # zatoshi
    currency: str
    fee: int
    privacy_level: PrivacyLevel
    network: str


@dataclass
class UnsignedTransaction:
    """The RPC call that would execute the transaction"""

    method: str
    params: list[Any]


@dataclass
class Validation:
    has_sufficient_balance: bool
    balance: int
    required_amount: int
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass
class TransactionEvaluation:
    success: bool
    requires_execution: bool
    intent: ParsedIntent
    message: str
    transaction_data: TransactionData | None = None
    unsigned_transaction: UnsignedTransaction | None = None
    validation: Validation | None = None
    error: str | None = None


def _failure(intent: ParsedIntent, message: str, error: str | None = None) -> TransactionEvaluation:
    return TransactionEvaluation(
        success=False,
        requires_execution=False,
        intent=intent,
        message=message,
        error=error or message,
    )


async def evaluate_transaction(
    intent: ParsedIntent, wallet: WalletService
) -> TransactionEvaluation:
    """
    Evaluate a parsed intent against the wallet.

    Nothing is sent: the result describes the transaction, the z_sendmany
    call that would perform it, and any validation errors.

    Transparent spends are checked against UTXOs with at least
    ``min_confirmations``, the same set execution selects from.
    """
    try:
        if intent.action == IntentAction.SEND:
            return await _evaluate_send(intent, wallet)
        if intent.action == IntentAction.SHIELD:
            return await _evaluate_shield(intent, wallet)
        if intent.action == IntentAction.UNSHIELD:
            return await _evaluate_unshield(intent, wallet)
        if intent.action in (IntentAction.BALANCE, IntentAction.QUERY):
            return TransactionEvaluation(
                success=True,
                requires_execution=False,
                intent=intent,
                message="Query action - no transaction execution needed",
            )
        if intent.action == IntentAction.SWAP:
            return _failure(intent, "Swaps are not supported by this wallet")
        return _failure(intent, f"Unknown action: {intent.action.value}")

    except (NodeRPCError, httpx.HTTPError) as e:
        logger.error(f"Failed to evaluate {intent.action.value} intent: {e}")
        return _failure(intent, f"Failed to evaluate transaction: {e}", str(e))


async def _spendable_balance(wallet: WalletService) -> int:
    return sum(utxo.amount for utxo in await wallet.get_spendable_utxos())


def _amount_or_failure(intent: ParsedIntent, verb: str) -> int | TransactionEvaluation:
    if intent.amount is None:
        return _failure(intent, f"Please specify a valid amount to {verb}.", "Invalid amount")
    try:
        return required_zatoshi(intent.amount)
    except InvalidAmountError:
        return _failure(intent, f"Please specify a valid amount to {verb}.", "Invalid amount")


def _prepare(
    intent: ParsedIntent,
    wallet: WalletService,
    from_address: str,
    to_address: str,
    amount: int,
    balance: int,
    privacy_level: PrivacyLevel,
    errors: list[str],
    message: str,
) -> TransactionEvaluation:
    required = amount + wallet.fee
    has_sufficient_balance = balance >= required
    if not has_sufficient_balance:
        errors.insert(
            0,
            f"Insufficient balance. Available: {format_zec(balance)}, "
            f"Required: {format_zec(required)}",
        )

    validation = Validation(
        has_sufficient_balance=has_sufficient_balance,
        balance=balance,
        required_amount=required,
        errors=errors,
    )

    if errors:
        return TransactionEvaluation(
            success=False,
            requires_execution=False,
            intent=intent,
            validation=validation,
            message="; ".join(errors),
            error="; ".join(errors),
        )

    return TransactionEvaluation(
        success=True,
        requires_execution=True,
        intent=intent,
        transaction_data=TransactionData(
            from_address=from_address,
            to_address=to_address,
            amount=amount,
            currency=intent.currency,
            fee=wallet.fee,
            privacy_level=privacy_level,
            network=wallet.network,
        ),
        unsigned_transaction=UnsignedTransaction(
            method="z_sendmany",
            params=[
                from_address,
                [{"address": to_address, "amount": float(zatoshi_to_zec(amount))}],
                wallet.min_confirmations,
                float(zatoshi_to_zec(wallet.fee)),
            ],
        ),
        validation=validation,
        message=message,
    )


async def _evaluate_send(intent: ParsedIntent, wallet: WalletService) -> TransactionEvaluation:
    amount = _amount_or_failure(intent, "send")
    if isinstance(amount, TransactionEvaluation):
        return amount

    if not intent.recipient:
        return _failure(intent, "Please specify a recipient address.", "Missing recipient")

    to_address = intent.recipient
    to_shielded = is_shielded_address(to_address)
    privacy_level = PrivacyLevel.SHIELDED if to_shielded else PrivacyLevel.TRANSPARENT

    errors: list[str] = []
    if not to_shielded and not is_transparent_address(to_address):
        errors.append("Invalid recipient address format")

    return _prepare(
        intent,
        wallet,
        from_address=wallet.transparent_address,
        to_address=to_address,
        amount=amount,
        balance=await _spendable_balance(wallet),
        privacy_level=privacy_level,
        errors=errors,
        message=(
            f"Ready to send {format_zec(amount)} to {to_address[:10]}... "
            f"({privacy_level.value})"
        ),
    )


async def _evaluate_shield(intent: ParsedIntent, wallet: WalletService) -> TransactionEvaluation:
    amount = _amount_or_failure(intent, "shield")
    if isinstance(amount, TransactionEvaluation):
        return amount

    if not wallet.shielded_address:
        return _failure(
            intent,
            "Shielded address not available. Please create a shielded address first.",
            "Shielded address not available",
        )

    return _prepare(
        intent,
        wallet,
        from_address=wallet.transparent_address,
        to_address=wallet.shielded_address,
        amount=amount,
        balance=await _spendable_balance(wallet),
        privacy_level=PrivacyLevel.SHIELDED,
        errors=[],
        message=f"Ready to shield {format_zec(amount)} to private pool",
    )


async def _evaluate_unshield(intent: ParsedIntent, wallet: WalletService) -> TransactionEvaluation:
    amount = _amount_or_failure(intent, "unshield")
    if isinstance(amount, TransactionEvaluation):
        return amount

    if not wallet.shielded_address:
        return _failure(
            intent, "Shielded address not available.", "Shielded address not available"
        )

    to_address = intent.recipient or wallet.transparent_address
    errors: list[str] = []
    if not is_transparent_address(to_address) and not is_shielded_address(to_address):
        errors.append("Invalid recipient address format")

    info = await wallet.get_balance()
    return _prepare(
        intent,
        wallet,
        from_address=wallet.shielded_address,
        to_address=to_address,
        amount=amount,
        balance=info.shielded_balance,
        privacy_level=PrivacyLevel.SHIELDED,
        errors=errors,
        message=f"Ready to unshield {format_zec(amount)} from private pool",
    )
