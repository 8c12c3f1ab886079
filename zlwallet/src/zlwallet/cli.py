"""
Zero-link Wallet CLI - Inspect balances, select inputs and send ZEC through a zcashd node.
"""

from __future__ import annotations

import asyncio
import random
import sys
from collections.abc import Awaitable, Callable
from typing import TypeVar

import httpx
import typer
from loguru import logger
from zlcore.address import classify_address
from zlcore.amounts import format_zec
from zlcore.errors import ZeroLinkError
from zlcore.routing import plan_zero_link_spend, rank_utxos

from zlwallet.backends.base import NodeRPCError
from zlwallet.backends.zcashd import ZcashdBackend
from zlwallet.config import Settings, get_settings
from zlwallet.wallet.execution import ExecutionResult, check_operation_status
from zlwallet.wallet.models import WalletAddresses
from zlwallet.wallet.service import WalletService

T = TypeVar("T")

app = typer.Typer(
    name="zl-wallet",
    help="Zero-link Zcash Wallet Management",
    add_completion=False,
)


def setup_logging(level: str = "INFO") -> None:
    """Configure loguru logging."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )


def _load_settings(
    rpc_url: str | None, rpc_user: str | None, rpc_password: str | None, log_level: str | None
) -> Settings:
    settings = get_settings()
    overrides = {
        key: value
        for key, value in {
            "rpc_url": rpc_url,
            "rpc_user": rpc_user,
            "rpc_password": rpc_password,
            "log_level": log_level,
        }.items()
        if value is not None
    }
    settings = settings.model_copy(update=overrides)
    setup_logging(settings.log_level)
    return settings


def _make_backend(settings: Settings) -> ZcashdBackend:
    return ZcashdBackend(
        rpc_url=settings.rpc_url,
        rpc_user=settings.rpc_user,
        rpc_password=settings.rpc_password,
        timeout=settings.rpc_timeout,
    )


def _make_wallet(
    settings: Settings, address: str, shielded_address: str | None = None
) -> WalletService:
    return WalletService(
        backend=_make_backend(settings),
        addresses=WalletAddresses(transparent_address=address, shielded_address=shielded_address),
        network=settings.network,
        min_confirmations=settings.min_confirmations,
        fee=settings.fee_zatoshi,
        overage_ceiling=settings.overage_ceiling,
    )


def _run_with_wallet(wallet: WalletService, action: Callable[[WalletService], Awaitable[T]]) -> T:
    async def _runner() -> T:
        try:
            return await action(wallet)
        finally:
            await wallet.close()

    try:
        return asyncio.run(_runner())
    except (NodeRPCError, ZeroLinkError, ValueError, httpx.HTTPError) as e:
        logger.error(str(e))
        raise typer.Exit(1)


@app.command()
def classify(address: str = typer.Argument(..., help="Address to classify")) -> None:
    """Show whether an address is shielded or transparent."""
    typer.echo(classify_address(address).value)


@app.command()
def select(
    amount: str = typer.Argument(..., help="Amount to spend in ZEC"),
    address: str = typer.Option(..., "--address", "-a", help="Transparent wallet address"),
    recently_used: list[str] | None = typer.Option(
        None, "--recently-used", "-u", help="Outpoint (txid:vout) spent recently; repeatable"
    ),
    seed: int | None = typer.Option(None, "--seed", help="Seed for the output shuffle"),
    rpc_url: str | None = typer.Option(None, "--rpc-url", envvar="ZCASH_RPC_URL"),
    rpc_user: str | None = typer.Option(None, "--rpc-user", envvar="ZCASH_RPC_USER"),
    rpc_password: str | None = typer.Option(None, "--rpc-password", envvar="ZCASH_RPC_PASSWORD"),
    log_level: str | None = typer.Option(None, "--log-level", "-l"),
) -> None:
    """Score the address's UTXOs and show the zero-link selection for AMOUNT."""
    settings = _load_settings(rpc_url, rpc_user, rpc_password, log_level)
    wallet = _make_wallet(settings, address)
    used = set(recently_used or [])

    utxos = _run_with_wallet(wallet, lambda w: w.get_spendable_utxos())

    typer.echo(f"\nCandidates ({len(utxos)}):")
    for _, scored in rank_utxos(utxos, used):
        utxo = scored.utxo
        typer.echo(
            f"  {utxo.outpoint}  {format_zec(utxo.amount):>22}  "
            f"conf={utxo.confirmations:<6} score={scored.score:>4}  {', '.join(scored.reasons)}"
        )

    rng = random.Random(seed) if seed is not None else None
    try:
        selection = plan_zero_link_spend(
            amount,
            utxos,
            used,
            fee=settings.fee_zatoshi,
            overage_ceiling=settings.overage_ceiling,
            rng=rng,
        )
    except ZeroLinkError as e:
        logger.error(f"Selection failed: {e}")
        raise typer.Exit(1)

    typer.echo(f"\nSelected ({len(selection.utxos)}):")
    for utxo in selection.utxos:
        typer.echo(f"  {utxo.outpoint}  {format_zec(utxo.amount)}")
    typer.echo(f"\nTotal:  {format_zec(selection.total_value)}")
    typer.echo(f"Target: {format_zec(selection.target)}")
    typer.echo(f"Fee:    {format_zec(selection.fee)}")
    typer.echo(f"Change: {format_zec(selection.change_value)}")


@app.command()
def balance(
    address: str = typer.Option(..., "--address", "-a", help="Transparent wallet address"),
    shielded_address: str | None = typer.Option(None, "--shielded-address", "-z"),
    rpc_url: str | None = typer.Option(None, "--rpc-url", envvar="ZCASH_RPC_URL"),
    rpc_user: str | None = typer.Option(None, "--rpc-user", envvar="ZCASH_RPC_USER"),
    rpc_password: str | None = typer.Option(None, "--rpc-password", envvar="ZCASH_RPC_PASSWORD"),
    log_level: str | None = typer.Option(None, "--log-level", "-l"),
) -> None:
    """Display transparent and shielded balances."""
    settings = _load_settings(rpc_url, rpc_user, rpc_password, log_level)
    wallet = _make_wallet(settings, address, shielded_address)

    info = _run_with_wallet(wallet, lambda w: w.get_balance())

    typer.echo(f"\nTransparent: {format_zec(info.balance)}  |  {info.address}")
    if info.shielded_address:
        typer.echo(f"Shielded:    {format_zec(info.shielded_balance)}  |  {info.shielded_address}")
    typer.echo(f"Total:       {format_zec(info.total_balance)}")


@app.command()
def send(
    to_address: str = typer.Argument(..., help="Recipient address"),
    amount: str = typer.Argument(..., help="Amount in ZEC"),
    address: str = typer.Option(..., "--address", "-a", help="Transparent wallet address"),
    zero_link: bool = typer.Option(
        False, "--zero-link", help="Spend zero-link selected inputs (transparent only)"
    ),
    rpc_url: str | None = typer.Option(None, "--rpc-url", envvar="ZCASH_RPC_URL"),
    rpc_user: str | None = typer.Option(None, "--rpc-user", envvar="ZCASH_RPC_USER"),
    rpc_password: str | None = typer.Option(None, "--rpc-password", envvar="ZCASH_RPC_PASSWORD"),
    log_level: str | None = typer.Option(None, "--log-level", "-l"),
) -> None:
    """Send ZEC from a transparent address."""
    settings = _load_settings(rpc_url, rpc_user, rpc_password, log_level)
    wallet = _make_wallet(settings, address)

    if zero_link:
        txid = _run_with_wallet(wallet, lambda w: w.send_zero_link(to_address, amount))
        typer.echo(f"Broadcast: {txid}")
    else:
        operation_id = _run_with_wallet(wallet, lambda w: w.send(to_address, amount))
        typer.echo(f"Operation ID: {operation_id}")


@app.command()
def shield(
    amount: str = typer.Argument(..., help="Amount in ZEC"),
    address: str = typer.Option(..., "--address", "-a", help="Transparent wallet address"),
    shielded_address: str = typer.Option(..., "--shielded-address", "-z"),
    rpc_url: str | None = typer.Option(None, "--rpc-url", envvar="ZCASH_RPC_URL"),
    rpc_user: str | None = typer.Option(None, "--rpc-user", envvar="ZCASH_RPC_USER"),
    rpc_password: str | None = typer.Option(None, "--rpc-password", envvar="ZCASH_RPC_PASSWORD"),
    log_level: str | None = typer.Option(None, "--log-level", "-l"),
) -> None:
    """Move ZEC from the transparent address into the shielded pool."""
    settings = _load_settings(rpc_url, rpc_user, rpc_password, log_level)
    wallet = _make_wallet(settings, address, shielded_address)
    operation_id = _run_with_wallet(wallet, lambda w: w.shield(amount))
    typer.echo(f"Operation ID: {operation_id}")


@app.command()
def unshield(
    amount: str = typer.Argument(..., help="Amount in ZEC"),
    address: str = typer.Option(..., "--address", "-a", help="Transparent wallet address"),
    shielded_address: str = typer.Option(..., "--shielded-address", "-z"),
    to_address: str | None = typer.Option(
        None, "--to", help="Recipient (defaults to the transparent address)"
    ),
    rpc_url: str | None = typer.Option(None, "--rpc-url", envvar="ZCASH_RPC_URL"),
    rpc_user: str | None = typer.Option(None, "--rpc-user", envvar="ZCASH_RPC_USER"),
    rpc_password: str | None = typer.Option(None, "--rpc-password", envvar="ZCASH_RPC_PASSWORD"),
    log_level: str | None = typer.Option(None, "--log-level", "-l"),
) -> None:
    """Move ZEC out of the shielded pool."""
    settings = _load_settings(rpc_url, rpc_user, rpc_password, log_level)
    wallet = _make_wallet(settings, address, shielded_address)
    operation_id = _run_with_wallet(wallet, lambda w: w.unshield(amount, to_address))
    typer.echo(f"Operation ID: {operation_id}")


@app.command()
def status(
    operation_id: str = typer.Argument(..., help="z_sendmany operation id"),
    rpc_url: str | None = typer.Option(None, "--rpc-url", envvar="ZCASH_RPC_URL"),
    rpc_user: str | None = typer.Option(None, "--rpc-user", envvar="ZCASH_RPC_USER"),
    rpc_password: str | None = typer.Option(None, "--rpc-password", envvar="ZCASH_RPC_PASSWORD"),
    log_level: str | None = typer.Option(None, "--log-level", "-l"),
) -> None:
    """Check the status of a shielded operation."""
    settings = _load_settings(rpc_url, rpc_user, rpc_password, log_level)
    backend = _make_backend(settings)

    async def _status() -> ExecutionResult:
        try:
            return await check_operation_status(backend, operation_id)
        finally:
            await backend.close()

    result = asyncio.run(_status())

    typer.echo(f"Status: {result.status}")
    if result.txid:
        typer.echo(f"TXID:   {result.txid}")
    typer.echo(result.message)
    if result.status == "failed":
        raise typer.Exit(1)


@app.command()
def create(
    rpc_url: str | None = typer.Option(None, "--rpc-url", envvar="ZCASH_RPC_URL"),
    rpc_user: str | None = typer.Option(None, "--rpc-user", envvar="ZCASH_RPC_USER"),
    rpc_password: str | None = typer.Option(None, "--rpc-password", envvar="ZCASH_RPC_PASSWORD"),
    log_level: str | None = typer.Option(None, "--log-level", "-l"),
) -> None:
    """Create a new transparent + shielded address pair in the node wallet."""
    settings = _load_settings(rpc_url, rpc_user, rpc_password, log_level)
    backend = _make_backend(settings)

    async def _create() -> WalletService:
        try:
            return await WalletService.create(backend, network=settings.network)
        finally:
            await backend.close()

    try:
        wallet = asyncio.run(_create())
    except (NodeRPCError, httpx.HTTPError) as e:
        logger.error(f"Failed to create wallet: {e}")
        raise typer.Exit(1)

    typer.echo("\n" + "=" * 80)
    typer.echo(f"Transparent address: {wallet.transparent_address}")
    typer.echo(f"Shielded address:    {wallet.shielded_address or '(not available)'}")
    typer.echo(f"Private key (WIF):   {wallet.addresses.private_key}")
    typer.echo("=" * 80)
    typer.echo("\nAnyone with this private key can spend your coins.")
    typer.echo("Store it securely offline - NEVER share it with anyone!")
    typer.echo("=" * 80 + "\n")


@app.command("check-init")
def check_init(
    rpc_url: str | None = typer.Option(None, "--rpc-url", envvar="ZCASH_RPC_URL"),
    rpc_user: str | None = typer.Option(None, "--rpc-user", envvar="ZCASH_RPC_USER"),
    rpc_password: str | None = typer.Option(None, "--rpc-password", envvar="ZCASH_RPC_PASSWORD"),
    log_level: str | None = typer.Option(None, "--log-level", "-l"),
) -> None:
    """Check whether the node wallet is ready to create addresses."""
    settings = _load_settings(rpc_url, rpc_user, rpc_password, log_level)
    backend = _make_backend(settings)

    async def _check():
        try:
            return await backend.check_wallet_initialization()
        finally:
            await backend.close()

    try:
        result = asyncio.run(_check())
    except httpx.HTTPError as e:
        logger.error(f"Node unreachable: {e}")
        raise typer.Exit(1)

    if result.initialized:
        typer.echo("Wallet initialized")
    else:
        typer.echo(f"Wallet not ready: {result.error}")
        raise typer.Exit(1)


@app.command()
def backup(
    filename: str | None = typer.Option(
        None, "--filename", "-o", help="Alphanumeric backup name (default: walletbackup<ms>)"
    ),
    rpc_url: str | None = typer.Option(None, "--rpc-url", envvar="ZCASH_RPC_URL"),
    rpc_user: str | None = typer.Option(None, "--rpc-user", envvar="ZCASH_RPC_USER"),
    rpc_password: str | None = typer.Option(None, "--rpc-password", envvar="ZCASH_RPC_PASSWORD"),
    log_level: str | None = typer.Option(None, "--log-level", "-l"),
) -> None:
    """Back up the node wallet into its -exportdir."""
    settings = _load_settings(rpc_url, rpc_user, rpc_password, log_level)
    backend = _make_backend(settings)

    async def _backup() -> str:
        try:
            return await backend.backup_wallet(filename)
        finally:
            await backend.close()

    try:
        name = asyncio.run(_backup())
    except (NodeRPCError, httpx.HTTPError) as e:
        logger.error(str(e))
        raise typer.Exit(1)

    typer.echo(f"Wallet backup created: {name}")
    typer.echo("Run zcashd-wallet-tool to acknowledge the backup before creating addresses.")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
