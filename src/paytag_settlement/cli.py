"""CLI entry point for the paytag_settlement daemon."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
import uuid
from dataclasses import asdict
from pathlib import Path

import click

from paytag_settlement.api.data_api import LedgerQueries
from paytag_settlement.config import load_config
from paytag_settlement.daemon import SettlementDaemon, run_daemon
from paytag_settlement.models.records import AutoswapPolicy, Identity
from paytag_settlement.storage.sqlite import SQLiteStateStore


def _require_circle(cfg):
    """Exit with error if Circle credentials are missing."""
    if not cfg.circle.api_key or not cfg.circle.entity_secret:
        click.echo("Error: Circle credentials not configured.", err=True)
        click.echo(
            "Set PAYTAG_CIRCLE_API_KEY and PAYTAG_CIRCLE_ENTITY_SECRET or [circle] in config.",
            err=True,
        )
        sys.exit(1)


@click.group()
@click.option("-c", "--config", "config_path", default=None, help="Path to config TOML file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """paytag-settlement - PayTag payment ingestion and AutoSwap settlement."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# ── Daemon ─────────────────────────────────────────────


@cli.command()
@click.pass_context
def run(ctx: click.Context) -> None:
    """Start the AutoSwap worker pool."""
    cfg = load_config(ctx.obj["config_path"])
    _require_circle(cfg)
    if not ctx.obj["verbose"]:
        logging.getLogger().setLevel(cfg.log_level.upper())

    click.echo(
        f"Starting paytag_settlement daemon ({cfg.environment.value}, "
        f"{cfg.worker.count} worker(s))"
    )
    asyncio.run(run_daemon(cfg))


# ── Info ───────────────────────────────────────────────


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show daemon configuration."""
    cfg = load_config(ctx.obj["config_path"])
    eligible = ", ".join(f"{a} on {c}" for a, c in cfg.swap_eligible())
    click.echo(f"Environment:  {cfg.environment.value}")
    click.echo(f"Chains:       {', '.join(cfg.chain_allowlist())}")
    click.echo(f"AutoSwap:     {eligible} -> {cfg.swap.target_asset}")
    click.echo(f"Swap cap:     {cfg.swap.max_notional} ETH")
    click.echo(f"Slippage:     {cfg.swap.min_slippage_bps}-{cfg.swap.max_slippage_bps} bps")
    click.echo(f"Workers:      {cfg.worker.count} x batch {cfg.worker.batch_size} "
               f"every {cfg.worker.poll_interval}s")
    click.echo(f"Circle API:   {cfg.circle.api_base_url}")
    click.echo(f"API key:      {'***configured***' if cfg.circle.api_key else '(not set)'}")
    click.echo(f"Entity sec.:  {'***configured***' if cfg.circle.entity_secret else '(not set)'}")
    click.echo(f"Walrus:       {cfg.walrus.publisher_url or '(disabled)'}")
    click.echo(f"DB path:      {cfg.db_path}")


@cli.command()
@click.pass_context
def jobs(ctx: click.Context) -> None:
    """Show the swap job queue and recent activity."""
    cfg = load_config(ctx.obj["config_path"])

    async def _jobs():
        store = SQLiteStateStore(cfg.db_path)
        await store.initialize()
        try:
            queries = LedgerQueries(store)
            summary = await queries.get_job_summary()
            click.echo("Swap Jobs")
            click.echo(f"  Queued:     {summary.queued} ({summary.due} due)")
            click.echo(f"  Locked:     {summary.locked}")
            click.echo(f"  Completed:  {summary.completed}")
            click.echo(f"  Failed:     {summary.failed}")

            failed = await store.get_jobs_by_status("failed", limit=5)
            if failed:
                click.echo("")
                click.echo("Recent failures")
                for job in failed:
                    click.echo(f"  {job.id[:12]} payment={job.payment_id[:12]} "
                               f"attempts={job.attempts} error={job.error}")

            activity = await queries.get_recent_activity(10)
            if activity:
                click.echo("")
                click.echo("Recent activity")
                for entry in activity:
                    click.echo(f"  {entry.created_at} [{entry.event_type}] {entry.message}")
        finally:
            await store.close()

    asyncio.run(_jobs())


@cli.command()
@click.argument("handle")
@click.option("-n", "--limit", type=int, default=10, help="Number of payments to show (max 100)")
@click.pass_context
def payments(ctx: click.Context, handle: str, limit: int) -> None:
    """List recent payments to HANDLE."""
    cfg = load_config(ctx.obj["config_path"])

    async def _payments():
        store = SQLiteStateStore(cfg.db_path)
        await store.initialize()
        try:
            rows = await LedgerQueries(store).get_payments_by_handle(handle, limit)
            if rows is None:
                click.echo(f"Unknown PayTag: {handle}", err=True)
                sys.exit(1)
            if not rows:
                click.echo("No payments.")
                return
            for p in rows:
                click.echo(
                    f"  {p.created_at} {p.amount} {p.asset} on {p.chain} "
                    f"swap={p.swap_status} receipt={p.receipt_public_id or '-'} tx={p.tx_hash[:18]}"
                )
        finally:
            await store.close()

    asyncio.run(_payments())


@cli.command()
@click.argument("public_id")
@click.pass_context
def receipt(ctx: click.Context, public_id: str) -> None:
    """Print a public receipt as JSON."""
    cfg = load_config(ctx.obj["config_path"])

    async def _receipt():
        store = SQLiteStateStore(cfg.db_path)
        await store.initialize()
        try:
            snapshot = await LedgerQueries(store).get_receipt_by_public_id(public_id)
            if snapshot is None:
                click.echo(f"Receipt not found: {public_id}", err=True)
                sys.exit(1)
            click.echo(json.dumps(asdict(snapshot), indent=2))
        finally:
            await store.close()

    asyncio.run(_receipt())


# ── Operations ─────────────────────────────────────────


@cli.command()
@click.argument("payload", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--signature", required=True, help="X-Circle-Signature header value")
@click.option("--key-id", required=True, help="X-Circle-Key-Id header value")
@click.pass_context
def ingest(ctx: click.Context, payload: Path, signature: str, key_id: str) -> None:
    """Replay a captured deposit notification through the pipeline."""
    cfg = load_config(ctx.obj["config_path"])
    raw = payload.read_bytes()

    async def _ingest():
        daemon = SettlementDaemon(cfg)
        await daemon.store.initialize()
        try:
            result = await daemon.ingestor.ingest_deposit_notification(raw, signature, key_id)
        finally:
            await daemon.store.close()
        click.echo(f"HTTP {result.status_code}: {result.reason}")
        if result.payment_id:
            click.echo(f"  Payment:  {result.payment_id}")
        if result.receipt_public_id:
            click.echo(f"  Receipt:  {result.receipt_public_id}")
        if not result.accepted:
            sys.exit(1)

    asyncio.run(_ingest())


@cli.command("seed-paytag")
@click.option("--handle", required=True, help="PayTag handle (without @)")
@click.option("--wallet-id", required=True, help="Circle wallet id")
@click.option("--wallet-address", required=True, help="Wallet deposit address")
@click.option("--display-name", default=None, help="Display name shown on receipts")
@click.option("--autoswap/--no-autoswap", default=False, help="Enable AutoSwap for this PayTag")
@click.option("--slippage-bps", type=int, default=50, help="AutoSwap slippage in basis points")
@click.option("--max-gas-gwei", type=int, default=None, help="Cap on the gas fee (gwei)")
@click.option("--min-amount-wei", default=None, help="Skip AutoSwap below this amount (wei)")
@click.pass_context
def seed_paytag(
    ctx: click.Context,
    handle: str,
    wallet_id: str,
    wallet_address: str,
    display_name: str | None,
    autoswap: bool,
    slippage_bps: int,
    max_gas_gwei: int | None,
    min_amount_wei: str | None,
) -> None:
    """Create or replace a PayTag for local development."""
    cfg = load_config(ctx.obj["config_path"])

    async def _seed():
        store = SQLiteStateStore(cfg.db_path)
        await store.initialize()
        try:
            existing = await store.get_identity_by_handle(handle)
            identity = Identity(
                identity_id=existing.identity_id if existing else uuid.uuid4().hex,
                handle=handle.strip().lstrip("@").lower(),
                wallet_id=wallet_id,
                wallet_address=wallet_address,
                display_name=display_name,
            )
            policy = AutoswapPolicy(
                enabled=autoswap,
                slippage_bps=slippage_bps,
                max_gas_gwei=max_gas_gwei,
                min_amount_wei=min_amount_wei,
            )
            await store.save_identity(identity, policy)
            click.echo(f"PayTag @{identity.handle} -> {wallet_address} "
                       f"(autoswap {'on' if autoswap else 'off'})")
        finally:
            await store.close()

    asyncio.run(_seed())


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
