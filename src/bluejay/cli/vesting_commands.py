#!/usr/bin/env python3
"""
Bluejay Vesting CLI - Operator Interface

Drives a vesting deployment persisted in a local state file:
- Deploy tokens and ledger (init)
- Issue eBLU and mint BLU
- Create, inspect, release, redeem and revoke vesting schedules
- Withdraw unallocated BLU and inspect ledger events

Amounts are entered and shown in whole tokens (decimals allowed).
"""

from __future__ import annotations

import json
import logging
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Callable

import click
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from bluejay.core import config
from bluejay.core.exceptions import BluejayError
from bluejay.core.logging_config import LOG_LEVELS, setup_logging
from bluejay.core.vesting import (
    VestingDeployment,
    VestingSchedule,
    load_deployment,
    save_deployment,
)
from bluejay.core.vesting.events import EVENT_TYPES

logger = logging.getLogger(__name__)
console = Console()


def _handle_cli_error(exc: Exception, exit_code: int = 1) -> None:
    """Centralized CLI error handler for consistent messaging/exit codes."""
    logger.error("CLI error: %s", exc, exc_info=not isinstance(exc, BluejayError))
    console.print(f"[bold red]Error:[/] {exc}")
    sys.exit(exit_code)


def _to_base_units(value: str, decimals: int) -> int:
    """Parse a whole-token amount such as '1000' or '12.5' into base units."""
    try:
        amount = Decimal(value)
    except InvalidOperation as exc:
        raise click.BadParameter(f"{value!r} is not a number") from exc
    if not amount.is_finite():
        raise click.BadParameter(f"{value!r} is not a finite number")
    scaled = amount * (Decimal(10) ** decimals)
    if scaled != scaled.to_integral_value():
        raise click.BadParameter(f"{value} has more than {decimals} decimal places")
    return int(scaled)


def _format_tokens(base_units: int, decimals: int) -> str:
    value = Decimal(base_units) / (Decimal(10) ** decimals)
    return f"{value.normalize():f}"


def _schedule_payload(deployment: VestingDeployment, schedule: VestingSchedule) -> dict[str, Any]:
    ledger = deployment.ledger
    data = schedule.to_dict()
    data["vested"] = ledger.compute_redemption_amount(schedule.schedule_id)
    data["releasable"] = ledger.compute_releasable_amount(schedule.schedule_id)
    return data


def _load(ctx: click.Context) -> VestingDeployment:
    return load_deployment(ctx.obj["state_path"])


def _mutate(ctx: click.Context, action: Callable[[VestingDeployment], Any]) -> Any:
    """Load the deployment, apply action and persist only if it succeeded."""
    deployment = _load(ctx)
    result = action(deployment)
    save_deployment(ctx.obj["state_path"], deployment)
    return result


def _emit(ctx: click.Context, payload: dict[str, Any], message: str) -> None:
    if ctx.obj.get("json_output"):
        click.echo(json.dumps(payload, indent=2, default=str))
    else:
        console.print(message)


# ============================================================================
# CLI Group
# ============================================================================

@click.group()
@click.option(
    "--state",
    "state_path",
    envvar="BLUEJAY_STATE_FILE",
    default=config.STATE_FILE,
    type=click.Path(dir_okay=False, path_type=Path),
    show_default=True,
    help="Deployment state file",
)
@click.option("--json-output", is_flag=True, help="Output raw JSON")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=config.LOG_LEVEL,
    show_default=True,
)
@click.option("--log-file", type=click.Path(dir_okay=False), default=config.LOG_FILE, help="JSON log file")
@click.pass_context
def cli(ctx: click.Context, state_path: Path, json_output: bool, log_level: str, log_file: str | None):
    """
    Bluejay vesting - redeem BLU against eBLU as BLU supply grows.
    """
    ctx.ensure_object(dict)
    setup_logging(level=log_level, log_file=log_file, network=config.NETWORK.value)
    ctx.obj["state_path"] = state_path
    ctx.obj["json_output"] = json_output


@cli.command("init")
@click.option("--owner", required=True, help="Administrator address")
@click.option("--initial-supply", default=str(config.REWARD_INITIAL_SUPPLY), show_default=True,
              help="BLU minted to the owner at deployment")
@click.option("--supply-cap", default=str(config.VESTING_SUPPLY_CAP), show_default=True,
              help="BLU supply at which schedules are fully vested")
@click.option("--decimals", type=click.IntRange(0, 18), default=config.REWARD_DECIMALS, show_default=True)
@click.option("--force", is_flag=True, help="Overwrite an existing state file")
@click.pass_context
def init(ctx: click.Context, owner: str, initial_supply: str, supply_cap: str, decimals: int, force: bool):
    """Deploy eBLU, BLU and the vesting ledger."""
    state_path: Path = ctx.obj["state_path"]
    if state_path.exists() and not force:
        raise click.ClickException(f"{state_path} already exists; use --force to overwrite")
    try:
        deployment = VestingDeployment.create(
            owner=owner,
            initial_supply=_to_base_units(initial_supply, decimals),
            decimals=decimals,
            supply_cap=_to_base_units(supply_cap, decimals),
        )
        save_deployment(state_path, deployment)
    except BluejayError as exc:
        _handle_cli_error(exc)
        return
    payload = {
        "ledger": deployment.ledger.address,
        "claim_token": deployment.claim_token.address,
        "reward_token": deployment.reward_token.address,
        "owner": deployment.ledger.owner,
    }
    _emit(ctx, payload, f"[bold green]Deployed[/] ledger [cyan]{payload['ledger']}[/]")


# ============================================================================
# Token Commands
# ============================================================================

@cli.command("mint-claim")
@click.option("--caller", required=True, help="Claim token owner")
@click.option("--to", "recipient", required=True, help="Employee address")
@click.option("--amount", required=True, help="eBLU to issue")
@click.pass_context
def mint_claim(ctx: click.Context, caller: str, recipient: str, amount: str):
    """Issue eBLU to an employee."""
    try:
        def action(deployment: VestingDeployment) -> int:
            base = _to_base_units(amount, deployment.claim_token.decimals)
            deployment.claim_token.mint(caller, recipient, base)
            return deployment.claim_token.balance_of(recipient)

        balance = _mutate(ctx, action)
    except BluejayError as exc:
        _handle_cli_error(exc)
        return
    _emit(ctx, {"recipient": recipient.lower(), "balance": balance},
          f"[green]Issued[/] {amount} eBLU to [cyan]{recipient}[/]")


@cli.command("mint-reward")
@click.option("--caller", required=True, help="Address holding the minter role")
@click.option("--to", "recipient", required=True, help="Recipient address, or 'ledger' to fund the ledger")
@click.option("--amount", required=True, help="BLU to mint")
@click.pass_context
def mint_reward(ctx: click.Context, caller: str, recipient: str, amount: str):
    """Mint BLU; growing supply advances vesting."""
    try:
        def action(deployment: VestingDeployment) -> dict[str, Any]:
            token = deployment.reward_token
            target = deployment.ledger.address if recipient == "ledger" else recipient
            token.mint(caller, target, _to_base_units(amount, token.decimals))
            return {
                "recipient": target.lower(),
                "total_supply": token.get_total_supply(),
                "percent": deployment.ledger.oracle.compute_redemption_percent(),
            }

        payload = _mutate(ctx, action)
    except BluejayError as exc:
        _handle_cli_error(exc)
        return
    _emit(ctx, payload, f"[green]Minted[/] {amount} BLU, vesting at [bold]{payload['percent']}%[/]")


# ============================================================================
# Schedule Commands
# ============================================================================

@cli.command("create")
@click.option("--caller", required=True, help="Ledger owner")
@click.option("--redeemer", required=True, help="Beneficiary address")
@click.option("--amount", required=True, help="Total BLU entitlement")
@click.option("--revocable/--non-revocable", default=True, show_default=True)
@click.pass_context
def create(ctx: click.Context, caller: str, redeemer: str, amount: str, revocable: bool):
    """Create a vesting schedule backed by the redeemer's eBLU."""
    try:
        def action(deployment: VestingDeployment) -> str:
            base = _to_base_units(amount, deployment.reward_token.decimals)
            return deployment.ledger.create_vesting_schedule(caller, redeemer, revocable, base)

        schedule_id = _mutate(ctx, action)
    except (BluejayError, ValueError) as exc:
        _handle_cli_error(exc)
        return
    _emit(ctx, {"schedule_id": schedule_id}, f"[green]Created[/] schedule [cyan]{schedule_id}[/]")


@cli.command("list")
@click.option("--holder", help="Only schedules of this holder")
@click.pass_context
def list_schedules(ctx: click.Context, holder: str | None):
    """List vesting schedules."""
    try:
        deployment = _load(ctx)
    except BluejayError as exc:
        _handle_cli_error(exc)
        return
    store = deployment.ledger.store
    schedules = store.schedules_for_holder(holder) if holder else list(store)
    if ctx.obj.get("json_output"):
        click.echo(json.dumps([_schedule_payload(deployment, s) for s in schedules], indent=2))
        return
    if not schedules:
        console.print("[yellow]No vesting schedules found[/]")
        return

    decimals = deployment.reward_token.decimals
    table = Table(title="Vesting Schedules", box=box.ROUNDED)
    table.add_column("ID", style="cyan")
    table.add_column("Redeemer", style="white")
    table.add_column("#", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Redeemed", justify="right", style="green")
    table.add_column("Releasable", justify="right", style="yellow")
    table.add_column("Status")
    for schedule in schedules:
        data = _schedule_payload(deployment, schedule)
        status = "revoked" if schedule.revoked else ("revocable" if schedule.revocable else "fixed")
        table.add_row(
            schedule.schedule_id[:18],
            schedule.redeemer[:12],
            str(schedule.index),
            _format_tokens(schedule.amount_total, decimals),
            _format_tokens(schedule.redeemed, decimals),
            _format_tokens(data["releasable"], decimals),
            status,
        )
    console.print(table)


@cli.command("show")
@click.argument("schedule_id")
@click.pass_context
def show(ctx: click.Context, schedule_id: str):
    """Show one vesting schedule."""
    try:
        deployment = _load(ctx)
        schedule = deployment.ledger.get_vesting_schedule(schedule_id)
        data = _schedule_payload(deployment, schedule)
    except BluejayError as exc:
        _handle_cli_error(exc)
        return
    if ctx.obj.get("json_output"):
        click.echo(json.dumps(data, indent=2))
        return

    decimals = deployment.reward_token.decimals
    table = Table(show_header=False, box=box.ROUNDED)
    table.add_row("[bold cyan]ID", schedule.schedule_id)
    table.add_row("[bold cyan]Redeemer", schedule.redeemer)
    table.add_row("[bold cyan]Index", str(schedule.index))
    table.add_row("[bold green]Total", _format_tokens(schedule.amount_total, decimals))
    table.add_row("[bold green]Vested", _format_tokens(data["vested"], decimals))
    table.add_row("[bold green]Redeemed", _format_tokens(schedule.redeemed, decimals))
    table.add_row("[bold yellow]Releasable", _format_tokens(data["releasable"], decimals))
    table.add_row("[bold]Revocable", str(schedule.revocable))
    table.add_row("[bold]Revoked", str(schedule.revoked))
    console.print(Panel(table, title="[bold green]Vesting Schedule", border_style="green"))


@cli.command("amount")
@click.argument("schedule_id")
@click.pass_context
def amount(ctx: click.Context, schedule_id: str):
    """Show the currently redeemable amount of a schedule."""
    try:
        deployment = _load(ctx)
        vested = deployment.ledger.compute_redemption_amount(schedule_id)
        releasable = deployment.ledger.compute_releasable_amount(schedule_id)
    except BluejayError as exc:
        _handle_cli_error(exc)
        return
    decimals = deployment.reward_token.decimals
    _emit(
        ctx,
        {"schedule_id": schedule_id, "vested": vested, "releasable": releasable},
        f"Vested: [bold]{_format_tokens(vested, decimals)}[/] BLU, "
        f"releasable: [bold yellow]{_format_tokens(releasable, decimals)}[/] BLU",
    )


@cli.command("rate")
@click.pass_context
def rate(ctx: click.Context):
    """Show the current supply-driven redemption rate."""
    try:
        deployment = _load(ctx)
    except BluejayError as exc:
        _handle_cli_error(exc)
        return
    oracle = deployment.ledger.oracle
    payload = {
        "total_supply": deployment.reward_token.get_total_supply(),
        "supply_cap": oracle.supply_cap,
        "percent": oracle.compute_redemption_percent(),
        "outstanding": deployment.ledger.get_vesting_schedules_total_amount(),
        "withdrawable": deployment.ledger.get_withdrawable_amount(),
    }
    _emit(ctx, payload, f"Redemption rate: [bold]{payload['percent']}%[/] of entitlement vested")


@cli.command("release")
@click.argument("schedule_id")
@click.option("--caller", required=True, help="Redeemer or ledger owner")
@click.option("--amount", "release_amount", required=True, help="BLU to release")
@click.pass_context
def release(ctx: click.Context, schedule_id: str, caller: str, release_amount: str):
    """Release part of a schedule's vested BLU."""
    try:
        def action(deployment: VestingDeployment) -> int:
            base = _to_base_units(release_amount, deployment.reward_token.decimals)
            return deployment.ledger.release(caller, schedule_id, base)

        released = _mutate(ctx, action)
    except BluejayError as exc:
        _handle_cli_error(exc)
        return
    _emit(ctx, {"schedule_id": schedule_id, "released": released},
          f"[green]Released[/] {release_amount} BLU")


@cli.command("redeem")
@click.argument("redeemer")
@click.option("--caller", help="Redeemer or ledger owner (defaults to the redeemer)")
@click.pass_context
def redeem(ctx: click.Context, redeemer: str, caller: str | None):
    """Redeem everything vested on the redeemer's latest schedule."""
    try:
        redeemed, decimals = _mutate(
            ctx, lambda d: (d.ledger.redeem(caller or redeemer, redeemer), d.reward_token.decimals)
        )
    except (BluejayError, ValueError) as exc:
        _handle_cli_error(exc)
        return
    _emit(ctx, {"redeemer": redeemer.lower(), "redeemed": redeemed},
          f"[green]Redeemed[/] {_format_tokens(redeemed, decimals)} BLU for [cyan]{redeemer}[/]")


@cli.command("revoke")
@click.argument("schedule_id")
@click.option("--caller", required=True, help="Ledger owner")
@click.pass_context
def revoke(ctx: click.Context, schedule_id: str, caller: str):
    """Revoke a schedule, paying out what has vested."""
    try:
        paid, decimals = _mutate(ctx, lambda d: (d.ledger.revoke(caller, schedule_id), d.reward_token.decimals))
    except BluejayError as exc:
        _handle_cli_error(exc)
        return
    _emit(ctx, {"schedule_id": schedule_id, "paid_out": paid},
          f"[yellow]Revoked[/] {schedule_id[:18]}, paid out {_format_tokens(paid, decimals)} BLU")


@cli.command("withdraw")
@click.option("--caller", required=True, help="Ledger owner")
@click.option("--amount", "withdraw_amount", required=True, help="BLU to withdraw")
@click.pass_context
def withdraw(ctx: click.Context, caller: str, withdraw_amount: str):
    """Withdraw BLU not allocated to any schedule."""
    try:
        def action(deployment: VestingDeployment) -> int:
            base = _to_base_units(withdraw_amount, deployment.reward_token.decimals)
            return deployment.ledger.withdraw(caller, base)

        withdrawn = _mutate(ctx, action)
    except BluejayError as exc:
        _handle_cli_error(exc)
        return
    _emit(ctx, {"withdrawn": withdrawn}, f"[green]Withdrew[/] {withdraw_amount} BLU")


@cli.command("events")
@click.option("--type", "event_type", type=click.Choice(EVENT_TYPES), help="Only this event type")
@click.pass_context
def events(ctx: click.Context, event_type: str | None):
    """Show ledger events."""
    try:
        deployment = _load(ctx)
    except BluejayError as exc:
        _handle_cli_error(exc)
        return
    items = deployment.ledger.get_events(event_type)
    if ctx.obj.get("json_output"):
        click.echo(json.dumps([event.to_dict() for event in items], indent=2))
        return
    if not items:
        console.print("[yellow]No events[/]")
        return
    table = Table(title="Ledger Events", box=box.ROUNDED)
    table.add_column("Type", style="cyan")
    table.add_column("Redeemer")
    table.add_column("Amount", justify="right")
    table.add_column("Schedule")
    for event in items:
        table.add_row(event.event_type, event.redeemer[:12], str(event.amount), event.schedule_id[:18])
    console.print(table)


# ============================================================================
# Main Entry Point
# ============================================================================

def main():
    """Main CLI entry point"""
    try:
        cli(obj={})
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/]")
        sys.exit(130)


if __name__ == "__main__":
    main()
