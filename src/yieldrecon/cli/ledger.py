#!/usr/bin/env python3
"""
Ledger CLI - Deposit Ledger Maintenance

Records deposit and withdrawal events against the YAML deposit ledger in the
data directory, and inspects or resets wallet records.
"""

from decimal import Decimal

import click

from ..core.currency import format_usd
from ..ledger.deposit_ledger import DepositLedger
from .params import parse_amount, validate_address


def _ledger(ctx: click.Context) -> DepositLedger:
    return DepositLedger.from_config(ctx.obj["config"])


@click.group()
def ledger() -> None:
    """Deposit ledger commands."""
    pass


@ledger.command()
@click.argument("wallet", callback=validate_address)
@click.argument("amount", callback=parse_amount)
@click.pass_context
def deposit(ctx: click.Context, wallet: str, amount: Decimal) -> None:
    """
    Record a deposit of AMOUNT dollars for WALLET.

    Example:
      yieldrecon ledger deposit 0x... 100
    """
    total = _ledger(ctx).record_deposit(wallet, amount)
    if total is None:
        raise click.ClickException(f"Deposit rejected: {amount}")
    click.echo(f"Recorded deposit of {format_usd(amount)}; total deposited: {format_usd(total)}")


@ledger.command()
@click.argument("wallet", callback=validate_address)
@click.argument("withdrawn", callback=parse_amount)
@click.argument("value_before", callback=parse_amount)
@click.pass_context
def withdraw(ctx: click.Context, wallet: str, withdrawn: Decimal, value_before: Decimal) -> None:
    """
    Record a withdrawal of WITHDRAWN dollars out of VALUE_BEFORE total value.

    Example:
      yieldrecon ledger withdraw 0x... 60 120
    """
    total = _ledger(ctx).record_withdrawal(wallet, withdrawn, value_before)
    if total is None:
        raise click.ClickException(f"Withdrawal rejected: {withdrawn}")
    click.echo(f"Recorded withdrawal of {format_usd(withdrawn)}; total deposited: {format_usd(total)}")


@ledger.command()
@click.argument("wallet", required=False, callback=validate_address)
@click.pass_context
def show(ctx: click.Context, wallet: str | None) -> None:
    """Show one wallet's record, or every record."""
    deposit_ledger = _ledger(ctx)

    if wallet:
        record = deposit_ledger.get_record(wallet)
        if record is None:
            click.echo(f"No deposit record for {wallet}")
            return
        records = {wallet.lower(): record}
    else:
        records = deposit_ledger.store.all_records()

    if not records:
        click.echo("No deposit records.")
        return

    for address, record in sorted(records.items()):
        click.echo(f"{address}: {format_usd(record.total_deposited)} (updated {record.last_updated.isoformat()})")


@ledger.command()
@click.argument("wallet", callback=validate_address)
@click.option("--yes", is_flag=True, help="Do not prompt for confirmation")
@click.pass_context
def reset(ctx: click.Context, wallet: str, yes: bool) -> None:
    """Delete WALLET's deposit record."""
    if not yes:
        click.confirm(f"Reset deposit record for {wallet}?", abort=True)
    _ledger(ctx).reset(wallet)
    click.echo(f"Reset deposit record for {wallet}")
