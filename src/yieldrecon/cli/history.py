#!/usr/bin/env python3
"""
History CLI - Wallet Reconciliation Commands

Summaries, audit trails, statements and arbitrated deposited values for a
wallet, from a saved explorer response or fetched live.
"""

from collections.abc import Callable
from datetime import datetime
from decimal import Decimal
from pathlib import Path

import click

from ..core.currency import format_usd
from ..core.dates import DateRange, DateRangePreset, date_range_preset
from ..core.json_utils import format_json, read_json
from ..core.models import RawTransfer, TransactionSummary
from ..history.explorer import ExplorerError
from ..history.service import TransactionHistoryService
from ..history.statement import write_statement
from ..ledger.deposit_ledger import DepositLedger
from .params import parse_amount, validate_address


def load_transfers_file(path: Path) -> list[RawTransfer]:
    """
    Load raw transfers from a saved explorer response.

    Accepts either the full response (`{"status": "1", "result": [...]}`) or
    just the result list.
    """
    data = read_json(path)
    if isinstance(data, dict):
        data = data.get("result") or []
    if not isinstance(data, list):
        raise click.ClickException(f"Unrecognized transfers file: {path}")
    return [RawTransfer.from_dict(entry) for entry in data if isinstance(entry, dict)]


def wallet_options(func: Callable) -> Callable:
    """Options shared by every history command."""
    options = [
        click.option("--wallet", required=True, callback=validate_address, help="Wallet address"),
        click.option(
            "--transfers",
            "transfers_file",
            type=click.Path(exists=True, dir_okay=False, path_type=Path),
            help="Saved explorer tokentx response (default: fetch live)",
        ),
        click.option("--treasury", callback=validate_address, help="Treasury address (default: TREASURY_ADDRESS)"),
        click.option("--other-owned", callback=validate_address, help="Another address owned by the same holder"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def range_options(func: Callable) -> Callable:
    """Date range options."""
    options = [
        click.option(
            "--preset",
            type=click.Choice([preset.value for preset in DateRangePreset]),
            default=DateRangePreset.ALL_TIME.value,
            show_default=True,
            help="Reporting period",
        ),
        click.option("--from", "from_date", type=click.DateTime(formats=["%Y-%m-%d"]), help="Start date (custom range)"),
        click.option("--to", "to_date", type=click.DateTime(formats=["%Y-%m-%d"]), help="End date (custom range)"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def resolve_date_range(preset: str, from_date: datetime | None, to_date: datetime | None) -> DateRange:
    """Build the reporting range; --from/--to imply a custom range."""
    if from_date is None and to_date is None:
        return date_range_preset(preset)

    default_range = DateRange.all_time()
    start = from_date.date() if from_date else default_range.start.date()
    end = to_date.date() if to_date else default_range.end.date()
    if start > end:
        raise click.BadParameter("--from must not be after --to")
    return date_range_preset(DateRangePreset.CUSTOM, DateRange.from_dates(start, end))


def _build_service(ctx: click.Context, treasury: str | None) -> TransactionHistoryService:
    try:
        return TransactionHistoryService.from_config(ctx.obj["config"], treasury_address=treasury)
    except ValueError as e:
        raise click.ClickException(str(e)) from e


def _transfers(transfers_file: Path | None) -> list[RawTransfer] | None:
    return load_transfers_file(transfers_file) if transfers_file else None


def print_summary(summary: TransactionSummary) -> None:
    """Print a summary and its sanity checks."""
    click.echo("Vault Operations:")
    click.echo(f"  Deposited to vaults:   {summary.total_deposited_to_vaults}")
    click.echo(f"  Withdrawn from vaults: {summary.total_withdrawn_from_vaults}")
    click.echo(f"  Net deposited:         {summary.net_deposited}")
    click.echo(f"  Current balance:       {summary.current_balance}")
    click.echo(f"  Unrealized earnings:   {summary.unrealized_earnings}")
    click.echo()
    click.echo("Realized Yield:")
    click.echo(f"  Fees paid:             {summary.total_fees}")
    click.echo(f"  Gross yield realized:  {summary.gross_yield_realized}")
    click.echo(f"  Realized earnings:     {summary.realized_earnings}")
    click.echo()
    click.echo("External Cash Flow:")
    click.echo(f"  Received:              {summary.total_receives}")
    click.echo(f"  Sent:                  {summary.total_sends}")
    click.echo(f"  Fees (matched):        {summary.total_fees_external}")
    click.echo()
    click.echo(
        f"Transactions: {summary.transaction_count} "
        f"(raw transfers: {summary.raw_transfer_count}, skipped: {summary.skipped_count})"
    )

    checks = summary.sanity_checks
    if checks.all_passed:
        click.echo("Sanity checks: all passed")
    else:
        click.echo(f"Sanity checks: FAILED ({', '.join(checks.failed_checks)})")


@click.group()
def history() -> None:
    """Wallet transaction history and reconciliation commands."""
    pass


@history.command()
@wallet_options
@range_options
@click.option("--balance", required=True, callback=parse_amount, help="Current wallet balance in dollars")
@click.option("--json", "as_json", is_flag=True, help="Print the full result as JSON")
@click.pass_context
def summary(
    ctx: click.Context,
    wallet: str,
    transfers_file: Path | None,
    treasury: str | None,
    other_owned: str | None,
    preset: str,
    from_date: datetime | None,
    to_date: datetime | None,
    balance: Decimal,
    as_json: bool,
) -> None:
    """
    Reconcile a wallet's history against its current balance.

    Examples:
      yieldrecon history summary --wallet 0x... --balance 105.20
      yieldrecon history summary --wallet 0x... --balance 105.20 --transfers tokentx.json --preset ytd
    """
    service = _build_service(ctx, treasury)
    date_range = resolve_date_range(preset, from_date, to_date)

    try:
        result = service.get_history(
            wallet, balance, date_range, transfers=_transfers(transfers_file), other_owned_address=other_owned
        )
    except ExplorerError as e:
        raise click.ClickException(str(e)) from e

    if as_json:
        click.echo(format_json(result.to_dict()))
        return

    click.echo(f"Wallet: {wallet}")
    click.echo(f"Period: {date_range.start.date()} to {date_range.end.date()}")
    click.echo("=" * 60)
    print_summary(result.summary)

    if ctx.obj.get("verbose", False) and result.fee_report is not None:
        report = result.fee_report
        click.echo(
            f"Fees matched: {report.matched_count} ({report.matched_amount}), "
            f"reclassified as sends: {report.reclassified_count}"
        )


@history.command()
@wallet_options
@click.option(
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the audit lines to a CSV file",
)
@click.pass_context
def audit(
    ctx: click.Context,
    wallet: str,
    transfers_file: Path | None,
    treasury: str | None,
    other_owned: str | None,
    output: Path | None,
) -> None:
    """
    Print a line-by-line audit trail of the wallet's full history.

    Example:
      yieldrecon history audit --wallet 0x... --transfers tokentx.json --output audit.csv
    """
    service = _build_service(ctx, treasury)

    try:
        trail = service.get_audit_trail(wallet, transfers=_transfers(transfers_file), other_owned_address=other_owned)
    except ExplorerError as e:
        raise click.ClickException(str(e)) from e

    if trail.lines:
        click.echo(trail.to_dataframe().to_string(index=False))
    else:
        click.echo("No transactions.")

    click.echo()
    click.echo(f"Total deposited to vaults:   {trail.total_deposited}")
    click.echo(f"Total withdrawn from vaults: {trail.total_withdrawn}")
    click.echo(f"Net vault position:          {trail.vault_position}")
    click.echo(f"Accumulated fees paid:       {trail.accumulated_fees}")
    click.echo(f"Gross yield (fees / rate):   {trail.gross_yield}")
    click.echo(f"Net realized yield:          {trail.realized_yield}")
    click.echo(f"Verification: {'PASS' if trail.verified else 'FAIL'} (expected {trail.expected_realized_yield})")

    if output:
        path = trail.export_csv(output)
        click.echo(f"Audit trail written to {path}")


@history.command()
@wallet_options
@range_options
@click.option("--balance", required=True, callback=parse_amount, help="Current wallet balance in dollars")
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory for the statement (default: reports directory)",
)
@click.pass_context
def export(
    ctx: click.Context,
    wallet: str,
    transfers_file: Path | None,
    treasury: str | None,
    other_owned: str | None,
    preset: str,
    from_date: datetime | None,
    to_date: datetime | None,
    balance: Decimal,
    output_dir: Path | None,
) -> None:
    """
    Export a CSV account statement.

    Example:
      yieldrecon history export --wallet 0x... --balance 105.20 --preset last_year
    """
    service = _build_service(ctx, treasury)
    date_range = resolve_date_range(preset, from_date, to_date)

    try:
        result = service.get_history(
            wallet, balance, date_range, transfers=_transfers(transfers_file), other_owned_address=other_owned
        )
    except ExplorerError as e:
        raise click.ClickException(str(e)) from e

    path = write_statement(result, output_dir or ctx.obj["config"].output_dir)
    click.echo(f"Statement written to {path}")


@history.command()
@wallet_options
@click.option("--balance", required=True, callback=parse_amount, help="Current wallet balance in dollars")
@click.option("--ledger-value", callback=parse_amount, help="Ledger deposited value (default: read the ledger)")
@click.pass_context
def deposited(
    ctx: click.Context,
    wallet: str,
    transfers_file: Path | None,
    treasury: str | None,
    other_owned: str | None,
    balance: Decimal,
    ledger_value: Decimal | None,
) -> None:
    """
    Show the trusted deposited value and total earnings.

    Example:
      yieldrecon history deposited --wallet 0x... --balance 360
    """
    service = _build_service(ctx, treasury)
    if ledger_value is None:
        ledger_value = DepositLedger.from_config(ctx.obj["config"]).get_total_deposited(wallet)

    try:
        earnings = service.get_total_earnings(
            wallet, balance, ledger_value, transfers=_transfers(transfers_file), other_owned_address=other_owned
        )
    except ExplorerError as e:
        raise click.ClickException(str(e)) from e

    estimate = earnings.deposited
    click.echo(f"Deposited: {estimate.value} (source: {estimate.source.value}, rule: {estimate.rule})")
    click.echo(f"Ledger value: {format_usd(ledger_value)}")
    click.echo(f"Realized earnings: {earnings.realized}")
    click.echo(f"Unrealized earnings: {earnings.unrealized}")
    click.echo(f"Total earnings: {earnings.total} ({earnings.source.value})")
