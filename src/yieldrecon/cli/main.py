#!/usr/bin/env python3
"""
Main CLI Entry Point for yieldrecon

Provides unified command-line interface for history reconciliation and
deposit ledger maintenance.
"""

import logging
import os

import click

from ..core.config import reload_config
from .history import history
from .ledger import ledger


@click.group()
@click.option(
    "--config-env",
    type=click.Choice(["development", "test", "production"]),
    help="Override environment configuration",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config_env: str | None, verbose: bool, debug: bool) -> None:
    """
    yieldrecon - Yield Vault Transaction Reconciliation

    Classifies wallet token transfers, matches platform fees to withdrawals,
    and reconciles the history against the current balance.
    """
    # Ensure context object exists
    ctx.ensure_object(dict)

    # Set environment if specified
    if config_env:
        os.environ["YIELDRECON_ENV"] = config_env

    # Configure debug logging if requested
    if debug:
        os.environ["LOG_LEVEL"] = "DEBUG"

    try:
        config = reload_config()
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    if debug:
        logging.getLogger().setLevel(logging.DEBUG)
        logging.getLogger("yieldrecon").setLevel(logging.DEBUG)

    # Store global options
    ctx.obj["verbose"] = verbose
    ctx.obj["debug"] = debug
    ctx.obj["config"] = config

    if verbose:
        click.echo(f"Environment: {config.environment.value}")
        click.echo(f"Data directory: {config.data_dir}")

    if debug:
        click.echo("Debug logging enabled")


@main.command()
def version() -> None:
    """Show version information."""
    from yieldrecon import __version__

    click.echo(f"yieldrecon v{__version__}")


@main.command()
@click.pass_context
def config(ctx: click.Context) -> None:
    """Show current configuration."""
    config_obj = ctx.obj["config"]

    click.echo("Current Configuration:")
    click.echo(f"  Environment: {config_obj.environment.value}")
    click.echo(f"  Data Directory: {config_obj.data_dir}")
    click.echo(f"  Output Directory: {config_obj.output_dir}")
    click.echo(f"  Ledger File: {config_obj.ledger.ledger_file}")
    click.echo(f"  Explorer: {config_obj.explorer.base_url}")
    click.echo(f"  Token: {config_obj.explorer.token_address} ({config_obj.explorer.token_decimals} decimals)")
    click.echo(f"  Treasury: {config_obj.protocol.treasury_address or '(not set)'}")
    click.echo(f"  Fee Rate: {config_obj.protocol.fee_rate}")
    click.echo(f"  Cache TTL: {config_obj.cache.ttl_seconds}s")
    click.echo(f"  Debug Mode: {config_obj.debug}")
    click.echo(f"  Log Level: {config_obj.log_level}")


main.add_command(history)
main.add_command(ledger)


if __name__ == "__main__":
    main()
