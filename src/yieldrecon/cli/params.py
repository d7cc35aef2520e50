#!/usr/bin/env python3
"""Shared click parameter callbacks."""

from decimal import Decimal, InvalidOperation

import click

from ..history.registry import is_valid_address


def parse_amount(ctx: click.Context, param: click.Parameter, value: str | None) -> Decimal | None:
    """Click callback: parse a dollar amount."""
    if value is None:
        return None
    try:
        amount = Decimal(value.replace("$", "").replace(",", "").strip())
    except InvalidOperation:
        raise click.BadParameter(f"Not a number: {value}") from None
    if not amount.is_finite():
        raise click.BadParameter(f"Not a finite number: {value}")
    return amount


def validate_address(ctx: click.Context, param: click.Parameter, value: str | None) -> str | None:
    """Click callback: require a 0x address when given."""
    if value is not None and not is_valid_address(value):
        raise click.BadParameter(f"Not a valid address: {value}")
    return value
