"""Decimal parsing and rendering for monetary values. Money never passes through float arithmetic."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from payoutdesk.core.exceptions import BadRequestError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def _to_decimal(raw: Any, field: str) -> Decimal:
    # bool is an int subclass; JSON true/false is never a number here
    if raw is None or raw == "" or isinstance(raw, bool):
        raise BadRequestError(f"{field} is required and must be a number")
    if isinstance(raw, Decimal):
        value = raw
    elif isinstance(raw, (int, float, str)):
        try:
            # repr of a float is its shortest round-trip form: 30.1 -> "30.1"
            value = Decimal(repr(raw) if isinstance(raw, float) else str(raw).strip())
        except (InvalidOperation, ValueError) as exc:
            raise BadRequestError(f"{field} must be a number") from exc
    else:
        raise BadRequestError(f"{field} must be a number")
    if not value.is_finite():
        raise BadRequestError(f"{field} must be a finite number")
    return value


def _to_cents(value: Decimal, field: str) -> Decimal:
    try:
        cents = value.quantize(CENT)
    except InvalidOperation as exc:
        raise BadRequestError(f"{field} is out of range") from exc
    if value != cents:
        raise BadRequestError(f"{field} must have at most 2 decimal places")
    return cents


def parse_amount(raw: Any, field: str = "amount") -> Decimal:
    """Strictly positive monetary amount with cent precision."""
    value = _to_decimal(raw, field)
    if value <= 0:
        raise BadRequestError(f"{field} must be greater than 0")
    return _to_cents(value, field)


def parse_balance(raw: Any, field: str = "balance") -> Decimal:
    """Non-negative monetary balance with cent precision."""
    value = _to_decimal(raw, field)
    if value < 0:
        raise BadRequestError(f"{field} must not be negative")
    return _to_cents(value, field)


def parse_price(raw: Any, field: str = "price") -> Decimal:
    """Non-negative quote; precision is kept as given."""
    value = _to_decimal(raw, field)
    if value < 0:
        raise BadRequestError(f"{field} must not be negative")
    return value


def format_money(value: Decimal) -> str:
    return str(value.quantize(CENT, rounding=ROUND_HALF_UP))


def format_price(value: Decimal) -> str:
    # fixed-point: Decimal("1E+3") renders as "1000", never "1E+3"
    return format(value, "f")
