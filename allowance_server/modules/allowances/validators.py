"""Adjustment input validation, applied before anything is written."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Union

from .exceptions import ValidationError

Number = Union[Decimal, float, int, str]


def require_non_empty(value: str, field_name: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError(f"{field_name} must not be empty")
    return cleaned


def to_money(value: Number) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError("Amount must be a number")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"Amount is not a number: {value!r}") from exc
    if not amount.is_finite():
        raise ValidationError(f"Amount must be finite: {value!r}")
    return amount


def validate_adjustment_input(amount: Number, note: str) -> tuple[Decimal, str]:
    return to_money(amount), require_non_empty(note, "Adjustment note")
