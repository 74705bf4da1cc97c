"""Period keys and time helpers for allowance claims."""

from __future__ import annotations

import calendar
import re
import time
from datetime import date
from typing import Optional

from .exceptions import ValidationError
from .models import END_OF_PROGRAM_PERIOD, AllowanceRules, PayoutFrequency

_MONTH_KEY_RE = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")


def now_ms() -> int:
    return int(time.time() * 1000)


def month_key(value: date) -> str:
    return f"{value.year:04d}-{value.month:02d}"


def period_key_for(rules: AllowanceRules, on: date) -> str:
    if rules.payout_frequency is PayoutFrequency.END_OF_PROGRAM:
        return END_OF_PROGRAM_PERIOD
    return month_key(on)


def validate_period_key(period_key: str) -> str:
    if period_key == END_OF_PROGRAM_PERIOD or _MONTH_KEY_RE.match(period_key or ""):
        return period_key
    raise ValidationError(f"Invalid period key: {period_key!r}")


def period_bounds(period_key: str) -> tuple[Optional[date], Optional[date]]:
    """Return the first and last day of a period; ``None`` means unbounded."""
    validate_period_key(period_key)
    if period_key == END_OF_PROGRAM_PERIOD:
        return None, None
    year, month = (int(part) for part in period_key.split("-"))
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)
