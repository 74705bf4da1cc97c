"""Feature modules of the allowance service."""

from . import allowances, attendance, wallets

__all__ = [
    "allowances",
    "attendance",
    "wallets",
]
