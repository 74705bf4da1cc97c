"""Internship allowance and payout reconciliation service."""

__version__ = "0.1.0"
