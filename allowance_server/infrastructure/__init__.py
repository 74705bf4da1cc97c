"""Storage adapters for the allowance domain."""
