"""In-process repository implementations."""

from .claim_store import InMemoryClaimStore, MemoryState

__all__ = ["InMemoryClaimStore", "MemoryState"]
