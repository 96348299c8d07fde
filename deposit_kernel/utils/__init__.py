"""Utility modules for the deposit kernel."""

from deposit_kernel.utils.idempotency import (
    generate_idempotency_key,
    resolve_idempotency_key,
)

__all__ = [
    "generate_idempotency_key",
    "resolve_idempotency_key",
]
