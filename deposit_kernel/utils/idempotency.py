"""
Idempotency key utilities.

The idempotency key of a deposit creation doubles as the stored
time-deposit document id, so the same key always resolves to the same
record, even under retries and concurrent submissions.
"""

from typing import Any
from uuid import uuid4


def generate_idempotency_key() -> str:
    """A fresh random key (UUID4 string)."""
    return str(uuid4())


def resolve_idempotency_key(request_id: Any = None) -> str:
    """
    Return the caller's request id, or a freshly generated key.

    A generated key makes the request non-repeatable: callers that want
    retry safety MUST supply a stable request id themselves.

    Example:
        >>> resolve_idempotency_key("  req-42 ")
        'req-42'
    """
    if isinstance(request_id, str) and request_id.strip():
        return request_id.strip()
    return generate_idempotency_key()

