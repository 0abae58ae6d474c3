"""Per-operation correlation IDs.

A batch send (with all of its resend passes and reconnects) or a feedback
fetch is one operation; every log line it emits carries the same ID.
"""

from __future__ import annotations

import contextvars
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from typing import cast

from uuid_extensions import uuid7

__all__ = [
    "correlation_context",
    "generate_correlation_id",
    "get_correlation_id",
    "set_correlation_id",
]

_operation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "apns_operation_id",
    default=None,
)


def generate_correlation_id() -> str:
    """Time-ordered UUIDv7 string; IDs from one process sort by start time."""
    return str(cast(uuid.UUID, uuid7()))


def get_correlation_id() -> str | None:
    return _operation_id.get()


def set_correlation_id(correlation_id: str | None) -> contextvars.Token[str | None]:
    """Replace the current ID (None clears it) and return the reset token."""
    return _operation_id.set(correlation_id)


@contextmanager
def correlation_context(
    correlation_id: str | None = None,
    auto_generate: bool = True,
) -> Iterator[str | None]:
    """Run the enclosed block as one operation.

    An explicit ``correlation_id`` wins. Otherwise an enclosing operation's ID
    is kept, so a resend pass logs under its batch; a fresh ID is generated
    only at the outermost level, and only when ``auto_generate`` is set.

    Yields:
        The ID in effect inside the block

    Example:
        with correlation_context() as operation_id:
            logger.info("Sending batch")  # tagged with operation_id

    """
    if correlation_id is None:
        correlation_id = get_correlation_id()
        if correlation_id is None and auto_generate:
            correlation_id = generate_correlation_id()

    token = _operation_id.set(correlation_id)
    try:
        yield correlation_id
    finally:
        _operation_id.reset(token)
