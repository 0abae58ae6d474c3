"""Retry budgets for connection setup and in-flight operations.

The gateway either accepts a connection or it does not; backing off
exponentially only delays a restarted gateway's recovery, so both budgets use
a fixed delay and a hard attempt cap.
"""

from __future__ import annotations

DEFAULT_MAX_ATTEMPTS = 5
CONNECT_RETRY_DELAY_SECONDS = 1.0


class RetryPolicy:
    """Fixed-delay retry policy with a hard attempt cap.

    ``max_attempts`` counts the first try, so 5 means one attempt plus four
    retries.
    """

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        delay_seconds: float = 0.0,
    ):
        """Initialize retry policy.

        Args:
            max_attempts: Total attempts including the first (default: 5)
            delay_seconds: Pause before each retry (default: none)
        """
        if max_attempts < 1:
            msg = f"max_attempts must be at least 1, got {max_attempts}"
            raise ValueError(msg)
        self.max_attempts = max_attempts
        self.delay_seconds = delay_seconds

    def get_delay(self, attempt: int) -> float:
        """Delay before retrying after ``attempt`` (1-indexed) failed."""
        del attempt
        return self.delay_seconds

    def should_retry(self, attempt: int) -> bool:
        """Whether another attempt is allowed after ``attempt`` (1-indexed) failed."""
        return attempt < self.max_attempts

    def __repr__(self) -> str:
        return f"RetryPolicy(max_attempts={self.max_attempts}, delay={self.delay_seconds}s)"


def connect_retry_policy() -> RetryPolicy:
    """Policy for opening sessions: 5 attempts, 1 second apart."""
    return RetryPolicy(max_attempts=DEFAULT_MAX_ATTEMPTS, delay_seconds=CONNECT_RETRY_DELAY_SECONDS)


def operation_retry_policy() -> RetryPolicy:
    """Policy for re-running an operation after the channel dropped: 5 attempts, no pause."""
    return RetryPolicy(max_attempts=DEFAULT_MAX_ATTEMPTS)
