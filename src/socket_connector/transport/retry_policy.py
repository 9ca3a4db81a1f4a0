"""Fixed-delay retry policy for connection errors.

A connection error is retried while the logical request still has retries
left. The delay between attempts is constant: no backoff growth, no jitter.
"""

from __future__ import annotations

from dataclasses import dataclass

from socket_connector.const import DEFAULT_RETRY_DELAY_SECONDS


@dataclass(frozen=True)
class RetryDecision:
    """Result of applying the policy to a retryable error.

    Attributes:
        retries_remaining: Counter value to carry into the next attempt
        delay_seconds: How long to wait before re-opening

    """

    retries_remaining: int
    delay_seconds: float


class RetryPolicy:
    """Bounded, fixed-delay retry policy."""

    def __init__(self, delay_seconds: float = DEFAULT_RETRY_DELAY_SECONDS):
        """Initialize retry policy.

        Args:
            delay_seconds: Delay before each re-attempt (default: 3.0s)
        """
        if delay_seconds < 0:
            msg = f"delay_seconds must not be negative, got {delay_seconds}"
            raise ValueError(msg)
        self.delay_seconds = delay_seconds

    def is_retryable(self, retries_remaining: int) -> bool:
        """Return True when a connection error may be retried."""
        if retries_remaining < 0:
            msg = f"retries_remaining must not be negative, got {retries_remaining}"
            raise ValueError(msg)
        return retries_remaining > 0

    def apply(self, retries_remaining: int) -> RetryDecision:
        """Consume one retry.

        Args:
            retries_remaining: Current counter (must be > 0)

        Returns:
            RetryDecision with the decremented counter and the fixed delay

        Raises:
            ValueError: If no retries remain
        """
        if not self.is_retryable(retries_remaining):
            msg = "No retries remaining"
            raise ValueError(msg)
        return RetryDecision(retries_remaining=retries_remaining - 1, delay_seconds=self.delay_seconds)

    def __repr__(self) -> str:
        return f"RetryPolicy(delay={self.delay_seconds}s)"
