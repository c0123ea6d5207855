"""Retry configuration for promptcron.

Immutable configuration for failed-execution retry behavior.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class RetryPolicy:
    """Backoff settings for automatic retries of failed executions.

    Delays are in minutes because retries are armed as one-shot triggers in the
    external scheduler, not slept in-process.
    """

    initial_delay_minutes: int = 30
    backoff_factor: int = 2
    max_delay_minutes: int = 240  # cap at 4 hours

    def delay_minutes(self, previous_retry_count: int) -> int:
        """Delay before the next retry.

        Args:
            previous_retry_count: Job retry_count before this retry was counted

        Returns:
            min(initial_delay * backoff_factor ** previous_retry_count, max_delay)
        """
        previous_retry_count = max(0, int(previous_retry_count))
        # Stop multiplying once the cap is reached.
        delay = self.initial_delay_minutes
        for _ in range(previous_retry_count):
            delay *= self.backoff_factor
            if delay >= self.max_delay_minutes:
                return self.max_delay_minutes
        return min(delay, self.max_delay_minutes)


DEFAULT_RETRY_POLICY = RetryPolicy()
