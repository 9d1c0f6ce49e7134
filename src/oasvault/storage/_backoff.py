"""Wait schedule between lock acquisition attempts."""

import random
import time
from collections.abc import Iterator
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RetrySchedule:
    """Exponentially growing waits, bounded by a retry count and a deadline.

    Waits double from ``interval`` up to ``max_interval``. Each one is shifted
    by up to ``jitter / 2`` of itself so that writers blocked on the same lock
    file do not poll in lockstep.

    Attributes:
        retries: Number of waits between attempts.
        interval: First wait in seconds.
        max_interval: Cap on a single wait in seconds.
        jitter: Fraction of each wait to randomize (0.0-1.0).
    """

    retries: int
    interval: float
    max_interval: float
    jitter: float = 0.1

    def wait(self, retry: int) -> float:
        """Return the wait before retry number ``retry`` (0-indexed)."""
        wait = min(self.interval * 2**retry, self.max_interval)
        if self.jitter > 0:
            spread = wait * self.jitter / 2
            wait = max(0.0, wait + random.uniform(-spread, spread))  # noqa: S311
        return wait

    def waits(self, deadline: float) -> Iterator[float]:
        """Yield each wait, clipped so that none runs past ``deadline``.

        Args:
            deadline: A ``time.monotonic()`` value.

        Yields:
            At most ``retries`` waits; none once the deadline has passed.
        """
        for retry in range(self.retries):
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return
            yield min(self.wait(retry), remaining)
