"""Fixed-interval throttle for sequential calls to external APIs.

Third-party metadata APIs publish per-second request limits. Callers invoke
``wait()`` before each request; the limiter sleeps just long enough to keep
consecutive calls at least ``interval_seconds`` apart. It does not adapt to
server feedback.
"""

import time
from typing import Callable

from aws_lambda_powertools import Logger

logger = Logger(service="rate-limiter")


class FixedIntervalRateLimiter:
    """Enforce a minimum delay between consecutive calls.

    Example:
        >>> limiter = FixedIntervalRateLimiter(1.5)
        >>> for name in names:
        ...     limiter.wait()
        ...     lookup(name)
    """

    def __init__(
        self,
        interval_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if interval_seconds < 0:
            raise ValueError("interval_seconds must be >= 0")
        self.interval_seconds = interval_seconds
        self._clock = clock
        self._sleep = sleep
        self._last_call: float | None = None

    def wait(self) -> float:
        """Block until the next call is allowed.

        Returns:
            Seconds slept (0.0 for the first call or when already due)
        """
        slept = 0.0
        now = self._clock()

        if self._last_call is not None:
            remaining = self._last_call + self.interval_seconds - now
            if remaining > 0:
                logger.debug("Throttling external call", extra={"sleep_seconds": round(remaining, 3)})
                self._sleep(remaining)
                slept = remaining
                now = max(self._clock(), self._last_call + self.interval_seconds)

        self._last_call = now
        return slept

    def reset(self) -> None:
        """Forget the previous call so the next one runs immediately."""
        self._last_call = None
