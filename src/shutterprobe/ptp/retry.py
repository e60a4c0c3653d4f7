"""Bounded retry policies for the polling loops."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable, Iterator


@dataclass(frozen=True)
class RetryPolicy:
    """At most ``max_attempts`` tries, sleeping ``interval`` seconds between them."""

    max_attempts: int
    interval: float = 0.0
    sleep: Callable[[float], None] = field(default=time.sleep, compare=False)

    def attempts(self) -> Iterator[int]:
        """Yield attempt numbers, sleeping before every attempt but the first."""
        for attempt in range(self.max_attempts):
            if attempt and self.interval > 0:
                self.sleep(self.interval)
            yield attempt


# Empty reads tolerated while waiting for a data container header
HEADER_WAIT = RetryPolicy(max_attempts=3, interval=0.010)

# GetEvent calls used to drain pending Canon events
EVENT_DRAIN = RetryPolicy(max_attempts=5)

# GetEvent calls after RequestDevicePropValue
PROP_POLL = RetryPolicy(max_attempts=5, interval=0.200)
