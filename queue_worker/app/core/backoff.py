"""Backoff utilities.

`ErrorBackoff` hands out the delay to wait after a failed poll. Each
consecutive failure multiplies the delay by `multiplier`, capped at
`max_delay`; `reset()` is called after the next successful poll. With the
default multiplier of 1.0 the delay stays fixed at `initial_delay`.
"""
from __future__ import annotations


class ErrorBackoff:
    def __init__(
        self,
        initial_delay: float,
        max_delay: float,
        multiplier: float = 1.0,
    ) -> None:
        self._initial_delay = float(initial_delay)
        self._max_delay = max(float(max_delay), self._initial_delay)
        self._multiplier = float(multiplier)
        self._failures = 0
        self._current = self._initial_delay

    @property
    def failures(self) -> int:
        """Consecutive failures since the last reset."""
        return self._failures

    def next_delay(self) -> float:
        delay = self._current
        self._failures += 1
        # Stop growing at the cap so long outages cannot overflow.
        self._current = min(self._current * self._multiplier, self._max_delay)
        return min(delay, self._max_delay)

    def reset(self) -> None:
        self._failures = 0
        self._current = self._initial_delay
