"""Process-wide shutdown flag shared by the signal handlers and the consume loop."""
from __future__ import annotations

import threading


class ShutdownFlag:
    """Monotonic false -> true flag.

    Safe to set from a signal handler or another thread. Once set it is never
    cleared; the loop polls it between receives and between messages.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.RLock()

    def request(self) -> bool:
        """Set the flag. Returns True only for the call that flipped it."""
        with self._lock:
            if self._event.is_set():
                return False
            self._event.set()
            return True

    def is_set(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        """Sleep up to `timeout` seconds, returning early if shutdown is requested."""
        return self._event.wait(timeout)
