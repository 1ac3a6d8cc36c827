"""
Debounce Timers - Single-shot, cancelable delayed violations

A timer only fires if the condition that started it is not cleared within
its delay. Timers run on the asyncio event loop, the same loop that processes
frames, so a firing timer never interleaves with a frame.
"""

import asyncio
import logging
import time
from typing import Callable, Dict, Hashable

logger = logging.getLogger(__name__)


class LoopClock:
    """
    Monotonic time and delayed callbacks from the running asyncio loop.

    Anything with the same two methods (time, call_later) can stand in,
    which is how tests drive the engine without real sleeps.
    """

    def time(self) -> float:
        # Same clock asyncio's default loop uses
        return time.monotonic()

    def call_later(self, delay: float, callback: Callable[[], None]):
        return asyncio.get_running_loop().call_later(delay, callback)


class DebounceTimers:
    """
    At most one pending timer per key.

    - start() while a timer is pending is a no-op and does not reset the delay
    - cancel() removes a pending timer without firing it; absent keys are fine
    - a timer drops its own entry before running its callback
    """

    def __init__(self, clock):
        self.clock = clock
        self._pending: Dict[Hashable, object] = {}

    def start(self, key: Hashable, delay: float, callback: Callable[[], None]) -> bool:
        """
        Start a timer for key.

        Returns:
            True if a new timer was scheduled, False if one was already pending
        """
        if key in self._pending:
            logger.debug(f"Timer already active for {key}")
            return False

        handle = None

        def fire():
            # A handle replaced or cancelled after scheduling must not fire
            if self._pending.get(key) is not handle:
                return
            del self._pending[key]
            logger.debug(f"Timer fired for {key}")
            callback()

        handle = self.clock.call_later(delay, fire)
        self._pending[key] = handle
        logger.debug(f"Started {delay}s timer for {key}")
        return True

    def cancel(self, key: Hashable) -> bool:
        handle = self._pending.pop(key, None)
        if handle is None:
            return False
        handle.cancel()
        logger.debug(f"Cleared timer for {key}")
        return True

    def cancel_all(self):
        for key in list(self._pending):
            self.cancel(key)

    def is_pending(self, key: Hashable) -> bool:
        return key in self._pending

    def pending(self) -> list:
        return list(self._pending)

    def __len__(self) -> int:
        return len(self._pending)
