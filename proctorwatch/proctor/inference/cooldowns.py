"""
Cooldown Ledger - Last-emission instants per key
"""

from typing import Dict, Hashable, Optional


class CooldownLedger:
    """
    Tracks when each key last fired and whether it may fire again.

    A key is in cooldown while `now - last < window`. Keys that never
    fired are never in cooldown.
    """

    def __init__(self, clock, windows: Optional[Dict[Hashable, float]] = None, default: float = 10.0):
        """
        Args:
            clock: Object with a monotonic time() method
            windows: Per-key cooldown windows in seconds
            default: Window for keys without an explicit entry
        """
        self.clock = clock
        self.windows = dict(windows or {})
        self.default = default
        self._last: Dict[Hashable, float] = {}

    def window(self, key: Hashable) -> float:
        return self.windows.get(key, self.default)

    def remaining(self, key: Hashable) -> float:
        last = self._last.get(key)
        if last is None:
            return 0.0
        return max(0.0, self.window(key) - (self.clock.time() - last))

    def in_cooldown(self, key: Hashable) -> bool:
        last = self._last.get(key)
        if last is None:
            return False
        return self.clock.time() - last < self.window(key)

    def record(self, key: Hashable):
        self._last[key] = self.clock.time()

    def clear(self):
        self._last.clear()

    def __contains__(self, key: Hashable) -> bool:
        return key in self._last

    def __len__(self) -> int:
        return len(self._last)
