"""Client-side pacing of middleware calls."""

import asyncio
import time


class CallPacer:
    """Spaces calls at least 60 / calls_per_minute seconds apart.

    Burst of one: a caller arriving early sleeps until its slot. Slots are
    reserved before sleeping, so concurrent callers queue in arrival order.
    calls_per_minute <= 0 disables pacing.
    """

    def __init__(self, calls_per_minute: int) -> None:
        self._interval = 60.0 / calls_per_minute if calls_per_minute > 0 else 0.0
        self._next_slot = 0.0

    async def acquire(self) -> None:
        if not self._interval:
            return
        now = time.monotonic()
        slot = max(now, self._next_slot)
        self._next_slot = slot + self._interval
        if slot > now:
            await asyncio.sleep(slot - now)
