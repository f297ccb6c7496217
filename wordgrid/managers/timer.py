from __future__ import annotations
import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_ALLOWANCE_MS = 600_000
TICK_MS = 1000

@dataclass
class TurnClock:
    """Per-player countdown budgets and seat-order turn rotation."""

    allowance_ms: int = DEFAULT_ALLOWANCE_MS
    remaining: Dict[int, int] = field(default_factory=dict)
    current: Optional[int] = None
    paused: bool = True

    def seat(self, player_ids: Iterable[int], first: Optional[int] = None):
        self.remaining = { pid: self.allowance_ms for pid in player_ids }
        order = self.order
        self.current = first if first in self.remaining else (order[0] if order else None)
        self.paused = self.current is None

    @property
    def order(self) -> List[int]:
        return sorted(self.remaining)

    def remaining_ms(self, player_id: int) -> int:
        return max(0, self.remaining.get(player_id, 0))

    def is_exhausted(self, player_id: int) -> bool:
        return self.remaining_ms(player_id) <= 0

    def tick(self, elapsed_ms: int = TICK_MS) -> bool:
        """Charge ``elapsed_ms`` to the current player. True when their time just ran out."""
        if self.paused or self.current is None or self.is_exhausted(self.current):
            return False
        self.remaining[self.current] = max(0, self.remaining[self.current] - elapsed_ms)
        return self.remaining[self.current] == 0

    def next_player(self) -> Optional[int]:
        order = self.order
        if not order:
            return None
        start = order.index(self.current) if self.current in order else -1
        for step in range(1, len(order) + 1):
            candidate = order[(start + step) % len(order)]
            if not self.is_exhausted(candidate):
                return candidate
        return None

    def advance(self) -> Optional[int]:
        nxt = self.next_player()
        if nxt is None:
            # everyone is out of time; stop rotating
            self.paused = True
            logger.info("All players out of time; clock stalled on %s", self.current)
            return None
        self.current = nxt
        return nxt


class ClockTicker:
    """Background loop calling ``on_tick(elapsed_ms)`` every ``tick_ms``."""

    def __init__(self, on_tick: Callable[[int], Any], tick_ms: int = TICK_MS):
        self.on_tick = on_tick
        self.tick_ms = tick_ms
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        if not self.running:
            self._task = asyncio.create_task(self._run())

    def stop(self):
        if self._task:
            self._task.cancel()
            self._task = None

    async def _run(self):
        try:
            while True:
                await asyncio.sleep(self.tick_ms / 1000)
                result = self.on_tick(self.tick_ms)
                if inspect.isawaitable(result):
                    await result
        except asyncio.CancelledError:
            return
