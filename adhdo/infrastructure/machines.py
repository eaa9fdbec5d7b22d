import asyncio
from datetime import datetime
from typing import Callable, Dict, Optional
from enum import Enum

from adhdo.config import HYPERFOCUS_SECONDS, PENALTY_SECONDS, SHUFFLE_INTERVAL_SECONDS
from adhdo.infrastructure.event_bus import EventBus, EventType
from adhdo.infrastructure.logging import logger

class HyperfocusState(Enum):
    """States for the hyperfocus countdown."""
    IDLE = "idle"
    ACTIVE = "active"

class HyperfocusMachine:
    """
    Deterministic countdown for a hyperfocus session on one task.
    Ticks once per `tick_seconds`; each tick takes one second off the clock.
    """
    def __init__(self, event_bus: EventBus, tick_seconds: float = 1.0):
        self.state = HyperfocusState.IDLE
        self.item_id: Optional[str] = None
        self.remaining_time: float = 0.0
        self.penalties: int = 0
        self.started_at: Optional[datetime] = None
        self.tick_seconds = tick_seconds
        self.event_bus = event_bus
        self._active_task: Optional[asyncio.Task] = None

    @property
    def active(self) -> bool:
        return self.state == HyperfocusState.ACTIVE

    async def start(self, item_id: str, seconds: float = HYPERFOCUS_SECONDS) -> Dict:
        """Starts a countdown. A running session is ended as "replaced" first."""
        self._cancel_loop()
        if self.active:
            await self._finish("replaced")
        self.item_id = item_id
        self.remaining_time = max(0.0, seconds)
        self.penalties = 0

        if self.remaining_time <= 0:
            self.state = HyperfocusState.IDLE
            return {"status": "error", "message": "Hyperfocus needs a positive duration"}

        self.state = HyperfocusState.ACTIVE
        self.started_at = datetime.now()

        await self.event_bus.publish(EventType.HYPERFOCUS_STARTED, {
            "item_id": item_id,
            "seconds": self.remaining_time
        })

        self._active_task = asyncio.create_task(self._countdown_loop())

        return {
            "status": "started",
            "item_id": item_id,
            "remaining_time": self.remaining_time,
            "message": f"Hyperfocus on for {int(self.remaining_time)} seconds."
        }

    def tick(self) -> bool:
        """Advances the clock by one second. Returns True while still active."""
        if not self.active:
            return False
        if self.remaining_time > 1:
            self.remaining_time -= 1.0
            return True
        self.remaining_time = 0.0
        self.state = HyperfocusState.IDLE
        return False

    async def _countdown_loop(self):
        while self.active:
            await asyncio.sleep(self.tick_seconds)
            if not self.tick():
                await self._finish("completed")

    async def _finish(self, status: str):
        await self.event_bus.publish(EventType.HYPERFOCUS_ENDED, {
            "item_id": self.item_id,
            "status": status,
            "penalties": self.penalties
        })

    def add_penalty(self, seconds: float = PENALTY_SECONDS) -> Dict:
        """Puts a few seconds back on the clock."""
        if not self.active:
            return {"status": "error", "message": "No active hyperfocus session"}
        self.remaining_time += seconds
        self.penalties += 1
        return {"status": "penalized", "remaining_time": self.remaining_time}

    def _cancel_loop(self):
        if self._active_task and not self._active_task.done():
            self._active_task.cancel()
        self._active_task = None

    async def stop(self) -> Dict:
        """Ends the session early."""
        if not self.active:
            return {"status": "error", "message": "No active hyperfocus session"}

        self._cancel_loop()
        self.state = HyperfocusState.IDLE
        await self._finish("stopped")

        result = {"status": "stopped", "item_id": self.item_id, "remaining_time": self.remaining_time}
        self.remaining_time = 0.0
        return result

    def get_status(self) -> Dict:
        """Returns current status."""
        if not self.active:
            return {"state": "idle", "message": "No active session"}
        return {
            "state": self.state.value,
            "item_id": self.item_id,
            "remaining_time": self.remaining_time,
            "penalties": self.penalties
        }

class FeedShuffler:
    """
    Periodically calls `randomize()` on a feed.
    Skips a round while `is_paused()` is true (MPH mode, editing).
    """
    def __init__(
        self,
        feed,
        is_paused: Callable[[], bool] = lambda: False,
        interval_seconds: float = SHUFFLE_INTERVAL_SECONDS,
        event_bus: Optional[EventBus] = None,
    ):
        self.feed = feed
        self.is_paused = is_paused
        self.interval_seconds = interval_seconds
        self.event_bus = event_bus
        self.shuffle_count = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        if self.running:
            return
        self._task = asyncio.create_task(self._loop())

    def stop(self):
        if self._task:
            self._task.cancel()
        self._task = None

    async def fire(self) -> bool:
        """Runs one round. Returns True if the feed was reshuffled."""
        if self.is_paused() or self.feed.closed:
            return False
        self.feed.randomize()
        self.shuffle_count += 1
        logger.info("Task list reshuffled", extra={"props": {"round": self.shuffle_count}})
        if self.event_bus:
            await self.event_bus.publish(EventType.FEED_SHUFFLED, {"round": self.shuffle_count})
        return True

    async def _loop(self):
        while True:
            await asyncio.sleep(self.interval_seconds)
            await self.fire()
