import asyncio
from collections import deque
from datetime import datetime
from typing import Dict, List, Any, Callable
from enum import Enum

from adhdo.infrastructure.logging import logger

class EventType(Enum):
    """Typed events for the event bus."""
    STORE_SAVED = "store_saved"
    STORE_REMOTE_CHANGE = "store_remote_change"
    HYPERFOCUS_STARTED = "hyperfocus_started"
    HYPERFOCUS_ENDED = "hyperfocus_ended"
    FEED_SHUFFLED = "feed_shuffled"

# Every one of these means "the task store may have changed"
STORE_CHANGE_EVENTS = (EventType.STORE_SAVED, EventType.STORE_REMOTE_CHANGE)

# Oldest events drop off once the log is full
EVENT_LOG_SIZE = 100

class EventBus:
    """
    Async event bus for decoupled component communication.
    Handlers run on the publisher's event loop, one after another.
    """
    def __init__(self, log_size: int = EVENT_LOG_SIZE):
        self._subscribers: Dict[EventType, List[Callable]] = {}
        self._event_log: deque = deque(maxlen=log_size)

    def subscribe(self, event_type: EventType, handler: Callable):
        """Subscribe a handler to an event type."""
        if event_type not in self._subscribers:
            self._subscribers[event_type] = []
        if handler not in self._subscribers[event_type]:
            self._subscribers[event_type].append(handler)

    def unsubscribe(self, event_type: EventType, handler: Callable):
        """Remove a handler from an event type."""
        if event_type in self._subscribers:
            try:
                self._subscribers[event_type].remove(handler)
            except ValueError:
                pass

    def unsubscribe_all(self, event_type: EventType):
        """Remove all handlers for an event type."""
        self._subscribers.pop(event_type, None)

    def has_subscribers(self, event_type: EventType) -> bool:
        return bool(self._subscribers.get(event_type))

    async def publish(self, event_type: EventType, data: Dict[str, Any]):
        """Publish an event to all subscribers."""
        event = {
            "type": event_type.value,
            "data": data,
            "timestamp": datetime.now().isoformat()
        }
        self._event_log.append(event)
        logger.info(f"[EVENT] {event_type.value}", extra={"props": {"event": event_type.value, "data": data}})

        # Iterate over a copy so handlers may unsubscribe during dispatch
        if event_type in self._subscribers:
            for handler in list(self._subscribers[event_type]):
                try:
                    if asyncio.iscoroutinefunction(handler):
                        await handler(data)
                    else:
                        handler(data)
                except Exception as e:
                    logger.error(f"[EVENT ERROR] Handler failed: {e}", exc_info=True)

    def get_recent_events(self, count: int = 10) -> List[Dict]:
        """Returns recent events."""
        return list(self._event_log)[-count:]

EVENT_BUS = EventBus()
