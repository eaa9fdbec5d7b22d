import random
from typing import Callable, Iterable, List, Optional, Sequence

from adhdo.feed.adverts import ADVERT_LIST
from adhdo.feed.builder import build_mph_feed, build_regular_feed
from adhdo.feed.element import FeedElement
from adhdo.infrastructure.event_bus import EVENT_BUS, STORE_CHANGE_EVENTS, EventBus
from adhdo.infrastructure.logging import logger
from adhdo.infrastructure.task_store import TaskStore
from adhdo.models.filters import TaskFilter
from adhdo.models.schemas import AdvertConfiguration, ToDoItem

FeedListener = Callable[["Feed"], None]

class Feed:
    """
    Builds and holds the two feed projections for a task filter.

    - `regular`: tasks mixed with adverts and sabotaged (invisible) done tasks
    - `mph`: content only, in fetch order

    The feed subscribes to store change events on construction and rebuilds
    both projections whenever one arrives. All mutation happens on the event
    loop that publishes those events; call `close()` (or use the feed as a
    context manager) to stop listening.
    """
    def __init__(
        self,
        store: TaskStore,
        ad_probability: int,
        visibility_probability: int,
        shuffle: bool = True,
        task_filter: TaskFilter = TaskFilter.ALL,
        event_bus: EventBus = EVENT_BUS,
        rng: Optional[random.Random] = None,
        adverts: Sequence[AdvertConfiguration] = ADVERT_LIST,
    ):
        self.store = store
        self.event_bus = event_bus
        self.ad_probability = ad_probability
        self.visibility_probability = visibility_probability
        self.shuffle = shuffle
        self.task_filter = task_filter
        self.adverts = adverts
        self._rng = rng or random.Random()
        self._listeners: List[FeedListener] = []
        self._closed = False

        self.items: List[ToDoItem] = self._fetch()
        self.mph: List[FeedElement] = build_mph_feed(self.items)
        self.regular: List[FeedElement] = self._build_regular()
        self._observe_store()

    # --- Store observation ---

    def _observe_store(self):
        for event_type in STORE_CHANGE_EVENTS:
            self.event_bus.subscribe(event_type, self._on_store_changed)

    def _on_store_changed(self, data):
        # A notification may already be in flight when close() runs
        if self._closed:
            return
        self.refresh()

    def close(self):
        """Stops listening for store changes. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        for event_type in STORE_CHANGE_EVENTS:
            self.event_bus.unsubscribe(event_type, self._on_store_changed)
        self._listeners.clear()

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    # --- Listeners ---

    def add_listener(self, listener: FeedListener):
        """Registers a callback run with this feed after every rebuild."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: FeedListener):
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def _notify(self):
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception as e:
                logger.error(f"Feed listener failed: {e}", exc_info=True)

    # --- Building ---

    def _fetch(self) -> List[ToDoItem]:
        try:
            return self.store.fetch(self.task_filter)
        except Exception as e:
            # Feed content is not critical: show nothing rather than fail
            logger.warning(
                f"Fetching tasks for the feed failed: {e}",
                exc_info=True,
                extra={"props": {"filter": self.task_filter.title}},
            )
            return []

    def _build_regular(self) -> List[FeedElement]:
        return build_regular_feed(
            self.items,
            ad_probability=self.ad_probability,
            visibility_probability=self.visibility_probability,
            shuffle=self.shuffle,
            rng=self._rng,
            adverts=self.adverts,
        )

    def refresh(self, task_filter: Optional[TaskFilter] = None):
        """Re-fetches items (optionally with a new filter) and rebuilds both feeds."""
        if task_filter is not None:
            self.task_filter = task_filter
        self.items = self._fetch()
        self.mph = build_mph_feed(self.items)
        self.regular = self._build_regular()
        self._notify()

    def randomize(self):
        """Rebuilds `regular` from the current items without re-fetching."""
        self.regular = self._build_regular()
        self._notify()

    # --- Access ---

    def current(self, mph: bool = False) -> List[FeedElement]:
        return self.mph if mph else self.regular

    def items_at(self, indices: Iterable[int], mph: bool = False) -> List[ToDoItem]:
        """Maps feed positions to their tasks. Advert rows are skipped."""
        elements = self.current(mph)
        return [elements[i].item for i in indices if elements[i].item is not None]
