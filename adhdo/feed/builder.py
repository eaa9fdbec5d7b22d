"""
Pure feed construction.

Probabilities are percentages compared against a roll drawn from 0..100
inclusive: an advert follows an item when `roll < ad_probability`, and a done
item stays visible when `roll <= visibility_probability`. Open items are never
hidden.
"""

import random
from typing import List, Optional, Sequence

from adhdo.feed.adverts import ADVERT_LIST, pick_random_advert
from adhdo.feed.element import FeedElement
from adhdo.models.schemas import AdvertConfiguration, ToDoItem

def _roll(rng: random.Random) -> int:
    return rng.randint(0, 100)

def build_regular_feed(
    items: Sequence[ToDoItem],
    ad_probability: int,
    visibility_probability: int,
    shuffle: bool,
    rng: Optional[random.Random] = None,
    adverts: Sequence[AdvertConfiguration] = ADVERT_LIST,
) -> List[FeedElement]:
    """Builds the main feed: tasks, sabotaged done tasks and adverts."""
    rng = rng or random.Random()
    feed: List[FeedElement] = []

    for item in items:
        advert_visible = _roll(rng) < ad_probability
        item_visible = not item.done or _roll(rng) <= visibility_probability

        if item_visible:
            feed.append(FeedElement.content(item))
        else:
            feed.append(FeedElement.invisible_content(item))

        if advert_visible:
            feed.append(FeedElement.advert(pick_random_advert(adverts, rng)))

    if shuffle:
        rng.shuffle(feed)
    return feed

def build_mph_feed(items: Sequence[ToDoItem]) -> List[FeedElement]:
    """Content-only feed, one element per item in input order."""
    return [FeedElement.content(item) for item in items]
