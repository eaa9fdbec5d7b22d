from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from adhdo.models.schemas import AdvertConfiguration, ToDoItem

class FeedElementKind(Enum):
    CONTENT = "content"
    INVISIBLE_CONTENT = "invisible_content"
    ADVERT = "advert"

@dataclass(frozen=True, eq=False)
class FeedElement:
    """
    One row of a feed: a visible task, a sabotaged (invisible) task, or an advert.

    Equality and hashing go through `id` only. Both content variants share the
    "item-" prefix, so CONTENT(a) == INVISIBLE_CONTENT(a).
    """
    kind: FeedElementKind
    payload: Union[ToDoItem, AdvertConfiguration]

    @classmethod
    def content(cls, item: ToDoItem) -> "FeedElement":
        return cls(FeedElementKind.CONTENT, item)

    @classmethod
    def invisible_content(cls, item: ToDoItem) -> "FeedElement":
        return cls(FeedElementKind.INVISIBLE_CONTENT, item)

    @classmethod
    def advert(cls, config: AdvertConfiguration) -> "FeedElement":
        return cls(FeedElementKind.ADVERT, config)

    @property
    def id(self) -> str:
        if self.kind == FeedElementKind.ADVERT:
            return f"ad-{self.payload.id}"
        return f"item-{self.payload.id}"

    @property
    def item(self) -> Optional[ToDoItem]:
        """The wrapped task for content rows, None for adverts."""
        if self.kind == FeedElementKind.ADVERT:
            return None
        return self.payload

    @property
    def advert_config(self) -> Optional[AdvertConfiguration]:
        if self.kind == FeedElementKind.ADVERT:
            return self.payload
        return None

    @property
    def is_visible(self) -> bool:
        return self.kind != FeedElementKind.INVISIBLE_CONTENT

    def __eq__(self, other):
        if not isinstance(other, FeedElement):
            return NotImplemented
        return self.id == other.id

    def __hash__(self):
        return hash(self.id)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "item": self.item.model_dump(mode="json") if self.item else None,
            "advert": self.advert_config.model_dump(mode="json") if self.advert_config else None,
        }
