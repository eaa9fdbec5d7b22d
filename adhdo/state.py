from dataclasses import dataclass
from typing import List, Optional, Sequence

from adhdo.models.filters import DEFAULT_FILTERS, FilterKind, TaskFilter
from adhdo.models.schemas import Category

@dataclass
class ViewState:
    """
    What the task list is currently showing.
    Persisted between runs through the key-value `user_state` table.
    """
    is_mph: bool = False
    selection: TaskFilter = TaskFilter.TODO
    editing: bool = False
    focus_item_id: Optional[str] = None

    @property
    def shuffle_paused(self) -> bool:
        """The periodic reshuffle only runs on the regular feed outside edit mode."""
        return self.is_mph or self.editing

    @property
    def title(self) -> str:
        return "MPH" if self.is_mph else "ADHDo"

    def subtitle(self, item_count: int) -> str:
        return f"{self.selection.title} - {item_count} items"

    @staticmethod
    def filter_options(categories: Sequence[Category]) -> List[TaskFilter]:
        """Default filters followed by one filter per category."""
        return list(DEFAULT_FILTERS) + [TaskFilter.category(c.name) for c in categories]

    def toggle_mph(self) -> bool:
        self.is_mph = not self.is_mph
        return self.is_mph

    def clear_focus_if(self, item_id: str):
        """Drops the focus item when it is the one being deleted."""
        if self.focus_item_id == item_id:
            self.focus_item_id = None

    def load_from_db(self, db=None):
        """Loads state from database."""
        if db is None:
            from adhdo.infrastructure.database import DB as db

        self.is_mph = bool(db.get_state("is_mph", False))
        self.focus_item_id = db.get_state("focus_item_id", None)
        selection = db.get_state("selection", None)
        if selection:
            try:
                self.selection = TaskFilter.parse(selection["kind"], selection.get("category_name"))
            except (KeyError, ValueError):
                self.selection = TaskFilter.TODO

    def save_to_db(self, db=None):
        """Saves persistent state to database."""
        if db is None:
            from adhdo.infrastructure.database import DB as db

        db.save_state("is_mph", self.is_mph)
        db.save_state("focus_item_id", self.focus_item_id)
        db.save_state("selection", {
            "kind": self.selection.kind.value,
            "category_name": self.selection.category_name
                if self.selection.kind == FilterKind.CATEGORY else None,
        })

# Global view state instance
VIEW_STATE = ViewState()
