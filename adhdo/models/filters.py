from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Tuple

class FilterKind(Enum):
    ALL = "all"
    TODO = "todo"
    DONE = "done"
    FAVORITES = "favorites"
    CATEGORY = "category"

_TITLES = {
    FilterKind.ALL: "All",
    FilterKind.TODO: "ToDo",
    FilterKind.DONE: "Done",
    FilterKind.FAVORITES: "Favorites",
}

@dataclass(frozen=True)
class TaskFilter:
    """
    Fixed set of predicates the task store understands.
    Use the class constants, or `TaskFilter.category(name)` for one category.
    """
    kind: FilterKind
    category_name: Optional[str] = None

    ALL = None  # type: TaskFilter
    TODO = None  # type: TaskFilter
    DONE = None  # type: TaskFilter
    FAVORITES = None  # type: TaskFilter

    @classmethod
    def category(cls, name: str) -> "TaskFilter":
        return cls(FilterKind.CATEGORY, name)

    @classmethod
    def parse(cls, value: str, category_name: Optional[str] = None) -> "TaskFilter":
        """Builds a filter from its kind string ("all", "todo", ..., "category")."""
        kind = FilterKind(value.lower())
        if kind == FilterKind.CATEGORY:
            if category_name is None:
                raise ValueError("category filter needs a category name")
            return cls.category(category_name)
        return cls(kind)

    @property
    def id(self) -> str:
        return self.title

    @property
    def title(self) -> str:
        if self.kind == FilterKind.CATEGORY:
            return self.category_name or ""
        return _TITLES[self.kind]

    def where_clause(self) -> Tuple[str, List[Any]]:
        """SQL condition over `todo_items t LEFT JOIN categories c`."""
        if self.kind == FilterKind.TODO:
            return "t.done = 0", []
        if self.kind == FilterKind.DONE:
            return "t.done = 1", []
        if self.kind == FilterKind.FAVORITES:
            return "t.favorite = 1", []
        if self.kind == FilterKind.CATEGORY:
            # Uncategorised items count as category ""
            return "COALESCE(c.name, '') = ?", [self.category_name or ""]
        return "1 = 1", []

TaskFilter.ALL = TaskFilter(FilterKind.ALL)
TaskFilter.TODO = TaskFilter(FilterKind.TODO)
TaskFilter.DONE = TaskFilter(FilterKind.DONE)
TaskFilter.FAVORITES = TaskFilter(FilterKind.FAVORITES)

DEFAULT_FILTERS = (TaskFilter.ALL, TaskFilter.TODO, TaskFilter.DONE, TaskFilter.FAVORITES)
