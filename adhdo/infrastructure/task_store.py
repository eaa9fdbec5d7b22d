from datetime import datetime
from typing import Any, Dict, List, Optional

from adhdo.infrastructure.database import DatabaseManager
from adhdo.infrastructure.event_bus import EventBus, EventType
from adhdo.infrastructure.logging import logger
from adhdo.models.filters import TaskFilter
from adhdo.models.schemas import Bookmark, Category, ToDoItem

_ITEM_SELECT = """
    SELECT t.id, t.title, t.subtitle, t.timestamp, t.done, t.favorite,
           t.category_id, c.name AS category_name
    FROM todo_items t
    LEFT JOIN categories c ON c.id = t.category_id
"""

_EDITABLE_ITEM_FIELDS = ("title", "subtitle", "done", "favorite", "category_id")

class TaskStore:
    """
    SQLite-backed store for to-do items, categories and bookmarks.

    Reads are synchronous. Writes commit first, then publish STORE_SAVED on
    the event bus so subscribers refresh on the caller's event loop.
    """
    def __init__(self, db: DatabaseManager, event_bus: EventBus):
        self.db = db
        self.event_bus = event_bus

    async def _saved(self, entity: str, action: str, entity_id: str):
        await self.event_bus.publish(EventType.STORE_SAVED, {
            "entity": entity,
            "action": action,
            "id": entity_id,
        })

    async def notify_remote_change(self, source: str = "remote"):
        """Signals that the store was changed from outside this process."""
        await self.event_bus.publish(EventType.STORE_REMOTE_CHANGE, {"source": source})

    # --- To-do items ---

    @staticmethod
    def _row_to_item(row) -> ToDoItem:
        return ToDoItem(
            id=row["id"],
            title=row["title"],
            subtitle=row["subtitle"],
            timestamp=datetime.fromisoformat(row["timestamp"]),
            done=bool(row["done"]),
            favorite=bool(row["favorite"]),
            category_id=row["category_id"],
            category_name=row["category_name"],
        )

    def fetch(self, task_filter: TaskFilter = TaskFilter.ALL) -> List[ToDoItem]:
        """Returns items matching the filter, oldest first."""
        where, params = task_filter.where_clause()
        rows = self.db.execute_read(
            f"{_ITEM_SELECT} WHERE {where} ORDER BY t.timestamp ASC, t.rowid ASC",
            params,
        )
        return [self._row_to_item(row) for row in rows]

    def get_item(self, item_id: str) -> Optional[ToDoItem]:
        row = self.db.execute_read_one(f"{_ITEM_SELECT} WHERE t.id = ?", (item_id,))
        return self._row_to_item(row) if row else None

    def _require_item(self, item_id: str) -> ToDoItem:
        item = self.get_item(item_id)
        if item is None:
            raise KeyError(f"No to-do item with id {item_id}")
        return item

    def _require_category(self, category_id: Optional[str]):
        if category_id is not None and self.get_category(category_id) is None:
            raise KeyError(f"No category with id {category_id}")

    async def create_item(
        self,
        title: str,
        subtitle: Optional[str] = None,
        favorite: bool = False,
        done: bool = False,
        category_id: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> ToDoItem:
        """Creates and persists a to-do item. Title must not be empty."""
        fields: Dict[str, Any] = dict(
            title=title, subtitle=subtitle, favorite=favorite,
            done=done, category_id=category_id,
        )
        if timestamp is not None:
            fields["timestamp"] = timestamp
        item = ToDoItem(**fields)
        self._require_category(category_id)

        self.db.execute_write(
            """
            INSERT INTO todo_items (id, title, subtitle, timestamp, done, favorite, category_id)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (item.id, item.title, item.subtitle, item.timestamp.isoformat(),
             item.done, item.favorite, item.category_id)
        )
        logger.info("Created to-do item", extra={"props": {"item_id": item.id}})
        await self._saved("item", "created", item.id)
        return self._require_item(item.id)

    async def update_item(self, item_id: str, **changes: Any) -> ToDoItem:
        """Updates editable fields (title, subtitle, done, favorite, category_id)."""
        unknown = set(changes) - set(_EDITABLE_ITEM_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        current = self._require_item(item_id)
        # Re-validate through the model so an empty title is rejected
        updated = ToDoItem(**{**current.model_dump(), **changes})
        if "category_id" in changes:
            self._require_category(updated.category_id)

        self.db.execute_write(
            """
            UPDATE todo_items SET title = ?, subtitle = ?, done = ?, favorite = ?, category_id = ?
            WHERE id = ?
            """,
            (updated.title, updated.subtitle, updated.done, updated.favorite,
             updated.category_id, item_id)
        )
        await self._saved("item", "updated", item_id)
        return self._require_item(item_id)

    async def _toggle(self, item_id: str, column: str) -> ToDoItem:
        # Flip under the write lock so two toggles cannot read the same value
        written = self.db.execute_atomic_update(
            f"SELECT {column} FROM todo_items WHERE id = ?",
            (item_id,),
            f"UPDATE todo_items SET {column} = ? WHERE id = ?",
            lambda row: (not row[column], item_id),
        )
        if written is None:
            raise KeyError(f"No to-do item with id {item_id}")
        await self._saved("item", "updated", item_id)
        return self._require_item(item_id)

    async def toggle_done(self, item_id: str) -> ToDoItem:
        return await self._toggle(item_id, "done")

    async def toggle_favorite(self, item_id: str) -> ToDoItem:
        return await self._toggle(item_id, "favorite")

    async def delete_item(self, item_id: str):
        if self.db.execute_write("DELETE FROM todo_items WHERE id = ?", (item_id,)) == 0:
            raise KeyError(f"No to-do item with id {item_id}")
        await self._saved("item", "deleted", item_id)

    # --- Categories ---

    def list_categories(self) -> List[Category]:
        rows = self.db.execute_read("SELECT id, name FROM categories ORDER BY name ASC")
        return [Category(id=row["id"], name=row["name"]) for row in rows]

    def get_category(self, category_id: str) -> Optional[Category]:
        row = self.db.execute_read_one("SELECT id, name FROM categories WHERE id = ?", (category_id,))
        return Category(id=row["id"], name=row["name"]) if row else None

    def get_category_by_name(self, name: str) -> Optional[Category]:
        row = self.db.execute_read_one(
            "SELECT id, name FROM categories WHERE name = ? ORDER BY rowid LIMIT 1", (name,)
        )
        return Category(id=row["id"], name=row["name"]) if row else None

    async def create_category(self, name: str) -> Category:
        category = Category(name=name)
        self.db.execute_write(
            "INSERT INTO categories (id, name) VALUES (?, ?)", (category.id, category.name)
        )
        await self._saved("category", "created", category.id)
        return category

    async def rename_category(self, category_id: str, name: str) -> Category:
        category = Category(id=category_id, name=name)
        if self.db.execute_write(
            "UPDATE categories SET name = ? WHERE id = ?", (category.name, category_id)
        ) == 0:
            raise KeyError(f"No category with id {category_id}")
        await self._saved("category", "renamed", category_id)
        return category

    async def delete_category(self, category_id: str):
        """Deletes a category. Its items stay, with their category cleared."""
        _, deleted = self.db.execute_transaction([
            ("UPDATE todo_items SET category_id = NULL WHERE category_id = ?", (category_id,)),
            ("DELETE FROM categories WHERE id = ?", (category_id,)),
        ])
        if deleted == 0:
            raise KeyError(f"No category with id {category_id}")
        await self._saved("category", "deleted", category_id)

    # --- Bookmarks ---

    def list_bookmarks(self) -> List[Bookmark]:
        rows = self.db.execute_read(
            "SELECT id, name, url FROM bookmarks ORDER BY created_at ASC, rowid ASC"
        )
        return [Bookmark(id=row["id"], name=row["name"], url=row["url"]) for row in rows]

    async def create_bookmark(self, name: str, url: str) -> Bookmark:
        """Both name and url are required; the url is stored as given."""
        bookmark = Bookmark(name=name, url=url)
        self.db.execute_write(
            "INSERT INTO bookmarks (id, name, url, created_at) VALUES (?, ?, ?, ?)",
            (bookmark.id, bookmark.name, bookmark.url, datetime.now().isoformat())
        )
        await self._saved("bookmark", "created", bookmark.id)
        return bookmark

    async def delete_bookmark(self, bookmark_id: str):
        if self.db.execute_write("DELETE FROM bookmarks WHERE id = ?", (bookmark_id,)) == 0:
            raise KeyError(f"No bookmark with id {bookmark_id}")
        await self._saved("bookmark", "deleted", bookmark_id)
