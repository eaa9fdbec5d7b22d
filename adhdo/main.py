import asyncio
import shlex
from typing import Optional

from pydantic import ValidationError

from adhdo import config
from adhdo.feed.controller import Feed
from adhdo.feed.element import FeedElement, FeedElementKind
from adhdo.infrastructure.database import DB
from adhdo.infrastructure.event_bus import EVENT_BUS, EventBus, EventType
from adhdo.infrastructure.logging import logger
from adhdo.infrastructure.machines import FeedShuffler, HyperfocusMachine
from adhdo.infrastructure.task_store import TaskStore
from adhdo.models.filters import FilterKind, TaskFilter
from adhdo.search.catalog import SearchCatalog, SearchCategory
from adhdo.state import VIEW_STATE, ViewState

HELP = """Commands:
  add <title> [-- subtitle]   - Add a to-do item
  done <n> / fav <n> / del <n> - Toggle done, toggle favorite, delete row n
  list                        - Show the current feed
  filter <all|todo|done|favorites|category name>
  mph                         - Toggle the content-only MPH feed
  edit                        - Toggle edit mode (pauses reshuffling)
  shuffle                     - Reshuffle the feed now
  categories                  - List categories
  category add <name> / category del <name>
  bookmarks / bookmark add <name> <url>
  search [--category all|todo|done] [text] - Browse curated content
  hyperfocus <n> / penalty / stop
  quit                        - Exit"""

SABOTAGED_ROW = "Something you did, but forgot"

QUIT = object()

def format_element(position: int, element: FeedElement) -> str:
    if element.kind == FeedElementKind.ADVERT:
        advert = element.advert_config
        return f"{position:>3}. [AD] {advert.title} - {advert.description}"
    if element.kind == FeedElementKind.INVISIBLE_CONTENT:
        return f"{position:>3}. ( ) {SABOTAGED_ROW}"
    item = element.item
    check = "x" if item.done else " "
    star = " *" if item.favorite else ""
    category = f" [{item.category_name}]" if item.category_name else ""
    subtitle = f"\n       {item.subtitle}" if item.subtitle else ""
    return f"{position:>3}. [{check}] {item.title}{star}{category}{subtitle}"

class Shell:
    """Text front end over the store, the feed and the machines."""
    def __init__(
        self,
        store: TaskStore,
        view_state: ViewState,
        event_bus: EventBus,
        feed: Optional[Feed] = None,
        hyperfocus: Optional[HyperfocusMachine] = None,
        search: Optional[SearchCatalog] = None,
    ):
        self.store = store
        self.view_state = view_state
        self.event_bus = event_bus
        self.feed = feed if feed is not None else Feed(
            store,
            ad_probability=config.AD_PROBABILITY,
            visibility_probability=config.VISIBILITY_PROBABILITY,
            shuffle=config.SHUFFLE_FEED,
            task_filter=view_state.selection,
            event_bus=event_bus,
        )
        self.hyperfocus = hyperfocus if hyperfocus is not None else HyperfocusMachine(event_bus)
        self.search = search if search is not None else SearchCatalog.from_file()

    def render(self) -> str:
        header = f"{self.view_state.title} | {self.view_state.subtitle(len(self.feed.items))}"
        if not self.feed.items:
            return f"{header}\n  Nothing here yet. Add a task with 'add <title>'."
        rows = self.feed.current(mph=self.view_state.is_mph)
        return "\n".join([header] + [format_element(i, e) for i, e in enumerate(rows, start=1)])

    def _item_at(self, arg: str):
        try:
            index = int(arg) - 1
        except ValueError:
            raise ValueError(f"'{arg}' is not a row number")
        rows = self.feed.current(mph=self.view_state.is_mph)
        if not 0 <= index < len(rows):
            raise ValueError(f"No row {arg}")
        items = self.feed.items_at([index], mph=self.view_state.is_mph)
        if not items:
            raise ValueError(f"Row {arg} is an advert")
        return items[0]

    async def handle(self, line: str):
        """Runs one command. Returns text to show, or QUIT."""
        try:
            parts = shlex.split(line)
        except ValueError as e:
            return f"Could not parse input: {e}"
        if not parts:
            return None

        command, args = parts[0].lower(), parts[1:]
        try:
            return await self._dispatch(command, args)
        except ValidationError as e:
            return "Issues: " + "; ".join(err["msg"] for err in e.errors())
        except (KeyError, ValueError) as e:
            return f"Error: {e}"

    async def _dispatch(self, command: str, args):
        if command == "quit":
            return QUIT
        if command == "help":
            return HELP
        if command == "list":
            return self.render()

        if command == "add":
            if "--" in args:
                split = args.index("--")
                title, subtitle = " ".join(args[:split]), " ".join(args[split + 1:]) or None
            else:
                title, subtitle = " ".join(args), None
            category_id = None
            if self.view_state.selection.kind == FilterKind.CATEGORY:
                category = self.store.get_category_by_name(self.view_state.selection.category_name)
                category_id = category.id if category else None
            item = await self.store.create_item(title, subtitle=subtitle, category_id=category_id)
            return f"Added '{item.title}'."

        if command in ("done", "fav", "del", "hyperfocus"):
            if not args:
                return f"Usage: {command} <n>"
            item = self._item_at(args[0])
            if command == "done":
                item = await self.store.toggle_done(item.id)
                return f"'{item.title}' marked {'done' if item.done else 'open'}."
            if command == "fav":
                item = await self.store.toggle_favorite(item.id)
                return f"'{item.title}' {'starred' if item.favorite else 'unstarred'}."
            if command == "del":
                await self.store.delete_item(item.id)
                self.view_state.clear_focus_if(item.id)
                return f"Deleted '{item.title}'."
            self.view_state.focus_item_id = item.id
            result = await self.hyperfocus.start(item.id)
            return result["message"]

        if command == "penalty":
            result = self.hyperfocus.add_penalty()
            if result["status"] == "error":
                return result["message"]
            return f"Penalty! {int(result['remaining_time'])} seconds left."

        if command == "stop":
            result = await self.hyperfocus.stop()
            return result.get("message", "Hyperfocus stopped.")

        if command == "filter":
            if not args:
                options = ViewState.filter_options(self.store.list_categories())
                return "Filters: " + ", ".join(f.title for f in options)
            value = " ".join(args)
            try:
                selection = TaskFilter.parse(value)
            except ValueError:
                selection = TaskFilter.category(value)
            self.view_state.selection = selection
            self.feed.refresh(selection)
            return self.render()

        if command == "mph":
            self.view_state.toggle_mph()
            return self.render()

        if command == "edit":
            self.view_state.editing = not self.view_state.editing
            return f"Edit mode {'on' if self.view_state.editing else 'off'}."

        if command == "shuffle":
            self.feed.randomize()
            return self.render()

        if command == "categories":
            categories = self.store.list_categories()
            return "\n".join(c.name for c in categories) or "No categories."

        if command == "category":
            if len(args) < 2 or args[0] not in ("add", "del"):
                return "Usage: category add|del <name>"
            name = " ".join(args[1:])
            if args[0] == "add":
                category = await self.store.create_category(name)
                return f"Category '{category.name}' added."
            category = self.store.get_category_by_name(name)
            if category is None:
                return f"No category named '{name}'."
            await self.store.delete_category(category.id)
            return f"Category '{name}' deleted."

        if command == "bookmarks":
            bookmarks = self.store.list_bookmarks()
            return "\n".join(f"{b.name}: {b.url}" for b in bookmarks) or "No bookmarks."

        if command == "bookmark":
            if not args or args[0] != "add":
                return "Usage: bookmark add <name> <url>"
            name = args[1] if len(args) > 1 else ""
            url = args[2] if len(args) > 2 else ""
            bookmark = await self.store.create_bookmark(name, url)
            return f"Bookmarked '{bookmark.name}'."

        if command == "search":
            if args[:1] == ["--category"]:
                if len(args) < 2:
                    return "Usage: search --category all|todo|done [text]"
                self.search.select_category(SearchCategory(args[1].lower()))
                args = args[2:]
            results = self.search.search(" ".join(args))
            if not results:
                return "No results."
            return "\n".join(f"{r.name}: {r.description}" for r in results)

        return f"Unknown command '{command}'. Type 'help'."

    def close(self):
        self.feed.close()

async def run_adhdo():
    """Main interaction loop."""

    VIEW_STATE.load_from_db(DB)
    store = TaskStore(DB, EVENT_BUS)
    shell = Shell(store, VIEW_STATE, EVENT_BUS)

    shuffler = FeedShuffler(
        shell.feed,
        is_paused=lambda: VIEW_STATE.shuffle_paused,
        event_bus=EVENT_BUS,
    )
    shuffler.start()

    async def on_hyperfocus_ended(data):
        if data.get("status") == "completed":
            print("\nHyperfocus session over. Take a break!\n")

    EVENT_BUS.subscribe(EventType.HYPERFOCUS_ENDED, on_hyperfocus_ended)

    logger.info("ADHDo started", extra={"props": {"filter": VIEW_STATE.selection.title}})

    print("=" * 60)
    print("  ADHDo")
    print("=" * 60)
    print(HELP)
    print()
    print(shell.render())

    try:
        while True:
            try:
                line = await asyncio.to_thread(input, "\n> ")
            except EOFError:
                break
            output = await shell.handle(line.strip())
            if output is QUIT:
                break
            if output:
                print(output)
    except KeyboardInterrupt:
        print("\nInterrupted.")
    finally:
        shuffler.stop()
        EVENT_BUS.unsubscribe(EventType.HYPERFOCUS_ENDED, on_hyperfocus_ended)
        shell.close()
        VIEW_STATE.save_to_db(DB)
        print("State saved. Bye!")

if __name__ == "__main__":
    asyncio.run(run_adhdo())
