"""Tests for the text shell commands."""

import random

import pytest

from adhdo.feed.controller import Feed
from adhdo.infrastructure.event_bus import EventType
from adhdo.infrastructure.machines import HyperfocusMachine
from adhdo.main import QUIT, SABOTAGED_ROW, Shell, format_element
from adhdo.feed.element import FeedElement
from adhdo.models.filters import TaskFilter
from adhdo.models.schemas import AdvertConfiguration, SearchResult, ToDoItem
from adhdo.search.catalog import SearchCatalog, SearchCategory


@pytest.fixture()
def shell(store, event_bus, view_state):
    view_state.selection = TaskFilter.ALL
    feed = Feed(
        store, ad_probability=-1, visibility_probability=101, shuffle=False,
        event_bus=event_bus, rng=random.Random(5),
    )
    sh = Shell(store, view_state, event_bus, feed=feed,
               hyperfocus=HyperfocusMachine(event_bus, tick_seconds=0.01),
               search=SearchCatalog([
                   SearchResult(name="Flat Earth", description="Highly suspicious theory."),
                   SearchResult(name="Moon Cheese", description="Astronauts came back hungry."),
               ], rng=random.Random(0)))
    yield sh
    sh.close()


class TestConstruction:
    def test_keeps_injected_empty_feed(self, store, event_bus, view_state):
        feed = Feed(store, ad_probability=-1, visibility_probability=101, shuffle=False, event_bus=event_bus)
        assert feed.items == []
        sh = Shell(store, view_state, event_bus, feed=feed)
        assert sh.feed is feed
        assert len(event_bus._subscribers[EventType.STORE_SAVED]) == 1

        sh.close()
        assert feed.closed
        assert not event_bus.has_subscribers(EventType.STORE_SAVED)
        assert not event_bus.has_subscribers(EventType.STORE_REMOTE_CHANGE)

    def test_builds_feed_for_current_selection(self, store, event_bus, view_state):
        view_state.selection = TaskFilter.DONE
        sh = Shell(store, view_state, event_bus)
        assert sh.feed.task_filter == TaskFilter.DONE
        sh.close()
        assert not event_bus.has_subscribers(EventType.STORE_SAVED)


class TestFormatting:
    def test_content_row(self):
        item = ToDoItem(title="dishes", subtitle="after dinner", done=True, favorite=True, category_name="Home")
        row = format_element(1, FeedElement.content(item))
        assert "[x] dishes *" in row
        assert "[Home]" in row
        assert "after dinner" in row

    def test_sabotaged_row_hides_title(self):
        row = format_element(2, FeedElement.invisible_content(ToDoItem(title="secret", done=True)))
        assert SABOTAGED_ROW in row
        assert "secret" not in row

    def test_advert_row(self):
        advert = AdvertConfiguration(title="Clean up the desk", description="Just tidy up and organize.")
        assert "[AD] Clean up the desk" in format_element(3, FeedElement.advert(advert))


class TestCommands:
    @pytest.mark.asyncio
    async def test_quit_and_blank(self, shell):
        assert await shell.handle("quit") is QUIT
        assert await shell.handle("") is None

    @pytest.mark.asyncio
    async def test_unknown_command(self, shell):
        assert "Unknown command" in await shell.handle("frobnicate")

    @pytest.mark.asyncio
    async def test_add_and_list(self, shell):
        assert await shell.handle("add water plants -- the big ones") == "Added 'water plants'."
        listing = await shell.handle("list")
        assert "ADHDo | All - 1 items" in listing
        assert "water plants" in listing
        assert "the big ones" in listing

    @pytest.mark.asyncio
    async def test_add_empty_title_reports_issue(self, shell):
        assert await shell.handle("add") == "Issues: Value error, Title field cannot be empty."

    @pytest.mark.asyncio
    async def test_empty_list_hint(self, shell):
        assert "Nothing here yet" in await shell.handle("list")

    @pytest.mark.asyncio
    async def test_done_fav_del(self, shell, store):
        await shell.handle("add dishes")
        assert await shell.handle("done 1") == "'dishes' marked done."
        assert await shell.handle("fav 1") == "'dishes' starred."
        assert await shell.handle("del 1") == "Deleted 'dishes'."
        assert store.fetch() == []

    @pytest.mark.asyncio
    async def test_bad_row_numbers(self, shell):
        await shell.handle("add dishes")
        assert await shell.handle("done 7") == "Error: No row 7"
        assert await shell.handle("done x") == "Error: 'x' is not a row number"
        assert await shell.handle("done") == "Usage: done <n>"

    @pytest.mark.asyncio
    async def test_advert_row_is_not_a_task(self, shell):
        await shell.handle("add dishes")
        shell.feed.ad_probability = 101
        shell.feed.randomize()
        # Layout without shuffle: item, ad
        assert await shell.handle("done 2") == "Error: Row 2 is an advert"

    @pytest.mark.asyncio
    async def test_filter_switches_feed(self, shell, view_state):
        await shell.handle("add open one")
        await shell.handle("add closed one")
        await shell.handle("done 2")

        listing = await shell.handle("filter done")
        assert view_state.selection == TaskFilter.DONE
        assert shell.feed.task_filter == TaskFilter.DONE
        assert "Done - 1 items" in listing
        assert "closed one" in listing

    @pytest.mark.asyncio
    async def test_filter_by_category_adds_into_category(self, shell, store):
        await shell.handle("category add Home")
        await shell.handle("filter Home")
        await shell.handle("add sweep")
        [item] = store.fetch(TaskFilter.category("Home"))
        assert item.title == "sweep"

    @pytest.mark.asyncio
    async def test_filter_without_args_lists_options(self, shell):
        await shell.handle("category add Work")
        assert await shell.handle("filter") == "Filters: All, ToDo, Done, Favorites, Work"

    @pytest.mark.asyncio
    async def test_mph_and_edit_toggle(self, shell, view_state):
        assert (await shell.handle("mph")).startswith("MPH |")
        assert view_state.shuffle_paused
        await shell.handle("mph")
        assert await shell.handle("edit") == "Edit mode on."
        assert view_state.shuffle_paused

    @pytest.mark.asyncio
    async def test_categories(self, shell):
        assert await shell.handle("categories") == "No categories."
        await shell.handle("category add Home")
        assert await shell.handle("categories") == "Home"
        assert await shell.handle("category del Home") == "Category 'Home' deleted."
        assert await shell.handle("category del Home") == "No category named 'Home'."

    @pytest.mark.asyncio
    async def test_bookmark_validation(self, shell):
        reply = await shell.handle("bookmark add")
        assert reply.startswith("Issues:")
        assert "both the name and URL" in reply
        assert await shell.handle("bookmark add Docs https://docs.python.org") == "Bookmarked 'Docs'."
        assert await shell.handle("bookmarks") == "Docs: https://docs.python.org"

    @pytest.mark.asyncio
    async def test_hyperfocus_penalty_stop(self, shell, view_state):
        await shell.handle("add deep work")
        assert "Hyperfocus on" in await shell.handle("hyperfocus 1")
        assert view_state.focus_item_id == shell.feed.items[0].id
        assert (await shell.handle("penalty")).startswith("Penalty!")
        assert await shell.handle("stop") == "Hyperfocus stopped."
        assert await shell.handle("penalty") == "No active hyperfocus session"

    @pytest.mark.asyncio
    async def test_unbalanced_quotes(self, shell):
        assert (await shell.handle('add "oops')).startswith("Could not parse input")

    @pytest.mark.asyncio
    async def test_search(self, shell):
        assert await shell.handle("search flat") == "Flat Earth: Highly suspicious theory."
        assert await shell.handle("search HUNGRY") == "Moon Cheese: Astronauts came back hungry."
        assert await shell.handle("search lizard") == "No results."
        assert len((await shell.handle("search")).splitlines()) == 2

    @pytest.mark.asyncio
    async def test_search_category(self, shell):
        assert await shell.handle("search --category done moon") == "Moon Cheese: Astronauts came back hungry."
        assert shell.search.category == SearchCategory.DONE
        assert (await shell.handle("search --category someday")).startswith("Error:")
        assert (await shell.handle("search --category")).startswith("Usage:")
