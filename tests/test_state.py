"""Tests for ViewState: filter options, shuffle pause, persistence."""

import pytest

from adhdo.models.filters import FilterKind, TaskFilter
from adhdo.models.schemas import Category
from adhdo.state import ViewState


class TestDefaults:
    def test_defaults(self, view_state):
        assert view_state.is_mph is False
        assert view_state.selection == TaskFilter.TODO
        assert view_state.editing is False
        assert view_state.focus_item_id is None

    def test_titles(self, view_state):
        assert view_state.title == "ADHDo"
        view_state.toggle_mph()
        assert view_state.title == "MPH"

    def test_subtitle(self, view_state):
        assert view_state.subtitle(3) == "ToDo - 3 items"
        view_state.selection = TaskFilter.category("Home")
        assert view_state.subtitle(0) == "Home - 0 items"


class TestShufflePause:
    def test_regular_not_editing_runs(self, view_state):
        assert not view_state.shuffle_paused

    def test_mph_pauses(self, view_state):
        view_state.toggle_mph()
        assert view_state.shuffle_paused

    def test_editing_pauses(self, view_state):
        view_state.editing = True
        assert view_state.shuffle_paused


class TestFilterOptions:
    def test_defaults_then_categories(self):
        categories = [Category(name="Errands"), Category(name="Home")]
        options = ViewState.filter_options(categories)
        assert [o.title for o in options] == ["All", "ToDo", "Done", "Favorites", "Errands", "Home"]
        assert options[4] == TaskFilter.category("Errands")

    def test_no_categories(self):
        assert ViewState.filter_options([]) == [
            TaskFilter.ALL, TaskFilter.TODO, TaskFilter.DONE, TaskFilter.FAVORITES,
        ]


class TestTaskFilter:
    def test_parse_known_kinds(self):
        assert TaskFilter.parse("all") == TaskFilter.ALL
        assert TaskFilter.parse("ToDo") == TaskFilter.TODO
        assert TaskFilter.parse("FAVORITES") == TaskFilter.FAVORITES

    def test_parse_category(self):
        f = TaskFilter.parse("category", "Home")
        assert f.kind == FilterKind.CATEGORY
        assert f.title == "Home"
        assert f.id == "Home"

    def test_parse_category_without_name_fails(self):
        with pytest.raises(ValueError):
            TaskFilter.parse("category")

    def test_filters_are_hashable_and_comparable(self):
        assert {TaskFilter.category("A"), TaskFilter.category("A"), TaskFilter.ALL} == {
            TaskFilter.category("A"), TaskFilter.ALL,
        }


class TestFocusItem:
    def test_clear_focus_if_matching(self, view_state):
        view_state.focus_item_id = "abc"
        view_state.clear_focus_if("other")
        assert view_state.focus_item_id == "abc"
        view_state.clear_focus_if("abc")
        assert view_state.focus_item_id is None


class TestPersistence:
    def test_round_trip(self, tmp_db):
        s = ViewState(is_mph=True, selection=TaskFilter.category("Home"), focus_item_id="abc")
        s.save_to_db(tmp_db)

        loaded = ViewState()
        loaded.load_from_db(tmp_db)
        assert loaded.is_mph is True
        assert loaded.selection == TaskFilter.category("Home")
        assert loaded.focus_item_id == "abc"

    def test_editing_not_persisted(self, tmp_db):
        ViewState(editing=True).save_to_db(tmp_db)
        loaded = ViewState()
        loaded.load_from_db(tmp_db)
        assert loaded.editing is False

    def test_empty_db_keeps_defaults(self, tmp_db):
        loaded = ViewState()
        loaded.load_from_db(tmp_db)
        assert loaded.selection == TaskFilter.TODO
        assert loaded.is_mph is False

    def test_corrupt_selection_falls_back(self, tmp_db):
        tmp_db.save_state("selection", {"kind": "nonsense"})
        loaded = ViewState()
        loaded.load_from_db(tmp_db)
        assert loaded.selection == TaskFilter.TODO
