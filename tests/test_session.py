"""Tests for the in-memory forest session."""

import threading
import time

import pytest

from nodetree_mcp import ForestSession
from nodetree_mcp.engine import add_child, delete_node, rename_node
from nodetree_mcp.models import TreeValidationError

from conftest import all_ids


def test_default_forest():
    session = ForestSession()
    assert len(session.forest) == 1
    assert session.forest[0]["name"] == "Root Node"
    assert session.forest[0]["children"] == []


def test_initial_forest_is_copied(abc_forest):
    session = ForestSession(abc_forest)
    abc_forest[0]["name"] = "changed"
    assert session.forest[0]["name"] == "A"


def test_apply_swaps_forest(abc_forest):
    session = ForestSession(abc_forest)
    session.apply(add_child, "B", "F")
    assert [n["name"] for n in session.forest[0]["children"][0]["children"]] == ["F"]


def test_failed_apply_keeps_forest(abc_forest):
    session = ForestSession(abc_forest)
    with pytest.raises(TreeValidationError):
        session.apply(rename_node, "B", "")
    assert session.forest == abc_forest


def test_delete_prunes_selection(abc_forest):
    session = ForestSession(abc_forest)
    session.toggle("C")
    assert session.selected_ids == {"C", "D", "E"}
    session.apply(delete_node, "D")
    assert session.selected_ids == {"C", "E"}


def test_single_selection_mode(abc_forest):
    session = ForestSession(abc_forest, multiple=False)
    session.toggle("B")
    session.toggle("D")
    assert session.selected_ids == {"D"}


class TestClick:
    def test_plain_click_selects_one(self, fruit_forest):
        session = ForestSession(fruit_forest)
        session.click("gala")
        assert session.click("kiwi") == {"kiwi"}

    def test_shift_click_selects_range(self, fruit_forest):
        session = ForestSession(fruit_forest)
        session.click("gala")
        assert session.click("pears", shift=True) == {"gala", "fuji", "pears"}

    def test_ctrl_click_flips(self, fruit_forest):
        session = ForestSession(fruit_forest)
        session.click("gala")
        session.click("veg", ctrl=True)
        assert session.selected_ids == {"gala", "veg"}
        session.click("gala", ctrl=True)
        assert session.selected_ids == {"veg"}


def test_selected_in_display_order(fruit_forest):
    session = ForestSession(fruit_forest)
    session.click("carrot")
    session.click("apples", ctrl=True)
    assert [n["id"] for n in session.selected()] == ["apples", "carrot"]


class TestCutPaste:
    def test_cut_then_paste_at_root(self, abc_forest):
        session = ForestSession(abc_forest)
        session.toggle("C")
        assert session.cut() == {"C", "D", "E"}
        assert session.selected_ids == set()
        session.paste()
        assert [n["id"] for n in session.forest] == ["A", "C"]
        assert all_ids(session.forest) == ["A", "B", "C", "D", "E"]
        assert session.cut_ids == set()

    def test_paste_into_target(self, fruit_forest):
        session = ForestSession(fruit_forest)
        session.click("kiwi")
        session.cut()
        session.paste("veg")
        assert [n["id"] for n in session.forest[1]["children"]] == ["kiwi", "carrot"]

    def test_paste_without_cut_is_noop(self, abc_forest):
        session = ForestSession(abc_forest)
        assert session.paste("B") == abc_forest


def test_reset_clears_state(abc_forest, fruit_forest):
    session = ForestSession(abc_forest)
    session.toggle("A")
    session.cut()
    session.reset(fruit_forest)
    assert session.forest == fruit_forest
    assert session.selected_ids == set()
    assert session.cut_ids == set()
    assert session.last_clicked is None


def test_reset_rejects_invalid(abc_forest):
    session = ForestSession(abc_forest)
    with pytest.raises(TreeValidationError):
        session.reset([{"id": "x"}])
    assert session.forest == abc_forest


class TestConcurrentCalls:
    def test_overlapping_applies_keep_both_edits(self, abc_forest):
        session = ForestSession(abc_forest)

        def slow_add(forest, parent_id, name):
            result = add_child(forest, parent_id, name)
            time.sleep(0.2)
            return result

        threads = [
            threading.Thread(target=session.apply, args=(slow_add, "B", name))
            for name in ("one", "two")
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        names = [n["name"] for n in session.forest[0]["children"][0]["children"]]
        assert sorted(names) == ["one", "two"]

    def test_toggle_waits_for_running_apply(self, abc_forest):
        session = ForestSession(abc_forest)
        started = threading.Event()

        def slow_delete(forest, node_id):
            started.set()
            time.sleep(0.2)
            return delete_node(forest, node_id)

        worker = threading.Thread(target=session.apply, args=(slow_delete, "C"))
        worker.start()
        started.wait()
        # C is gone by the time the toggle runs, so nothing gets selected
        assert session.toggle("C") == set()
        worker.join()
        assert session.selected_ids == set()


def test_select_range_method(fruit_forest):
    session = ForestSession(fruit_forest)
    session.click("kiwi")
    assert session.select_range("gala", "fuji") == {"kiwi", "gala", "fuji"}


def test_partially_selected(abc_forest):
    session = ForestSession(abc_forest)
    session.click("D")
    assert session.partially_selected() == ["A", "C"]
