"""Tests for mutation operations."""

import copy

import pytest

from nodetree_mcp.engine.lookup import count_nodes, locate
from nodetree_mcp.engine.ops import (
    add_child,
    add_sibling,
    delete_node,
    duplicate_node,
    insert_node_at,
    propagate_icon_to_branches,
    rename_node,
    set_node_icon,
)
from nodetree_mcp.models import NodeNotFoundError, TreeValidationError

from conftest import all_ids


class TestAddSibling:
    def test_inserted_right_after_target_as_branch(self, abc_forest):
        result = add_sibling(abc_forest, "B", "New")
        children = result[0]["children"]
        assert [c["name"] for c in children] == ["B", "New", "C"]
        assert children[1]["children"] == []
        assert children[1]["id"].startswith("sibling-")

    def test_leaf_sibling_has_no_children_key(self, abc_forest):
        result = add_sibling(abc_forest, "D", "Leaf", is_leaf=True)
        new_node = locate(result, "C").node["children"][1]
        assert new_node["name"] == "Leaf"
        assert "children" not in new_node

    def test_root_level_sibling(self, fruit_forest):
        result = add_sibling(fruit_forest, "fruit", "Nuts")
        assert [n["name"] for n in result] == ["Fruit", "Nuts", "Vegetables"]

    def test_unknown_target_is_noop(self, abc_forest):
        before = copy.deepcopy(abc_forest)
        result = add_sibling(abc_forest, "missing", "New")
        assert result == before
        assert result is not abc_forest

    def test_unknown_target_strict(self, abc_forest):
        with pytest.raises(NodeNotFoundError) as exc_info:
            add_sibling(abc_forest, "missing", "New", strict=True)
        assert exc_info.value.node_id == "missing"


class TestAddChild:
    def test_appends_leaf(self, abc_forest):
        result = add_child(abc_forest, "C", "F")
        c = locate(result, "C").node
        assert [n["name"] for n in c["children"]] == ["D", "E", "F"]
        assert "children" not in c["children"][2]

    def test_creates_children_list_on_leaf(self, abc_forest):
        result = add_child(abc_forest, "B", "Under B")
        b = locate(result, "B").node
        assert [n["name"] for n in b["children"]] == ["Under B"]
        assert "children" not in locate(abc_forest, "B").node

    def test_unknown_parent_is_noop(self, abc_forest):
        assert add_child(abc_forest, "missing", "X") == abc_forest


class TestDuplicate:
    def test_copy_follows_original_with_fresh_ids(self, fruit_forest):
        result = duplicate_node(fruit_forest, "apples")
        siblings = result[0]["children"]
        assert [n["name"] for n in siblings] == ["Apples", "Apples", "Pears", "Kiwi"]

        original_ids = set(all_ids(fruit_forest))
        copied_ids = all_ids([siblings[1]])
        assert len(copied_ids) == 3
        assert not original_ids & set(copied_ids)
        assert [n["name"] for n in siblings[1]["children"]] == ["Gala", "Fuji"]
        assert len(set(all_ids(result))) == count_nodes(result) == 11

    def test_duplicate_root(self, abc_forest):
        result = duplicate_node(abc_forest, "A")
        assert len(result) == 2
        assert result[1]["name"] == "A"
        assert result[1]["id"] != "A"

    def test_unknown_node_is_noop(self, abc_forest):
        assert duplicate_node(abc_forest, "missing") == abc_forest


class TestDelete:
    def test_removes_subtree(self, abc_forest):
        result = delete_node(abc_forest, "C")
        assert all_ids(result) == ["A", "B"]
        assert all_ids(abc_forest) == ["A", "B", "C", "D", "E"]

    def test_delete_root(self, fruit_forest):
        result = delete_node(fruit_forest, "fruit")
        assert all_ids(result) == ["veg", "carrot"]

    def test_last_child_leaves_empty_branch(self, fruit_forest):
        result = delete_node(fruit_forest, "carrot")
        assert result[1]["children"] == []

    def test_unknown_node_strict(self, abc_forest):
        with pytest.raises(NodeNotFoundError):
            delete_node(abc_forest, "missing", strict=True)


class TestRename:
    def test_rename(self, abc_forest):
        result = rename_node(abc_forest, "D", "Dee")
        assert locate(result, "D").node["name"] == "Dee"
        assert locate(abc_forest, "D").node["name"] == "D"

    @pytest.mark.parametrize("name", ["", "x" * 101])
    def test_invalid_name_rejected_and_input_untouched(self, abc_forest, name):
        before = copy.deepcopy(abc_forest)
        with pytest.raises(TreeValidationError):
            rename_node(abc_forest, "D", name)
        assert abc_forest == before

    def test_round_trip(self, fruit_forest):
        renamed = rename_node(fruit_forest, "kiwi", "X")
        restored = rename_node(renamed, "kiwi", "Kiwi")
        assert restored == fruit_forest


class TestIcons:
    def test_set_icon_on_one_node(self, abc_forest):
        result = set_node_icon(abc_forest, "D", "star")
        assert locate(result, "D").node["icon"] == "star"
        assert all("icon" not in locate(result, i).node for i in ["A", "B", "C", "E"])

    def test_clear_icon(self, fruit_forest):
        result = set_node_icon(fruit_forest, "fruit", None)
        assert "icon" not in result[0]

    def test_propagate_to_every_branch(self, fruit_forest):
        result = propagate_icon_to_branches(fruit_forest, "folder")
        icons = {node_id: locate(result, node_id).node.get("icon") for node_id in all_ids(result)}
        assert icons == {
            "fruit": "folder",
            "apples": "folder",
            "gala": None,
            "fuji": None,
            "pears": "folder",
            "kiwi": None,
            "veg": "folder",
            "carrot": None,
        }
        assert fruit_forest[0]["icon"] == "basket"


class TestInsertNodeAt:
    def test_root_insert(self, abc_forest):
        result = insert_node_at(abc_forest, None, 0, {"id": "Z", "name": "Z"})
        assert all_ids(result) == ["Z", "A", "B", "C", "D", "E"]

    def test_nested_insert(self, abc_forest):
        result = insert_node_at(abc_forest, "C", 1, {"id": "Z", "name": "Z", "children": []})
        assert [n["id"] for n in locate(result, "C").node["children"]] == ["D", "Z", "E"]

    def test_unknown_parent_falls_back_to_root(self, abc_forest):
        result = insert_node_at(abc_forest, "missing", 5, {"id": "Z", "name": "Z"})
        assert [n["id"] for n in result] == ["A", "Z"]

    def test_rejects_clashing_ids(self, abc_forest):
        with pytest.raises(TreeValidationError):
            insert_node_at(abc_forest, None, 0, {"id": "D", "name": "Again"})

    def test_rejects_malformed_node(self, abc_forest):
        with pytest.raises(TreeValidationError):
            insert_node_at(abc_forest, None, 0, {"id": "Z", "name": ""})

    def test_inserted_node_not_aliased(self, abc_forest):
        node = {"id": "Z", "name": "Z", "children": []}
        result = insert_node_at(abc_forest, None, 0, node)
        result[0]["children"].append({"id": "Y", "name": "Y"})
        assert node["children"] == []


class TestInvariantsAcrossOperations:
    def test_malformed_input_rejected_before_operation(self):
        bad = [{"id": "a", "name": "a"}, {"id": "a", "name": "b"}]
        with pytest.raises(TreeValidationError):
            add_child(bad, "a", "c")

    def test_result_never_aliases_input(self, fruit_forest):
        before = copy.deepcopy(fruit_forest)
        results = [
            add_sibling(fruit_forest, "kiwi", "S"),
            add_child(fruit_forest, "pears", "C"),
            duplicate_node(fruit_forest, "fruit"),
            delete_node(fruit_forest, "gala"),
            rename_node(fruit_forest, "veg", "Veg"),
            set_node_icon(fruit_forest, "carrot", "orange"),
            propagate_icon_to_branches(fruit_forest, "folder"),
        ]
        for result in results:
            for node in result:
                node["name"] = "mutated"
                for child in node.get("children") or []:
                    child["name"] = "mutated"
        assert fruit_forest == before

    def test_ids_stay_unique_over_a_sequence(self, abc_forest):
        forest = abc_forest
        for _ in range(3):
            forest = duplicate_node(forest, "A")
            forest = add_sibling(forest, "B", "S")
            forest = add_child(forest, "C", "K")
            forest = duplicate_node(forest, "C")
        ids = all_ids(forest)
        assert len(ids) == len(set(ids))
