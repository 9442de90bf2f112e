"""Tests for id generation and cloning."""

from nodetree_mcp.engine.identity import (
    assign_ids,
    clone_forest,
    clone_with_fresh_ids,
    default_forest,
    new_id,
    sample_forest,
)

from conftest import all_ids, chain_forest


class TestNewId:
    def test_prefix(self):
        assert new_id("child").startswith("child-")

    def test_ids_are_distinct(self):
        ids = {new_id() for _ in range(20000)}
        assert len(ids) == 20000


class TestCloneForest:
    def test_clone_is_equal_but_independent(self, fruit_forest):
        copy = clone_forest(fruit_forest)
        assert copy == fruit_forest
        assert copy is not fruit_forest
        assert copy[0] is not fruit_forest[0]
        assert copy[0]["children"] is not fruit_forest[0]["children"]

        copy[0]["children"][0]["name"] = "Changed"
        copy[0]["children"][0]["children"].append({"id": "new", "name": "New"})
        assert fruit_forest[0]["children"][0]["name"] == "Apples"
        assert len(fruit_forest[0]["children"][0]["children"]) == 2

    def test_leaf_and_empty_branch_preserved(self, fruit_forest):
        copy = clone_forest(fruit_forest)
        pears = copy[0]["children"][1]
        kiwi = copy[0]["children"][2]
        assert pears["children"] == []
        assert "children" not in kiwi

    def test_deep_forest_does_not_hit_recursion_limit(self):
        forest = chain_forest(5000)
        copy = clone_forest(forest)
        assert all_ids(copy) == all_ids(forest)


class TestFreshIds:
    def test_every_copied_node_gets_new_id(self, fruit_forest):
        original = fruit_forest[0]
        duplicate = clone_with_fresh_ids(original)
        old_ids = set(all_ids([original]))
        new_ids = all_ids([duplicate])
        assert len(new_ids) == len(old_ids)
        assert not old_ids & set(new_ids)
        assert duplicate["name"] == original["name"]
        assert duplicate["icon"] == "basket"


class TestAssignIds:
    def test_fills_missing_ids_and_keeps_existing(self):
        template = [{"name": "Root", "children": [{"name": "Leaf"}, {"id": "keep", "name": "Kept"}]}]
        forest = assign_ids(template, prefix="t")
        assert forest[0]["id"].startswith("t-")
        assert forest[0]["children"][0]["id"].startswith("t-")
        assert forest[0]["children"][1]["id"] == "keep"
        assert "id" not in template[0]

    def test_default_forest(self):
        forest = default_forest()
        assert len(forest) == 1
        assert forest[0]["name"] == "Root Node"
        assert forest[0]["children"] == []


def test_sample_forest_shape():
    forest = sample_forest(3, 2)
    assert [n["id"] for n in forest] == ["n-0", "n-1", "n-2"]
    assert forest[1]["children"] == [
        {"id": "n-1-0", "name": "Item 1.0"},
        {"id": "n-1-1", "name": "Item 1.1"},
    ]
    assert len(all_ids(forest)) == 9
