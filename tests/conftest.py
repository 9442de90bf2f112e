"""Shared forest fixtures."""

import pytest


@pytest.fixture
def abc_forest():
    """[A[B, C[D, E]]] with ids equal to names."""
    return [
        {
            "id": "A",
            "name": "A",
            "children": [
                {"id": "B", "name": "B"},
                {"id": "C", "name": "C", "children": [
                    {"id": "D", "name": "D"},
                    {"id": "E", "name": "E"},
                ]},
            ],
        }
    ]


@pytest.fixture
def fruit_forest():
    """Two roots mixing leaves, empty branches and icons."""
    return [
        {
            "id": "fruit",
            "name": "Fruit",
            "icon": "basket",
            "children": [
                {"id": "apples", "name": "Apples", "children": [
                    {"id": "gala", "name": "Gala"},
                    {"id": "fuji", "name": "Fuji"},
                ]},
                {"id": "pears", "name": "Pears", "children": []},
                {"id": "kiwi", "name": "Kiwi"},
            ],
        },
        {
            "id": "veg",
            "name": "Vegetables",
            "children": [
                {"id": "carrot", "name": "Carrot"},
            ],
        },
    ]


def chain_forest(depth):
    """A single path of ``depth`` nested nodes, built without recursion."""
    root = {"id": "n0", "name": "n0", "children": []}
    current = root
    for i in range(1, depth):
        child = {"id": f"n{i}", "name": f"n{i}", "children": []}
        current["children"].append(child)
        current = child
    return [root]


def all_ids(forest):
    ids = []
    stack = list(reversed(forest))
    while stack:
        node = stack.pop()
        ids.append(node["id"])
        stack.extend(reversed(node.get("children") or []))
    return ids
