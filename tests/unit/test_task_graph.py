"""
Unit tests for subtask hierarchy traversal.
"""

from uuid import uuid4

from workplan.utils.task_graph import descendant_ids, descendant_levels


def test_levels_follow_depth():
    root, child, other_child, grandchild = uuid4(), uuid4(), uuid4(), uuid4()
    adjacency = {root: [child, other_child], child: [grandchild]}

    assert descendant_levels(adjacency, root) == {child: 1, other_child: 1, grandchild: 2}


def test_leaf_has_no_descendants():
    leaf = uuid4()

    assert descendant_ids({uuid4(): [leaf]}, leaf) == set()


def test_subtree_only():
    root, child, sibling = uuid4(), uuid4(), uuid4()
    adjacency = {root: [child, sibling], child: []}

    assert descendant_ids(adjacency, child) == set()
    assert descendant_ids(adjacency, root) == {child, sibling}


def test_cycle_in_adjacency_terminates():
    first, second = uuid4(), uuid4()
    adjacency = {first: [second], second: [first]}

    assert descendant_levels(adjacency, first) == {second: 1}


def test_deep_chain():
    chain = [uuid4() for _ in range(500)]
    adjacency = {parent: [child] for parent, child in zip(chain, chain[1:])}

    levels = descendant_levels(adjacency, chain[0])

    assert len(levels) == 499
    assert levels[chain[-1]] == 499
