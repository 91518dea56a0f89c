from treemarks.flatten import flatten_tree, head_of
from treemarks.ids import assign_ids
from treemarks.model import BOOKMARK, FOLDER, Node


def _by_title(rows):
    return {r.title: r for r in rows}


def test_example_tree_flattens_to_linked_rows():
    tree = assign_ids([Node(title="A"), Node(title="F", contents=[Node(title="B")])])
    a, f = tree
    b = f.contents[0]

    rows = flatten_tree(tree)
    assert len(rows) == 3
    got = _by_title(rows)

    assert got["A"].next_node == f.id
    assert got["A"].first_child is None
    assert got["A"].type == BOOKMARK

    assert got["F"].next_node is None
    assert got["F"].first_child == b.id
    assert got["F"].type == FOLDER

    assert got["B"].next_node is None
    assert got["B"].first_child is None
    assert head_of(tree) == a.id


def test_type_follows_children_not_declared_type():
    tree = assign_ids(
        [
            Node(title="declared-folder-but-empty", type=FOLDER),
            Node(title="has-children", type=BOOKMARK, contents=[Node(title="x")]),
        ]
    )
    got = _by_title(flatten_tree(tree))
    assert got["declared-folder-but-empty"].type == BOOKMARK
    assert got["declared-folder-but-empty"].first_child is None
    assert got["has-children"].type == FOLDER


def test_deep_nesting_keeps_every_sibling_chain():
    tree = assign_ids(
        [
            Node(
                title="F1",
                contents=[
                    Node(title="a"),
                    Node(title="F2", contents=[Node(title="b"), Node(title="c"), Node(title="d")]),
                    Node(title="e"),
                ],
            ),
            Node(title="z"),
        ]
    )
    rows = flatten_tree(tree)
    got = _by_title(rows)
    assert len(rows) == 8
    assert got["F1"].next_node == got["z"].id
    assert got["F1"].first_child == got["a"].id
    assert got["a"].next_node == got["F2"].id
    assert got["F2"].next_node == got["e"].id
    assert got["F2"].first_child == got["b"].id
    assert [got["b"].next_node, got["c"].next_node, got["d"].next_node] == [got["c"].id, got["d"].id, None]
    assert got["e"].next_node is None


def test_tags_are_carried_and_deduplicated():
    tree = assign_ids([Node(title="A", tags=["work", "news", "work"])])
    (row,) = flatten_tree(tree)
    assert row.tags == ["work", "news"]


def test_empty_tree_has_no_rows_and_no_head():
    assert flatten_tree([]) == []
    assert head_of([]) is None
