from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Set

from .log import get_logger
from .model import FOLDER, Node, NodeRow

log = get_logger(__name__)

# Id of the synthetic folder wrapping a list's top level. Never a UUID, so it
# cannot collide with a stored node.
ROOT_ID = "root"


class StructureCorrupted(ValueError):
    """Stored pointer chain is not a single acyclic singly linked list."""


def find_chain_head(rows: Sequence[NodeRow]) -> NodeRow:
    """Return the only row whose id is never used as another row's `next_node`."""
    referenced = {r.next_node for r in rows if r.next_node is not None}
    heads = [r for r in rows if r.id not in referenced]
    if len(heads) != 1:
        log.error("Chain has %d head candidates among %d rows", len(heads), len(rows))
        raise StructureCorrupted(f"bookmark structure corrupted: {len(heads)} chain heads")
    return heads[0]


def build_flat_list(rows: Sequence[NodeRow]) -> List[NodeRow]:
    """Order the rows of a single flat list by following `next_node` from the head.

    Raises StructureCorrupted for an empty list, several heads, a cycle, or rows
    the chain never reaches.
    """
    head = find_chain_head(rows)
    by_id: Dict[str, NodeRow] = {r.id: r for r in rows}
    out: List[NodeRow] = []
    seen: Set[str] = set()
    cur: Optional[NodeRow] = head
    while cur is not None:
        if cur.id in seen:
            raise StructureCorrupted(f"bookmark structure corrupted: cycle at {cur.id}")
        seen.add(cur.id)
        out.append(cur)
        cur = by_id.get(cur.next_node) if cur.next_node is not None else None
    if len(out) != len(by_id):
        raise StructureCorrupted(
            f"bookmark structure corrupted: {len(by_id) - len(out)} rows outside the chain"
        )
    return out


def build_tree(rows: Sequence[NodeRow], head: Optional[str]) -> Node:
    """Rebuild the nested tree of a list from its rows and stored head.

    Returns a synthetic root folder (id ROOT_ID, empty title) whose contents are
    the top-level nodes. Pointer fields do not survive into the nested form.
    """
    by_id: Dict[str, NodeRow] = {r.id: r for r in rows}
    first_child_of: Dict[str, Optional[str]] = {ROOT_ID: head}
    for r in rows:
        if r.first_child is not None:
            first_child_of[r.id] = r.first_child

    placed: Set[str] = set()
    root = Node(id=ROOT_ID, title="", type=FOLDER)
    root.contents = _collect_children(ROOT_ID, first_child_of, by_id, placed)

    unreached = len(by_id) - len(placed)
    if unreached:
        log.warning("%d stored rows are not reachable from the list head", unreached)
    return root


def _collect_children(
    folder_id: str,
    first_child_of: Dict[str, Optional[str]],
    by_id: Dict[str, NodeRow],
    placed: Set[str],
) -> List[Node]:
    contents: List[Node] = []
    cur_id = first_child_of.get(folder_id)
    while cur_id is not None:
        row = by_id.get(cur_id)
        if row is None:
            log.warning("Folder %s points at missing node %s; chain cut short", folder_id, cur_id)
            break
        if row.id in placed:
            raise StructureCorrupted(f"bookmark structure corrupted: node {row.id} reached twice")
        placed.add(row.id)
        node = _node_from_row(row)
        if row.id in first_child_of:
            node.contents = _collect_children(row.id, first_child_of, by_id, placed)
        contents.append(node)
        cur_id = row.next_node
    return contents


def _node_from_row(row: NodeRow) -> Node:
    return Node(
        id=row.id,
        add_date=row.add_date,
        last_modified=row.last_modified,
        ns_root=row.ns_root,
        title=row.title,
        type=row.type,
        icon=row.icon,
        url=row.url,
        tags=list(row.tags),
    )
