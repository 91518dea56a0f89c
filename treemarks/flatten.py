from __future__ import annotations

from typing import List, Optional, Sequence

from .log import get_logger
from .model import BOOKMARK, FOLDER, Node, NodeRow

log = get_logger(__name__)


def flatten_tree(nodes: Sequence[Node]) -> List[NodeRow]:
    """Turn a nested tree into flat rows linked by `next_node` / `first_child`.

    Every node yields exactly one row. A folder's descendants are emitted before
    the folder itself; only the pointers carry order, never the row position.
    Ids are expected to be assigned already (see `ids.assign_ids`).
    """
    rows: List[NodeRow] = []
    _flatten_into(nodes, rows)
    log.debug("Flattened %d top-level nodes into %d rows", len(nodes), len(rows))
    return rows


def _flatten_into(siblings: Sequence[Node], out: List[NodeRow]) -> None:
    for idx, node in enumerate(siblings):
        first_child: Optional[str] = None
        if node.is_folder:
            first_child = node.contents[0].id
            _flatten_into(node.contents, out)
        nxt = siblings[idx + 1] if idx + 1 < len(siblings) else None
        out.append(
            NodeRow(
                id=node.id,
                add_date=node.add_date,
                last_modified=node.last_modified,
                ns_root=node.ns_root,
                title=node.title,
                type=FOLDER if node.is_folder else BOOKMARK,
                icon=node.icon,
                url=node.url,
                next_node=nxt.id if nxt is not None else None,
                first_child=first_child,
                tags=_unique(node.tags),
            )
        )


def head_of(nodes: Sequence[Node]) -> Optional[str]:
    if not nodes:
        return None
    return nodes[0].id


def _unique(names: Sequence[str]) -> List[str]:
    seen = set()
    out: List[str] = []
    for name in names:
        if name in seen:
            continue
        seen.add(name)
        out.append(name)
    return out
