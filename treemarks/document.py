"""JSON documents exchanged with clients: nested trees in, nested or flat exports out."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Sequence

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter

from .model import BOOKMARK, FOLDER, Node, NodeRow

EXPORT_NS_ROOT = "toolbar"
EXPORT_TITLE = "Bookmarks bar"

_ROW_KEYS = (
    "id",
    "add_date",
    "last_modified",
    "ns_root",
    "title",
    "type",
    "icon",
    "url",
    "next_node",
    "first_child",
)


class NodeDocument(BaseModel):
    # Keys outside the node schema are dropped.
    model_config = ConfigDict(extra="ignore")

    # Any shape is accepted; ids that are not text are repaired later by ids.assign_ids.
    id: Any = None
    add_date: Optional[int] = None
    last_modified: Optional[int] = None
    ns_root: Optional[str] = None
    title: Optional[str] = None
    type: Optional[str] = None
    icon: Optional[str] = None
    url: Optional[str] = None
    tags: Optional[List[str]] = None
    contents: Optional[List["NodeDocument"]] = Field(
        None,
        validation_alias=AliasChoices("contents", "children"),
        description="Nested children; `contents` wins when both keys are sent.",
    )

    def to_node(self) -> Node:
        children = [c.to_node() for c in (self.contents or [])]
        return Node(
            id=_coerce_id(self.id),
            add_date=self.add_date,
            last_modified=self.last_modified,
            ns_root=self.ns_root,
            title=self.title,
            type=FOLDER if children else (self.type or BOOKMARK),
            icon=self.icon,
            url=self.url,
            tags=list(self.tags or []),
            contents=children,
        )


NodeDocument.model_rebuild()


def _coerce_id(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return None


class TreeDocument(BaseModel):
    model_config = ConfigDict(extra="ignore")

    contents: List[NodeDocument] = Field(
        default_factory=list,
        validation_alias=AliasChoices("contents", "children"),
    )


_NODE_LIST = TypeAdapter(List[NodeDocument])


def load_tree(data: Any) -> List[Node]:
    """Top-level nodes from a decoded document: a JSON array, or an object with contents/children."""
    if isinstance(data, list):
        docs = _NODE_LIST.validate_python(data)
    else:
        docs = TreeDocument.model_validate(data).contents
    return [d.to_node() for d in docs]


def load_tree_json(text: str) -> List[Node]:
    return load_tree(json.loads(text))


def node_to_dict(node: Node) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "id": node.id,
        "add_date": node.add_date,
        "last_modified": node.last_modified,
        "ns_root": node.ns_root,
        "title": node.title,
        "type": node.type,
        "icon": node.icon,
        "url": node.url,
        "tags": list(node.tags),
    }
    if node.type == FOLDER:
        out["contents"] = [node_to_dict(c) for c in node.contents]
    return out


def dump_tree_json(root: Node, *, indent: Optional[int] = 2) -> str:
    return json.dumps(node_to_dict(root), ensure_ascii=False, indent=indent)


def row_to_dict(row: NodeRow) -> Dict[str, Any]:
    return {k: getattr(row, k) for k in _ROW_KEYS}


def flat_export_json(
    ordered_rows: Sequence[NodeRow],
    *,
    ns_root: str = EXPORT_NS_ROOT,
    title: str = EXPORT_TITLE,
) -> str:
    """Compact flat export: one wrapper folder whose children are the rows in chain order."""
    doc = {
        "bookmarks": {
            "ns_root": ns_root,
            "title": title,
            "type": FOLDER,
            "children": [row_to_dict(r) for r in ordered_rows],
        }
    }
    return json.dumps(doc, ensure_ascii=False, separators=(",", ":"))
